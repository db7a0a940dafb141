from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ecoreport.models.points import Reward
from ecoreport.models.report import Report
from ecoreport.models.user import User
from ecoreport.services.points_service import get_balance


async def get_all_rewards(db: AsyncSession) -> list[dict]:
    """Leaderboard rows, highest balance first; equal balances by user id."""
    rows = await db.execute(
        select(
            Reward.id,
            Reward.user_id,
            Reward.points,
            Reward.level,
            Reward.created_at,
            User.name.label("user_name"),
        )
        .select_from(Reward)
        .outerjoin(User, Reward.user_id == User.id)
        .where(Reward.user_id.is_not(None))
        .order_by(Reward.points.desc(), Reward.user_id.asc())
    )
    return [dict(r) for r in rows.mappings().all()]


async def get_recent_reports(db: AsyncSession, limit: int = 10) -> list[Report]:
    rows = await db.execute(
        select(Report).order_by(Report.created_at.desc(), Report.id.desc()).limit(limit)
    )
    return list(rows.scalars().all())


async def get_available_rewards(db: AsyncSession, user_id: int) -> list[dict]:
    # id 0 stands for the user's own balance (redeem-all)
    balance = await get_balance(db, user_id)
    catalog = (await db.execute(
        select(Reward)
        .where(Reward.user_id.is_(None), Reward.is_available.is_(True))
        .order_by(Reward.points.asc(), Reward.id.asc())
    )).scalars().all()
    return [
        {
            "id": 0,
            "name": "Your Points",
            "cost": balance,
            "description": "Redeem your earned points",
            "collectionInfo": "Points earned from reporting and collecting waste",
        },
        *(
            {
                "id": r.id,
                "name": r.name,
                "cost": r.points,
                "description": r.description,
                "collectionInfo": r.collection_info,
            }
            for r in catalog
        ),
    ]
