from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ecoreport.models.points import Reward


async def ensure_default_catalog(db: AsyncSession) -> None:
    existing = (await db.execute(select(Reward).where(Reward.user_id.is_(None)).limit(1))).scalar_one_or_none()
    if existing:
        return
    db.add_all([
        Reward(name="Reusable Tote Bag", points=50, description="A sturdy cotton bag for your shopping",
               collection_info="Pick up at any partner recycling centre"),
        Reward(name="Plant a Tree", points=100, description="We plant a tree in your name",
               collection_info="Certificate sent by email"),
        Reward(name="Transit Day Pass", points=200, description="One day of free public transport",
               collection_info="Code shown in your notifications"),
    ])
