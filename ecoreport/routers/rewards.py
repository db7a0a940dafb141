from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ecoreport.db import get_db
from ecoreport.deps import get_current_user
from ecoreport.models.user import User
from ecoreport.services.points_service import get_balance, get_reward_transactions, reconcile_balance, redeem_points
from ecoreport.services.queries import get_all_rewards, get_available_rewards

router = APIRouter(prefix="/api/v1/rewards", tags=["rewards"])


class RedeemIn(BaseModel):
    reward_id: int = Field(ge=0, description="0 redeems the whole balance")


@router.get("/leaderboard")
async def leaderboard(db: AsyncSession = Depends(get_db)):
    rows = await get_all_rewards(db)
    return [
        {
            "id": r["id"],
            "userId": r["user_id"],
            "userName": r["user_name"],
            "points": r["points"],
            "level": r["level"],
            "createdAt": r["created_at"].isoformat(),
        }
        for r in rows
    ]


@router.get("/available")
async def available(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await get_available_rewards(db, user.id)


@router.get("/balance")
async def balance(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return {
        "balance": await get_balance(db, user.id),
        "transactions": await get_reward_transactions(db, user.id),
    }


@router.post("/redeem")
async def redeem(payload: RedeemIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    reward = await redeem_points(db, user.id, payload.reward_id)
    return {"ok": True, "balance": reward.points}


@router.post("/reconcile")
async def reconcile(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    cached, derived = await reconcile_balance(db, user.id)
    return {"cached": cached, "ledger": derived, "repaired": cached != derived}
