from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, case
from sqlalchemy.exc import IntegrityError

from ecoreport.core.errors import InsufficientPoints, InsufficientState, NotFound, ValidationFailure
from ecoreport.core.settings import settings
from ecoreport.models.points import Reward, PointsTransaction
from ecoreport.services.notification_service import create_notification

logger = logging.getLogger(__name__)

EARNED_REPORT = "earned_report"
EARNED_COLLECT = "earned_collect"
REDEEMED = "redeemed"


def _signed(type_: str, amount: int) -> int:
    return amount if type_.startswith("earned") else -amount


async def _select_reward(db: AsyncSession, user_id: int) -> Reward | None:
    return (await db.execute(
        select(Reward).where(Reward.user_id == user_id).execution_options(populate_existing=True)
    )).scalar_one_or_none()


async def get_or_create_reward(db: AsyncSession, user_id: int) -> Reward:
    reward = await _select_reward(db, user_id)
    if reward:
        return reward
    try:
        async with db.begin_nested():
            reward = Reward(
                user_id=user_id,
                name="Default Reward",
                collection_info="Default Collection Info",
                points=0,
                level=1,
                is_available=True,
            )
            db.add(reward)
    except IntegrityError:
        # a parallel request created the row first
        reward = await _select_reward(db, user_id)
        if not reward:
            raise
    return reward


async def get_balance(db: AsyncSession, user_id: int) -> int:
    """Fold the user's whole transaction history into a balance, clamped at zero."""
    rows = (await db.execute(
        select(PointsTransaction.type, func.sum(PointsTransaction.amount))
        .where(PointsTransaction.user_id == user_id)
        .group_by(PointsTransaction.type)
    )).all()
    balance = sum(_signed(type_, int(total or 0)) for type_, total in rows)
    return max(balance, 0)


async def get_reward_transactions(db: AsyncSession, user_id: int, limit: int | None = None) -> list[dict]:
    """Most recent transactions for display. Not a balance source."""
    limit = limit if limit is not None else settings.TRANSACTION_WINDOW
    rows = (await db.execute(
        select(PointsTransaction)
        .where(PointsTransaction.user_id == user_id)
        .order_by(PointsTransaction.date.desc(), PointsTransaction.id.desc())
        .limit(limit)
    )).scalars().all()
    return [
        {
            "id": t.id,
            "type": t.type,
            "amount": t.amount,
            "description": t.description,
            "date": t.date.date().isoformat(),
        }
        for t in rows
    ]


async def _refresh_level(db: AsyncSession, reward: Reward) -> None:
    earned = (await db.execute(
        select(func.coalesce(func.sum(PointsTransaction.amount), 0))
        .where(PointsTransaction.user_id == reward.user_id, PointsTransaction.type.like("earned%"))
    )).scalar_one()
    level = 1 + int(earned) // max(settings.POINTS_PER_LEVEL, 1)
    if level != reward.level:
        await db.execute(
            update(Reward).where(Reward.id == reward.id).values(level=level)
            .execution_options(synchronize_session=False)
        )


async def credit_points(
    db: AsyncSession,
    user_id: int,
    amount: int,
    reason_type: str,
    description: str,
    notify: str | None = None,
) -> int:
    """Record an earning and bump the cached balance in the caller's unit of work.

    Returns the new balance. Raises ValidationFailure for non-positive amounts
    or a type that is not an ``earned_*`` type.
    """
    if amount <= 0:
        raise ValidationFailure("amount_must_be_positive")
    if not reason_type.startswith("earned"):
        raise ValidationFailure("invalid_credit_type")

    reward = await get_or_create_reward(db, user_id)
    db.add(PointsTransaction(user_id=user_id, type=reason_type, amount=amount, description=description))
    await db.execute(
        update(Reward)
        .where(Reward.id == reward.id)
        .values(points=Reward.points + amount, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if notify:
        await create_notification(db, user_id, notify, "reward")
    await db.flush()
    await _refresh_level(db, reward)
    await db.refresh(reward)
    logger.info("credited %s points to user %s (%s), balance %s", amount, user_id, reason_type, reward.points)
    return reward.points


async def _debit(db: AsyncSession, reward: Reward, amount: int) -> None:
    # single conditional statement: concurrent redemptions cannot both pass
    result = await db.execute(
        update(Reward)
        .where(Reward.id == reward.id, Reward.points >= amount)
        .values(points=Reward.points - amount, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("redemption of %s points rejected for user %s", amount, reward.user_id)
        raise InsufficientPoints()
    await db.refresh(reward)


async def redeem_points(db: AsyncSession, user_id: int, reward_id: int) -> Reward:
    """Redeem a catalog item, or the whole balance when ``reward_id`` is 0.

    Returns the user's refreshed balance row. Nothing is written when the
    redemption is rejected.
    """
    if reward_id == 0:
        reward = (await db.execute(
            select(Reward).where(Reward.user_id == user_id).execution_options(populate_existing=True)
        )).scalar_one_or_none()
        if not reward:
            raise InsufficientState()
        amount = reward.points
        if amount <= 0:
            raise InsufficientPoints()
        description = f"Redeemed all points: {amount}"
    else:
        item = (await db.execute(
            select(Reward).where(
                Reward.id == reward_id,
                Reward.user_id.is_(None),
                Reward.is_available.is_(True),
            )
        )).scalar_one_or_none()
        if not item:
            raise NotFound("reward_not_found")
        if item.points <= 0:
            raise ValidationFailure("invalid_reward_cost")
        reward = await get_or_create_reward(db, user_id)
        amount = item.points
        description = f"Redeemed: {item.name}"

    await _debit(db, reward, amount)
    db.add(PointsTransaction(user_id=user_id, type=REDEEMED, amount=amount, description=description))
    await db.flush()
    logger.info("user %s redeemed %s points (reward %s)", user_id, amount, reward_id)
    return reward


async def save_reward(db: AsyncSession, user_id: int, amount: int) -> Reward:
    """Credit a collection reward through the same path as report earnings."""
    await credit_points(
        db,
        user_id,
        amount,
        EARNED_COLLECT,
        "Points earned for collecting waste",
        notify=f"You've earned {amount} points for collecting waste!",
    )
    return await get_or_create_reward(db, user_id)


def _ledger_balance():
    """Correlated clamp(fold) over ``transactions`` for the Reward row being updated."""
    signed = case(
        (PointsTransaction.type.like("earned%"), PointsTransaction.amount),
        else_=-PointsTransaction.amount,
    )
    total = (
        select(func.coalesce(func.sum(signed), 0))
        .where(PointsTransaction.user_id == Reward.user_id)
        .scalar_subquery()
    )
    return case((total > 0, total), else_=0)


async def reconcile_balance(db: AsyncSession, user_id: int) -> tuple[int, int]:
    """Compare the cached balance with the folded ledger and repair drift.

    The repair is one UPDATE that folds the ledger inside the statement, so a
    credit committed while we run is never overwritten by a stale total.
    Returns ``(cached, derived)``: the cached value seen before the repair and
    the balance the row holds afterwards.
    """
    reward = await get_or_create_reward(db, user_id)
    cached = reward.points
    derived = _ledger_balance()
    result = await db.execute(
        update(Reward)
        .where(Reward.id == reward.id, Reward.points != derived)
        .values(points=derived, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.refresh(reward)
    if result.rowcount:
        logger.warning("balance drift for user %s: cached=%s ledger=%s", user_id, cached, reward.points)
    return cached, reward.points
