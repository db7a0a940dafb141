from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, ForeignKey, DateTime, String, Boolean, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ecoreport.db import Base


class Reward(Base):
    """A user's balance row (``user_id`` set) or a catalog item (``user_id`` NULL).

    For catalog items ``points`` is the redemption cost.
    """

    __tablename__ = "rewards"
    __table_args__ = (CheckConstraint("points >= 0", name="ck_rewards_points_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    collection_info: Mapped[str] = mapped_column(Text, default="")
    points: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class PointsTransaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    type: Mapped[str] = mapped_column(String(20))  # earned_report/earned_collect/redeemed
    amount: Mapped[int] = mapped_column(Integer)
    description: Mapped[str] = mapped_column(Text)
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
