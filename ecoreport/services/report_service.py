from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from ecoreport.core.errors import InvalidTransition, NotFound, ValidationFailure
from ecoreport.core.settings import settings
from ecoreport.models.points import Reward
from ecoreport.models.report import Report, CollectedWaste
from ecoreport.models.user import User
from ecoreport.services.points_service import EARNED_REPORT, credit_points, save_reward

logger = logging.getLogger(__name__)


class ReportStatus(str, Enum):
    PENDING = "pending"
    COLLECTED = "collected"


_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.COLLECTED}),
    ReportStatus.COLLECTED: frozenset(),
}


def parse_status(value: str) -> ReportStatus:
    try:
        return ReportStatus(value)
    except ValueError:
        raise ValidationFailure("unknown_status")


def transition(current: ReportStatus, target: ReportStatus) -> ReportStatus:
    if target not in _TRANSITIONS[current]:
        raise InvalidTransition()
    return target


@dataclass
class CollectionResult:
    report: Report
    collected: CollectedWaste
    reward: Reward


async def _require_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("user_not_found")
    return user


async def _require_report(db: AsyncSession, report_id: int) -> Report:
    report = await db.get(Report, report_id)
    if not report:
        raise NotFound("report_not_found")
    return report


async def create_report(
    db: AsyncSession,
    user_id: int,
    location: str,
    waste_type: str,
    amount: str,
    image_url: str | None = None,
    verification: dict | None = None,
) -> Report:
    """Insert a pending report and credit the reporter.

    Report, transaction and notification are written in the caller's unit of
    work, so a failed credit leaves no orphan report behind.
    """
    location = (location or "").strip()
    waste_type = (waste_type or "").strip()
    amount = (amount or "").strip()
    if not (location and waste_type and amount):
        raise ValidationFailure("missing_report_fields")
    await _require_user(db, user_id)

    report = Report(
        user_id=user_id,
        location=location,
        waste_type=waste_type,
        amount=amount,
        image_url=image_url,
        verification_result=verification,
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    await db.flush()

    points = settings.REPORT_POINTS
    await credit_points(
        db,
        user_id,
        points,
        EARNED_REPORT,
        "Points earned for reporting waste",
        notify=f"You've earned {points} points for reporting waste!",
    )
    logger.info("report %s created by user %s", report.id, user_id)
    return report


async def update_task_status(db: AsyncSession, report_id: int, new_status: str, collector_id: int) -> Report:
    report = await _require_report(db, report_id)
    await _require_user(db, collector_id)
    current = parse_status(report.status)
    target = transition(current, parse_status(new_status))

    # guarded on the status we validated against: a concurrent claim loses
    result = await db.execute(
        update(Report)
        .where(Report.id == report_id, Report.status == current.value)
        .values(status=target.value, collector_id=collector_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition("report_already_claimed")
    await db.refresh(report)
    logger.info("report %s moved %s -> %s by collector %s", report_id, current.value, target.value, collector_id)
    return report


async def save_collected_waste(
    db: AsyncSession,
    report_id: int,
    collector_id: int,
    verification: dict | None = None,
) -> CollectedWaste:
    await _require_report(db, report_id)
    collected = CollectedWaste(
        report_id=report_id,
        collector_id=collector_id,
        status="verified",
        verification_result=verification,
    )
    db.add(collected)
    await db.flush()
    return collected


async def collect_report(
    db: AsyncSession,
    report_id: int,
    collector_id: int,
    verification: dict | None = None,
) -> CollectionResult:
    """Claim a pending report, record the collection and pay the collector."""
    report = await update_task_status(db, report_id, ReportStatus.COLLECTED.value, collector_id)
    collected = await save_collected_waste(db, report_id, collector_id, verification)
    reward = await save_reward(db, collector_id, settings.COLLECT_POINTS)
    return CollectionResult(report=report, collected=collected, reward=reward)


async def get_waste_collection_tasks(db: AsyncSession, limit: int = 20, status: str | None = None) -> list[dict]:
    stmt = select(Report).order_by(Report.created_at.desc(), Report.id.desc()).limit(limit)
    if status:
        stmt = stmt.where(Report.status == parse_status(status).value)
    reports = (await db.execute(stmt)).scalars().all()
    return [
        {
            "id": r.id,
            "location": r.location,
            "wasteType": r.waste_type,
            "amount": r.amount,
            "status": r.status,
            "date": r.created_at.date().isoformat(),
            "collectorId": r.collector_id,
        }
        for r in reports
    ]
