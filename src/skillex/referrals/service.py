"""Referral business logic: eligibility lookup and the draft/sent/accepted lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from skillex.cohorts.service import get_member_ids
from skillex.db.models import CohortSession, Referral
from skillex.notifications.service import create_notification
from skillex.referrals.eligibility import (
    ReferralDecision,
    completed_session_count,
    completion_percentage,
    evaluate_referral,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from skillex.db.models import Cohort

logger = structlog.get_logger()


@dataclass(frozen=True)
class CohortProgress:
    percentage: int
    sessions_completed: int
    total_sessions: int
    member_ids: frozenset[str]


async def get_cohort_progress(db: AsyncSession, cohort: Cohort, now: datetime | None = None) -> CohortProgress:
    """Completion of a cohort measured against its planned weeks."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(select(CohortSession.starts_at).where(CohortSession.cohort_id == cohort.id))
    starts = list(result.scalars().all())
    return CohortProgress(
        percentage=completion_percentage(starts, cohort.weeks, now),
        sessions_completed=completed_session_count(starts, now),
        total_sessions=cohort.weeks,
        member_ids=frozenset(await get_member_ids(db, cohort.id)),
    )


async def check_referral(db: AsyncSession, sender_id: str, recipient_id: str, cohort: Cohort) -> ReferralDecision:
    progress = await get_cohort_progress(db, cohort)
    decision = evaluate_referral(sender_id, recipient_id, progress.member_ids, progress.percentage)
    if not decision.allowed:
        logger.info(
            "referral_rejected",
            cohort_id=cohort.id,
            reason=decision.reason.value,
            completion_percentage=decision.percentage,
        )
    return decision


async def create_referral(
    db: AsyncSession,
    from_user_id: str,
    to_user_id: str,
    cohort_id: str,
    context: str,
    status: str = "draft",
) -> Referral:
    """Persist a referral that has already passed the eligibility check."""
    referral = Referral(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        cohort_id=cohort_id,
        context=context,
        status=status,
        created_at=datetime.now(timezone.utc),
    )
    db.add(referral)
    await db.flush()

    if status == "sent":
        await _notify_received(db, referral)

    logger.info("referral_created", referral_id=referral.id, cohort_id=cohort_id, status=status)
    return referral


async def get_referral(db: AsyncSession, referral_id: str) -> Referral | None:
    result = await db.execute(select(Referral).where(Referral.id == referral_id))
    return result.scalar_one_or_none()


async def list_referrals(db: AsyncSession, user_id: str) -> tuple[list[Referral], list[Referral]]:
    """``(sent, received)`` for a user, newest first."""
    result = await db.execute(
        select(Referral)
        .options(selectinload(Referral.from_user), selectinload(Referral.to_user))
        .where(or_(Referral.from_user_id == user_id, Referral.to_user_id == user_id))
        .order_by(Referral.created_at.desc())
    )
    referrals = list(result.scalars().all())
    sent = [r for r in referrals if r.from_user_id == user_id]
    received = [r for r in referrals if r.to_user_id == user_id]
    return sent, received


async def _notify_received(db: AsyncSession, referral: Referral) -> None:
    await create_notification(
        db,
        referral.to_user_id,
        "referral_received",
        {"referralId": referral.id, "fromUserId": referral.from_user_id, "cohortId": referral.cohort_id},
    )


async def send_referral(db: AsyncSession, referral: Referral) -> Referral:
    """
    Move a draft to ``sent`` and notify the recipient.

    Raises:
        ValueError: If the referral is not a draft.
    """
    if referral.status != "draft":
        msg = f"Cannot send a referral in '{referral.status}' state"
        raise ValueError(msg)
    referral.status = "sent"
    await db.flush()
    await _notify_received(db, referral)
    logger.info("referral_sent", referral_id=referral.id)
    return referral


async def respond_to_referral(db: AsyncSession, referral: Referral, *, accept: bool) -> Referral:
    """
    Accept or decline a sent referral. Acceptance notifies the sender.

    Raises:
        ValueError: If the referral has not been sent or was already answered.
    """
    if referral.status != "sent":
        msg = f"Cannot respond to a referral in '{referral.status}' state"
        raise ValueError(msg)
    referral.status = "accepted" if accept else "declined"
    await db.flush()

    if accept:
        await create_notification(
            db,
            referral.from_user_id,
            "referral_accepted",
            {"referralId": referral.id, "toUserId": referral.to_user_id, "cohortId": referral.cohort_id},
        )
    logger.info("referral_answered", referral_id=referral.id, status=referral.status)
    return referral
