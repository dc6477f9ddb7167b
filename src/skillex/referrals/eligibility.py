"""Referral eligibility: who may refer whom, and when.

A referral is allowed only between two distinct members of the same cohort,
and only once the cohort has held at least 75% of its planned sessions.
Everything here is pure; callers load the inputs.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

REFERRAL_ELIGIBILITY_THRESHOLD = 75


class RejectionReason(str, Enum):
    SELF_REFERRAL = "self_referral"
    NOT_A_MEMBER = "not_a_member"
    BELOW_THRESHOLD = "below_threshold"


@dataclass(frozen=True)
class ReferralDecision:
    allowed: bool
    reason: RejectionReason | None
    percentage: int

    @property
    def message(self) -> str:
        if self.reason is RejectionReason.SELF_REFERRAL:
            return "You cannot refer yourself"
        if self.reason is RejectionReason.NOT_A_MEMBER:
            return "Both users must be members of the cohort"
        if self.reason is RejectionReason.BELOW_THRESHOLD:
            return (
                f"Cohort must be at least {REFERRAL_ELIGIBILITY_THRESHOLD}% complete to make referrals "
                f"(currently {self.percentage}%)"
            )
        return "Referral allowed"


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def completed_session_count(session_starts: Iterable[datetime], now: datetime) -> int:
    """Sessions whose start time has passed."""
    cutoff = _as_utc(now)
    return sum(1 for starts_at in session_starts if _as_utc(starts_at) < cutoff)


def completion_percentage(session_starts: Iterable[datetime], total_sessions: int, now: datetime) -> int:
    """
    Share of planned sessions already held, as an integer 0-100.

    Halves round up (62.5 -> 63). A cohort with no planned sessions is 0%
    complete, so it can never unlock referrals.
    """
    if total_sessions <= 0:
        return 0
    completed = completed_session_count(session_starts, now)
    percentage = (200 * completed + total_sessions) // (2 * total_sessions)
    return min(percentage, 100)


def is_eligible(percentage: int) -> bool:
    return percentage >= REFERRAL_ELIGIBILITY_THRESHOLD


def evaluate_referral(
    sender_id: str,
    recipient_id: str,
    member_ids: Collection[str],
    completion_percentage: int,
) -> ReferralDecision:
    """Decide whether ``sender_id`` may refer ``recipient_id`` within a cohort."""
    if sender_id == recipient_id:
        return ReferralDecision(False, RejectionReason.SELF_REFERRAL, completion_percentage)
    if sender_id not in member_ids or recipient_id not in member_ids:
        return ReferralDecision(False, RejectionReason.NOT_A_MEMBER, completion_percentage)
    if not is_eligible(completion_percentage):
        return ReferralDecision(False, RejectionReason.BELOW_THRESHOLD, completion_percentage)
    return ReferralDecision(True, None, completion_percentage)
