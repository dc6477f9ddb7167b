"""Referral endpoints and the cohort referral-eligibility summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.cohorts.access import member_cohort
from skillex.cohorts.service import get_cohort
from skillex.database import get_session
from skillex.db.models import Referral
from skillex.errors import ApiError
from skillex.referrals.eligibility import REFERRAL_ELIGIBILITY_THRESHOLD, RejectionReason, is_eligible
from skillex.referrals.schemas import (
    ReferralCreateRequest,
    ReferralEligibilityResponse,
    ReferralListResponse,
    ReferralResponse,
)
from skillex.referrals.service import (
    check_referral,
    create_referral,
    get_cohort_progress,
    get_referral,
    list_referrals,
    respond_to_referral,
    send_referral,
)
from skillex.schemas import UserSummary

router = APIRouter(prefix="/v1", tags=["Referrals"])


def _referral_response(referral: Referral, *, with_users: bool = False) -> ReferralResponse:
    return ReferralResponse(
        id=referral.id,
        from_user_id=referral.from_user_id,
        to_user_id=referral.to_user_id,
        cohort_id=referral.cohort_id,
        context=referral.context,
        status=referral.status,
        created_at=referral.created_at,
        from_user=UserSummary.model_validate(referral.from_user) if with_users else None,
        to_user=UserSummary.model_validate(referral.to_user) if with_users else None,
    )


@router.post("/referrals", response_model=ReferralResponse, status_code=201)
async def create_referral_endpoint(
    body: ReferralCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReferralResponse:
    """Refer a fellow cohort member, once the cohort is far enough along."""
    cohort = await get_cohort(db, body.cohort_id)
    if cohort is None:
        raise ApiError(404, "Cohort not found")

    decision = await check_referral(db, auth.id, body.to_user_id, cohort)
    if decision.reason is RejectionReason.SELF_REFERRAL:
        raise ApiError(400, decision.message)
    if not decision.allowed:
        raise ApiError(
            403,
            decision.message,
            details={
                "threshold": REFERRAL_ELIGIBILITY_THRESHOLD,
                "completionPercentage": decision.percentage,
            },
        )

    referral = await create_referral(
        db,
        from_user_id=auth.id,
        to_user_id=body.to_user_id,
        cohort_id=cohort.id,
        context=body.context,
        status=body.status,
    )
    await db.commit()
    return _referral_response(referral)


@router.get("/referrals", response_model=ReferralListResponse)
async def list_referrals_endpoint(
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReferralListResponse:
    """Referrals the caller sent and received."""
    sent, received = await list_referrals(db, auth.id)
    everything = sent + received
    return ReferralListResponse(
        sent=[_referral_response(r, with_users=True) for r in sent],
        received=[_referral_response(r, with_users=True) for r in received],
        pending=sum(1 for r in everything if r.status in ("draft", "sent")),
        completed=sum(1 for r in everything if r.status == "accepted"),
    )


async def _load_referral(db: AsyncSession, referral_id: str) -> Referral:
    referral = await get_referral(db, referral_id)
    if referral is None:
        raise ApiError(404, "Referral not found")
    return referral


@router.put("/referrals/{referral_id}/send", response_model=ReferralResponse)
async def send_referral_endpoint(
    referral_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReferralResponse:
    """Send a draft referral (sender only)."""
    referral = await _load_referral(db, referral_id)
    if referral.from_user_id != auth.id:
        raise ApiError(403, "Only the sender can send this referral")
    try:
        referral = await send_referral(db, referral)
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()
    return _referral_response(referral)


async def _respond(db: AsyncSession, referral_id: str, auth: AuthUser, *, accept: bool) -> ReferralResponse:
    referral = await _load_referral(db, referral_id)
    if referral.to_user_id != auth.id:
        raise ApiError(403, "Only the recipient can respond to this referral")
    try:
        referral = await respond_to_referral(db, referral, accept=accept)
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()
    return _referral_response(referral)


@router.put("/referrals/{referral_id}/accept", response_model=ReferralResponse)
async def accept_referral_endpoint(
    referral_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReferralResponse:
    """Accept a referral (recipient only)."""
    return await _respond(db, referral_id, auth, accept=True)


@router.put("/referrals/{referral_id}/decline", response_model=ReferralResponse)
async def decline_referral_endpoint(
    referral_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReferralResponse:
    """Decline a referral (recipient only)."""
    return await _respond(db, referral_id, auth, accept=False)


@router.get("/cohorts/{cohort_id}/referral-eligibility", response_model=ReferralEligibilityResponse)
async def referral_eligibility_endpoint(
    cohort_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReferralEligibilityResponse:
    """Whether members of this cohort may refer each other yet."""
    cohort = await member_cohort(db, cohort_id, auth.id)
    progress = await get_cohort_progress(db, cohort)
    return ReferralEligibilityResponse(
        cohort_id=cohort.id,
        cohort_title=cohort.title,
        session_completion_percentage=progress.percentage,
        is_eligible=is_eligible(progress.percentage),
        total_members=len(progress.member_ids),
        sessions_completed=progress.sessions_completed,
        total_sessions=progress.total_sessions,
        threshold=REFERRAL_ELIGIBILITY_THRESHOLD,
    )
