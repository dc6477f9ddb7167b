"""Cohort API endpoints — cohorts, membership and sessions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user, get_optional_user
from skillex.auth.schemas import AuthUser
from skillex.cohorts.access import owned_cohort, visible_cohort
from skillex.cohorts.schemas import (
    CohortCreateRequest,
    CohortDetailResponse,
    CohortListResponse,
    CohortMemberResponse,
    CohortResponse,
    CohortUpdateRequest,
    MemberAddRequest,
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
)
from skillex.cohorts.service import (
    add_member,
    create_cohort,
    create_session,
    get_cohort,
    get_member,
    list_sessions,
    list_user_cohorts,
    remove_member,
    update_cohort,
)
from skillex.database import get_session
from skillex.db.models import Cohort
from skillex.errors import ApiError
from skillex.schemas import SuccessResponse, UserSummary
from skillex.users.service import get_user_by_id

router = APIRouter(prefix="/v1", tags=["Cohorts"])


def _detail_response(cohort: Cohort) -> CohortDetailResponse:
    base = CohortResponse.model_validate(cohort).model_dump()
    return CohortDetailResponse(
        **base,
        members=[
            CohortMemberResponse(
                user_id=m.user_id,
                role=m.role,
                joined_at=m.joined_at,
                user=UserSummary.model_validate(m.user),
            )
            for m in cohort.members
        ],
    )


# ---------------------------------------------------------------------------
# Cohorts
# ---------------------------------------------------------------------------


@router.post("/cohorts", response_model=CohortDetailResponse, status_code=201)
async def create_cohort_endpoint(
    body: CohortCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CohortDetailResponse:
    """Create a cohort owned and facilitated by the caller."""
    if await get_user_by_id(db, auth.id) is None:
        raise ApiError(404, "User not found")

    cohort = await create_cohort(db, auth.id, **body.model_dump())
    await db.commit()
    cohort = await get_cohort(db, cohort.id, with_members=True)
    return _detail_response(cohort)


@router.get("/cohorts", response_model=CohortListResponse)
async def list_my_cohorts(
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CohortListResponse:
    """Cohorts the caller belongs to."""
    cohorts = await list_user_cohorts(db, auth.id)
    return CohortListResponse(cohorts=[CohortResponse.model_validate(c) for c in cohorts])


@router.get("/cohorts/{cohort_id}", response_model=CohortDetailResponse)
async def get_cohort_endpoint(
    cohort_id: str,
    viewer: AuthUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> CohortDetailResponse:
    """A cohort with its members."""
    cohort = await visible_cohort(db, cohort_id, viewer, with_members=True)
    return _detail_response(cohort)


@router.patch("/cohorts/{cohort_id}", response_model=CohortResponse)
async def update_cohort_endpoint(
    cohort_id: str,
    body: CohortUpdateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CohortResponse:
    """Update cohort settings (owner only)."""
    cohort = await owned_cohort(db, cohort_id, auth.id)
    try:
        cohort = await update_cohort(db, cohort, body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()
    return CohortResponse.model_validate(cohort)


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


@router.post("/cohorts/{cohort_id}/members", response_model=CohortMemberResponse, status_code=201)
async def add_member_endpoint(
    cohort_id: str,
    body: MemberAddRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CohortMemberResponse:
    """Add a member to a cohort (owner only)."""
    cohort = await owned_cohort(db, cohort_id, auth.id)

    user = await get_user_by_id(db, body.user_id)
    if user is None:
        raise ApiError(404, "User not found")
    if await get_member(db, cohort_id, body.user_id) is not None:
        raise ApiError(409, "User is already a member of this cohort")

    try:
        member = await add_member(db, cohort, body.user_id, body.role)
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()

    return CohortMemberResponse(
        user_id=member.user_id,
        role=member.role,
        joined_at=member.joined_at,
        user=UserSummary.model_validate(user),
    )


@router.delete("/cohorts/{cohort_id}/members/{user_id}", response_model=SuccessResponse)
async def remove_member_endpoint(
    cohort_id: str,
    user_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    """Remove a member. The owner may remove anyone else; members may leave."""
    cohort = await get_cohort(db, cohort_id)
    if cohort is None:
        raise ApiError(404, "Cohort not found")
    if auth.id not in (cohort.owner_id, user_id):
        raise ApiError(403, "Only the cohort owner can remove other members")
    if user_id == cohort.owner_id:
        raise ApiError(400, "The cohort owner cannot leave the cohort")

    member = await get_member(db, cohort_id, user_id)
    if member is None:
        raise ApiError(404, "Member not found")

    await remove_member(db, member)
    await db.commit()
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.get("/cohorts/{cohort_id}/sessions", response_model=SessionListResponse)
async def list_sessions_endpoint(
    cohort_id: str,
    viewer: AuthUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> SessionListResponse:
    """A cohort's sessions, earliest first."""
    await visible_cohort(db, cohort_id, viewer)
    sessions = await list_sessions(db, cohort_id)
    return SessionListResponse(sessions=[SessionResponse.model_validate(s) for s in sessions])


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session_endpoint(
    body: SessionCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SessionResponse:
    """Schedule a session (cohort owner or facilitator)."""
    cohort = await get_cohort(db, body.cohort_id)
    if cohort is None:
        raise ApiError(404, "Cohort not found")

    member = await get_member(db, cohort.id, auth.id)
    if cohort.owner_id != auth.id and (member is None or member.role != "facilitator"):
        raise ApiError(403, "Only the cohort owner or a facilitator can schedule sessions")

    try:
        session = await create_session(db, cohort, **body.model_dump(exclude={"cohort_id"}))
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()
    return SessionResponse.model_validate(session)
