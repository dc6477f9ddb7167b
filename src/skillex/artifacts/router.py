"""Cohort artifacts: links to repos, docs and recordings produced by a cohort."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.cohorts.access import member_cohort
from skillex.database import get_session
from skillex.db.models import Artifact
from skillex.schemas import ApiModel, HttpUrlStr

logger = structlog.get_logger()

router = APIRouter(prefix="/v1", tags=["Artifacts"])


class ArtifactCreateRequest(ApiModel):
    url: HttpUrlStr
    kind: Literal["repo", "doc", "video", "image", "other"]


class ArtifactResponse(ApiModel):
    id: str
    cohort_id: str
    url: str
    kind: str
    created_at: datetime


class ArtifactListResponse(ApiModel):
    artifacts: list[ArtifactResponse]


@router.post("/cohorts/{cohort_id}/artifacts", response_model=ArtifactResponse, status_code=201)
async def create_artifact(
    cohort_id: str,
    body: ArtifactCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ArtifactResponse:
    await member_cohort(db, cohort_id, auth.id)
    artifact = Artifact(
        cohort_id=cohort_id,
        url=body.url,
        kind=body.kind,
        created_at=datetime.now(timezone.utc),
    )
    db.add(artifact)
    await db.commit()
    logger.info("artifact_created", cohort_id=cohort_id, artifact_id=artifact.id, kind=artifact.kind)
    return ArtifactResponse.model_validate(artifact)


@router.get("/cohorts/{cohort_id}/artifacts", response_model=ArtifactListResponse)
async def list_artifacts(
    cohort_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ArtifactListResponse:
    """A cohort's artifacts, newest first."""
    await member_cohort(db, cohort_id, auth.id)
    result = await db.execute(
        select(Artifact).where(Artifact.cohort_id == cohort_id).order_by(Artifact.created_at.desc())
    )
    return ArtifactListResponse(artifacts=[ArtifactResponse.model_validate(a) for a in result.scalars().all()])
