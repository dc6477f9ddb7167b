"""Connection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.connections.schemas import (
    ConnectionListResponse,
    ConnectionRequestCreate,
    ConnectionResponse,
    ConnectionStatus,
)
from skillex.connections.service import (
    accept_connection,
    decline_connection,
    find_between,
    get_connection,
    list_connections,
    request_connection,
)
from skillex.database import get_session
from skillex.db.models import Connection
from skillex.errors import ApiError
from skillex.schemas import SuccessResponse, UserSummary
from skillex.users.service import get_user_by_id

router = APIRouter(prefix="/v1/connections", tags=["Connections"])


def _connection_response(connection: Connection, other: UserSummary | None = None) -> ConnectionResponse:
    return ConnectionResponse(
        id=connection.id,
        requester_id=connection.requester_id,
        addressee_id=connection.addressee_id,
        status=connection.status,
        created_at=connection.created_at,
        other_user=other,
    )


async def _addressed_to(db: AsyncSession, connection_id: str, user_id: str) -> Connection:
    connection = await get_connection(db, connection_id)
    if connection is None:
        raise ApiError(404, "Connection request not found")
    if connection.addressee_id != user_id:
        raise ApiError(403, "Only the addressee can respond to this request")
    return connection


@router.post("/requests", response_model=ConnectionResponse, status_code=201)
async def create_request(
    body: ConnectionRequestCreate,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConnectionResponse:
    """Ask another user to connect."""
    if body.addressee_id == auth.id:
        raise ApiError(400, "You cannot connect with yourself")
    if await get_user_by_id(db, auth.id) is None:
        raise ApiError(404, "User not found")

    addressee = await get_user_by_id(db, body.addressee_id)
    if addressee is None:
        raise ApiError(404, "User not found")

    existing = await find_between(db, auth.id, body.addressee_id)
    if existing is not None:
        raise ApiError(400, "Connection already exists", details={"status": existing.status})

    connection = await request_connection(db, auth.id, body.addressee_id)
    await db.commit()
    return _connection_response(connection, UserSummary.model_validate(addressee))


@router.post("/{connection_id}/accept", response_model=ConnectionResponse)
async def accept_request(
    connection_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConnectionResponse:
    connection = await _addressed_to(db, connection_id, auth.id)
    try:
        connection = await accept_connection(db, connection)
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()
    return _connection_response(connection)


@router.post("/{connection_id}/decline", response_model=SuccessResponse)
async def decline_request(
    connection_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    connection = await _addressed_to(db, connection_id, auth.id)
    try:
        await decline_connection(db, connection)
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    await db.commit()
    return SuccessResponse()


@router.get("", response_model=ConnectionListResponse)
async def list_my_connections(
    status: ConnectionStatus | None = Query(None),
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConnectionListResponse:
    """The caller's connections, each with the other party's summary."""
    connections = await list_connections(db, auth.id, status)
    return ConnectionListResponse(
        connections=[
            _connection_response(
                c,
                UserSummary.model_validate(c.addressee if c.requester_id == auth.id else c.requester),
            )
            for c in connections
        ],
    )
