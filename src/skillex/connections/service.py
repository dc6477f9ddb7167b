"""Connection requests between users."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.orm import selectinload

from skillex.db.models import Connection
from skillex.notifications.service import create_notification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_connection(db: AsyncSession, connection_id: str) -> Connection | None:
    result = await db.execute(select(Connection).where(Connection.id == connection_id))
    return result.scalar_one_or_none()


async def find_between(db: AsyncSession, user_a: str, user_b: str) -> Connection | None:
    """An existing connection in either direction."""
    result = await db.execute(
        select(Connection).where(
            or_(
                and_(Connection.requester_id == user_a, Connection.addressee_id == user_b),
                and_(Connection.requester_id == user_b, Connection.addressee_id == user_a),
            )
        )
    )
    return result.scalars().first()


async def request_connection(db: AsyncSession, requester_id: str, addressee_id: str) -> Connection:
    connection = Connection(
        requester_id=requester_id,
        addressee_id=addressee_id,
        status="pending",
        created_at=datetime.now(timezone.utc),
    )
    db.add(connection)
    await db.flush()
    await create_notification(
        db, addressee_id, "connection_request", {"connectionId": connection.id, "requesterId": requester_id}
    )
    logger.info("connection_requested", connection_id=connection.id)
    return connection


async def accept_connection(db: AsyncSession, connection: Connection) -> Connection:
    """
    Raises:
        ValueError: If the request is no longer pending.
    """
    if connection.status != "pending":
        msg = "Connection request is not pending"
        raise ValueError(msg)
    connection.status = "accepted"
    await db.flush()
    await create_notification(
        db,
        connection.requester_id,
        "connection_accepted",
        {"connectionId": connection.id, "addresseeId": connection.addressee_id},
    )
    logger.info("connection_accepted", connection_id=connection.id)
    return connection


async def decline_connection(db: AsyncSession, connection: Connection) -> None:
    """Declining deletes the request so it can be made again later."""
    if connection.status != "pending":
        msg = "Connection request is not pending"
        raise ValueError(msg)
    await db.delete(connection)
    await db.flush()
    logger.info("connection_declined", connection_id=connection.id)


async def list_connections(db: AsyncSession, user_id: str, status: str | None = None) -> list[Connection]:
    """The user's connections newest first, with both parties loaded."""
    query = (
        select(Connection)
        .options(selectinload(Connection.requester), selectinload(Connection.addressee))
        .where(or_(Connection.requester_id == user_id, Connection.addressee_id == user_id))
    )
    if status is not None:
        query = query.where(Connection.status == status)
    result = await db.execute(query.order_by(Connection.created_at.desc()))
    return list(result.scalars().all())
