"""Entanglements (connections between profiles).

A connection row is directional (requester -> target) but the relationship it
describes is symmetric. Status as seen by a viewer:

- none             no row, or the row was declined by the viewer
- pending_outgoing viewer sent a request that is still pending
- pending_incoming the other member asked the viewer
- accepted         both sides are entangled
- declined         the viewer's request was declined
"""

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import Connection, Profile
from quantum5ocial.schemas import ProfileLite
from quantum5ocial.services.errors import NotFoundError, ValidationFailedError
from quantum5ocial.services.formatting import load_profile_map
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.stores.postgres import get_session

STATUS_NONE = "none"
STATUS_PENDING_OUTGOING = "pending_outgoing"
STATUS_PENDING_INCOMING = "pending_incoming"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"


def connection_status(row: Connection | None, viewer_id: str) -> str:
    """Viewer-relative status of a connection row."""
    if row is None:
        return STATUS_NONE
    if row.status == "accepted":
        return STATUS_ACCEPTED
    if row.status == "pending":
        return STATUS_PENDING_OUTGOING if row.user_id == viewer_id else STATUS_PENDING_INCOMING
    if row.status == "declined":
        # A request the viewer declined is forgotten on their side
        return STATUS_DECLINED if row.user_id == viewer_id else STATUS_NONE
    return STATUS_NONE


def _pair_clause(a: str, b: str):
    return or_(
        and_(Connection.user_id == a, Connection.target_user_id == b),
        and_(Connection.user_id == b, Connection.target_user_id == a),
    )


async def _find_connection(session: AsyncSession, a: str, b: str) -> Connection | None:
    result = await session.execute(
        select(Connection).where(_pair_clause(a, b)).order_by(Connection.updated_at.desc())
    )
    return result.scalars().first()


async def get_status(viewer_id: str, other_id: str) -> str:
    async with get_session() as session:
        row = await _find_connection(session, viewer_id, other_id)
    return connection_status(row, viewer_id)


async def entangle(viewer_id: str, target_id: str) -> tuple[str, Connection | None]:
    """Send or accept a request.

    - pending_incoming: accept the other member's request
    - none / declined: (re)create a pending request from the viewer
    - pending_outgoing / accepted: nothing to do

    Returns:
        The viewer-relative status afterwards and the row.
    """
    if viewer_id == target_id:
        raise ValidationFailedError("You cannot entangle with yourself", code="SELF_ENTANGLE")

    async with get_session() as session:
        if await session.get(Profile, target_id) is None:
            raise NotFoundError("Profile not found", code="PROFILE_NOT_FOUND", detail={"user_id": target_id})
        await ensure_profile_row(session, viewer_id)

        row = await _find_connection(session, viewer_id, target_id)
        status = connection_status(row, viewer_id)

        if status == STATUS_PENDING_INCOMING:
            row.status = "accepted"
        elif status in (STATUS_NONE, STATUS_DECLINED):
            if row is not None:
                await session.delete(row)
                await session.flush()
            row = Connection(user_id=viewer_id, target_user_id=target_id, status="pending")
            session.add(row)
        else:
            return status, row

        await session.flush()
        await session.refresh(row)
        return connection_status(row, viewer_id), row


async def decline(viewer_id: str, requester_id: str) -> str:
    """Decline an incoming request. Afterwards the viewer sees `none`."""
    async with get_session() as session:
        row = await _find_connection(session, viewer_id, requester_id)
        if connection_status(row, viewer_id) != STATUS_PENDING_INCOMING:
            raise NotFoundError("No pending request from this member", code="REQUEST_NOT_FOUND")
        row.status = "declined"
        await session.flush()
        return connection_status(row, viewer_id)


async def unentangle(viewer_id: str, other_id: str) -> bool:
    """Remove an accepted connection. Returns False when there was none."""
    async with get_session() as session:
        result = await session.execute(
            delete(Connection).where(_pair_clause(viewer_id, other_id), Connection.status == "accepted")
        )
        return (result.rowcount or 0) > 0


async def entangled_user_ids(user_id: str) -> list[str]:
    """Ids of every member with an accepted connection to `user_id`."""
    async with get_session() as session:
        result = await session.execute(
            select(Connection).where(
                Connection.status == "accepted",
                or_(Connection.user_id == user_id, Connection.target_user_id == user_id),
            )
        )
        return sorted({row.other_id(user_id) for row in result.scalars().all()})


async def is_entangled(a: str, b: str) -> bool:
    async with get_session() as session:
        row = await _find_connection(session, a, b)
    return row is not None and row.status == "accepted"


async def list_entangled(user_id: str) -> list[ProfileLite]:
    ids = await entangled_user_ids(user_id)
    async with get_session() as session:
        profiles = await load_profile_map(session, ids)
    return sorted(profiles.values(), key=lambda p: (p.full_name or "").lower())


async def list_pending_incoming(user_id: str) -> list[tuple[Connection, ProfileLite | None]]:
    """Requests waiting for `user_id`, newest first."""
    async with get_session() as session:
        result = await session.execute(
            select(Connection)
            .where(Connection.target_user_id == user_id, Connection.status == "pending")
            .order_by(Connection.created_at.desc())
        )
        rows = list(result.scalars().all())
        profiles = await load_profile_map(session, [r.user_id for r in rows])
    return [(r, profiles.get(r.user_id)) for r in rows]


async def status_map(viewer_id: str, other_ids: list[str]) -> dict[str, str]:
    """Viewer-relative status for many members at once (directory cards)."""
    if not other_ids:
        return {}
    async with get_session() as session:
        result = await session.execute(
            select(Connection).where(
                or_(
                    and_(Connection.user_id == viewer_id, Connection.target_user_id.in_(other_ids)),
                    and_(Connection.target_user_id == viewer_id, Connection.user_id.in_(other_ids)),
                )
            )
        )
        rows = list(result.scalars().all())

    statuses = {oid: STATUS_NONE for oid in other_ids}
    for row in rows:
        statuses[row.other_id(viewer_id)] = connection_status(row, viewer_id)
    return statuses
