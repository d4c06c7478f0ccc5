"""Entanglement (connection) endpoints.

All endpoints act on behalf of the caller; statuses are reported from the
caller's point of view.
"""

from fastapi import APIRouter, Depends

from quantum5ocial.schemas.entanglements import (
    ConnectionOut,
    EntangledResponse,
    EntangleResponse,
    PendingRequest,
)
from quantum5ocial.services.auth import get_current_user_id
from quantum5ocial.services.entanglements import (
    decline,
    entangle,
    get_status,
    list_entangled,
    list_pending_incoming,
    unentangle,
)
from quantum5ocial.services.errors import NotFoundError

router = APIRouter()


@router.get("", response_model=EntangledResponse)
async def my_entanglements(user_id: str = Depends(get_current_user_id)) -> EntangledResponse:
    profiles = await list_entangled(user_id)
    return EntangledResponse(count=len(profiles), profiles=profiles)


@router.get("/requests", response_model=list[PendingRequest])
async def pending_requests(user_id: str = Depends(get_current_user_id)) -> list[PendingRequest]:
    """Incoming requests waiting for the caller (notifications)."""
    rows = await list_pending_incoming(user_id)
    return [
        PendingRequest(connection_id=row.id, requester=profile, created_at=row.created_at)
        for row, profile in rows
        if profile is not None
    ]


@router.get("/{other_id}", response_model=EntangleResponse)
async def status(other_id: str, user_id: str = Depends(get_current_user_id)) -> EntangleResponse:
    return EntangleResponse(status=await get_status(user_id, other_id))


@router.post("/{other_id}", response_model=EntangleResponse)
async def entangle_with(other_id: str, user_id: str = Depends(get_current_user_id)) -> EntangleResponse:
    """Send a request, or accept the other member's pending request."""
    new_status, row = await entangle(user_id, other_id)
    return EntangleResponse(
        status=new_status,
        connection=ConnectionOut.model_validate(row) if row is not None else None,
    )


@router.post("/{other_id}/decline", response_model=EntangleResponse)
async def decline_request(other_id: str, user_id: str = Depends(get_current_user_id)) -> EntangleResponse:
    return EntangleResponse(status=await decline(user_id, other_id))


@router.delete("/{other_id}", response_model=EntangleResponse)
async def remove(other_id: str, user_id: str = Depends(get_current_user_id)) -> EntangleResponse:
    if not await unentangle(user_id, other_id):
        raise NotFoundError("Not entangled with this member", code="NOT_ENTANGLED")
    return EntangleResponse(status="none")
