"""Schemas for entanglements (connections)."""

from datetime import datetime

from pydantic import BaseModel

from quantum5ocial.schemas.common import ProfileLite


class ConnectionOut(BaseModel):
    id: str
    user_id: str
    target_user_id: str
    status: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class EntangleResponse(BaseModel):
    """Viewer-relative status after the action."""

    status: str
    connection: ConnectionOut | None = None


class PendingRequest(BaseModel):
    connection_id: str
    requester: ProfileLite
    created_at: datetime | None = None


class EntangledResponse(BaseModel):
    count: int
    profiles: list[ProfileLite]
