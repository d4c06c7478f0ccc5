"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class ProfileLite(BaseModel):
    """Minimal author card shown next to posts, answers and messages."""

    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    highest_education: str | None = None
    affiliation: str | None = None
    q5_badge_label: str | None = None

    model_config = {"from_attributes": True}


class OrgLite(BaseModel):
    """Minimal organization card."""

    id: str
    name: str
    slug: str
    logo_url: str | None = None

    model_config = {"from_attributes": True}
