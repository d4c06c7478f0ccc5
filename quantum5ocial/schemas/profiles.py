"""Schemas for profiles and the community directory."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from quantum5ocial.schemas.common import ProfileLite

LINK_FIELDS = ("lab_website", "google_scholar", "linkedin_url", "github_url", "personal_website")

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def normalize_link(value: str | None) -> str | None:
    """Trim; blank becomes None; a bare host gets https://."""
    s = (value or "").strip()
    if not s:
        return None
    if _SCHEME.match(s):
        return s
    return f"https://{s}"


def _blank_to_none(value: str | None) -> str | None:
    return (value or "").strip() or None


class ProfileOut(BaseModel):
    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    short_bio: str | None = None
    role: str | None = None
    current_title: str | None = None
    affiliation: str | None = None
    skills: str | None = None
    focus_areas: str | None = None
    highest_education: str | None = None
    country: str | None = None
    city: str | None = None
    key_experience: str | None = None
    lab_website: str | None = None
    google_scholar: str | None = None
    linkedin_url: str | None = None
    orcid: str | None = None
    github_url: str | None = None
    personal_website: str | None = None
    q5_badge_level: int | None = None
    q5_badge_label: str | None = None
    q5_badge_review_status: str | None = None
    q5_badge_claimed_at: datetime | None = None
    badge_display: str = ""
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    full_name: str | None = Field(default=None, max_length=200)
    avatar_url: str | None = None
    short_bio: str | None = None
    role: str | None = Field(default=None, max_length=100)
    current_title: str | None = Field(default=None, max_length=200)
    affiliation: str | None = Field(default=None, max_length=200)
    skills: str | None = None
    focus_areas: str | None = None
    highest_education: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=100)
    key_experience: str | None = None
    lab_website: str | None = None
    google_scholar: str | None = None
    linkedin_url: str | None = None
    orcid: str | None = Field(default=None, max_length=100)
    github_url: str | None = None
    personal_website: str | None = None

    @field_validator(*LINK_FIELDS)
    @classmethod
    def _normalize_links(cls, v: str | None) -> str | None:
        return normalize_link(v)

    @field_validator("orcid")
    @classmethod
    def _trim_orcid(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class DirectoryEntry(ProfileLite):
    """Community directory card with the viewer's entanglement status."""

    role: str | None = None
    current_title: str | None = None
    connection_status: str = "none"


class DirectoryResponse(BaseModel):
    count: int
    profiles: list[DirectoryEntry]


class ProfilePrivateOut(BaseModel):
    """Owner-only contact details."""

    phone: str | None = None
    institutional_email: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfilePrivateUpdate(BaseModel):
    """Replaces both contact fields; blank values clear them."""

    phone: str | None = Field(default=None, max_length=50)
    institutional_email: str | None = Field(default=None, max_length=320)

    @field_validator("phone", "institutional_email")
    @classmethod
    def _trim(cls, v: str | None) -> str | None:
        return _blank_to_none(v)
