"""Schemas for organizations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class OrgCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    kind: Literal["company", "research_group"] = "company"
    slug: str | None = Field(default=None, max_length=120)
    industry: str | None = None
    description: str | None = None
    focus_areas: str | None = None
    website: str | None = None
    logo_url: str | None = None
    country: str | None = None
    city: str | None = None


class OrgUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    industry: str | None = None
    description: str | None = None
    focus_areas: str | None = None
    website: str | None = None
    logo_url: str | None = None
    country: str | None = None
    city: str | None = None
    is_active: bool | None = None


class OrgOut(BaseModel):
    id: str
    slug: str
    name: str
    kind: str
    industry: str | None = None
    description: str | None = None
    focus_areas: str | None = None
    website: str | None = None
    logo_url: str | None = None
    country: str | None = None
    city: str | None = None
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    follower_count: int = 0
    followed_by_me: bool = False
    my_role: str | None = None

    model_config = {"from_attributes": True}


class OrgMemberOut(BaseModel):
    user_id: str
    role: str
    full_name: str | None = None
    avatar_url: str | None = None


class FollowResponse(BaseModel):
    following: bool
    follower_count: int
