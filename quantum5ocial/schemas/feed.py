"""Schemas for the social feed."""

from datetime import datetime

from pydantic import BaseModel, Field

from quantum5ocial.schemas.common import OrgLite, ProfileLite


class PostCreate(BaseModel):
    body: str = Field(min_length=1, max_length=5000)
    image_url: str | None = None
    org_id: str | None = None


class PostItem(BaseModel):
    id: str
    user_id: str
    org_id: str | None = None
    body: str
    image_url: str | None = None
    created_at: datetime | None = None
    time_ago: str | None = None
    author: ProfileLite | None = None
    org: OrgLite | None = None
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class FeedResponse(BaseModel):
    count: int
    items: list[PostItem]


class LikeToggleResponse(BaseModel):
    liked: bool
    like_count: int = Field(ge=0)


class CommentCreate(BaseModel):
    body: str = Field(min_length=1, max_length=2000)


class CommentOut(BaseModel):
    id: str
    post_id: str
    user_id: str
    body: str
    created_at: datetime | None = None
    time_ago: str | None = None
    author: ProfileLite | None = None


class PersonalizedMeta(BaseModel):
    social_count: int = 0
    semantic_count: int = 0


class PersonalizedFeedResponse(BaseModel):
    post_ids: list[str]
    meta: PersonalizedMeta = Field(default_factory=PersonalizedMeta)
