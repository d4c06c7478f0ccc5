"""Schemas for direct messaging."""

from datetime import datetime

from pydantic import BaseModel, Field

from quantum5ocial.schemas.common import ProfileLite


class OpenThreadRequest(BaseModel):
    other_user_id: str = Field(min_length=1, max_length=36)


class ThreadOut(BaseModel):
    id: str
    user1: str
    user2: str
    created_at: datetime | None = None
    last_message_at: datetime | None = None

    model_config = {"from_attributes": True}


class MessageOut(BaseModel):
    id: str
    thread_id: str
    sender_id: str
    recipient_id: str
    body: str
    created_at: datetime | None = None
    read_at: datetime | None = None

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    body: str = Field(min_length=1, max_length=5000)


class InboxItem(BaseModel):
    thread: ThreadOut
    other: ProfileLite | None = None
    last_message: MessageOut | None = None
    unread_count: int = 0


class InboxResponse(BaseModel):
    count: int
    threads: list[InboxItem]


class ThreadDetail(BaseModel):
    thread: ThreadOut
    other: ProfileLite | None = None
    messages: list[MessageOut]


class UnreadResponse(BaseModel):
    unread: int
