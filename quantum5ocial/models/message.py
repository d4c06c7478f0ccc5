"""Direct message models.

A thread is an unordered pair of profiles stored with user1 < user2 so the pair
is unique regardless of who opened it.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from quantum5ocial.stores.postgres import Base, generate_uuid


class DmThread(Base):
    """Conversation between two profiles."""

    __tablename__ = "dm_threads"
    __table_args__ = (
        UniqueConstraint("user1", "user2", name="uq_dm_threads_pair"),
        CheckConstraint("user1 < user2", name="ck_dm_threads_ordered_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user1: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    user2: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    # Bumped on every message; drives inbox ordering
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.user1, self.user2)

    def other_id(self, user_id: str) -> str:
        return self.user2 if self.user1 == user_id else self.user1

    def __repr__(self) -> str:
        return f"<DmThread {self.id} {self.user1}<->{self.user2}>"


class DmMessage(Base):
    """Single message in a thread."""

    __tablename__ = "dm_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    thread_id: Mapped[str] = mapped_column(ForeignKey("dm_threads.id", ondelete="CASCADE"), index=True)
    sender_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    recipient_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    body: Mapped[str] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
