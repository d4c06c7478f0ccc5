"""Connection ("entanglement") model.

A row is created by the requester (user_id) towards target_user_id and moves
pending -> accepted | declined.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from quantum5ocial.stores.postgres import Base, generate_uuid


class Connection(Base):
    """Entanglement request / accepted connection between two profiles."""

    __tablename__ = "connections"
    __table_args__ = (UniqueConstraint("user_id", "target_user_id", name="uq_connections_pair"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    target_user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
    )
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def other_id(self, user_id: str) -> str:
        """Id of the participant that is not `user_id`."""
        return self.target_user_id if self.user_id == user_id else self.user_id

    def __repr__(self) -> str:
        return f"<Connection {self.user_id}->{self.target_user_id} {self.status}>"
