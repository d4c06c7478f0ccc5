"""Profile models.

A profile row shares its id with the hosted auth user. Badge fields are mirrored
from the latest claim so every page can show the badge without a join.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from quantum5ocial.stores.postgres import Base, generate_uuid


class Profile(Base):
    """Public member profile."""

    __tablename__ = "profiles"

    # Same id as the auth provider user
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    full_name: Mapped[str | None] = mapped_column(String(200), index=True)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    short_bio: Mapped[str | None] = mapped_column(Text)

    role: Mapped[str | None] = mapped_column(String(100))
    current_title: Mapped[str | None] = mapped_column(String(200))
    affiliation: Mapped[str | None] = mapped_column(String(200))
    skills: Mapped[str | None] = mapped_column(Text)
    focus_areas: Mapped[str | None] = mapped_column(Text)
    highest_education: Mapped[str | None] = mapped_column(String(100))
    country: Mapped[str | None] = mapped_column(String(100))
    city: Mapped[str | None] = mapped_column(String(100))
    key_experience: Mapped[str | None] = mapped_column(Text)

    # Links, stored normalised (https:// added when the scheme is missing)
    lab_website: Mapped[str | None] = mapped_column(Text)
    google_scholar: Mapped[str | None] = mapped_column(Text)
    linkedin_url: Mapped[str | None] = mapped_column(Text)
    orcid: Mapped[str | None] = mapped_column(String(100))
    github_url: Mapped[str | None] = mapped_column(Text)
    personal_website: Mapped[str | None] = mapped_column(Text)

    # Q5 badge mirror
    q5_badge_level: Mapped[int | None] = mapped_column(Integer)
    q5_badge_label: Mapped[str | None] = mapped_column(String(50))
    q5_badge_review_status: Mapped[str | None] = mapped_column(String(20))
    q5_badge_claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Profile {self.id} {self.full_name!r}>"


class ProfileBadgeClaim(Base):
    """Self-reported badge survey answers plus the computed result (one per user)."""

    __tablename__ = "profile_badge_claims"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )

    involvement: Mapped[int] = mapped_column(Integer)
    contribution: Mapped[int] = mapped_column(Integer)
    role_context: Mapped[str] = mapped_column(String(200), default="")
    education: Mapped[str] = mapped_column(String(100), default="")
    impact: Mapped[int] = mapped_column(Integer)

    computed_level: Mapped[int] = mapped_column(Integer)
    computed_label: Mapped[str] = mapped_column(String(50))
    review_status: Mapped[str] = mapped_column(String(20))  # auto, pending, verified

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ProfileBadgeClaim {self.user_id} {self.computed_label}>"


class ProfilePrivate(Base):
    """Contact details only the owner can read or change."""

    __tablename__ = "profile_private"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    phone: Mapped[str | None] = mapped_column(String(50))
    institutional_email: Mapped[str | None] = mapped_column(String(320))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ProfilePrivate {self.user_id}>"
