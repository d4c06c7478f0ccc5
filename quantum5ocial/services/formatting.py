"""Small presentation helpers shared by feed, Q&A and messaging."""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import Profile
from quantum5ocial.schemas import ProfileLite


def time_ago(ts: datetime | None, now: datetime | None = None) -> str | None:
    """Compact relative time: "12s", "5m", "3h", "2d" (never below 1s). None stays None."""
    if ts is None:
        return None
    now = now or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    s = max(1, int((now - ts).total_seconds()))
    if s < 60:
        return f"{s}s"
    m = s // 60
    if m < 60:
        return f"{m}m"
    h = m // 60
    if h < 24:
        return f"{h}h"
    return f"{h // 24}d"


def pick_profile(value: Mapping[str, Any] | list[Mapping[str, Any]] | None) -> dict[str, Any] | None:
    """Normalise a relation that may arrive as an object, a list or nothing."""
    if not value:
        return None
    if isinstance(value, list):
        return dict(value[0]) if value else None
    return dict(value)


def profile_lite(profile: Profile) -> ProfileLite:
    return ProfileLite(
        id=profile.id,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        highest_education=profile.highest_education,
        affiliation=profile.affiliation,
        q5_badge_label=profile.q5_badge_label,
    )


async def load_profile_map(session: AsyncSession, user_ids: Iterable[str]) -> dict[str, ProfileLite]:
    """Fetch author cards for a set of user ids in one query."""
    ids = sorted({uid for uid in user_ids if uid})
    if not ids:
        return {}
    result = await session.execute(select(Profile).where(Profile.id.in_(ids)))
    return {p.id: profile_lite(p) for p in result.scalars().all()}
