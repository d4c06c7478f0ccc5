"""Member rows that every write depends on.

Profiles are created lazily: the auth provider knows a member before this
database does. Posts, votes, saves, follows and connections all reference
`profiles.id`, so each write path calls `ensure_profile_row` in its own session
before inserting.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import Profile

logger = logging.getLogger("uvicorn.error")


async def ensure_profile_row(session: AsyncSession, user_id: str) -> Profile:
    profile = await session.get(Profile, user_id)
    if profile is None:
        profile = Profile(id=user_id)
        session.add(profile)
        await session.flush()
        logger.info(f"Created profile for user {user_id}")
    return profile
