"""Access-token verification against the hosted auth provider.

Sign-in, sign-up and password flows live entirely in the hosted provider. The
API receives the provider's access token as `Authorization: Bearer <token>` and
resolves it to a user id by calling `GET {AUTH_URL}/auth/v1/user`.

Verified tokens are cached in Redis (keyed by a hash of the token, never the
token itself). If Redis is unavailable the provider is called every time.
"""

import hashlib
import hmac
import logging

import httpx
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quantum5ocial.services.errors import ForbiddenError, NotAuthenticatedError
from quantum5ocial.settings import get_settings
from quantum5ocial.stores.redis import REDIS_ERRORS, get_auth_user_cache, set_auth_user_cache

logger = logging.getLogger("uvicorn.error")

security = HTTPBearer(auto_error=False)


def _token_hash(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:40]


async def _try_get_cached_user(token_hash: str) -> str | None:
    try:
        return await get_auth_user_cache(token_hash)
    except REDIS_ERRORS:
        return None


async def _try_set_cached_user(token_hash: str, user_id: str) -> None:
    ttl = get_settings().auth_cache_ttl
    if ttl <= 0:
        return
    try:
        await set_auth_user_cache(token_hash, user_id, ttl)
    except REDIS_ERRORS:
        return


async def fetch_auth_user(token: str) -> dict | None:
    """Ask the auth provider who owns `token`. Returns the user payload or None."""
    settings = get_settings()
    url = settings.auth_url.rstrip("/") + "/auth/v1/user"
    headers = {"Authorization": f"Bearer {token}"}
    if settings.auth_anon_key:
        headers["apikey"] = settings.auth_anon_key

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            r = await client.get(url, headers=headers)
    except httpx.HTTPError:
        logger.exception("[auth] provider request failed")
        return None

    if r.status_code in (401, 403):
        return None
    if r.status_code != 200:
        logger.error(f"[auth] provider HTTP {r.status_code} response={r.text[:300]}")
        return None

    data = r.json()
    if not isinstance(data, dict) or not data.get("id"):
        return None
    return data


async def resolve_user_id(token: str) -> str | None:
    """Resolve an access token to a user id (cache first, then provider)."""
    token = token.strip()
    if not token:
        return None

    token_hash = _token_hash(token)
    cached = await _try_get_cached_user(token_hash)
    if cached:
        return cached

    user = await fetch_auth_user(token)
    if user is None:
        return None

    user_id = str(user["id"])
    await _try_set_cached_user(token_hash, user_id)
    return user_id


async def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """FastAPI dependency: the caller's user id, or None for anonymous requests."""
    if credentials is None:
        return None
    return await resolve_user_id(credentials.credentials)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """FastAPI dependency: the caller's user id; 401 when missing or invalid."""
    if credentials is None:
        raise NotAuthenticatedError("Not authenticated")
    user_id = await resolve_user_id(credentials.credentials)
    if user_id is None:
        raise NotAuthenticatedError("Invalid or expired session", code="SESSION_EXPIRED")
    return user_id


async def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    """FastAPI dependency for admin endpoints (shared ADMIN_TOKEN header)."""
    expected = get_settings().admin_token
    if not expected:
        raise ForbiddenError("Admin endpoints are disabled", code="ADMIN_DISABLED")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise ForbiddenError("Invalid admin token", code="ADMIN_FORBIDDEN")
