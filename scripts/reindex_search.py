#!/usr/bin/env python3
"""Bulk search indexing job (cron or one-off).

Behavior (cost-controlled):
- Collects published jobs, products, active organizations, named profiles,
  questions and recent posts.
- Skips every (type, link) already present in search_documents, so only new
  entities trigger an embedding call.
- Guarded by a Redis lock; a second run exits with an error while one is active.

Run:
  python -m scripts.reindex_search
"""

import asyncio
import os
import sys
from dataclasses import asdict

from redis.exceptions import RedisError

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quantum5ocial.services.errors import ConflictError  # noqa: E402
from quantum5ocial.services.search_index import index_all  # noqa: E402
from quantum5ocial.settings import get_settings  # noqa: E402
from quantum5ocial.stores.postgres import close_db, init_db, ping_db  # noqa: E402
from quantum5ocial.stores.redis import close_redis, init_redis  # noqa: E402


async def main() -> int:
    if not get_settings().ai_available:
        print({"ok": False, "error": "OPENAI_API_KEY missing or AI_ENABLED=false"})
        return 1

    await init_db()
    await ping_db()
    try:
        await init_redis()
    except RedisError as e:
        # index_all runs without the lock
        print({"warning": f"Redis unavailable: {e}"})

    try:
        stats = await index_all()
    except ConflictError as e:
        print({"ok": False, "error": e.message})
        return 1
    finally:
        await close_redis()
        await close_db()

    print({"ok": True, **asdict(stats), "error_count": len(stats.errors)})
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
