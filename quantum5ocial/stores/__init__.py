"""Data stores for persistence, caching and file storage.

Stores handle:
- PostgreSQL: DB session, ORM operations
- Redis: caching, locks, DM pub/sub channels
- Files: uploaded avatars, product images and datasheets

No business logic in stores - that belongs in services.
"""
