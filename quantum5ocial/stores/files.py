"""Object storage for user uploads.

Buckets are plain directories under STORAGE_DIR:
- avatars/     profile pictures
- products/    product images
- datasheets/  product datasheets (PDF)

Public URLs are STORAGE_PUBLIC_URL + "/<bucket>/<name>"; the web tier (or a CDN)
serves the directory.
"""

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path

from quantum5ocial.settings import get_settings

logger = logging.getLogger("uvicorn.error")

BUCKETS = {"avatars", "products", "datasheets"}

ALLOWED_CONTENT_TYPES = {
    "avatars": {"image/png", "image/jpeg", "image/webp", "image/gif"},
    "products": {"image/png", "image/jpeg", "image/webp"},
    "datasheets": {"application/pdf"},
}

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
}


class StorageError(RuntimeError):
    pass


def _bucket_dir(bucket: str) -> Path:
    if bucket not in BUCKETS:
        raise StorageError(f"Unknown bucket: {bucket}")
    path = Path(get_settings().storage_dir) / bucket
    path.mkdir(parents=True, exist_ok=True)
    return path


def build_object_name(owner_id: str, content_type: str, data: bytes) -> str:
    """Build a stable object name: <owner>/<timestamp>_<content hash><ext>."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    digest = hashlib.sha256(data).hexdigest()[:12]
    ext = _EXTENSIONS.get(content_type, "")
    return f"{owner_id}/{timestamp}_{digest}{ext}"


def save_object(bucket: str, owner_id: str, content_type: str, data: bytes) -> str:
    """Persist an upload and return its public URL.

    Raises:
        StorageError: unknown bucket, disallowed content type or oversize upload.
    """
    settings = get_settings()
    if content_type not in ALLOWED_CONTENT_TYPES.get(bucket, set()):
        raise StorageError(f"Content type {content_type} not allowed in {bucket}")
    if not data:
        raise StorageError("Empty upload")
    if len(data) > settings.max_upload_bytes:
        raise StorageError(f"Upload exceeds {settings.max_upload_bytes} bytes")

    name = build_object_name(owner_id, content_type, data)
    path = _bucket_dir(bucket) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)

    logger.info(f"Stored upload bucket={bucket} name={name} bytes={len(data)}")
    return f"{settings.storage_public_url.rstrip('/')}/{bucket}/{name}"


def delete_object(bucket: str, public_url: str) -> bool:
    """Delete an object by its public URL. Returns True if a file was removed."""
    settings = get_settings()
    prefix = f"{settings.storage_public_url.rstrip('/')}/{bucket}/"
    if not public_url.startswith(prefix):
        return False
    name = public_url[len(prefix):]
    base = _bucket_dir(bucket).resolve()
    path = (base / name).resolve()
    # Reject names that escape the bucket directory.
    if base not in path.parents:
        return False
    if not path.exists():
        return False
    path.unlink()
    return True
