"""Disk storage for uploaded destination images.

Bytes are written under the configured upload directory with a generated
name and served back under ``/uploads`` by the application.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"

_ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# Upload directory (set via init_upload_dir on startup)
_upload_dir: Path | None = None


def init_upload_dir(path: str) -> Path:
    """Configure and create the directory uploaded files are written to."""
    global _upload_dir  # noqa: PLW0603
    _upload_dir = Path(path)
    _upload_dir.mkdir(parents=True, exist_ok=True)
    return _upload_dir


def store_upload(
    data: bytes,
    filename: str | None,
    *,
    base_url: str,
    max_size_mb: int,
) -> str:
    """Write *data* to the upload directory and return its public URL.

    The stored name is a random hex id plus the original extension.
    Raises ValueError for empty, oversized or non-image uploads, and
    RuntimeError if the directory was never initialised.
    """
    if _upload_dir is None:
        raise RuntimeError("Upload directory not initialised")
    if not data:
        raise ValueError("Uploaded file is empty")
    if len(data) > max_size_mb * 1024 * 1024:
        raise ValueError(f"Uploaded file exceeds {max_size_mb} MB")

    suffix = Path(filename or "").suffix.lower()
    if suffix not in _ALLOWED_SUFFIXES:
        allowed = ", ".join(sorted(_ALLOWED_SUFFIXES))
        raise ValueError(f"Unsupported image type '{suffix}'. Allowed: {allowed}")

    stored_name = f"{uuid.uuid4().hex}{suffix}"
    (_upload_dir / stored_name).write_bytes(data)
    logger.info("Stored upload %s (%d bytes)", stored_name, len(data))
    return f"{base_url.rstrip('/')}{UPLOAD_URL_PREFIX}/{stored_name}"
