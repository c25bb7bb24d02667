"""Uploaded files on local disk under ``DATA_DIR/uploads``.

Files are stored under a random name next to the original extension; the
caller keeps the metadata (original name, type, size) in the database.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO
from uuid import uuid4

from ..core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def _bucket_dir(*parts: object, ensure: bool = False) -> Path:
    path = settings.uploads_dir.joinpath(*[str(part) for part in parts])
    if ensure:
        path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(filename: str | None, default: str = "arquivo") -> str:
    name = Path(filename or default).name
    return name or default


def save_upload(
    bucket: tuple[object, ...],
    filename: str | None,
    file_data: IO[bytes],
    *,
    max_bytes: int | None = None,
) -> dict[str, object]:
    """Copy ``file_data`` into the bucket and describe what was stored.

    Raises ``ValueError`` when the upload is larger than ``max_bytes``; the
    partial file is removed first.
    """

    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    original = safe_filename(filename)
    ext = Path(original).suffix
    file_id = uuid4().hex
    storage_name = f"{file_id}{ext}" if ext else file_id
    dest_path = _bucket_dir(*bucket, ensure=True) / storage_name

    size = 0
    with dest_path.open("wb") as buffer:
        while True:
            chunk = file_data.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > limit:
                break
            buffer.write(chunk)
    if size > limit:
        dest_path.unlink(missing_ok=True)
        raise ValueError(f"file exceeds the {limit // (1024 * 1024)} MB limit")

    logger.info(
        "storage.saved",
        extra={"extra_data": {"bucket": "/".join(str(p) for p in bucket), "size": size}},
    )
    return {
        "id": file_id,
        "filename": original,
        "storage_filename": storage_name,
        "size": size,
    }


def stored_path(bucket: tuple[object, ...], storage_name: str) -> Path:
    return _bucket_dir(*bucket) / Path(storage_name).name


def delete_stored(bucket: tuple[object, ...], storage_name: str | None) -> None:
    if not storage_name:
        return
    stored_path(bucket, storage_name).unlink(missing_ok=True)
