"""Local object storage for uploaded message attachments."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final
from uuid import uuid4

from fastapi import UploadFile

from app.config import get_settings
from app.core.errors import NotFoundError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

_CHUNK_SIZE: Final[int] = 1024 * 1024  # 1 MiB


@dataclass(slots=True)
class StoredFile:
    """Represents a file persisted by the storage backend."""

    url: str
    file_name: str
    mime_type: str
    size: int
    absolute_path: Path
    relative_path: str


def _media_root() -> Path:
    root = get_settings().media_root
    root.mkdir(parents=True, exist_ok=True)
    return root


async def store_upload(user_id: int, upload: UploadFile) -> StoredFile:
    """Persist an uploaded file and return its retrievable URL and metadata."""

    settings = get_settings()
    original_name = upload.filename or "upload.bin"
    extension = Path(original_name).suffix
    file_name = f"{uuid4().hex}{extension}"

    total_size = 0
    absolute_path: Path | None = None
    try:
        target_dir = _media_root() / f"user_{user_id}"
        target_dir.mkdir(parents=True, exist_ok=True)
        absolute_path = target_dir / file_name
        with absolute_path.open("wb") as buffer:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > settings.max_upload_size:
                    raise ValidationError("Attachment exceeds allowed size")
                buffer.write(chunk)
    except ValidationError:
        if absolute_path is not None and absolute_path.exists():
            absolute_path.unlink()
        raise
    except OSError as exc:
        logger.warning("Failed to store upload for user %s", user_id, exc_info=True)
        raise UpstreamError("File storage is unavailable") from exc
    finally:
        await upload.close()

    relative_path = os.path.relpath(absolute_path, _media_root())
    return StoredFile(
        url=build_file_url(user_id, file_name),
        file_name=original_name,
        mime_type=upload.content_type or "application/octet-stream",
        size=total_size,
        absolute_path=absolute_path,
        relative_path=relative_path,
    )


def resolve_path(relative_path: str) -> Path:
    """Return an absolute path for a stored file relative path."""

    root = _media_root().resolve()
    candidate = (root / relative_path).resolve()
    if not str(candidate).startswith(str(root)):
        raise ValidationError("Invalid file path")
    if not candidate.is_file():
        raise NotFoundError("File not found")
    return candidate


def build_file_url(user_id: int, file_name: str) -> str:
    """Construct the relative URL under which a stored file is served."""

    base = get_settings().media_base_url.rstrip("/")
    return f"{base}/{user_id}/{file_name}"
