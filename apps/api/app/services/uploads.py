"""Supporting-document uploads attached to assessment questions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePath
from typing import Any
from uuid import uuid4

from apps.api.app.core.config import Settings
from apps.api.app.core.errors import ValidationError
from apps.api.app.services.audit import log_structured_event

ALLOWED_MEDIA_TYPES = {
    "jpeg": {"image/jpeg"},
    "jpg": {"image/jpeg"},
    "png": {"image/png"},
    "gif": {"image/gif"},
    "pdf": {"application/pdf"},
    "doc": {"application/msword"},
    "docx": {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"},
    "txt": {"text/plain"},
}


@dataclass(frozen=True)
class StoredUpload:
    filename: str
    original_name: str
    path: Path
    media_type: str
    size: int
    upload_date: datetime

    def as_metadata(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "original_name": self.original_name,
            "path": str(self.path),
            "media_type": self.media_type,
            "size": self.size,
            "upload_date": self.upload_date.isoformat(),
        }


def _reject(message: str, *, code: str, original_name: str) -> ValidationError:
    log_structured_event("upload.rejected", original_name=original_name, reason=code)
    return ValidationError(message, code=code)


def validate_upload(
    *, original_name: str, media_type: str | None, size: int, settings: Settings
) -> str:
    """Return the normalized extension; raise ValidationError for disallowed files."""
    extension = PurePath(original_name).suffix.lower().lstrip(".")
    allowed = settings.allowed_extension_set
    if not extension or extension not in allowed:
        raise _reject(
            f"unsupported file type: .{extension or '?'} (allowed: {', '.join(sorted(allowed))})",
            code="unsupported_upload_type",
            original_name=original_name,
        )
    normalized_media_type = (media_type or "").split(";")[0].strip().lower()
    expected = ALLOWED_MEDIA_TYPES.get(extension)
    if expected is not None and normalized_media_type not in expected:
        raise _reject(
            f"media type {normalized_media_type or 'unknown'} does not match .{extension}",
            code="unsupported_upload_type",
            original_name=original_name,
        )
    if size <= 0:
        raise _reject("empty file", code="empty_upload", original_name=original_name)
    if size > settings.upload_max_bytes:
        raise _reject(
            f"file exceeds the {settings.upload_max_bytes} byte limit",
            code="upload_too_large",
            original_name=original_name,
        )
    return extension


def upload_path_for(storage_root: Path, company_id: str, extension: str) -> Path:
    return storage_root / f"{company_id}-{uuid4().hex}.{extension}"


def store_upload(
    *,
    company_id: str,
    original_name: str,
    media_type: str | None,
    content: bytes,
    settings: Settings,
    now: datetime,
) -> StoredUpload:
    extension = validate_upload(
        original_name=original_name,
        media_type=media_type,
        size=len(content),
        settings=settings,
    )
    path = upload_path_for(settings.upload_storage_root, company_id, extension)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return StoredUpload(
        filename=path.name,
        original_name=PurePath(original_name).name,
        path=path,
        media_type=(media_type or "").split(";")[0].strip().lower(),
        size=len(content),
        upload_date=now,
    )
