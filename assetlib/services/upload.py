"""Upload pipeline: per-file validation, data URL encoding and quota checks."""

from __future__ import annotations

import base64
import binascii
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping
from urllib.parse import unquote_to_bytes

from assetlib.errors import ValidationError

ALLOWED_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml")
MAX_FILE_SIZE = 2 * 1024 * 1024  # 2MB per file

LOCAL_QUOTA = 5 * 1024 * 1024  # ~5MB, estimated browser-local quota
QUOTA_HEADROOM = 0.95
STORAGE_WARNING_THRESHOLD = 0.8

QUOTA_MESSAGE = "Storage limit reached. Please delete some assets."


@dataclass
class UploadCandidate:
    """Un archivo pendiente de subir: nombre, MIME declarado y bytes."""

    name: str
    type: str
    content: bytes
    size: int | None = None

    def __post_init__(self) -> None:
        if self.size is None:
            self.size = len(self.content)


@dataclass
class UploadResult:
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    assets: list[dict[str, Any]] = field(default_factory=list)
    aborted: bool = False

    def reject(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)

    @property
    def summary(self) -> str:
        return f"{self.succeeded} asset(s) uploaded successfully"


def validate_file(candidate: UploadCandidate) -> None:
    if candidate.type not in ALLOWED_TYPES:
        raise ValidationError(f'"{candidate.name}" is not a supported format')
    if (candidate.size or 0) > MAX_FILE_SIZE:
        raise ValidationError(f'"{candidate.name}" exceeds 2MB limit')


def partition(candidates: Iterable[UploadCandidate], result: UploadResult) -> list[UploadCandidate]:
    """Return the valid candidates; every rejection is recorded on ``result``."""
    valid = []
    for candidate in candidates:
        try:
            validate_file(candidate)
        except ValidationError as exc:
            result.reject(exc.message)
            continue
        valid.append(candidate)
    return valid


def encode_data_url(content: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Inverse of :func:`encode_data_url`: returns ``(mime, bytes)``."""
    if not isinstance(data_url, str) or not data_url.startswith("data:"):
        raise ValidationError("Invalid data URL")
    header, sep, payload = data_url[5:].partition(",")
    if not sep:
        raise ValidationError("Invalid data URL")
    mime, _, encoding = header.partition(";")
    try:
        if encoding == "base64":
            return mime, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Invalid data URL", details=str(exc)) from exc
    # Plain (percent-encoded) payloads are only used for inline SVG previews.
    return mime, unquote_to_bytes(payload)


def build_asset(
    candidate: UploadCandidate,
    *,
    project_id: Any = None,
    folder_id: Any = None,
    now: datetime | None = None,
    with_id: bool = False,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "name": candidate.name,
        "type": candidate.type,
        "size": candidate.size,
        "data": encode_data_url(candidate.content, candidate.type),
        "upload_date": now or datetime.now(timezone.utc),
    }
    if project_id is not None:
        row["project_id"] = project_id
    if folder_id is not None:
        row["folder_id"] = folder_id
    if with_id:
        row["id"] = uuid.uuid4().hex
    return row


def storage_usage(assets: Iterable[Mapping[str, Any]]) -> int:
    """Local usage: length of every encoded payload."""
    return sum(len(a.get("data") or "") for a in assets)


def has_room(used: int, quota: int = LOCAL_QUOTA) -> bool:
    return used < quota * QUOTA_HEADROOM


def storage_warning(used: int, quota: int = LOCAL_QUOTA) -> bool:
    return used / quota > STORAGE_WARNING_THRESHOLD


def format_file_size(num_bytes: int | float) -> str:
    if not num_bytes:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    i = max(0, min(int(math.floor(math.log(num_bytes, 1024))), len(units) - 1))
    value = ("%.1f" % (num_bytes / 1024**i)).rstrip("0").rstrip(".")
    return f"{value} {units[i]}"
