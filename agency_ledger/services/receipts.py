"""Receipt upload validation and storage paths"""

import re
from datetime import datetime
from typing import Optional, Sequence

from agency_ledger.config import settings
from agency_ledger.domain.exceptions import ValidationError

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def clean_filename(filename: Optional[str]) -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", filename or "")
    return cleaned or "receipt"


def receipt_path(
    prefix: str,
    filename: Optional[str],
    content_type: str,
    size: int,
    uploaded_at: datetime,
    max_bytes: Optional[int] = None,
    allowed_types: Optional[Sequence[str]] = None,
) -> str:
    """
    Validate a receipt upload and build its storage path.

    Path layout: {prefix}/{epoch_millis}_{clean_filename}

    Raises:
        ValidationError: Empty file, file too large, or unsupported content type
    """
    max_bytes = max_bytes or settings.receipt_max_bytes
    allowed_types = allowed_types or settings.receipt_allowed_types

    if size <= 0:
        raise ValidationError("Receipt file is empty")
    if size > max_bytes:
        raise ValidationError(f"Receipt exceeds the maximum size of {max_bytes / (1024 * 1024):g}MB")
    if content_type not in allowed_types:
        raise ValidationError(f"Receipt type {content_type!r} not allowed. Use JPG, PNG, GIF, WebP or PDF")

    stamp = int(uploaded_at.timestamp() * 1000)
    return f"{prefix}/{stamp}_{clean_filename(filename)}"
