from __future__ import annotations

import os
import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def to_minor_units(amount: Decimal | int | float) -> int:
    """Convert a 2-decimal currency amount to integer cents, rounding half up."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def invoice_date_stamp(now: datetime | None = None) -> str:
    """Current UTC calendar day as YYYY-MM-DD."""
    now = now or datetime.now(timezone.utc)
    return now.date().isoformat()


def sanitize_and_timestamp_filename(original_filename: str, now: datetime | None = None) -> str:
    """
    Build a unique, shell/path safe name for an uploaded file.

    "My Photo.JPG" -> "My_Photo_20261018_101530_042.JPG"

    The extension (with its dot) is kept verbatim; everything else outside
    [A-Za-z0-9_-] in the base name becomes "_". Directory parts sent by the
    client are dropped first.
    """
    now = now or datetime.now()
    timestamp = f"{now:%Y%m%d_%H%M%S}_{now.microsecond // 1000:03d}"

    basename = os.path.basename(original_filename.replace("\\", "/"))
    name_without_extension, extension = os.path.splitext(basename)
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", name_without_extension)
    return f"{safe_name}_{timestamp}{extension}"


def format_currency(minor_units: int | None) -> str:
    if minor_units is None:
        return "—"
    return f"${minor_units / 100:,.2f}"


def format_date_to_local(value: str | date | None, fmt: str = "%b %d, %Y") -> str:
    if not value:
        return "—"
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return value.strftime(fmt)
