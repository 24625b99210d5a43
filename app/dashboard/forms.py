from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from werkzeug.datastructures import FileStorage, MultiDict

from app.dashboard.validation import UploadedImage


def read_upload(fs: FileStorage) -> UploadedImage | None:
    """Read a multipart file part; a part with no filename means nothing was chosen."""
    if fs is None or not fs.filename:
        return None
    content = fs.read()
    return UploadedImage(
        original_name=fs.filename,
        mime_type=(fs.mimetype or "").lower(),
        size_bytes=len(content),
        content=content,
    )


def extract_invoice_fields(form: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "customerId": form.get("customerId"),
        "amount": form.get("amount"),
        "status": form.get("status"),
    }


def extract_customer_fields(form: Mapping[str, Any], files: MultiDict | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": form.get("name"),
        "email": form.get("email"),
        "image_url": form.get("image_url"),
    }
    if files is not None:
        uploads = [u for u in (read_upload(f) for f in files.getlist("image_upload")) if u is not None]
        payload["image_upload"] = uploads or None
    return payload
