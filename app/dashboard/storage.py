from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class FileSystemError(RuntimeError):
    pass


@dataclass(frozen=True)
class UploadStorage:
    """
    Write-only store for public uploads.

    Files land directly in ``root`` (never in a subdirectory) and are addressed
    by ``<public_prefix>/<filename>``.
    """

    root: Path
    public_prefix: str

    def _path(self, filename: str) -> Path:
        if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
            raise FileSystemError(f"Refusing to write upload with unsafe name {filename!r}")
        return self.root / filename

    def save(self, filename: str, data: bytes) -> str:
        p = self._path(filename)
        try:
            p.write_bytes(data)
        except OSError as e:
            raise FileSystemError(f"Failed to write upload {filename!r}: {e}") from e
        return f"{self.public_prefix}/{filename}"


def storage_from_config(config: dict) -> UploadStorage:
    root = Path(config.get("UPLOAD_DIR") or Path.cwd() / "public" / "customers")
    prefix = (config.get("UPLOAD_URL_PREFIX") or "/customers").rstrip("/")
    return UploadStorage(root=root, public_prefix=prefix)
