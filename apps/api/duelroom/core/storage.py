"""
Local filesystem blob storage.

Defaults:
- STORAGE_ROOT: ./data/storage
- STORAGE_PUBLIC_BASE_URL: /media/
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional


def _repo_root() -> Path:
    # apps/api/duelroom/core/storage.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def get_storage_root() -> Path:
    raw = os.getenv("STORAGE_ROOT", "./data/storage")
    p = Path(raw)
    return (_repo_root() / p).resolve() if not p.is_absolute() else p


def get_public_base_url() -> str:
    base = os.getenv("STORAGE_PUBLIC_BASE_URL", "/media/")
    return base if base.endswith("/") else base + "/"


def ensure_storage_root() -> Path:
    root = get_storage_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def extension_for_mime(mime_type: str) -> str:
    if "png" in mime_type:
        return "png"
    if "jpeg" in mime_type or "jpg" in mime_type:
        return "jpg"
    return "png"


def mime_for_path(path: str) -> str:
    lowered = path.lower()
    if lowered.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    return "image/png"


class StorageError(RuntimeError):
    pass


class LocalBlobStore:
    """
    Blob store over a directory:
    - paths are storage-relative posix keys (e.g. characters/ABC123/slot-1-....png)
    - public URLs are <public_base_url><path>
    """

    def __init__(self, root: Optional[Path] = None, public_base_url: Optional[str] = None) -> None:
        self.root = (root or get_storage_root()).resolve()
        self.public_base_url = public_base_url or get_public_base_url()

    def _resolve(self, path: str) -> Path:
        p = (self.root / path).resolve()
        if not str(p).startswith(str(self.root) + os.sep):
            raise StorageError(f"path escapes storage root: {path!r}")
        return p

    def put(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"failed to write {path}: {e}") from e
        return self.public_url(path)

    def read(self, path: str) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except OSError as e:
            raise StorageError(f"failed to read {path}: {e}") from e

    def delete(self, path: Optional[str]) -> bool:
        """Idempotent: a missing file is not an error."""
        if not path:
            return False
        target = self._resolve(path)
        try:
            target.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"failed to delete {path}: {e}") from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}{path}"


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(root=ensure_storage_root())


def storage_health() -> Dict[str, Any]:
    try:
        root = ensure_storage_root()
        probe = root / ".probe_write"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return {"status": "ok", "kind": "local_fs", "root": str(root.as_posix())}
    except Exception as e:
        return {"status": "error", "kind": "local_fs", "root": str(get_storage_root().as_posix()), "error": str(e)}
