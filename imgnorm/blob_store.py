"""
Object storage for normalized images.

BlobStore is the upload interface the listing workflow depends on;
LocalBlobStore keeps blobs on disk and is served by the web API.
"""

from __future__ import annotations

import json
import re
import secrets
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

_BASE36_ALPHABET = string.digits + string.ascii_lowercase
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
META_SUFFIX = ".meta.json"


class BlobStore(Protocol):
    def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Store `data` under `key` and return its download URL."""
        ...


def _random_base36(length: int = 11) -> str:
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(length))


def sanitize_file_stem(filename: str) -> str:
    """Drop the extension and any character unsafe in a storage key."""
    name = Path(filename or "").name
    stem = re.sub(r"\.[^.]+$", "", name)
    stem = _UNSAFE_NAME_CHARS.sub("_", stem).strip("._")
    return stem or "image"


def build_storage_key(
    owner_id: str,
    original_name: str,
    index: int = 0,
    namespace: str = "listings",
) -> str:
    """
    Build `<namespace>/<ownerId>/<generatedId>_<sanitizedName>.jpg`.

    The generated id is `<epoch millis>_<index>_<random base36>`, so keys
    from one batch stay unique and sort by upload time.
    """
    owner = _UNSAFE_NAME_CHARS.sub("_", str(owner_id)).strip("._")
    if not owner:
        raise ValueError("owner_id is required")
    generated_id = f"{int(time.time() * 1000)}_{index}_{_random_base36()}"
    return f"{namespace}/{owner}/{generated_id}_{sanitize_file_stem(original_name)}.jpg"


class LocalBlobStore:
    """Filesystem-backed BlobStore with a JSON metadata sidecar per blob."""

    def __init__(self, root: Path, base_url: str = "/api/v1/blobs"):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, key: str) -> Path:
        if not key or key.endswith(META_SUFFIX):
            raise ValueError(f"Invalid blob key: {key!r}")
        path = (self.root / key).resolve()
        try:
            path.relative_to(self.root.resolve())
        except ValueError:
            raise ValueError(f"Blob key escapes storage root: {key!r}")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        meta = {
            "contentType": content_type,
            "size": len(data),
            "customMetadata": dict(metadata or {}),
            "uploadedAt": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        meta_path = path.with_name(path.name + META_SUFFIX)
        with open(meta_path, "w", encoding="utf-8") as f:
            json.dump(meta, f, ensure_ascii=False, indent=2)

        return self.url_for(key)

    def open(self, key: str) -> Tuple[Path, Dict[str, Any]]:
        """
        Locate a stored blob.

        Returns:
            (file path, metadata dict)

        Raises:
            ValueError: if the key escapes the storage root.
            FileNotFoundError: if nothing is stored under the key.
        """
        path = self._resolve(key)
        if not path.is_file():
            raise FileNotFoundError(key)
        meta_path = path.with_name(path.name + META_SUFFIX)
        meta: Dict[str, Any] = {}
        if meta_path.exists():
            with open(meta_path, "r", encoding="utf-8") as f:
                meta = json.load(f)
        return path, meta
