"""
Listing document store.

Persists listing records in a single JSON file. Writes are serialized by a
per-file lock so concurrent requests in one process do not lose updates.
"""

from __future__ import annotations

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


_LOCKS_GUARD = threading.Lock()
_LOCKS_BY_STORE_FILE: Dict[str, threading.RLock] = {}


def _get_store_file_lock(store_file: Path) -> threading.RLock:
    key = str(Path(store_file).resolve())
    with _LOCKS_GUARD:
        lock = _LOCKS_BY_STORE_FILE.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS_BY_STORE_FILE[key] = lock
        return lock


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Listing(BaseModel):
    """Listing record; imageUrls[0] is the primary image."""
    id: str
    title: str
    description: str
    price: float
    imageUrls: List[str] = Field(default_factory=list)
    userId: str
    status: Literal["active", "sold"] = "active"
    createdAt: str
    updatedAt: Optional[str] = None
    soldAt: Optional[str] = None


class ListingStore:
    """JSON-file listing store."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = _get_store_file_lock(self.path)

    def _load(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f).get("listings", {})

    def _save(self, listings: Dict[str, dict]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"listings": listings}, f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)

    def create_listing(
        self,
        *,
        user_id: str,
        title: str,
        description: str,
        price: float,
        image_urls: List[str],
    ) -> Listing:
        now = _utc_now_iso()
        listing = Listing(
            id=uuid.uuid4().hex,
            title=title,
            description=description,
            price=price,
            imageUrls=list(image_urls),
            userId=user_id,
            status="active",
            createdAt=now,
            updatedAt=now,
            soldAt=None,
        )
        with self._lock:
            listings = self._load()
            listings[listing.id] = listing.model_dump()
            self._save(listings)
        return listing

    def get_listing(self, listing_id: str) -> Listing:
        """
        Raises:
            KeyError: if no listing has this id.
        """
        with self._lock:
            data = self._load().get(listing_id)
        if data is None:
            raise KeyError(listing_id)
        return Listing.model_validate(data)

    def list_listings(self, user_id: Optional[str] = None) -> List[Listing]:
        """Listings, newest first, optionally limited to one owner."""
        with self._lock:
            records = list(self._load().values())
        listings = [Listing.model_validate(r) for r in records]
        if user_id is not None:
            listings = [item for item in listings if item.userId == user_id]
        listings.sort(key=lambda item: item.createdAt, reverse=True)
        return listings
