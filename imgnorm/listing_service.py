"""
Listing creation workflow.

Validates the listing form, normalizes each selected image, uploads the
results to blob storage and persists the listing record with the returned
download URLs.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from imgnorm.blob_store import BlobStore, build_storage_key
from imgnorm.errors import ListingValidationError, NormalizerError
from imgnorm.listing_store import Listing, ListingStore
from imgnorm.normalizer import ImageNormalizer
from imgnorm.settings import DEFAULT_MAX_IMAGES

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000


@dataclass
class ImageFile:
    """A user-selected file as received from the client."""
    filename: str
    content: bytes


@dataclass
class ImageUploadOutcome:
    """Result of normalizing and uploading one file."""
    index: int
    filename: str
    url: Optional[str] = None
    key: Optional[str] = None
    size: Optional[int] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ok"] = self.ok
        return data


def validate_listing_form(title: str, description: str, price: Any) -> Tuple[str, str, float]:
    """
    Check listing fields and return them trimmed / coerced.

    Raises:
        ListingValidationError: on a missing or malformed field.
    """
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description or price in (None, ""):
        raise ListingValidationError("Please fill all fields")
    if len(title) > TITLE_MAX_LENGTH:
        raise ListingValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ListingValidationError(
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
    try:
        price_value = float(price)
    except (TypeError, ValueError):
        raise ListingValidationError(f"Invalid price: {price!r}")
    if not math.isfinite(price_value) or price_value <= 0:
        raise ListingValidationError("Price must be a positive number")
    return title, description, price_value


class ListingService:
    def __init__(
        self,
        normalizer: ImageNormalizer,
        blob_store: BlobStore,
        listing_store: ListingStore,
        max_images: int = DEFAULT_MAX_IMAGES,
    ):
        self.normalizer = normalizer
        self.blob_store = blob_store
        self.listing_store = listing_store
        self.max_images = max_images

    def _process_one(self, owner_id: str, index: int, file: ImageFile) -> ImageUploadOutcome:
        outcome = ImageUploadOutcome(index=index, filename=file.filename)
        try:
            blob = self.normalizer.normalize(file.content)
        except NormalizerError as e:
            logger.warning("rejected image %r for owner %s: %s", file.filename, owner_id, e)
            outcome.error = str(e)
            outcome.error_kind = type(e).__name__
            return outcome

        key = build_storage_key(owner_id, file.filename, index)
        outcome.url = self.blob_store.upload(
            key,
            blob.data,
            blob.media_type,
            metadata={"originalName": file.filename},
        )
        outcome.key = key
        outcome.size = blob.size
        return outcome

    async def upload_images(self, owner_id: str, files: Iterable[ImageFile]) -> List[ImageUploadOutcome]:
        """
        Normalize and upload up to `max_images` files concurrently.

        A file that fails normalization is reported in its outcome; the other
        files are still processed.
        """
        selected = list(files)[: self.max_images]
        results = await asyncio.gather(
            *(
                asyncio.to_thread(self._process_one, owner_id, index, file)
                for index, file in enumerate(selected)
            )
        )
        return list(results)

    async def create_listing(
        self,
        owner_id: str,
        title: str,
        description: str,
        price: Any,
        files: Iterable[ImageFile],
    ) -> Tuple[Listing, List[ImageUploadOutcome]]:
        if not owner_id:
            raise ListingValidationError("You must be signed in")
        title, description, price_value = validate_listing_form(title, description, price)

        outcomes = await self.upload_images(owner_id, files)
        image_urls = [o.url for o in outcomes if o.ok]
        listing = self.listing_store.create_listing(
            user_id=owner_id,
            title=title,
            description=description,
            price=price_value,
            image_urls=image_urls,
        )
        logger.info(
            "created listing %s for %s with %d/%d image(s)",
            listing.id, owner_id, len(image_urls), len(outcomes),
        )
        return listing, outcomes
