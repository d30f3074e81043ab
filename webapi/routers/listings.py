"""
Listing routes
"""

from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from imgnorm.blob_store import LocalBlobStore
from imgnorm.errors import ListingValidationError
from imgnorm.listing_service import ImageFile, ListingService
from imgnorm.listing_store import ListingStore
from imgnorm.normalizer import ImageNormalizer
from imgnorm.settings import load_settings

router = APIRouter()

service: Optional[ListingService] = None


def get_service() -> ListingService:
    global service
    if service is None:
        settings = load_settings()
        service = ListingService(
            normalizer=ImageNormalizer(max_bytes=settings.max_bytes, max_width=settings.max_width),
            blob_store=LocalBlobStore(settings.blob_root, settings.blob_base_url),
            listing_store=ListingStore(settings.listings_path),
            max_images=settings.max_images,
        )
    return service


@router.post("/listings")
async def create_listing(
    user_id: str = Form(...),
    title: str = Form(...),
    description: str = Form(...),
    price: str = Form(...),
    files: Optional[List[UploadFile]] = File(None),
):
    """
    Create a listing

    Images beyond the per-listing limit are ignored. Images that cannot be
    normalized are reported under `images` and left out of `imageUrls`.
    """
    listing_service = get_service()
    image_files = []
    for upload in (files or [])[: listing_service.max_images]:
        image_files.append(ImageFile(filename=upload.filename or "image", content=await upload.read()))

    try:
        listing, outcomes = await listing_service.create_listing(
            user_id, title, description, price, image_files
        )
    except ListingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "listing": listing.model_dump(),
        "images": [o.to_dict() for o in outcomes],
        "rejected": sum(1 for o in outcomes if not o.ok),
    }


@router.get("/listings")
async def list_listings(user_id: Optional[str] = None):
    """List listings, newest first"""
    listings = get_service().listing_store.list_listings(user_id=user_id)
    return {"listings": [item.model_dump() for item in listings], "total": len(listings)}


@router.get("/listings/{listing_id}")
async def get_listing(listing_id: str):
    """Get a single listing"""
    try:
        listing = get_service().listing_store.get_listing(listing_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Listing '{listing_id}' not found")
    return {"listing": listing.model_dump()}
