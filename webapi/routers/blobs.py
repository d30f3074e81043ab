"""
Blob serving route
"""

from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from imgnorm.blob_store import LocalBlobStore
from imgnorm.settings import load_settings

router = APIRouter()

blob_store: Optional[LocalBlobStore] = None


def get_blob_store() -> LocalBlobStore:
    global blob_store
    if blob_store is None:
        settings = load_settings()
        blob_store = LocalBlobStore(settings.blob_root, settings.blob_base_url)
    return blob_store


@router.get("/blobs/{key:path}")
async def serve_blob(key: str):
    """Serve a stored blob with its recorded content type"""
    try:
        path, meta = get_blob_store().open(key)
    except ValueError:
        raise HTTPException(status_code=403, detail="Access outside the storage root is forbidden")
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Blob not found: {key}")

    return FileResponse(path, media_type=meta.get("contentType", "application/octet-stream"))
