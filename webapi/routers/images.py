"""
Image normalization route
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from imgnorm.errors import CompressionExhausted, DecodeError
from imgnorm.normalizer import ImageNormalizer
from imgnorm.settings import load_settings

router = APIRouter()

settings = load_settings()
normalizer = ImageNormalizer(max_bytes=settings.max_bytes, max_width=settings.max_width)


@router.post("/images/normalize")
async def normalize_image(file: UploadFile = File(...), max_bytes: Optional[str] = None):
    """
    Re-encode an uploaded image as a JPEG within the byte budget.

    Args:
        file: the uploaded image
        max_bytes: optional budget override (defaults to IMAGE_MAX_BYTES)
    """
    budget = None
    if max_bytes is not None:
        try:
            budget = int(max_bytes)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"max_bytes must be a positive integer, got {max_bytes!r}")

    content = await file.read()
    try:
        blob = await asyncio.to_thread(normalizer.normalize, content, budget)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail=f"Unreadable image '{file.filename}': {e}")
    except CompressionExhausted as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=blob.data,
        media_type=blob.media_type,
        headers={
            "X-Image-Width": str(blob.width),
            "X-Image-Height": str(blob.height),
            "X-Image-Scale": f"{blob.candidate.scale:.4f}",
            "X-Image-Quality": f"{blob.candidate.quality:.1f}",
        },
    )
