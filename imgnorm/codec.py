"""
Image codec capability used by the normalizer.

The search in imgnorm.normalizer only talks to an ImageCodec, so decode,
resample and encode can be swapped for another backend. PillowCodec is the
default implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Any, Protocol

from PIL import Image, ImageOps

from imgnorm.errors import DecodeError

JPEG_MEDIA_TYPE = "image/jpeg"


@dataclass
class SourceImage:
    """Decoded raster; `image` is backend specific (a PIL image for PillowCodec)."""

    image: Any
    width: int
    height: int


class ImageCodec(Protocol):
    media_type: str

    def decode(self, content: bytes) -> SourceImage:
        ...

    def resample(self, source: SourceImage, width: int, height: int) -> SourceImage:
        ...

    def encode(self, source: SourceImage, quality: float) -> bytes:
        ...


def jpeg_quality(quality: float) -> int:
    """Map a 0-1 quality factor to a libjpeg quality setting."""
    return max(1, min(95, int(round(quality * 100))))


def _flatten_to_rgb(img: Image.Image) -> Image.Image:
    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    if has_alpha:
        # JPEG has no alpha; transparent pixels end up black like a canvas export
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (0, 0, 0))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


class PillowCodec:
    """ImageCodec backed by Pillow, always encoding to baseline JPEG."""

    media_type = JPEG_MEDIA_TYPE

    def decode(self, content: bytes) -> SourceImage:
        """
        Decode arbitrary image bytes (jpg/png/webp/...) into an RGB raster.

        Raises:
            DecodeError: if the input bytes are not a valid image.
        """
        if not content:
            raise DecodeError("Empty image payload")
        try:
            with Image.open(BytesIO(content)) as img:
                img.load()
                img = ImageOps.exif_transpose(img)
                rgb = _flatten_to_rgb(img)
                rgb.load()
        except Exception as e:
            raise DecodeError("Invalid image") from e
        return SourceImage(image=rgb, width=rgb.width, height=rgb.height)

    def resample(self, source: SourceImage, width: int, height: int) -> SourceImage:
        if (width, height) == (source.width, source.height):
            return source
        resized = source.image.resize((width, height), Image.Resampling.LANCZOS)
        return SourceImage(image=resized, width=width, height=height)

    def encode(self, source: SourceImage, quality: float) -> bytes:
        out = BytesIO()
        source.image.save(out, format="JPEG", quality=jpeg_quality(quality))
        return out.getvalue()
