"""
Bounded-size image normalization.

Re-encodes an arbitrary user image as a JPEG that fits a byte budget by
walking a (scale, quality) ladder: scale starts at the width cap and decays
geometrically, quality steps down inside each scale, and the first candidate
that fits wins.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from imgnorm.codec import ImageCodec, PillowCodec, SourceImage
from imgnorm.errors import CompressionExhausted
from imgnorm.settings import DEFAULT_MAX_BYTES, DEFAULT_MAX_WIDTH, load_settings

logger = logging.getLogger(__name__)

SCALE_DECAY = 0.85
MIN_SCALE = 0.3
QUALITY_LADDER = (0.8, 0.7, 0.6, 0.5, 0.4)
MIN_QUALITY = QUALITY_LADDER[-1]


@dataclass(frozen=True)
class EncodingCandidate:
    """One trial re-encode."""

    scale: float
    quality: float


@dataclass(frozen=True)
class NormalizedBlob:
    """Normalized image ready for upload."""

    data: bytes
    media_type: str
    width: int
    height: int
    candidate: EncodingCandidate

    @property
    def size(self) -> int:
        return len(self.data)


def initial_scale(width: int, max_width: int = DEFAULT_MAX_WIDTH) -> float:
    """Largest permissible scale: never upscale, cap width at max_width."""
    if width <= 0:
        return 1.0
    scale = min(1.0, max_width / width)
    if not math.isfinite(scale) or scale <= 0:
        return 1.0
    return scale


def scaled_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """Target raster size for a scale; halves round up, minimum 1x1."""
    return (
        max(1, int(math.floor(width * scale + 0.5))),
        max(1, int(math.floor(height * scale + 0.5))),
    )


def candidate_ladder(width: int, max_width: int = DEFAULT_MAX_WIDTH) -> Iterator[EncodingCandidate]:
    """
    Yield candidates in search order.

    Scales run from initial_scale() down by SCALE_DECAY while above MIN_SCALE,
    each with the full QUALITY_LADDER. The last candidate is the forced
    attempt at MIN_SCALE / MIN_QUALITY.
    """
    scale = initial_scale(width, max_width)
    while scale > MIN_SCALE:
        for quality in QUALITY_LADDER:
            yield EncodingCandidate(scale=scale, quality=quality)
        scale *= SCALE_DECAY
    yield EncodingCandidate(scale=MIN_SCALE, quality=MIN_QUALITY)


def _validate_budget(max_bytes: int) -> int:
    if isinstance(max_bytes, bool) or not isinstance(max_bytes, int) or max_bytes <= 0:
        raise ValueError(f"max_bytes must be a positive integer, got {max_bytes!r}")
    return max_bytes


class ImageNormalizer:
    """Holds a codec plus budget defaults; keeps no per-call state."""

    def __init__(
        self,
        codec: Optional[ImageCodec] = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_width: int = DEFAULT_MAX_WIDTH,
    ):
        self.codec = codec or PillowCodec()
        self.max_bytes = _validate_budget(max_bytes)
        self.max_width = max_width

    def normalize(self, content: bytes, max_bytes: Optional[int] = None) -> NormalizedBlob:
        """
        Re-encode `content` so it fits within `max_bytes`.

        Raises:
            DecodeError: if the bytes are not a decodable image.
            CompressionExhausted: if even the smallest candidate is over budget.
        """
        budget = _validate_budget(self.max_bytes if max_bytes is None else max_bytes)
        source = self.codec.decode(content)

        raster: Optional[SourceImage] = None
        raster_size: Optional[Tuple[int, int]] = None
        attempts = 0
        for candidate in candidate_ladder(source.width, self.max_width):
            target = scaled_size(source.width, source.height, candidate.scale)
            if target != raster_size:
                raster = self.codec.resample(source, *target)
                raster_size = target

            data = self.codec.encode(raster, candidate.quality)
            attempts += 1
            logger.debug(
                "candidate scale=%.4f quality=%.1f size=%dx%d -> %d bytes",
                candidate.scale, candidate.quality, target[0], target[1], len(data),
            )
            if len(data) <= budget:
                logger.info(
                    "normalized %dx%d -> %dx%d, %d bytes (budget %d) after %d attempt(s)",
                    source.width, source.height, target[0], target[1], len(data), budget, attempts,
                )
                return NormalizedBlob(
                    data=data,
                    media_type=self.codec.media_type,
                    width=target[0],
                    height=target[1],
                    candidate=candidate,
                )

        logger.info(
            "compression exhausted for %dx%d image after %d attempts (budget %d)",
            source.width, source.height, attempts, budget,
        )
        raise CompressionExhausted(budget)


def normalize(
    file_bytes: bytes,
    max_bytes: int = DEFAULT_MAX_BYTES,
    codec: Optional[ImageCodec] = None,
) -> NormalizedBlob:
    """Normalize with the given codec (Pillow by default) and the IMAGE_MAX_WIDTH cap."""
    normalizer = ImageNormalizer(codec=codec, max_width=load_settings().max_width)
    return normalizer.normalize(file_bytes, max_bytes=max_bytes)
