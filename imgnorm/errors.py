"""
Errors raised by the image normalizer and the listing workflow.
"""

from __future__ import annotations


class NormalizerError(ValueError):
    """Base class for normalization failures."""


class DecodeError(NormalizerError):
    """Raised when input bytes cannot be decoded as an image."""


class CompressionExhausted(NormalizerError):
    """Raised when no candidate fits the byte budget."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"Image is too large even after compression (> {max_bytes} bytes).")


class ListingValidationError(ValueError):
    """Raised when listing form fields are missing or malformed."""
