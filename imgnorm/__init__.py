# Listing image normalizer
# Bounded-size JPEG re-encoding for marketplace listing uploads

# Load .env before anything reads settings
from .env_init import PROJECT_ROOT

from .errors import CompressionExhausted, DecodeError, NormalizerError
from .normalizer import EncodingCandidate, ImageNormalizer, NormalizedBlob, normalize

__all__ = [
    'PROJECT_ROOT',
    'CompressionExhausted',
    'DecodeError',
    'NormalizerError',
    'EncodingCandidate',
    'ImageNormalizer',
    'NormalizedBlob',
    'normalize',
]
