"""
Normalize an image file into a JPEG within a byte budget.

Usage:
    python scripts/normalize_image.py photo.png
    python scripts/normalize_image.py photo.png -o out.jpg --max-bytes 102400
    python scripts/normalize_image.py photo.png --verbose  # log every candidate
"""

import argparse
import sys
from pathlib import Path

from imgnorm.errors import NormalizerError
from imgnorm.logging_setup import configure_logging
from imgnorm.normalizer import ImageNormalizer
from imgnorm.settings import load_settings


def main(argv=None) -> int:
    settings = load_settings()

    parser = argparse.ArgumentParser(description='Re-encode an image as a JPEG within a byte budget')
    parser.add_argument('input', help='Source image file')
    parser.add_argument('-o', '--output', help='Output path (default: <input>_normalized.jpg)')
    parser.add_argument('--max-bytes', type=int, default=settings.max_bytes,
                        help=f'Byte budget (default: {settings.max_bytes})')
    parser.add_argument('--verbose', action='store_true', help='Log each encoding candidate')
    args = parser.parse_args(argv)

    configure_logging('DEBUG' if args.verbose else 'WARNING')

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"❌ File not found: {input_path}")
        return 1

    output_path = Path(args.output) if args.output else input_path.with_name(f"{input_path.stem}_normalized.jpg")

    try:
        normalizer = ImageNormalizer(max_bytes=args.max_bytes, max_width=settings.max_width)
        blob = normalizer.normalize(input_path.read_bytes())
    except NormalizerError as e:
        print(f"❌ {input_path.name}: {e}")
        return 1
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    output_path.write_bytes(blob.data)
    print(f"✅ Saved {output_path}")
    print(f"  - size: {blob.size} bytes (budget {args.max_bytes})")
    print(f"  - dimensions: {blob.width}x{blob.height}")
    print(f"  - scale: {blob.candidate.scale:.4f}, quality: {blob.candidate.quality:.1f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
