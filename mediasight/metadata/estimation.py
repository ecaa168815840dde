"""
Closed-form estimates for encoded images: aspect ratio buckets, file size,
compression efficiency and encoder quality.

None of these functions touch real image bytes.
"""

import logging
from math import gcd
from typing import Dict, Optional

from .models import AspectRatio, FileSizeEstimate

logger = logging.getLogger(__name__)


class FormatTables:
    """Per-format constants, avif most efficient, png least."""

    MIME_TYPES = {
        'avif': 'image/avif',
        'webp': 'image/webp',
        'jpeg': 'image/jpeg',
        'jpg': 'image/jpeg',
        'png': 'image/png',
        'gif': 'image/gif',
    }

    # Multiplier applied to the raw size estimate
    SIZE_FACTORS = {
        'avif': 0.4,
        'webp': 0.6,
        'jpeg': 1.0,
        'jpg': 1.0,
        'png': 1.5,
        'gif': 1.2,
    }

    COMPRESSION = {
        'avif': {'efficiency': 0.95, 'ratio': 4.5},
        'webp': {'efficiency': 0.85, 'ratio': 3.5},
        'jpeg': {'efficiency': 0.65, 'ratio': 2.2},
        'jpg': {'efficiency': 0.65, 'ratio': 2.2},
        'png': {'efficiency': 0.40, 'ratio': 1.4},
    }
    DEFAULT_COMPRESSION = {'efficiency': 0.5, 'ratio': 1.5}

    # Encoder quality and the average size it produces for a typical product shot
    QUALITY_PRESETS = {
        'jpeg': {'quality': 85, 'avg_kb': 65},
        'webp': {'quality': 80, 'avg_kb': 50},
        'avif': {'quality': 75, 'avg_kb': 35},
    }


ASPECT_RATIO_NAMES = {
    '4:5': 'portrait',
    '3:4': 'portrait',
    '1:1': 'square',
    '16:9': 'widescreen',
    '2:3': 'pin',
}


def calculate_aspect_ratio(width: int, height: int,
                           names: Optional[Dict[str, str]] = None) -> AspectRatio:
    """Reduce width:height by their GCD and name the bucket ('custom' if unknown)."""
    divisor = gcd(width, height)
    ratio = f"{width // divisor}:{height // divisor}"
    names = ASPECT_RATIO_NAMES if names is None else names
    return AspectRatio(
        ratio=ratio,
        name=names.get(ratio, 'custom'),
        decimal=round(width / height, 3),
    )


def get_mime_type(fmt: str) -> str:
    return FormatTables.MIME_TYPES.get(fmt.lower(), 'image/jpeg')


def estimate_file_size(width: int, height: int, fmt: str, bit_depth: int = 8) -> FileSizeEstimate:
    """
    Estimate encoded size from pixel count, bit depth and format.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        fmt: Image format key
        bit_depth: Bits per channel sample

    Returns:
        FileSizeEstimate with a +/-20% range
    """
    fmt = fmt.lower()
    raw_kb = width * height * bit_depth / 8 / 1000
    estimated_kb = int(round(raw_kb * FormatTables.SIZE_FACTORS.get(fmt, 1.0)))
    compression = FormatTables.COMPRESSION.get(fmt, FormatTables.DEFAULT_COMPRESSION)

    return FileSizeEstimate(
        estimated_kb=estimated_kb,
        estimated_bytes=estimated_kb * 1024,
        range_low_kb=int(round(estimated_kb * 0.8)),
        range_high_kb=int(round(estimated_kb * 1.2)),
        max_recommended_kb=300 if width > 2000 else 200,
        compression_efficiency=compression['efficiency'],
        compression_ratio=compression['ratio'],
    )


def recommend_quality(fmt: str, target_kb: float) -> int:
    """
    Pick an encoder quality for a target file size.

    Small targets drop quality by 10 (never below 60), generous targets
    (over 1.5x the format average) raise it by 5 (never above 95).
    """
    key = 'jpeg' if fmt.lower() == 'jpg' else fmt.lower()
    preset = FormatTables.QUALITY_PRESETS.get(key, FormatTables.QUALITY_PRESETS['jpeg'])
    quality = preset['quality']

    if target_kb < preset['avg_kb']:
        quality = max(60, quality - 10)
    elif target_kb > preset['avg_kb'] * 1.5:
        quality = min(95, quality + 5)

    logger.debug(f"Recommended {key} quality {quality} for {target_kb}KB target")
    return quality
