"""
Image descriptors from local files.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from ..errors import ValidationError
from ..metadata.models import KNOWN_FORMATS, ImageDescriptor

logger = logging.getLogger(__name__)


def descriptor_from_file(path: Union[str, Path], product_id: str, view: str,
                         alt_text: str = "", url: Optional[str] = None) -> ImageDescriptor:
    """
    Build an ImageDescriptor by opening a local image with Pillow.

    Only the header is read; pixel data is never decoded.

    Args:
        path: Image file path
        product_id: Catalog product identifier
        view: View name (e.g. 'front')
        alt_text: Alt text to validate alongside the image
        url: Public URL; defaults to the file URI

    Returns:
        ImageDescriptor

    Raises:
        ValidationError: If the file cannot be read or its format is unsupported
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            width, height = img.size
            fmt = (img.format or '').lower()
    except FileNotFoundError:
        raise ValidationError('path', f"no such file: {path}") from None
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError('path', f"cannot read image {path}: {e}") from e

    if fmt == 'jpg':
        fmt = 'jpeg'
    if fmt not in KNOWN_FORMATS:
        raise ValidationError('format', f"unsupported format '{fmt}' in {path.name}")

    logger.debug(f"Read {path.name}: {width}x{height} {fmt}")
    return ImageDescriptor(
        product_id=product_id,
        view=view,
        width=width,
        height=height,
        format=fmt,
        url=url or path.resolve().as_uri(),
        alt_text=alt_text,
    )
