"""
MediaSight utilities module.

Provides logging helpers, serialization and XMP sidecar support.
"""

from .xmp_sidecar import (
    XMPSidecar,
    metadata_to_xmp
)
from .serialization import to_jsonable

__all__ = [
    'XMPSidecar',
    'metadata_to_xmp',
    'to_jsonable'
]
