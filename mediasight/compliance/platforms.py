"""
Discovery platform requirements.

The two built-in platforms are plain PlatformSpec data; configuration can
override them or register more under new keys.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from .models import PlatformSpec
from ..errors import UnknownPlatformError

logger = logging.getLogger(__name__)


VISUAL_SEARCH = PlatformSpec(
    key='visual-search',
    display_name='Visual search engine',
    min_width=1200,
    min_height=1200,
    ideal_width=2400,
    ideal_height=2400,
    preferred_formats=frozenset({'avif', 'webp'}),
    accepted_formats=frozenset({'jpeg', 'jpg', 'png', 'gif'}),
    alt_text_min=50,
    alt_text_max=150,
    max_file_size_kb=8192,
    notes=('High-resolution, well-lit product shots are matched most reliably',),
)

SOCIAL_PIN = PlatformSpec(
    key='social-pin',
    display_name='Social pin network',
    min_width=1000,
    min_height=1500,
    ideal_width=1500,
    ideal_height=2250,
    preferred_formats=frozenset({'png', 'jpeg', 'webp'}),
    accepted_formats=frozenset({'gif', 'jpg'}),
    alt_text_min=50,
    alt_text_max=125,
    max_file_size_kb=5120,
    aspect_ratio='2:3',
    notes=('Vertical 2:3 images get the most feed space',),
)

BUILTIN_PLATFORMS: Mapping[str, PlatformSpec] = MappingProxyType({
    VISUAL_SEARCH.key: VISUAL_SEARCH,
    SOCIAL_PIN.key: SOCIAL_PIN,
})


class PlatformRegistry:
    """Read-only lookup of platform specs by key."""

    def __init__(self, platforms: Optional[Mapping[str, PlatformSpec]] = None):
        self._platforms = MappingProxyType(dict(BUILTIN_PLATFORMS if platforms is None else platforms))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'PlatformRegistry':
        """Built-in platforms plus any overrides under 'compliance.platforms'."""
        platforms = dict(BUILTIN_PLATFORMS)
        for key, data in (config.get('compliance', {}).get('platforms') or {}).items():
            platforms[key] = PlatformSpec.from_dict(key, data)
            logger.debug(f"Registered platform spec '{key}' from config")
        return cls(platforms)

    def get(self, key: str) -> PlatformSpec:
        try:
            return self._platforms[key]
        except KeyError:
            raise UnknownPlatformError(key) from None

    def keys(self):
        return list(self._platforms)

    def __contains__(self, key: str) -> bool:
        return key in self._platforms

    def __iter__(self) -> Iterator[PlatformSpec]:
        return iter(self._platforms.values())

    def __len__(self) -> int:
        return len(self._platforms)
