"""
Data models for metadata synthesis.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..errors import ValidationError, UnknownLicenseError
from ..utils.serialization import to_jsonable


KNOWN_FORMATS = ('avif', 'webp', 'jpeg', 'jpg', 'png', 'gif')

# Catalog payloads arrive with camelCase keys; both spellings are accepted.
_DESCRIPTOR_KEYS = {
    'product_id': ('product_id', 'productId'),
    'view': ('view',),
    'width': ('width',),
    'height': ('height',),
    'format': ('format',),
    'url': ('url',),
    'alt_text': ('alt_text', 'altText', 'alt'),
}

_CONTEXT_KEYS = {
    'product_name': ('product_name', 'productName', 'name'),
    'description': ('description',),
    'category': ('category',),
    'tags': ('tags',),
    'color': ('color',),
    'material': ('material',),
    'license_type': ('license_type', 'licenseType', 'license'),
    'creator': ('creator', 'photographer'),
    'created_at': ('created_at', 'createdAt', 'uploadDate'),
    'product_url': ('product_url', 'productUrl'),
    'quality': ('quality',),
}


def _pick(data: Mapping[str, Any], aliases: Tuple[str, ...]) -> Any:
    for key in aliases:
        if key in data and data[key] is not None:
            return data[key]
    return None


class LicenseType(Enum):
    """Closed set of image licenses."""
    PROPRIETARY = "proprietary"
    CC0 = "cc0"
    CC_BY = "cc-by"
    CC_BY_SA = "cc-by-sa"
    CC_BY_NC = "cc-by-nc"
    COMMERCIAL = "commercial"

    @classmethod
    def parse(cls, value: Union[str, 'LicenseType']) -> 'LicenseType':
        """Resolve a license key, raising UnknownLicenseError for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownLicenseError(str(value)) from None


@dataclass(frozen=True)
class Brand:
    """Organization that owns and publishes the imagery."""
    name: str = "Storefront Co."
    url: str = "https://shop.example.com"
    cdn_base_url: str = "https://cdn.example.com"
    locale: str = "en-CA"
    currency: str = "CAD"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'Brand':
        brand = config.get('brand', {})
        defaults = cls()
        return cls(
            name=brand.get('name', defaults.name),
            url=brand.get('url', defaults.url).rstrip('/'),
            cdn_base_url=brand.get('cdn_base_url', defaults.cdn_base_url).rstrip('/'),
            locale=brand.get('locale', defaults.locale),
            currency=brand.get('currency', defaults.currency),
        )


@dataclass(frozen=True)
class ImageDescriptor:
    """
    Immutable description of one product image as supplied by the catalog.

    Width and height must be positive integers and the format must be a
    known codec; construction fails with ValidationError otherwise.
    """
    product_id: str = ""
    view: str = ""
    width: int = 0
    height: int = 0
    format: str = ""
    url: str = ""
    alt_text: str = ""

    def __post_init__(self):
        for name in ('width', 'height'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(name, "must be an integer")
            if value <= 0:
                raise ValidationError(name, "must be a positive integer")

        fmt = (self.format or "").strip().lower()
        if not fmt:
            raise ValidationError('format')
        if fmt not in KNOWN_FORMATS:
            raise ValidationError('format', f"unsupported format '{self.format}'")
        object.__setattr__(self, 'format', fmt)
        object.__setattr__(self, 'product_id', str(self.product_id or ""))
        object.__setattr__(self, 'alt_text', self.alt_text or "")

    @property
    def canonical_format(self) -> str:
        """Format with the 'jpg' alias folded into 'jpeg'."""
        return 'jpeg' if self.format == 'jpg' else self.format

    @property
    def pixels(self) -> int:
        return self.width * self.height

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ImageDescriptor':
        """Build a descriptor from a catalog mapping (camelCase or snake_case keys)."""
        values = {name: _pick(data, aliases) for name, aliases in _DESCRIPTOR_KEYS.items()}
        for name in ('width', 'height', 'format'):
            if values[name] in (None, ""):
                raise ValidationError(name)
        for name in ('width', 'height'):
            try:
                values[name] = int(values[name])
            except (TypeError, ValueError):
                raise ValidationError(name, "must be an integer") from None
        return cls(**{k: v for k, v in values.items() if v is not None})

    @classmethod
    def coerce(cls, value: Union['ImageDescriptor', Mapping[str, Any]]) -> 'ImageDescriptor':
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise ValidationError('descriptor', f"expected ImageDescriptor or mapping, got {type(value).__name__}")


@dataclass(frozen=True)
class ProductContext:
    """Product data the catalog supplies alongside each image."""
    product_name: str
    description: str = ""
    category: str = ""
    tags: Tuple[str, ...] = ()
    color: str = ""
    material: str = ""
    license_type: Optional[str] = None
    creator: Optional[str] = None
    created_at: Optional[str] = None
    product_url: str = ""
    quality: Optional[Dict[str, float]] = None

    def __post_init__(self):
        if not self.product_name or not str(self.product_name).strip():
            raise ValidationError('product_name')
        if isinstance(self.tags, str):
            object.__setattr__(self, 'tags', (self.tags,))
        else:
            object.__setattr__(self, 'tags', tuple(str(t) for t in (self.tags or ())))
        if isinstance(self.created_at, date):
            object.__setattr__(self, 'created_at', self.created_at.isoformat())

    @property
    def created_datetime(self) -> Optional[datetime]:
        """created_at parsed as a datetime, or None when absent."""
        if not self.created_at:
            return None
        try:
            parsed = datetime.fromisoformat(str(self.created_at).replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError('created_at', f"not an ISO 8601 date: {self.created_at!r}") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ProductContext':
        values = {name: _pick(data, aliases) for name, aliases in _CONTEXT_KEYS.items()}
        if not values['product_name']:
            raise ValidationError('product_name')
        return cls(**{k: v for k, v in values.items() if v is not None})

    @classmethod
    def coerce(cls, value: Union['ProductContext', Mapping[str, Any]]) -> 'ProductContext':
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise ValidationError('product_context', f"expected ProductContext or mapping, got {type(value).__name__}")


@dataclass(frozen=True)
class AspectRatio:
    """Width:height reduced by their GCD, plus a named bucket."""
    ratio: str
    name: str
    decimal: float


@dataclass(frozen=True)
class CdnPath:
    base: str
    with_dimensions: str
    formatted: str


@dataclass(frozen=True)
class FilenameSet:
    """Canonical filenames derived from a descriptor and product name."""
    id_based: str
    name_based: str
    descriptive: str
    cdn_path: CdnPath
    aspect_ratio: AspectRatio


@dataclass(frozen=True)
class FileSizeEstimate:
    """
    Closed-form size estimate for an encoded image.

    Derived from pixel count, bit depth and a per-format efficiency
    constant; never a measurement of real bytes.
    """
    estimated_kb: int
    estimated_bytes: int
    range_low_kb: int
    range_high_kb: int
    max_recommended_kb: int
    compression_efficiency: float
    compression_ratio: float


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int
    aspect_ratio: str
    aspect_name: str
    dpi: int
    file_size: FileSizeEstimate


@dataclass(frozen=True)
class ContentInfo:
    product_name: str
    product_id: str
    category: str
    description: str
    keywords: Tuple[str, ...]
    tags: Tuple[str, ...]
    view: str
    type: str = "product-photo"


@dataclass(frozen=True)
class CreatorInfo:
    name: str
    url: str
    license: str
    rights: str
    credit: str


@dataclass(frozen=True)
class DateInfo:
    created: Optional[str] = None
    modified: Optional[str] = None
    published: Optional[str] = None


@dataclass(frozen=True)
class SeoFields:
    title: str
    description: str
    keywords: str
    canonical: str


@dataclass(frozen=True)
class TechnicalInfo:
    mime_type: str
    format: str
    color_space: str
    bit_depth: int
    orientation: int = 0
    interlaced: bool = False


@dataclass(frozen=True)
class QualityEstimate:
    """Estimated image quality, every field within [0, 1]."""
    sharpness: float
    contrast: float
    color_accuracy: float

    def __post_init__(self):
        for name in ('sharpness', 'contrast', 'color_accuracy'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                raise ValidationError(name, "must be a number")
            object.__setattr__(self, name, min(1.0, max(0.0, float(value))))


@dataclass(frozen=True)
class UsageInfo:
    cdn_base: str
    cdn_variants: Dict[str, str]
    alt_text: str
    title: str
    caption: str


@dataclass(frozen=True)
class ImageMetadata:
    """EXIF-like metadata record synthesized for one product image."""
    id: str
    product_id: str
    filename: str
    dimensions: Dimensions
    content: ContentInfo
    creator: CreatorInfo
    dates: DateInfo
    seo: SeoFields
    technical: TechnicalInfo
    quality: QualityEstimate
    usage: UsageInfo

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self.content.keywords

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


@dataclass(frozen=True)
class UsageRights:
    can_use_commercially: bool
    can_modify: bool
    can_distribute: bool
    needs_attribution: bool
    can_use_socially: bool = True


@dataclass(frozen=True)
class Watermark:
    should_add: bool
    text: str
    position: str = "bottom-right"
    opacity: float = 0.3


@dataclass(frozen=True)
class CitationForms:
    mla: str
    apa: str
    chicago: str
    html: str


@dataclass(frozen=True)
class CopyrightRecord:
    """
    Copyright and licensing terms for an image.

    Restrictions, permissions and usage rights always come from the license
    lookup table for `license_type`.
    """
    statement: str
    attribution_text: str
    license_type: LicenseType
    license_name: str
    license_url: str
    restrictions: Tuple[str, ...]
    permissions: Tuple[str, ...]
    usage: UsageRights
    watermark: Watermark
    citation_forms: CitationForms
    owner: str
    year: int

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


@dataclass(frozen=True)
class SynthesisResult:
    """Everything the synthesizer derives for one image."""
    descriptor: ImageDescriptor
    filenames: FilenameSet
    metadata: ImageMetadata
    copyright: CopyrightRecord

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filenames': to_jsonable(self.filenames),
            'metadata': self.metadata.to_dict(),
            'copyright': self.copyright.to_dict(),
        }
