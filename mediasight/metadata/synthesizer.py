"""
Metadata synthesis for product images.

Turns an image descriptor plus product context into canonical filenames,
an EXIF-like metadata record and a copyright/license record. Output is a
pure function of the inputs and the synthesizer's configuration.
"""

import csv
import html
import io
import logging
import re
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .estimation import calculate_aspect_ratio, estimate_file_size, get_mime_type, recommend_quality
from .licenses import LICENSE_RULES, LicenseRules, get_license_rules
from .models import (
    Brand, CdnPath, CitationForms, ContentInfo, CopyrightRecord, CreatorInfo,
    DateInfo, Dimensions, FilenameSet, ImageDescriptor, ImageMetadata,
    LicenseType, ProductContext, QualityEstimate, SeoFields, SynthesisResult,
    TechnicalInfo, UsageInfo, UsageRights, Watermark,
)
from ..clock import Clock, SystemClock
from ..errors import ValidationError

logger = logging.getLogger(__name__)

CDN_VARIANTS = (
    ('thumbnail', '?w=200&h=200'),
    ('small', '?w=400'),
    ('medium', '?w=800'),
    ('large', '?w=1200'),
    ('original', ''),
)

METADATA_CSV_HEADER = ('Product ID', 'Product Name', 'Category', 'View',
                       'Dimensions', 'Format', 'Creator', 'Upload Date')


def slugify(text: str, max_length: int = 50) -> str:
    """Lowercase ASCII slug with single dashes, truncated to max_length."""
    slug = text.lower().strip()
    slug = re.sub(r'[^\w\s-]', '', slug, flags=re.ASCII)
    slug = re.sub(r'[\s_]+', '-', slug)
    slug = re.sub(r'-+', '-', slug).strip('-')
    return slug[:max_length].rstrip('-')


def slugify_view(view: str) -> str:
    return re.sub(r'[^\w-]', '', view.lower(), flags=re.ASCII)[:20]


def extract_keywords(texts: Iterable[str], limit: int = 50) -> Tuple[str, ...]:
    """
    Tokenize texts into lowercase keywords.

    Punctuation is stripped, duplicates dropped keeping first-seen order,
    and the result capped at `limit` tokens.
    """
    seen = {}
    for text in texts:
        if not text:
            continue
        for token in re.split(r'[\W_]+', str(text).lower()):
            if token and token not in seen:
                seen[token] = None
                if len(seen) >= limit:
                    return tuple(seen)
    return tuple(seen)


class MetadataSynthesizer:
    """
    Derives filenames, metadata and copyright for product images.

    All lookup tables and brand settings are injected at construction;
    nothing is read from module state at call time apart from the
    immutable defaults.
    """

    def __init__(self,
                 brand: Optional[Brand] = None,
                 license_rules: Mapping[LicenseType, LicenseRules] = LICENSE_RULES,
                 keyword_limit: int = 50,
                 default_license: Union[str, LicenseType] = LicenseType.PROPRIETARY,
                 creator: str = "Storefront Studio",
                 dpi: int = 96,
                 bit_depth: int = 8,
                 color_space: str = "sRGB",
                 quality_defaults: Optional[Dict[str, float]] = None,
                 copyright_year: Optional[int] = None,
                 clock: Optional[Clock] = None):
        if keyword_limit <= 0:
            raise ValidationError('keyword_limit', "must be positive")
        self.brand = brand or Brand()
        self.license_rules = license_rules
        self.keyword_limit = keyword_limit
        self.default_license = LicenseType.parse(default_license)
        self.creator = creator
        self.dpi = dpi
        self.bit_depth = bit_depth
        self.color_space = color_space
        self.quality_defaults = dict(quality_defaults or {
            'sharpness': 0.85,
            'contrast': 0.78,
            'color_accuracy': 0.92,
        })
        # Fixed once so repeated calls stay byte-identical
        self.copyright_year = copyright_year or (clock or SystemClock()).now().year

    @classmethod
    def from_config(cls, config: Dict[str, Any], clock: Optional[Clock] = None) -> 'MetadataSynthesizer':
        """Build a synthesizer from the 'brand' and 'metadata' config sections."""
        meta = config.get('metadata', {})
        return cls(
            brand=Brand.from_config(config),
            keyword_limit=meta.get('keyword_limit', 50),
            default_license=meta.get('default_license', 'proprietary'),
            creator=meta.get('creator', 'Storefront Studio'),
            dpi=meta.get('dpi', 96),
            bit_depth=meta.get('bit_depth', 8),
            color_space=meta.get('color_space', 'sRGB'),
            quality_defaults=meta.get('quality_defaults'),
            copyright_year=meta.get('copyright_year'),
            clock=clock,
        )

    def synthesize(self, descriptor: Union[ImageDescriptor, Mapping[str, Any]],
                   product_context: Union[ProductContext, Mapping[str, Any]]) -> SynthesisResult:
        """
        Synthesize filenames, metadata and copyright for one image.

        Args:
            descriptor: ImageDescriptor or catalog mapping
            product_context: ProductContext or catalog mapping

        Returns:
            SynthesisResult

        Raises:
            ValidationError: If a required field is missing or invalid
            UnknownLicenseError: If the license type is not recognized
        """
        descriptor = ImageDescriptor.coerce(descriptor)
        context = ProductContext.coerce(product_context)
        for name in ('product_id', 'view'):
            if not str(getattr(descriptor, name) or '').strip():
                raise ValidationError(name)

        license_type = LicenseType.parse(context.license_type or self.default_license)
        rules = get_license_rules(license_type, self.license_rules)

        filenames = self.generate_filenames(descriptor, context.product_name)
        copyright_record = self.build_copyright(context, license_type, rules)
        metadata = self.build_metadata(descriptor, context, filenames, copyright_record)

        logger.debug(f"Synthesized metadata for {metadata.id} ({license_type.value})")
        return SynthesisResult(
            descriptor=descriptor,
            filenames=filenames,
            metadata=metadata,
            copyright=copyright_record,
        )

    def generate_filenames(self, descriptor: ImageDescriptor, product_name: str) -> FilenameSet:
        """Build the id-based, name-based and descriptive filenames plus CDN path."""
        name_slug = slugify(product_name) or slugify(descriptor.product_id)
        view_slug = slugify_view(descriptor.view)
        dims = f"{descriptor.width}x{descriptor.height}"
        fmt = descriptor.format

        base = f"products/{descriptor.product_id}/{view_slug}"
        return FilenameSet(
            id_based=f"{descriptor.product_id}-{view_slug}-{dims}.{fmt}",
            name_based=f"{name_slug}-{view_slug}-{dims}.{fmt}",
            descriptive=f"{name_slug}-{view_slug}-product-image-{dims}.{fmt}",
            cdn_path=CdnPath(
                base=base,
                with_dimensions=f"{base}-{dims}",
                formatted=f"{base}-{dims}-{fmt}",
            ),
            aspect_ratio=calculate_aspect_ratio(descriptor.width, descriptor.height),
        )

    def generate_alt_text(self, context: Union[ProductContext, Mapping[str, Any]], view: str) -> str:
        """Describe the product for screen readers and image search."""
        context = ProductContext.coerce(context)
        parts = [context.product_name.strip()]
        if context.color:
            parts.append(f"in {context.color}")
        if context.material:
            parts.append(f"made from {context.material}")
        if view:
            parts.append(f"{view} view")
        alt_text = ' '.join(parts)
        if len(alt_text) > 150:
            logger.info(f"Alt text for '{context.product_name}' is {len(alt_text)} characters, "
                        f"longer than the 150 most platforms display")
        return alt_text

    def recommend_quality(self, fmt: str, target_kb: float) -> int:
        return recommend_quality(fmt, target_kb)

    def build_metadata(self, descriptor: ImageDescriptor, context: ProductContext,
                       filenames: FilenameSet, copyright_record: CopyrightRecord) -> ImageMetadata:
        view_slug = slugify_view(descriptor.view)
        keywords = extract_keywords(
            [context.product_name, context.description, context.category, *context.tags],
            limit=self.keyword_limit,
        )
        tags = tuple(dict.fromkeys(t for t in (*context.tags, context.category, descriptor.view) if t))
        created = context.created_at or None

        cdn_base = f"{self.brand.cdn_base_url}/{filenames.cdn_path.formatted}"
        variants = {name: f"{cdn_base}{query}" for name, query in CDN_VARIANTS}
        alt_text = descriptor.alt_text or self.generate_alt_text(context, descriptor.view)

        return ImageMetadata(
            id=f"{descriptor.product_id}-{view_slug}",
            product_id=descriptor.product_id,
            filename=filenames.id_based,
            dimensions=Dimensions(
                width=descriptor.width,
                height=descriptor.height,
                aspect_ratio=filenames.aspect_ratio.ratio,
                aspect_name=filenames.aspect_ratio.name,
                dpi=self.dpi,
                file_size=estimate_file_size(descriptor.width, descriptor.height,
                                             descriptor.format, self.bit_depth),
            ),
            content=ContentInfo(
                product_name=context.product_name,
                product_id=descriptor.product_id,
                category=context.category,
                description=context.description[:200],
                keywords=keywords,
                tags=tags,
                view=descriptor.view,
            ),
            creator=CreatorInfo(
                name=context.creator or self.creator,
                url=self.brand.url,
                license=copyright_record.license_type.value,
                rights=copyright_record.statement,
                credit=copyright_record.attribution_text,
            ),
            dates=DateInfo(created=created, modified=created, published=created),
            seo=SeoFields(
                title=f"{context.product_name} - {descriptor.view} view",
                description=(f"High-quality {descriptor.width}x{descriptor.height} "
                             f"product image of {context.product_name}"),
                keywords=', '.join(keywords),
                canonical=f"{self.brand.url}/products/{descriptor.product_id}/{view_slug}",
            ),
            technical=TechnicalInfo(
                mime_type=get_mime_type(descriptor.format),
                format=descriptor.canonical_format.upper(),
                color_space=self.color_space,
                bit_depth=self.bit_depth,
            ),
            quality=self._quality_estimate(context),
            usage=UsageInfo(
                cdn_base=cdn_base,
                cdn_variants=variants,
                alt_text=alt_text,
                title=f"{context.product_name} Product Photo",
                caption=f"High-quality product image: {context.product_name}",
            ),
        )

    def build_copyright(self, context: ProductContext, license_type: LicenseType,
                        rules: Optional[LicenseRules] = None) -> CopyrightRecord:
        """Derive the copyright record for a license from the lookup table."""
        rules = rules or get_license_rules(license_type, self.license_rules)
        created = context.created_datetime
        year = created.year if created else self.copyright_year
        owner = self.brand.name
        creator = context.creator or self.creator
        name = context.product_name

        if rules.all_rights_reserved:
            rights = "All rights reserved."
        else:
            rights = f"Licensed under {rules.name}."
        owner_sentence = owner.rstrip('.') + '.'
        statement = f"© {year} {owner_sentence} {rights}"

        return CopyrightRecord(
            statement=statement,
            attribution_text=f"Photo by {creator} for {owner}",
            license_type=license_type,
            license_name=rules.name,
            license_url=rules.url or f"{self.brand.url}/license",
            restrictions=rules.restrictions,
            permissions=rules.permissions,
            usage=UsageRights(
                can_use_commercially=rules.commercial,
                can_modify=rules.modify,
                can_distribute=rules.distribute,
                needs_attribution=rules.attribution,
            ),
            watermark=Watermark(should_add=rules.watermark, text=owner),
            citation_forms=CitationForms(
                mla=f'"{name}." {owner}, {year}. Photograph.',
                apa=f"{owner} ({year}). {name} [Photograph].",
                chicago=f'{owner_sentence} "{name}." Photograph, {year}.',
                html=(f"<p>&copy; {year} {html.escape(owner_sentence)} "
                      f"Photo by {html.escape(creator)}. {html.escape(rights)}</p>"),
            ),
            owner=owner,
            year=year,
        )

    def _quality_estimate(self, context: ProductContext) -> QualityEstimate:
        values = dict(self.quality_defaults)
        values.update(context.quality or {})
        unknown = set(values) - {'sharpness', 'contrast', 'color_accuracy'}
        if unknown:
            raise ValidationError('quality', f"unknown fields {sorted(unknown)}")
        return QualityEstimate(**values)

    @staticmethod
    def export_csv(results: Iterable[SynthesisResult]) -> str:
        """Flatten synthesis results into a CSV inventory."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
        writer.writerow(METADATA_CSV_HEADER)
        for result in results:
            meta = result.metadata
            writer.writerow([
                meta.product_id,
                meta.content.product_name,
                meta.content.category,
                meta.content.view,
                f"{meta.dimensions.width}x{meta.dimensions.height}",
                meta.technical.format,
                meta.creator.name,
                meta.dates.created or '',
            ])
        return buffer.getvalue()
