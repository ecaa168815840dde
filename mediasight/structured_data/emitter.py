"""
Structured-data documents for search and social crawlers.

Each document kind maps a flat payload onto a fixed schema.org shape. Only
required-field presence is checked here; the payload contents come from
the metadata synthesizer and compliance validator.
"""

import json
import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..errors import ValidationError
from ..metadata.models import Brand, SynthesisResult
from ..compliance.models import ComplianceReport

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = "https://schema.org"


class DocumentKind(Enum):
    VISUAL_OBJECT = "visual-object"
    COLLECTION = "collection"
    COPYRIGHT = "copyright"
    QUALITY_ASSESSMENT = "quality-assessment"
    OPTIMIZATION_REPORT = "optimization-report"
    FILENAME_CONVENTION = "filename-convention"
    COMMERCE = "commerce"


REQUIRED_FIELDS: Dict[DocumentKind, Tuple[str, ...]] = {
    DocumentKind.VISUAL_OBJECT: ('url', 'name', 'width', 'height'),
    DocumentKind.COLLECTION: ('name', 'images'),
    DocumentKind.COPYRIGHT: ('owner', 'year', 'license_url', 'license_name'),
    DocumentKind.QUALITY_ASSESSMENT: ('url', 'sharpness', 'contrast', 'color_accuracy'),
    DocumentKind.OPTIMIZATION_REPORT: ('product_id', 'product_name', 'optimizations'),
    DocumentKind.FILENAME_CONVENTION: ('product_id', 'filename', 'view', 'dimensions', 'format'),
    DocumentKind.COMMERCE: ('name', 'url', 'image', 'price'),
}


@dataclass(frozen=True)
class Document:
    """A structured-data document ready for page injection."""
    kind: DocumentKind
    data: Dict[str, Any]

    @property
    def schema_type(self) -> str:
        return self.data.get('@type', '')

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.data, indent=indent, ensure_ascii=False)


def _percent(value: float) -> str:
    return f"{value * 100:.0f}"


class StructuredDataEmitter:
    """Builds schema.org documents for product imagery."""

    def __init__(self, brand: Optional[Brand] = None):
        self.brand = brand or Brand()
        self._builders: Dict[DocumentKind, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
            DocumentKind.VISUAL_OBJECT: self._visual_object,
            DocumentKind.COLLECTION: self._collection,
            DocumentKind.COPYRIGHT: self._copyright,
            DocumentKind.QUALITY_ASSESSMENT: self._quality_assessment,
            DocumentKind.OPTIMIZATION_REPORT: self._optimization_report,
            DocumentKind.FILENAME_CONVENTION: self._filename_convention,
            DocumentKind.COMMERCE: self._commerce,
        }

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'StructuredDataEmitter':
        return cls(brand=Brand.from_config(config))

    def emit(self, kind: Union[DocumentKind, str], payload: Mapping[str, Any]) -> Document:
        """
        Map a payload onto the schema shape for `kind`.

        Args:
            kind: DocumentKind or its string value (e.g. 'visual-object')
            payload: Field values for the document

        Returns:
            Document

        Raises:
            ValidationError: If the kind is unknown or a required field is missing
        """
        if not isinstance(kind, DocumentKind):
            try:
                kind = DocumentKind(kind)
            except ValueError:
                raise ValidationError('kind', f"unknown document kind '{kind}'") from None

        for name in REQUIRED_FIELDS[kind]:
            value = payload.get(name)
            if value is None or (isinstance(value, (str, list, tuple)) and not value):
                raise ValidationError(name, f"required for {kind.value} documents")

        data = {'@context': SCHEMA_CONTEXT}
        data.update(self._builders[kind](payload))
        return Document(kind=kind, data=data)

    def graph(self, documents: Iterable[Document]) -> Dict[str, Any]:
        """Combine documents into a single @graph document."""
        nodes = []
        for document in documents:
            node = {k: v for k, v in document.data.items() if k != '@context'}
            nodes.append(node)
        return {'@context': SCHEMA_CONTEXT, '@graph': nodes}

    def emit_for_image(self, synthesis: SynthesisResult,
                       report: Optional[ComplianceReport] = None,
                       url: Optional[str] = None) -> List[Document]:
        """
        Emit the standard document set for one synthesized image: visual
        object, copyright, quality assessment and filename convention.
        """
        meta = synthesis.metadata
        copyright_record = synthesis.copyright
        image_url = url or synthesis.descriptor.url or meta.usage.cdn_variants['original']

        visual = self.emit(DocumentKind.VISUAL_OBJECT, {
            'url': image_url,
            'name': meta.content.product_name,
            'width': meta.dimensions.width,
            'height': meta.dimensions.height,
            'alt_text': meta.usage.alt_text,
            'caption': meta.usage.caption,
            'product_url': meta.seo.canonical,
            'encoding_format': meta.technical.mime_type,
            'keywords': meta.content.keywords,
            'upload_date': meta.dates.created,
            'copyright_notice': copyright_record.statement,
            'credit_text': copyright_record.attribution_text,
            'license_url': copyright_record.license_url,
        })
        copyright_doc = self.emit(DocumentKind.COPYRIGHT, {
            'owner': copyright_record.owner,
            'year': copyright_record.year,
            'license_url': copyright_record.license_url,
            'license_name': copyright_record.license_name,
            'creator': meta.creator.name,
            'date_published': meta.dates.published,
        })
        quality_payload = {
            'url': image_url,
            'sharpness': meta.quality.sharpness,
            'contrast': meta.quality.contrast,
            'color_accuracy': meta.quality.color_accuracy,
        }
        if report is not None:
            quality_payload.update({
                'platform': report.platform,
                'compliance_score': report.score,
                'compliance_status': report.status.value,
            })
        quality = self.emit(DocumentKind.QUALITY_ASSESSMENT, quality_payload)
        filename = self.emit(DocumentKind.FILENAME_CONVENTION, {
            'product_id': meta.product_id,
            'filename': synthesis.filenames.id_based,
            'view': meta.content.view,
            'dimensions': f"{meta.dimensions.width}x{meta.dimensions.height}",
            'format': synthesis.descriptor.format,
        })
        return [visual, copyright_doc, quality, filename]

    def _organization(self) -> Dict[str, Any]:
        return {'@type': 'Organization', 'name': self.brand.name, 'url': self.brand.url}

    def _visual_object(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        product_url = p.get('product_url') or ''
        data = {
            '@type': 'ImageObject',
            'url': p['url'],
            'contentUrl': p['url'],
            'name': f"{p['name']} - Product Image",
            'description': p.get('alt_text') or p['name'],
            'width': {'@type': 'QuantitativeValue', 'value': p['width'], 'unitCode': 'E37'},
            'height': {'@type': 'QuantitativeValue', 'value': p['height'], 'unitCode': 'E37'},
            'author': self._organization(),
            'inLanguage': self.brand.locale,
            'representativeOfPage': True,
        }
        if product_url:
            data['@id'] = f"{product_url}#image"
            data['isPartOf'] = {'@type': 'Product', '@id': f"{product_url}#product", 'name': p['name']}
        optional = (
            ('caption', 'caption'),
            ('encoding_format', 'encodingFormat'),
            ('upload_date', 'uploadDate'),
            ('copyright_notice', 'copyrightNotice'),
            ('credit_text', 'creditText'),
            ('license_url', 'license'),
        )
        for key, schema_key in optional:
            if p.get(key):
                data[schema_key] = p[key]
        if p.get('keywords'):
            data['keywords'] = ', '.join(p['keywords'])
        attributes = [
            {'@type': 'PropertyValue', 'name': label, 'value': p[key]}
            for key, label in (('color', 'Color'), ('material', 'Material'))
            if p.get(key)
        ]
        if attributes:
            data['additionalProperty'] = attributes
        return data

    def _collection(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        parts = []
        for position, image in enumerate(p['images'], start=1):
            if not image.get('url'):
                raise ValidationError('images', f"image {position} has no url")
            parts.append({
                '@type': 'ImageObject',
                'url': image['url'],
                'name': image.get('name') or f"{p['name']} - {position}",
                'position': position,
            })
        data = {
            '@type': 'ImageObjectCollection',
            'name': p['name'],
            'numberOfItems': len(parts),
            'hasPart': parts,
        }
        if p.get('description'):
            data['description'] = p['description']
        if p.get('product_url'):
            data['url'] = p['product_url']
        return data

    def _copyright(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        data = {
            '@type': 'CreativeWork',
            'name': 'Product Photography',
            'copyrightHolder': {'@type': 'Organization', 'name': p['owner'], 'url': self.brand.url},
            'copyrightYear': p['year'],
            'license': p['license_url'],
            'usageInfo': p['license_name'],
            'inLanguage': self.brand.locale,
        }
        if p.get('creator'):
            data['creator'] = {'@type': 'Person', 'name': p['creator']}
        if p.get('date_published'):
            data['datePublished'] = p['date_published']
        return data

    def _quality_assessment(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        properties = [
            {'@type': 'PropertyValue', 'name': 'quality-level', 'value': p.get('quality_level', 'professional')},
            {'@type': 'PropertyValue', 'name': 'sharpness', 'value': _percent(p['sharpness']), 'unitText': 'percent'},
            {'@type': 'PropertyValue', 'name': 'contrast', 'value': _percent(p['contrast']), 'unitText': 'percent'},
            {'@type': 'PropertyValue', 'name': 'color-accuracy', 'value': _percent(p['color_accuracy']),
             'unitText': 'percent'},
        ]
        if p.get('compliance_score') is not None:
            properties.append({'@type': 'PropertyValue', 'name': 'compliance-score',
                               'value': p['compliance_score'], 'unitText': 'points'})
        if p.get('compliance_status'):
            properties.append({'@type': 'PropertyValue', 'name': 'compliance-status',
                               'value': p['compliance_status']})
        if p.get('platform'):
            properties.append({'@type': 'PropertyValue', 'name': 'platform', 'value': p['platform']})
        return {
            '@type': 'ImageObject',
            'url': p['url'],
            'name': 'Image Quality Assessment',
            'about': {
                '@type': 'Thing',
                'name': 'Quality Metrics',
                'additionalProperty': properties,
            },
        }

    def _optimization_report(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        optimizations = list(p['optimizations'])
        data = {
            '@type': 'Report',
            'name': f"Image Optimization Report - {p['product_name']}",
            'url': f"{self.brand.url}/products/{p['product_id']}",
            'about': {'@type': 'Product', 'identifier': p['product_id'], 'name': p['product_name']},
            'author': self._organization(),
            'text': 'Image Optimization Report',
            'articleBody': '; '.join(optimizations),
            'keywords': ', '.join(optimizations),
            'additionalProperty': [
                {'@type': 'PropertyValue', 'name': 'compression-ratio',
                 'value': p.get('compression_ratio', 0), 'unitText': 'percent'},
                {'@type': 'PropertyValue', 'name': 'optimizations-applied',
                 'value': len(optimizations), 'unitText': 'count'},
                {'@type': 'PropertyValue', 'name': 'format-variants',
                 'value': ', '.join(p.get('format_variants', ('AVIF', 'WebP', 'JPEG')))},
            ],
        }
        if p.get('generated_date'):
            data['datePublished'] = p['generated_date']
        return data

    def _filename_convention(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            '@type': 'Thing',
            'identifier': p['product_id'],
            'name': p['filename'],
            'description': f"Product image: {p['view']} view",
            'additionalProperty': [
                {'@type': 'PropertyValue', 'name': 'filename-convention',
                 'value': '{productId}-{view}-{width}x{height}.{format}'},
                {'@type': 'PropertyValue', 'name': 'view', 'value': p['view']},
                {'@type': 'PropertyValue', 'name': 'dimensions', 'value': p['dimensions']},
                {'@type': 'PropertyValue', 'name': 'format', 'value': p['format']},
            ],
        }

    def _commerce(self, p: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            price = float(p['price'])
        except (TypeError, ValueError):
            raise ValidationError('price', "must be a number") from None
        if not math.isfinite(price):
            raise ValidationError('price', "must be finite")
        if price < 0:
            raise ValidationError('price', "must not be negative")
        currency = p.get('currency') or self.brand.currency
        availability = 'InStock' if p.get('available', True) else 'OutOfStock'
        data = {
            '@type': 'Product',
            'name': p['name'],
            'url': p['url'],
            'image': p['image'],
            'brand': {'@type': 'Brand', 'name': p.get('brand') or self.brand.name},
            'offers': {
                '@type': 'Offer',
                'url': p['url'],
                'price': f"{price:.2f}",
                'priceCurrency': currency,
                'availability': f"https://schema.org/{availability}",
                'seller': self._organization(),
            },
        }
        if p.get('description'):
            data['description'] = p['description']
        if p.get('sku'):
            data['sku'] = p['sku']
        if p.get('category'):
            data['category'] = p['category']
        return data
