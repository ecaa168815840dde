"""
Tests for structured-data document emission.
"""

import json

import pytest

from mediasight.errors import ValidationError
from mediasight.metadata import Brand
from mediasight.structured_data import REQUIRED_FIELDS, DocumentKind, StructuredDataEmitter


@pytest.fixture
def synthesis(synthesizer, descriptor, product):
    return synthesizer.synthesize(descriptor, product)


class TestEmit:
    """Test mapping payloads onto schema shapes."""

    def test_visual_object(self, emitter):
        doc = emitter.emit("visual-object", {
            "url": "https://cdn.example.com/a.webp",
            "name": "Navy Blue Coat",
            "width": 2400,
            "height": 3000,
            "product_url": "https://shop.example.com/products/123",
            "keywords": ("navy", "coat"),
        })
        assert doc.kind is DocumentKind.VISUAL_OBJECT
        assert doc.schema_type == "ImageObject"
        assert doc.data["@context"] == "https://schema.org"
        assert doc.data["width"] == {"@type": "QuantitativeValue", "value": 2400, "unitCode": "E37"}
        assert doc.data["@id"] == "https://shop.example.com/products/123#image"
        assert doc.data["keywords"] == "navy, coat"
        assert doc.data["description"] == "Navy Blue Coat"

    @pytest.mark.parametrize("kind", list(DocumentKind))
    def test_missing_required_field(self, emitter, kind):
        """Every document kind rejects a payload missing its first required field."""
        with pytest.raises(ValidationError) as exc_info:
            emitter.emit(kind, {})
        assert exc_info.value.field == REQUIRED_FIELDS[kind][0]

    def test_empty_string_counts_as_missing(self, emitter):
        with pytest.raises(ValidationError) as exc_info:
            emitter.emit(DocumentKind.COPYRIGHT, {"owner": "", "year": 2024,
                                                  "license_url": "u", "license_name": "n"})
        assert exc_info.value.field == "owner"

    def test_unknown_kind(self, emitter):
        with pytest.raises(ValidationError) as exc_info:
            emitter.emit("carousel", {"name": "x"})
        assert exc_info.value.field == "kind"

    def test_collection_positions(self, emitter):
        doc = emitter.emit(DocumentKind.COLLECTION, {
            "name": "Navy Blue Coat",
            "images": [{"url": "https://cdn.example.com/1.webp"}, {"url": "https://cdn.example.com/2.webp"}],
        })
        assert doc.schema_type == "ImageObjectCollection"
        assert doc.data["numberOfItems"] == 2
        assert [part["position"] for part in doc.data["hasPart"]] == [1, 2]

    def test_collection_image_without_url(self, emitter):
        with pytest.raises(ValidationError) as exc_info:
            emitter.emit(DocumentKind.COLLECTION, {"name": "Coat", "images": [{"name": "front"}]})
        assert exc_info.value.field == "images"

    def test_commerce(self, emitter):
        doc = emitter.emit(DocumentKind.COMMERCE, {
            "name": "Navy Blue Coat",
            "url": "https://shop.example.com/products/123",
            "image": "https://cdn.example.com/123.webp",
            "price": 149.5,
            "available": False,
        })
        offer = doc.data["offers"]
        assert doc.schema_type == "Product"
        assert offer["price"] == "149.50"
        assert offer["priceCurrency"] == "CAD"
        assert offer["availability"] == "https://schema.org/OutOfStock"

    @pytest.mark.parametrize("price", ["free", "nan", "inf", float("-inf"), -1])
    def test_commerce_rejects_bad_price(self, emitter, price):
        with pytest.raises(ValidationError) as exc_info:
            emitter.emit(DocumentKind.COMMERCE, {"name": "n", "url": "u", "image": "i", "price": price})
        assert exc_info.value.field == "price"

    def test_optimization_report(self, emitter):
        doc = emitter.emit(DocumentKind.OPTIMIZATION_REPORT, {
            "product_id": "123",
            "product_name": "Navy Blue Coat",
            "optimizations": ["Converted to AVIF", "Resized"],
            "compression_ratio": 62.5,
        })
        assert doc.schema_type == "Report"
        assert doc.data["articleBody"] == "Converted to AVIF; Resized"
        assert doc.data["url"] == "https://shop.example.com/products/123"

    def test_brand_injected(self):
        emitter = StructuredDataEmitter(Brand(name="Other Shop", url="https://other.example"))
        doc = emitter.emit(DocumentKind.COPYRIGHT, {"owner": "Other Shop", "year": 2024,
                                                    "license_url": "u", "license_name": "n"})
        assert doc.data["copyrightHolder"]["url"] == "https://other.example"

    def test_to_json(self, emitter):
        doc = emitter.emit(DocumentKind.COPYRIGHT, {"owner": "Storefront Co.", "year": 2024,
                                                    "license_url": "u", "license_name": "n"})
        assert json.loads(doc.to_json())["copyrightYear"] == 2024


class TestEmitForImage:
    """Test the document set built from a synthesis result."""

    def test_document_set(self, emitter, synthesis):
        documents = emitter.emit_for_image(synthesis)
        assert [d.kind for d in documents] == [
            DocumentKind.VISUAL_OBJECT,
            DocumentKind.COPYRIGHT,
            DocumentKind.QUALITY_ASSESSMENT,
            DocumentKind.FILENAME_CONVENTION,
        ]

    def test_copyright_matches_record(self, emitter, synthesis):
        copyright_doc = emitter.emit_for_image(synthesis)[1]
        assert copyright_doc.data["copyrightYear"] == 2023
        assert copyright_doc.data["license"] == synthesis.copyright.license_url

    def test_quality_with_compliance(self, emitter, synthesis, validator):
        report = validator.validate(synthesis.descriptor, "visual-search")
        quality = emitter.emit_for_image(synthesis, report)[2]
        properties = {p["name"]: p["value"] for p in quality.data["about"]["additionalProperty"]}
        assert properties["sharpness"] == "85"
        assert properties["compliance-score"] == report.score
        assert properties["platform"] == "visual-search"

    def test_graph(self, emitter, synthesis):
        graph = emitter.graph(emitter.emit_for_image(synthesis))
        assert graph["@context"] == "https://schema.org"
        assert len(graph["@graph"]) == 4
        assert all("@context" not in node for node in graph["@graph"])
        json.dumps(graph)
