"""
Tests for catalog loading and reading descriptors from image files.
"""

import json

import pytest
from PIL import Image

from mediasight.errors import ValidationError
from mediasight.io import descriptor_from_file, load_catalog, parse_catalog


CATALOG = {
    "products": [
        {
            "product_id": "123",
            "name": "Navy Blue Coat",
            "category": "outerwear",
            "license": "cc-by",
            "images": [
                {"view": "front", "width": 2400, "height": 3000, "format": "webp"},
                {"view": "back", "width": 1200, "height": 1500, "format": "jpeg"},
            ],
        },
        {
            "productId": "456",
            "productName": "Wool Scarf",
            "images": [{"view": "detail", "width": 0, "height": 800, "format": "png"}],
        },
    ]
}


class TestCatalog:
    """Test catalog parsing."""

    def test_entries_flattened(self):
        entries = parse_catalog(CATALOG)
        assert [e.key for e in entries] == ["123/front", "123/back", "456/detail"]

    def test_entry_descriptor_inherits_product_id(self):
        entry = parse_catalog(CATALOG)[0]
        descriptor = entry.descriptor()
        assert descriptor.product_id == "123"
        assert descriptor.width == 2400
        assert entry.context().product_name == "Navy Blue Coat"
        assert entry.context().license_type == "cc-by"

    def test_bad_entry_fails_lazily(self):
        entries = parse_catalog(CATALOG)
        with pytest.raises(ValidationError) as exc_info:
            entries[2].descriptor()
        assert exc_info.value.field == "width"

    def test_list_document(self):
        assert len(parse_catalog(CATALOG["products"])) == 3

    @pytest.mark.parametrize("document,field", [
        ({"items": []}, "products"),
        ({"products": ["x"]}, "products[0]"),
        ({"products": [{"name": "a"}]}, "products[0].images"),
        ({"products": [{"name": "a", "images": [1]}]}, "products[0].images[0]"),
    ])
    def test_malformed(self, document, field):
        with pytest.raises(ValidationError) as exc_info:
            parse_catalog(document)
        assert exc_info.value.field == field

    def test_load_yaml_and_json(self, tmp_path):
        json_path = tmp_path / "catalog.json"
        json_path.write_text(json.dumps(CATALOG))
        yaml_path = tmp_path / "catalog.yaml"
        yaml_path.write_text(
            "products:\n"
            "  - product_id: '9'\n"
            "    name: Lamp\n"
            "    images:\n"
            "      - {view: side, width: 1000, height: 1000, format: png}\n"
        )
        assert len(load_catalog(json_path)) == 3
        assert load_catalog(yaml_path)[0].key == "9/side"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{nope")
        with pytest.raises(ValidationError) as exc_info:
            load_catalog(path)
        assert exc_info.value.field == "catalog"


class TestDescriptorFromFile:
    """Test reading image headers with Pillow."""

    def test_jpeg(self, tmp_path):
        path = tmp_path / "coat.jpg"
        Image.new("RGB", (320, 240), "navy").save(path, "JPEG")
        descriptor = descriptor_from_file(path, "123", "front", alt_text="Navy coat")
        assert (descriptor.width, descriptor.height) == (320, 240)
        assert descriptor.format == "jpeg"
        assert descriptor.alt_text == "Navy coat"
        assert descriptor.url.startswith("file://")

    def test_png_with_url(self, tmp_path):
        path = tmp_path / "coat.png"
        Image.new("RGBA", (10, 20)).save(path, "PNG")
        descriptor = descriptor_from_file(path, "123", "back", url="https://cdn.example.com/coat.png")
        assert descriptor.format == "png"
        assert descriptor.url == "https://cdn.example.com/coat.png"

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "coat.bmp"
        Image.new("RGB", (10, 10)).save(path, "BMP")
        with pytest.raises(ValidationError) as exc_info:
            descriptor_from_file(path, "123", "front")
        assert exc_info.value.field == "format"

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ValidationError) as exc_info:
            descriptor_from_file(path, "123", "front")
        assert exc_info.value.field == "path"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            descriptor_from_file(tmp_path / "missing.png", "123", "front")
        assert exc_info.value.field == "path"


class TestYamlDates:
    """Test catalogs whose dates YAML parses into date objects."""

    YAML_CATALOG = (
        "products:\n"
        "  - product_id: '9'\n"
        "    name: Desk Lamp\n"
        "    license: cc-by\n"
        "    created_at: 2024-01-15\n"
        "    images:\n"
        "      - {view: side, width: 1000, height: 1000, format: png}\n"
    )

    def test_unquoted_date_becomes_iso_string(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(self.YAML_CATALOG)
        context = load_catalog(path)[0].context()
        assert context.created_at == "2024-01-15"
        assert context.created_datetime.year == 2024

    def test_synthesis_result_serializes(self, tmp_path, synthesizer):
        path = tmp_path / "catalog.yaml"
        path.write_text(self.YAML_CATALOG)
        entry = load_catalog(path)[0]
        result = synthesizer.synthesize(entry.descriptor(), entry.context())
        data = json.loads(json.dumps(result.to_dict()))
        assert data["copyright"]["year"] == 2024
