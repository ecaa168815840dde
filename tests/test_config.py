"""
Tests for configuration loading and component construction from config.
"""

import pytest
import yaml

from mediasight.analytics import EventRecorder, MetricsAggregator
from mediasight.compliance import ComplianceValidator
from mediasight.config import (
    get_config_value, get_default_config, load_config, save_config, update_config_value,
)
from mediasight.errors import ValidationError
from mediasight.metadata import MetadataSynthesizer
from mediasight.structured_data import StructuredDataEmitter


class TestLoadConfig:
    """Test YAML loading and default merging."""

    def test_packaged_config_matches_defaults(self):
        config = load_config()
        defaults = get_default_config()
        assert config["compliance"]["weights"] == defaults["compliance"]["weights"]
        assert config["analytics"]["seo_weights"] == defaults["analytics"]["seo_weights"]

    def test_partial_file_merges_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("brand:\n  name: Maple Goods\nmetadata:\n  keyword_limit: 10\n")
        config = load_config(path)
        assert config["brand"]["name"] == "Maple Goods"
        assert config["brand"]["currency"] == "CAD"
        assert config["metadata"]["keyword_limit"] == 10
        assert config["metadata"]["default_license"] == "proprietary"

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == get_default_config()

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("brand: [unclosed\n")
        assert load_config(path) == get_default_config()

    def test_env_var_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEDIASIGHT_CDN", "https://img.maple.example")
        path = tmp_path / "config.yaml"
        path.write_text("brand:\n  cdn_base_url: ${MEDIASIGHT_CDN}\n")
        assert load_config(path)["brand"]["cdn_base_url"] == "https://img.maple.example"

    def test_save_and_reload(self, tmp_path):
        config = get_default_config()
        update_config_value(config, "analytics.recorder.max_events", 25)
        path = tmp_path / "saved.yaml"
        assert save_config(config, path)
        assert yaml.safe_load(path.read_text())["analytics"]["recorder"]["max_events"] == 25
        assert get_config_value(load_config(path), "analytics.recorder.max_events") == 25

    def test_get_config_value_default(self):
        assert get_config_value({}, "a.b.c", default=7) == 7


class TestFromConfig:
    """Test that every component reads its section."""

    def test_components_build_from_defaults(self, clock):
        config = get_default_config()
        assert MetadataSynthesizer.from_config(config, clock=clock).keyword_limit == 50
        assert ComplianceValidator.from_config(config).weights.total == 100
        assert StructuredDataEmitter.from_config(config).brand.locale == "en-CA"
        assert MetricsAggregator.from_config(config).baselines.lcp_ms == 4000.0
        assert EventRecorder.from_config(config, clock=clock).max_events == 1000

    def test_brand_flows_into_metadata(self, clock, descriptor):
        config = get_default_config()
        update_config_value(config, "brand.name", "Maple Goods")
        update_config_value(config, "brand.url", "https://maple.example/")
        synthesizer = MetadataSynthesizer.from_config(config, clock=clock)
        result = synthesizer.synthesize(descriptor, {"productName": "Navy Blue Coat"})
        assert result.copyright.owner == "Maple Goods"
        assert result.metadata.seo.canonical == "https://maple.example/products/123/front"

    def test_engagement_weights_from_config(self, clock):
        config = get_default_config()
        update_config_value(config, "analytics.engagement.weights",
                            {"duration": 0, "position": 0, "interaction": 1, "device": 0})
        recorder = EventRecorder.from_config(config, clock=clock, session_id="s")
        assert recorder.record("interaction", "img-1", {"interaction_type": "download"}).engagement_score == 100.0


class TestConfigSections:
    """Test that mistyped section keys are reported by name."""

    @pytest.mark.parametrize("key_path,build", [
        ("compliance.weights", ComplianceValidator.from_config),
        ("analytics.engagement.weights", EventRecorder.from_config),
        ("analytics.baselines", MetricsAggregator.from_config),
        ("analytics.quality_weights", MetricsAggregator.from_config),
        ("analytics.seo_weights", MetricsAggregator.from_config),
    ])
    def test_unknown_key(self, key_path, build):
        config = get_default_config()
        update_config_value(config, f"{key_path}.dimensions", 40)
        with pytest.raises(ValidationError) as exc_info:
            build(config)
        assert exc_info.value.field == f"{key_path}.dimensions"

    def test_section_must_be_mapping(self):
        config = get_default_config()
        update_config_value(config, "compliance.weights", [40, 30, 15, 15])
        with pytest.raises(ValidationError) as exc_info:
            ComplianceValidator.from_config(config)
        assert exc_info.value.field == "compliance.weights"

    def test_non_numeric_weight(self):
        config = get_default_config()
        update_config_value(config, "compliance.weights.format", "high")
        with pytest.raises(ValidationError) as exc_info:
            ComplianceValidator.from_config(config)
        assert exc_info.value.field == "format"

    def test_null_section_uses_defaults(self):
        config = get_default_config()
        update_config_value(config, "analytics.seo_weights", None)
        assert MetricsAggregator.from_config(config).seo_weights.metadata == 0.30
