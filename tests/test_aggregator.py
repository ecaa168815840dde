"""
Tests for performance and SEO metric aggregation.
"""

import pytest

from mediasight.analytics import (
    MetricsAggregator, PerformanceSample, QualityWeights, SearchMetrics, VitalsBaselines, grade_for,
)
from mediasight.analytics.models import VitalRating
from mediasight.errors import ValidationError


class TestPerformance:
    """Test Core Web Vitals and quality scoring."""

    def test_lcp_improvement(self, aggregator):
        """LCP of 2100ms against the 4000ms baseline is a 47.5% improvement."""
        metrics = aggregator.compute_performance({"lcp": 2100})
        lcp = metrics.core_web_vitals["lcp"]
        assert lcp.improvement == 47.5
        assert lcp.baseline == 4000.0
        assert lcp.rating is VitalRating.GOOD
        assert metrics.vitals_score == 47.5

    def test_worse_than_baseline_floors_at_zero(self, aggregator):
        lcp = aggregator.compute_performance({"lcp": 5000}).core_web_vitals["lcp"]
        assert lcp.improvement == 0.0
        assert lcp.rating is VitalRating.POOR

    def test_full_sample(self, aggregator):
        metrics = aggregator.compute_performance({
            "imageId": "img-1",
            "lcp": 2100,
            "cls": 0.05,
            "inp": 150,
            "format": "AVIF",
            "width": 2400,
            "height": 2400,
            "transfer_size": 200000,
            "resource_size": 1000000,
        })
        assert metrics.image_id == "img-1"
        assert metrics.compression_ratio == 80.0
        assert metrics.quality_score == 92.0
        assert metrics.grade == "A"
        assert metrics.vitals_score == pytest.approx(65.83, abs=0.01)
        assert set(metrics.core_web_vitals) == {"lcp", "cls", "inp"}

    def test_unmeasured_components(self, aggregator):
        metrics = aggregator.compute_performance({"lcp": 2100})
        assert metrics.compression_ratio is None
        assert metrics.quality_score == 50.0
        assert metrics.grade == "D"

    def test_original_size_from_dimensions(self, aggregator):
        metrics = aggregator.compute_performance(PerformanceSample(width=100, height=100, transfer_size=15000))
        assert metrics.original_size_estimate == 30000.0
        assert metrics.compression_ratio == 50.0

    def test_compression_never_negative(self, aggregator):
        metrics = aggregator.compute_performance({"resource_size": 1000, "transfer_size": 5000})
        assert metrics.compression_ratio == 0.0

    def test_no_vitals(self, aggregator):
        metrics = aggregator.compute_performance({"loadTime": 800})
        assert metrics.core_web_vitals == {}
        assert metrics.vitals_score is None
        assert metrics.load_time_ms == 800

    @pytest.mark.parametrize("sample,field", [
        ({"lcp": -1}, "lcp_ms"),
        ({"cls": float("nan")}, "cls"),
        ({"transfer_size": float("inf")}, "transfer_size"),
        ({"cache_hit_rate": 1.5}, "cache_hit_rate"),
        ({"lcp": "fast"}, "lcp_ms"),
        ({"brightness": 3}, "brightness"),
    ])
    def test_invalid_sample(self, aggregator, sample, field):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.compute_performance(sample)
        assert exc_info.value.field == field

    def test_baselines_from_config(self):
        aggregator = MetricsAggregator.from_config({"analytics": {"baselines": {"lcp_ms": 5000}}})
        lcp = aggregator.compute_performance({"lcp": 2500}).core_web_vitals["lcp"]
        assert lcp.improvement == 50.0

    def test_invalid_baseline(self):
        with pytest.raises(ValidationError):
            VitalsBaselines(lcp_ms=0)

    def test_invalid_quality_weights(self):
        with pytest.raises(ValidationError):
            QualityWeights(format=-0.1)


class TestGrades:
    """Test letter grade thresholds."""

    @pytest.mark.parametrize("score,grade", [
        (100, "A"), (91, "A"), (90, "B"), (76, "B"), (75, "C"),
        (61, "C"), (60, "D"), (41, "D"), (40, "F"), (0, "F"),
    ])
    def test_grade_for(self, score, grade):
        assert grade_for(score) == grade


class TestSeoImpact:
    """Test SEO scoring and traffic estimates."""

    def test_traffic_increase(self, aggregator):
        impact = aggregator.compute_seo_impact({"impressions": 1000, "clicks": 50, "previous_ctr": 0.03})
        assert impact.ctr == 5.0
        assert impact.previous_ctr == 3.0
        assert impact.additional_clicks == 20.0
        assert impact.traffic_increase == 0.4

    def test_no_clicks(self, aggregator):
        impact = aggregator.compute_seo_impact({"impressions": 1000, "clicks": 0, "previous_ctr": 0.02})
        assert impact.traffic_increase == 0.0
        assert impact.ctr == 0.0

    def test_no_impressions(self, aggregator):
        impact = aggregator.compute_seo_impact(SearchMetrics())
        assert impact.ctr == 0.0
        assert impact.score == 0.0

    def test_clicks_exceed_impressions(self, aggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.compute_seo_impact({"impressions": 10, "clicks": 11})
        assert exc_info.value.field == "clicks"

    def test_negative_impressions(self, aggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.compute_seo_impact({"impressions": -1})
        assert exc_info.value.field == "impressions"

    def test_perfect_score(self, aggregator):
        impact = aggregator.compute_seo_impact({
            "filenameOptimized": True,
            "altTextPresent": True,
            "altTextQuality": 100,
            "captionPresent": True,
            "schemaMarkup": True,
            "structuredDataValid": True,
            "googleLensCompliant": True,
            "onSitemap": True,
            "indexedByGoogle": True,
            "contextualRelevance": 100,
            "keywordAlignment": 100,
            "imageToContentSimilarity": 100,
        })
        assert impact.score == 100.0
        assert impact.improvement_opportunities == ()

    def test_empty_metrics_list_opportunities(self, aggregator):
        impact = aggregator.compute_seo_impact({})
        assert impact.score == 0.0
        assert "Add descriptive alt text" in impact.improvement_opportunities
        assert "Add structured-data markup for the image" in impact.improvement_opportunities

    def test_compliance_score_drives_technical(self, aggregator):
        impact = aggregator.compute_seo_impact({"complianceScore": 80})
        assert impact.technical_score == 80.0
        assert impact.score == 20.0

    def test_score_stays_in_range(self, aggregator):
        with pytest.raises(ValidationError):
            aggregator.compute_seo_impact({"altTextQuality": 150})
