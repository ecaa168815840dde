"""
Performance and SEO metrics for product images.

Both computations are pure: they take measurements supplied by the caller
and never fetch data themselves.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import numpy as np

from .models import (
    PerformanceMetrics, PerformanceSample, SEOImpact, SearchMetrics,
    VitalRating, VitalReading, check_number,
)
from ..config import config_section
from ..errors import ValidationError

logger = logging.getLogger(__name__)


def _check_weights(weights, names) -> None:
    for name in names:
        check_number(name, getattr(weights, name))
    if sum(getattr(weights, name) for name in names) <= 0:
        raise ValidationError('weights', "at least one weight must be positive")


@dataclass(frozen=True)
class VitalsBaselines:
    """Reference values the improvement percentages are measured against."""
    lcp_ms: float = 4000.0
    cls: float = 0.25
    inp_ms: float = 500.0

    def __post_init__(self):
        for name in ('lcp_ms', 'cls', 'inp_ms'):
            check_number(name, getattr(self, name))
            if getattr(self, name) <= 0:
                raise ValidationError(name, "baseline must be positive")


@dataclass(frozen=True)
class QualityWeights:
    format: float = 0.3
    resolution: float = 0.3
    compression: float = 0.4

    def __post_init__(self):
        _check_weights(self, ('format', 'resolution', 'compression'))


@dataclass(frozen=True)
class SeoWeights:
    metadata: float = 0.30
    technical: float = 0.25
    schema: float = 0.25
    relevance: float = 0.20

    def __post_init__(self):
        _check_weights(self, ('metadata', 'technical', 'schema', 'relevance'))


class MetricsTables:
    """Fixed rating thresholds and format scores."""

    # (good upper bound, needs-improvement upper bound)
    VITAL_THRESHOLDS = {
        'lcp': (2500.0, 4000.0),
        'cls': (0.1, 0.25),
        'inp': (200.0, 500.0),
    }

    FORMAT_SCORES = {
        'avif': 100,
        'webp': 90,
        'jpeg': 70,
        'jpg': 70,
        'png': 60,
        'gif': 50,
    }

    # Score for a quality component with no measurement behind it
    UNMEASURED_SCORE = 50.0

    GRADES = ((90, 'A'), (75, 'B'), (60, 'C'), (40, 'D'))


def grade_for(score: float) -> str:
    """Letter grade: >90 A, >75 B, >60 C, >40 D, else F."""
    for threshold, grade in MetricsTables.GRADES:
        if score > threshold:
            return grade
    return 'F'


def rate_vital(name: str, value: float) -> VitalRating:
    good, poor = MetricsTables.VITAL_THRESHOLDS[name]
    if value <= good:
        return VitalRating.GOOD
    if value <= poor:
        return VitalRating.NEEDS_IMPROVEMENT
    return VitalRating.POOR


def improvement_over(baseline: float, observed: float) -> float:
    """Percent improvement over the baseline, floored at 0."""
    return round(max(0.0, (baseline - observed) / baseline * 100), 2)


class MetricsAggregator:
    """
    Computes PerformanceMetrics and SEOImpact from raw measurements.

    Baselines and weights are immutable and fixed at construction.
    """

    def __init__(self,
                 baselines: Optional[VitalsBaselines] = None,
                 quality_weights: Optional[QualityWeights] = None,
                 seo_weights: Optional[SeoWeights] = None,
                 resolution_target: Tuple[int, int] = (2400, 2400)):
        self.baselines = baselines or VitalsBaselines()
        self.quality_weights = quality_weights or QualityWeights()
        self.seo_weights = seo_weights or SeoWeights()
        self.resolution_target = tuple(resolution_target)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MetricsAggregator':
        analytics = config.get('analytics', {})
        return cls(
            baselines=VitalsBaselines(**config_section(config, 'analytics.baselines', VitalsBaselines)),
            quality_weights=QualityWeights(**config_section(config, 'analytics.quality_weights', QualityWeights)),
            seo_weights=SeoWeights(**config_section(config, 'analytics.seo_weights', SeoWeights)),
            resolution_target=tuple(analytics.get('resolution_target', (2400, 2400))),
        )

    def compute_performance(self, sample: Union[PerformanceSample, Mapping[str, Any]]) -> PerformanceMetrics:
        """
        Derive performance metrics from one raw sample.

        Args:
            sample: PerformanceSample or mapping of its fields ('lcp', 'cls',
                'inp' and camelCase names are accepted)

        Returns:
            PerformanceMetrics

        Raises:
            ValidationError: If any measurement is negative, non-finite or unknown
        """
        if not isinstance(sample, PerformanceSample):
            sample = PerformanceSample.from_dict(sample)

        vitals = {}
        for name, value, baseline in (
            ('lcp', sample.lcp_ms, self.baselines.lcp_ms),
            ('cls', sample.cls, self.baselines.cls),
            ('inp', sample.inp_ms, self.baselines.inp_ms),
        ):
            if value is None:
                continue
            vitals[name] = VitalReading(
                value=value,
                baseline=baseline,
                improvement=improvement_over(baseline, value),
                rating=rate_vital(name, value),
            )
        vitals_score = (round(float(np.mean([v.improvement for v in vitals.values()])), 2)
                        if vitals else None)

        original = float(sample.resource_size)
        if not original and sample.width and sample.height:
            original = float(sample.width * sample.height * 3)
        compression_ratio = None
        if original > 0 and sample.transfer_size > 0:
            ratio = (original - sample.transfer_size) / original * 100
            compression_ratio = round(max(0.0, ratio), 2)

        quality_score = self._quality_score(sample, compression_ratio)
        grade = grade_for(quality_score)

        logger.debug(f"Performance for {sample.image_id or 'sample'}: quality {quality_score}, grade {grade}")
        return PerformanceMetrics(
            image_id=sample.image_id,
            core_web_vitals=vitals,
            vitals_score=vitals_score,
            load_time_ms=sample.load_time_ms,
            render_time_ms=sample.render_time_ms,
            decode_time_ms=sample.decode_time_ms,
            transfer_size=sample.transfer_size,
            original_size_estimate=original,
            compression_ratio=compression_ratio,
            quality_score=quality_score,
            grade=grade,
            network_type=sample.network_type,
        )

    def _quality_score(self, sample: PerformanceSample, compression_ratio: Optional[float]) -> float:
        if sample.format:
            format_score = MetricsTables.FORMAT_SCORES.get(sample.format, MetricsTables.UNMEASURED_SCORE)
        else:
            format_score = MetricsTables.UNMEASURED_SCORE

        if sample.width and sample.height:
            target = self.resolution_target[0] * self.resolution_target[1]
            resolution_score = min(1.0, sample.width * sample.height / target) * 100
        else:
            resolution_score = MetricsTables.UNMEASURED_SCORE

        compression_score = (MetricsTables.UNMEASURED_SCORE
                             if compression_ratio is None else compression_ratio)

        w = self.quality_weights
        scores = np.array([format_score, resolution_score, compression_score], dtype=float)
        weights = np.array([w.format, w.resolution, w.compression], dtype=float)
        blended = float(np.dot(scores, weights) / weights.sum())
        return round(float(np.clip(blended, 0.0, 100.0)), 2)

    def compute_seo_impact(self, metrics: Union[SearchMetrics, Mapping[str, Any]]) -> SEOImpact:
        """
        Score SEO readiness and estimate the traffic change.

        The traffic increase is (current CTR - previous CTR) * impressions
        divided by current clicks, and 0 when there are no clicks.

        Raises:
            ValidationError: If counts are negative or clicks exceed impressions
        """
        if not isinstance(metrics, SearchMetrics):
            metrics = SearchMetrics.from_dict(metrics)

        metadata_score = float(np.mean([
            100.0 if metrics.filename_optimized else 0.0,
            metrics.alt_text_quality if metrics.alt_text_present else 0.0,
            100.0 if metrics.caption_present else 0.0,
        ]))
        if metrics.compliance_score is not None:
            technical_score = float(metrics.compliance_score)
        else:
            technical_score = float(np.mean([
                metrics.lens_compliant, metrics.on_sitemap, metrics.indexed,
            ])) * 100
        schema_score = 50.0 * metrics.schema_markup + 50.0 * metrics.structured_data_valid
        relevance_score = float(np.mean([
            metrics.contextual_relevance, metrics.keyword_alignment, metrics.image_similarity,
        ]))

        w = self.seo_weights
        weight_total = w.metadata + w.technical + w.schema + w.relevance
        score = (metadata_score * w.metadata + technical_score * w.technical +
                 schema_score * w.schema + relevance_score * w.relevance) / weight_total
        score = float(np.clip(score, 0.0, 100.0))

        ctr = metrics.clicks / metrics.impressions if metrics.impressions else 0.0
        additional_clicks = (ctr - metrics.previous_ctr) * metrics.impressions
        traffic_increase = additional_clicks / metrics.clicks if metrics.clicks else 0.0

        return SEOImpact(
            image_id=metrics.image_id,
            score=round(score, 2),
            metadata_score=round(metadata_score, 2),
            technical_score=round(technical_score, 2),
            schema_score=round(schema_score, 2),
            relevance_score=round(relevance_score, 2),
            ctr=round(ctr * 100, 2),
            previous_ctr=round(metrics.previous_ctr * 100, 2),
            additional_clicks=round(additional_clicks, 2),
            traffic_increase=round(traffic_increase, 4),
            improvement_opportunities=tuple(self._seo_opportunities(metrics)),
        )

    @staticmethod
    def _seo_opportunities(metrics: SearchMetrics):
        opportunities = []
        if not metrics.filename_optimized:
            opportunities.append("Rename the image file with descriptive, keyword-rich words")
        if not metrics.alt_text_present:
            opportunities.append("Add descriptive alt text")
        elif metrics.alt_text_quality < 70:
            opportunities.append("Improve alt text so it describes the product specifically")
        if not metrics.schema_markup:
            opportunities.append("Add structured-data markup for the image")
        elif not metrics.structured_data_valid:
            opportunities.append("Fix structured-data validation errors")
        if not metrics.indexed:
            opportunities.append("Request indexing of the image in search console")
        if not metrics.on_sitemap:
            opportunities.append("List the image in the image sitemap")
        return opportunities
