"""
Data models for engagement analytics.
"""

import copy
import math
import re
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..errors import ValidationError
from ..utils.serialization import to_jsonable


class EventType(Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    INTERACTION = "interaction"

    @classmethod
    def parse(cls, value) -> 'EventType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError('event_type', f"unknown event type '{value}'") from None


def check_number(name: str, value: Any, minimum: Optional[float] = 0.0,
                 maximum: Optional[float] = None) -> float:
    """
    Validate an untrusted numeric input.

    Raises:
        ValidationError: If value is not a finite number within [minimum, maximum]
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(name, f"must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValidationError(name, "must be finite")
    if minimum is not None and value < minimum:
        raise ValidationError(name, f"must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ValidationError(name, f"must be <= {maximum}, got {value}")
    return value


def check_label(name: str, value: Any) -> Optional[str]:
    """Validate an optional free-text detail such as a device or interaction type."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(name, f"must be a string, got {value!r}")
    return value


def _snake_case(key: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower()


def _normalize_keys(data: Mapping[str, Any], target: type,
                    aliases: Mapping[str, str]) -> Dict[str, Any]:
    names = {f.name for f in fields(target)}
    values = {}
    for key, value in data.items():
        name = aliases.get(key) or _snake_case(key)
        if name not in names:
            raise ValidationError(key, f"unknown {target.__name__} field")
        values[name] = value
    return values


def as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


@dataclass(frozen=True)
class EngagementWeights:
    """Blend weights for the per-event engagement score."""
    duration: float = 0.25
    position: float = 0.15
    interaction: float = 0.35
    device: float = 0.25

    def __post_init__(self):
        for f in fields(self):
            check_number(f.name, getattr(self, f.name))
        if self.total <= 0:
            raise ValidationError('weights', "at least one weight must be positive")

    @property
    def total(self) -> float:
        return self.duration + self.position + self.interaction + self.device


@dataclass(frozen=True)
class AnalyticsEvent:
    """
    One recorded interaction with an image.

    Events are immutable once written; `sequence` is the insertion
    counter used to break timestamp ties.
    """
    timestamp: datetime
    event_type: EventType
    image_id: str
    device_type: str
    duration_ms: float
    engagement_score: float
    load_time_ms: float = 0.0
    details: Mapping[str, Any] = field(default_factory=dict)
    session_id: str = ""
    sequence: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'timestamp', as_utc(self.timestamp))
        object.__setattr__(self, 'details', MappingProxyType(copy.deepcopy(dict(self.details))))

    @property
    def sort_key(self) -> Tuple[datetime, int]:
        return self.timestamp, self.sequence

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AnalyticsEvent':
        """Rebuild an event persisted with to_dict()."""
        try:
            timestamp = datetime.fromisoformat(str(data['timestamp']).replace('Z', '+00:00'))
            return cls(
                timestamp=timestamp,
                event_type=EventType.parse(data['event_type']),
                image_id=str(data['image_id']),
                device_type=data.get('device_type', 'unknown'),
                duration_ms=float(data.get('duration_ms', 0)),
                engagement_score=float(data.get('engagement_score', 0)),
                load_time_ms=float(data.get('load_time_ms', 0)),
                details=data.get('details') or {},
                session_id=data.get('session_id', ''),
                sequence=int(data.get('sequence', 0)),
            )
        except KeyError as e:
            raise ValidationError(e.args[0]) from None
        except (TypeError, ValueError) as e:
            if isinstance(e, ValidationError):
                raise
            raise ValidationError('event', str(e)) from None


class VitalRating(Enum):
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


@dataclass(frozen=True)
class VitalReading:
    """One Core Web Vital with its improvement over the baseline (floored at 0%)."""
    value: float
    baseline: float
    improvement: float
    rating: VitalRating


@dataclass(frozen=True)
class PerformanceSample:
    """
    Raw measurements for one image, supplied by the runtime.

    All numbers are untrusted: negative or non-finite values are rejected.
    Sizes are in bytes, times in milliseconds.
    """
    image_id: str = ""
    lcp_ms: Optional[float] = None
    cls: Optional[float] = None
    inp_ms: Optional[float] = None
    load_time_ms: float = 0.0
    render_time_ms: float = 0.0
    decode_time_ms: float = 0.0
    transfer_size: float = 0.0
    resource_size: float = 0.0
    width: int = 0
    height: int = 0
    format: str = ""
    cache_hit_rate: Optional[float] = None
    network_type: str = "unknown"
    downlink_mbps: Optional[float] = None

    ALIASES = MappingProxyType({
        'lcp': 'lcp_ms',
        'inp': 'inp_ms',
        'loadTime': 'load_time_ms',
        'renderTime': 'render_time_ms',
        'decodeTime': 'decode_time_ms',
        'imageId': 'image_id',
        'bandwidth': 'downlink_mbps',
        'effectiveType': 'network_type',
    })

    def __post_init__(self):
        for name in ('lcp_ms', 'cls', 'inp_ms', 'downlink_mbps'):
            value = getattr(self, name)
            if value is not None:
                check_number(name, value)
        for name in ('load_time_ms', 'render_time_ms', 'decode_time_ms',
                     'transfer_size', 'resource_size', 'width', 'height'):
            check_number(name, getattr(self, name))
        if self.cache_hit_rate is not None:
            check_number('cache_hit_rate', self.cache_hit_rate, 0.0, 1.0)
        object.__setattr__(self, 'format', (self.format or '').lower())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PerformanceSample':
        return cls(**_normalize_keys(data, cls, cls.ALIASES))


@dataclass(frozen=True)
class PerformanceMetrics:
    """Derived performance view of one PerformanceSample."""
    image_id: str
    core_web_vitals: Dict[str, VitalReading]
    vitals_score: Optional[float]
    load_time_ms: float
    render_time_ms: float
    decode_time_ms: float
    transfer_size: float
    original_size_estimate: float
    compression_ratio: Optional[float]
    quality_score: float
    grade: str
    network_type: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


@dataclass(frozen=True)
class SearchMetrics:
    """
    Search-visibility figures for one image plus metadata-quality signals.

    Counts come from a search console export; quality and relevance inputs
    are 0-100 scores; previous_ctr is a fraction in [0, 1].
    """
    image_id: str = ""
    impressions: int = 0
    clicks: int = 0
    average_rank: Optional[float] = None
    previous_ctr: float = 0.0
    filename_optimized: bool = False
    alt_text_present: bool = False
    alt_text_quality: float = 0.0
    caption_present: bool = False
    schema_markup: bool = False
    structured_data_valid: bool = False
    lens_compliant: bool = False
    on_sitemap: bool = False
    indexed: bool = False
    compliance_score: Optional[float] = None
    contextual_relevance: float = 0.0
    keyword_alignment: float = 0.0
    image_similarity: float = 0.0

    ALIASES = MappingProxyType({
        'imageId': 'image_id',
        'imageSearchRank': 'average_rank',
        'googleLensCompliant': 'lens_compliant',
        'indexedByGoogle': 'indexed',
        'imageToContentSimilarity': 'image_similarity',
        'contextualRelevance': 'contextual_relevance',
    })

    def __post_init__(self):
        check_number('impressions', self.impressions)
        check_number('clicks', self.clicks)
        if self.clicks > self.impressions:
            raise ValidationError('clicks', f"{self.clicks} clicks exceed {self.impressions} impressions")
        if self.average_rank is not None:
            check_number('average_rank', self.average_rank, 1.0)
        check_number('previous_ctr', self.previous_ctr, 0.0, 1.0)
        for name in ('alt_text_quality', 'contextual_relevance', 'keyword_alignment', 'image_similarity'):
            check_number(name, getattr(self, name), 0.0, 100.0)
        if self.compliance_score is not None:
            check_number('compliance_score', self.compliance_score, 0.0, 100.0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SearchMetrics':
        return cls(**_normalize_keys(data, cls, cls.ALIASES))


@dataclass(frozen=True)
class SEOImpact:
    """Composite SEO score (0-100) and its traffic estimate."""
    image_id: str
    score: float
    metadata_score: float
    technical_score: float
    schema_score: float
    relevance_score: float
    ctr: float
    previous_ctr: float
    additional_clicks: float
    traffic_increase: float
    improvement_opportunities: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


@dataclass(frozen=True)
class Report:
    """Aggregated view of one image over an event window."""
    image_id: str
    generated_at: datetime
    period_start: Optional[datetime]
    period_end: Optional[datetime]
    total_views: int
    total_downloads: int
    total_interactions: int
    unique_sessions: int
    engagement_rate: float
    average_engagement: float
    average_duration_ms: float
    average_load_time_ms: float
    device_breakdown: Dict[str, int]
    performance_grade: Optional[str] = None
    quality_score: Optional[float] = None
    vitals_score: Optional[float] = None
    seo_score: Optional[float] = None
    traffic_increase: Optional[float] = None
    recommendations: Tuple[str, ...] = ()

    @property
    def total_events(self) -> int:
        return self.total_views + self.total_downloads + self.total_interactions

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)
