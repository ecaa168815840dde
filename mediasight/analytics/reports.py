"""
Analytics reports and exports.

Reports only aggregate values that were already derived elsewhere
(engagement scores, grades, SEO scores); nothing is re-scored here.
"""

import csv
import io
import json
import logging
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .models import AnalyticsEvent, EventType, PerformanceMetrics, Report, SEOImpact
from ..clock import Clock, SystemClock
from ..utils.serialization import to_jsonable

logger = logging.getLogger(__name__)

CSV_HEADER = ('Date', 'Type', 'ID', 'Device', 'Duration', 'Engagement', 'LoadTime', 'Details')


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return round(float(np.mean(values)), 2)


class ReportGenerator:
    """Builds per-image reports and flat exports from an event window."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    def generate_report(self, image_id: str, events: Iterable[AnalyticsEvent],
                        metrics: Optional[PerformanceMetrics] = None,
                        seo: Optional[SEOImpact] = None) -> Report:
        """
        Summarize one image's events together with its performance and SEO results.

        Args:
            image_id: Image to report on; events for other images are ignored
            events: Event window (e.g. a recorder snapshot)
            metrics: Performance metrics for the image, passed through
            seo: SEO impact for the image, passed through

        Returns:
            Report
        """
        window = [event for event in events if event.image_id == image_id]
        counts = Counter(event.event_type for event in window)
        views = counts[EventType.VIEW]
        downloads = counts[EventType.DOWNLOAD]
        interactions = counts[EventType.INTERACTION]

        engaged = views + interactions
        engagement_rate = round(interactions / engaged * 100, 2) if engaged else 0.0

        load_times = [event.load_time_ms for event in window if event.load_time_ms > 0]
        if load_times:
            average_load_time = _mean(load_times)
        elif metrics is not None:
            average_load_time = metrics.load_time_ms
        else:
            average_load_time = 0.0

        devices = Counter(event.device_type for event in window)
        timestamps = [event.timestamp for event in window]

        report = Report(
            image_id=image_id,
            generated_at=self.clock.now(),
            period_start=min(timestamps) if timestamps else None,
            period_end=max(timestamps) if timestamps else None,
            total_views=views,
            total_downloads=downloads,
            total_interactions=interactions,
            unique_sessions=len({event.session_id for event in window if event.session_id}),
            engagement_rate=engagement_rate,
            average_engagement=_mean([event.engagement_score for event in window]),
            average_duration_ms=_mean([event.duration_ms for event in window]),
            average_load_time_ms=average_load_time,
            device_breakdown=dict(sorted(devices.items(), key=lambda item: (-item[1], item[0]))),
            performance_grade=metrics.grade if metrics else None,
            quality_score=metrics.quality_score if metrics else None,
            vitals_score=metrics.vitals_score if metrics else None,
            seo_score=seo.score if seo else None,
            traffic_increase=seo.traffic_increase if seo else None,
            recommendations=tuple(self._recommendations(window, engagement_rate, average_load_time,
                                                        metrics, seo)),
        )
        logger.debug(f"Report for {image_id}: {report.total_events} events")
        return report

    @staticmethod
    def _recommendations(window: List[AnalyticsEvent], engagement_rate: float,
                         average_load_time: float, metrics: Optional[PerformanceMetrics],
                         seo: Optional[SEOImpact]) -> List[str]:
        recommendations = []
        if average_load_time > 2000:
            recommendations.append("Optimize image loading speed - aim for under 2 seconds")
        if metrics is not None and metrics.grade == 'F':
            recommendations.append("Serve a modern format at a suitable resolution to lift the performance grade")
        if seo is not None and seo.score < 70:
            recommendations.append("Improve SEO optimization - focus on metadata and structured data")
        if window and engagement_rate < 10:
            recommendations.append("Increase user engagement through interactive features such as zoom")
        return recommendations

    @staticmethod
    def export_csv(events: Iterable[AnalyticsEvent]) -> str:
        """
        Flatten events into CSV with the header
        Date,Type,ID,Device,Duration,Engagement,LoadTime,Details.

        Fields containing commas, quotes or newlines are quoted with inner
        quotes doubled; rows end with '\\n'. Details is compact JSON with
        sorted keys, so the same events always give the same text.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
        writer.writerow(CSV_HEADER)
        for event in events:
            writer.writerow([
                event.timestamp.isoformat(),
                event.event_type.value,
                event.image_id,
                event.device_type,
                _format_number(event.duration_ms),
                _format_number(event.engagement_score),
                _format_number(event.load_time_ms),
                json.dumps(to_jsonable(event.details), sort_keys=True, separators=(',', ':'), default=str),
            ])
        return buffer.getvalue()

    @staticmethod
    def export_json(report: Report, indent: int = 2) -> str:
        return json.dumps(report.to_dict(), indent=indent, default=str)

    @staticmethod
    def top_images(events: Iterable[AnalyticsEvent], limit: int = 5) -> List[Tuple[str, float]]:
        """Images ranked by summed engagement score, highest first."""
        totals: Dict[str, float] = defaultdict(float)
        for event in events:
            totals[event.image_id] += event.engagement_score
        ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        return [(image_id, round(total, 2)) for image_id, total in ranked[:limit]]
