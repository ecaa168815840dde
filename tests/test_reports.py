"""
Tests for analytics reports and CSV export.
"""

import csv
import io
import json

import pytest

from mediasight.analytics import CSV_HEADER, ReportGenerator


@pytest.fixture
def generator(clock):
    return ReportGenerator(clock=clock)


@pytest.fixture
def events(recorder, clock):
    recorder.record_view("img-1", duration_ms=1000, load_time_ms=500, device_type="desktop")
    clock.advance(seconds=5)
    recorder.record_view("img-1", duration_ms=3000, load_time_ms=1500, device_type="mobile")
    clock.advance(seconds=5)
    recorder.record_interaction("img-1", interaction_type="zoom", device_type="desktop")
    recorder.record_download("img-1")
    recorder.record_view("img-2", duration_ms=100)
    return recorder.snapshot()


class TestGenerateReport:
    """Test per-image report aggregation."""

    def test_counts(self, generator, events):
        report = generator.generate_report("img-1", events)
        assert report.total_views == 2
        assert report.total_downloads == 1
        assert report.total_interactions == 1
        assert report.total_events == 4
        assert report.unique_sessions == 1
        assert report.engagement_rate == 33.33

    def test_averages(self, generator, events):
        report = generator.generate_report("img-1", events)
        assert report.average_load_time_ms == 1000.0
        assert report.average_duration_ms == 1000.0
        window = [e for e in events if e.image_id == "img-1"]
        expected = round(sum(e.engagement_score for e in window) / len(window), 2)
        assert report.average_engagement == pytest.approx(expected, abs=0.01)

    def test_device_breakdown(self, generator, events):
        report = generator.generate_report("img-1", events)
        assert report.device_breakdown == {"desktop": 2, "mobile": 1, "unknown": 1}
        assert list(report.device_breakdown) == ["desktop", "mobile", "unknown"]

    def test_device_breakdown_ranked_by_count(self, generator, recorder):
        recorder.record_view("img-1", device_type="tablet")
        recorder.record_view("img-1", device_type="mobile")
        recorder.record_view("img-1", device_type="mobile")
        report = generator.generate_report("img-1", recorder.snapshot())
        assert list(report.device_breakdown) == ["mobile", "tablet"]

    def test_period(self, generator, events):
        report = generator.generate_report("img-1", events)
        assert (report.period_end - report.period_start).total_seconds() == 10

    def test_empty_window(self, generator, events):
        report = generator.generate_report("img-9", events)
        assert report.total_events == 0
        assert report.engagement_rate == 0.0
        assert report.period_start is None
        assert report.recommendations == ()

    def test_metrics_and_seo_pass_through(self, generator, events, aggregator):
        metrics = aggregator.compute_performance({"lcp": 2100, "format": "png"})
        seo = aggregator.compute_seo_impact({"impressions": 100, "clicks": 5})
        report = generator.generate_report("img-1", events, metrics, seo)
        assert report.performance_grade == metrics.grade
        assert report.quality_score == metrics.quality_score
        assert report.seo_score == seo.score
        assert report.traffic_increase == seo.traffic_increase
        assert "Improve SEO optimization - focus on metadata and structured data" in report.recommendations

    def test_slow_load_recommendation(self, generator, recorder):
        recorder.record_view("img-1", load_time_ms=3500)
        report = generator.generate_report("img-1", recorder.snapshot())
        assert report.recommendations[0] == "Optimize image loading speed - aim for under 2 seconds"

    def test_export_json(self, generator, events):
        data = json.loads(generator.export_json(generator.generate_report("img-1", events)))
        assert data["image_id"] == "img-1"
        assert data["generated_at"] == "2024-03-15T12:00:10+00:00"
        assert data["device_breakdown"]["desktop"] == 2


class TestExportCsv:
    """Test the flat CSV export."""

    def test_header(self, events):
        text = ReportGenerator.export_csv(events)
        assert text.splitlines()[0] == "Date,Type,ID,Device,Duration,Engagement,LoadTime,Details"
        assert text.endswith("\n")

    def test_row_values(self, events):
        rows = list(csv.reader(io.StringIO(ReportGenerator.export_csv(events))))
        assert len(rows) == len(events) + 1
        first = rows[1]
        assert first[0] == "2024-03-15T12:00:00+00:00"
        assert first[1:5] == ["view", "img-1", "desktop", "1000"]
        assert first[6] == "500"
        assert json.loads(first[7]) == {"device_type": "desktop", "duration_ms": 1000, "load_time_ms": 500}

    def test_quoting_round_trip(self, recorder):
        details = {"note": 'said "hi", then\nleft', "tags": ["a,b"]}
        recorder.record("interaction", "img,with,commas", details)
        text = ReportGenerator.export_csv(recorder.snapshot())
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == list(CSV_HEADER)
        assert rows[1][2] == "img,with,commas"
        parsed = json.loads(rows[1][7])
        assert parsed["note"] == details["note"]
        assert parsed["tags"] == ["a,b"]

    def test_stable_output(self, events):
        assert ReportGenerator.export_csv(events) == ReportGenerator.export_csv(list(events))

    def test_empty(self):
        assert ReportGenerator.export_csv([]) == ",".join(CSV_HEADER) + "\n"


class TestTopImages:

    def test_ranked_by_total_engagement(self, events):
        ranked = ReportGenerator.top_images(events, limit=2)
        assert [image_id for image_id, _ in ranked] == ["img-1", "img-2"]
        assert ranked[0][1] > ranked[1][1]

    def test_limit(self, events):
        assert len(ReportGenerator.top_images(events, limit=1)) == 1
