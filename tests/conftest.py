"""
Shared fixtures for MediaSight tests.
"""

from datetime import datetime, timezone

import pytest

from mediasight.analytics import EventRecorder, InMemoryEventStore, MetricsAggregator
from mediasight.clock import FixedClock
from mediasight.compliance import ComplianceValidator
from mediasight.metadata import ImageDescriptor, MetadataSynthesizer
from mediasight.structured_data import StructuredDataEmitter

GOOD_ALT_TEXT = "Navy blue wool coat with a double-breasted front, shown from the front"


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def synthesizer(clock):
    return MetadataSynthesizer(clock=clock)


@pytest.fixture
def validator():
    return ComplianceValidator()


@pytest.fixture
def emitter():
    return StructuredDataEmitter()


@pytest.fixture
def aggregator():
    return MetricsAggregator()


@pytest.fixture
def store():
    return InMemoryEventStore()


@pytest.fixture
def recorder(clock, store):
    return EventRecorder(store=store, clock=clock, session_id="session_test")


@pytest.fixture
def descriptor():
    return ImageDescriptor(
        product_id="123",
        view="front",
        width=2400,
        height=3000,
        format="webp",
        url="https://cdn.example.com/products/123/front.webp",
        alt_text=GOOD_ALT_TEXT,
    )


@pytest.fixture
def product():
    return {
        "productName": "Navy Blue Coat",
        "description": "A warm wool coat for winter.",
        "category": "Outerwear",
        "tags": ["wool", "winter"],
        "color": "navy",
        "material": "wool",
        "licenseType": "cc-by",
        "createdAt": "2023-11-02T09:30:00Z",
    }
