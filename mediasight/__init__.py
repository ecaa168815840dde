"""
MediaSight: media discoverability and engagement analytics

Synthesizes filenames, metadata and copyright records for product images,
scores them against visual-search platform requirements, emits structured
data for crawlers, and records and grades image engagement.
"""

__version__ = "0.1.0"

from .config import load_config
from .errors import MediaSightError, ValidationError, UnknownPlatformError, UnknownLicenseError
from .clock import Clock, SystemClock, FixedClock
from .metadata import MetadataSynthesizer, ImageDescriptor, ProductContext, LicenseType
from .compliance import ComplianceValidator, PlatformSpec, ComplianceStatus
from .structured_data import StructuredDataEmitter, DocumentKind
from .analytics import EventRecorder, MetricsAggregator, ReportGenerator

__all__ = [
    "load_config",
    "MediaSightError", "ValidationError", "UnknownPlatformError", "UnknownLicenseError",
    "Clock", "SystemClock", "FixedClock",
    "MetadataSynthesizer", "ImageDescriptor", "ProductContext", "LicenseType",
    "ComplianceValidator", "PlatformSpec", "ComplianceStatus",
    "StructuredDataEmitter", "DocumentKind",
    "EventRecorder", "MetricsAggregator", "ReportGenerator",
]
