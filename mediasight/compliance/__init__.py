"""
Platform compliance scoring for product images.
"""

from .models import CheckWeights, ComplianceChecks, ComplianceReport, ComplianceStatus, PlatformSpec
from .platforms import BUILTIN_PLATFORMS, SOCIAL_PIN, VISUAL_SEARCH, PlatformRegistry
from .validator import ComplianceValidator

__all__ = [
    'CheckWeights', 'ComplianceChecks', 'ComplianceReport', 'ComplianceStatus',
    'PlatformSpec', 'BUILTIN_PLATFORMS', 'SOCIAL_PIN', 'VISUAL_SEARCH',
    'PlatformRegistry', 'ComplianceValidator',
]
