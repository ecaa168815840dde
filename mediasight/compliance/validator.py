"""
Compliance validation of product images against discovery platform specs.

Scores four checks (dimensions, alt text, format, estimated file size),
each graded 0-100 and blended with fixed weights into a 0-100 score.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import ValidationError
from .models import CheckWeights, ComplianceChecks, ComplianceReport, ComplianceStatus, PlatformSpec
from .platforms import PlatformRegistry
from ..metadata.estimation import calculate_aspect_ratio, estimate_file_size
from ..metadata.models import ImageDescriptor

logger = logging.getLogger(__name__)


class CheckScores:
    """Sub-score ladder for each check."""

    DIMENSION = {'below_minimum': 30, 'minimum': 70, 'ideal': 100}
    ALT_TEXT = {'missing': 0, 'too_short': 50, 'too_long': 70, 'within_band': 100}
    FORMAT = {'preferred': 100, 'accepted': 70, 'unsupported': 30}
    FILE_SIZE = {'under_limit': 100, 'over_limit': 50}


class ComplianceValidator:
    """
    Grades an image descriptor against a platform spec.

    Stateless: the registry and weights are fixed at construction and
    validate() has no side effects beyond debug logging.
    """

    def __init__(self, registry: Optional[PlatformRegistry] = None,
                 weights: Optional[CheckWeights] = None,
                 bit_depth: int = 8):
        if isinstance(bit_depth, bool) or not isinstance(bit_depth, int) or bit_depth <= 0:
            raise ValidationError('bit_depth', f"must be a positive integer, got {bit_depth!r}")
        self.registry = registry or PlatformRegistry()
        self.weights = weights or CheckWeights()
        self.bit_depth = bit_depth

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ComplianceValidator':
        return cls(
            registry=PlatformRegistry.from_config(config),
            weights=CheckWeights.from_config(config),
            bit_depth=config.get('metadata', {}).get('bit_depth', 8),
        )

    def validate(self, descriptor: Union[ImageDescriptor, Mapping[str, Any]],
                 platform: Union[PlatformSpec, str]) -> ComplianceReport:
        """
        Validate one image against one platform.

        Args:
            descriptor: ImageDescriptor or catalog mapping
            platform: PlatformSpec, or the key of a registered platform

        Returns:
            ComplianceReport with score in [0, 100]

        Raises:
            UnknownPlatformError: If a platform key is not registered
            ValidationError: If the descriptor is invalid
        """
        descriptor = ImageDescriptor.coerce(descriptor)
        spec = platform if isinstance(platform, PlatformSpec) else self.registry.get(platform)

        dimension_score, dimension_tier = self._score_dimensions(descriptor, spec)
        alt_score, alt_tier = self._score_alt_text(descriptor.alt_text, spec)
        format_score, format_tier = self._score_format(descriptor, spec)
        size = estimate_file_size(descriptor.width, descriptor.height, descriptor.format, self.bit_depth)
        under_limit = size.estimated_kb <= spec.max_file_size_kb
        size_score = CheckScores.FILE_SIZE['under_limit' if under_limit else 'over_limit']

        w = self.weights
        weighted = (dimension_score * w.dimension + alt_score * w.alt_text +
                    format_score * w.format + size_score * w.file_size)
        score = int(round(weighted / w.total))
        score = max(0, min(100, score))

        aspect = calculate_aspect_ratio(descriptor.width, descriptor.height)
        checks = ComplianceChecks(
            dimension=dimension_tier != 'below_minimum',
            alt_text=alt_tier == 'within_band',
            format=format_tier == 'preferred',
            file_size=under_limit,
        )
        recommendations = self._recommendations(descriptor, spec, dimension_tier, alt_tier,
                                                format_tier, size.estimated_kb, aspect.ratio)
        details = {
            'platform_name': spec.display_name,
            'dimensions': {
                'width': descriptor.width,
                'height': descriptor.height,
                'minimum': f"{spec.min_width}x{spec.min_height}",
                'ideal': f"{spec.ideal_width}x{spec.ideal_height}",
                'tier': dimension_tier,
                'score': dimension_score,
            },
            'aspect_ratio': {
                'actual': aspect.ratio,
                'required': spec.aspect_ratio or None,
            },
            'alt_text': {
                'length': len(descriptor.alt_text.strip()),
                'band': [spec.alt_text_min, spec.alt_text_max],
                'tier': alt_tier,
                'score': alt_score,
            },
            'format': {
                'value': descriptor.format,
                'preferred': sorted(spec.preferred_formats),
                'tier': format_tier,
                'score': format_score,
            },
            'file_size': {
                'estimated_kb': size.estimated_kb,
                'max_kb': spec.max_file_size_kb,
                'score': size_score,
            },
        }

        status = ComplianceStatus.from_score(score)
        logger.debug(f"{descriptor.product_id or descriptor.url} on {spec.key}: {score} ({status.value})")
        return ComplianceReport(
            platform=spec.key,
            status=status,
            score=score,
            checks=checks,
            recommendations=tuple(recommendations),
            details=details,
        )

    def validate_all(self, descriptor: Union[ImageDescriptor, Mapping[str, Any]]) -> Dict[str, ComplianceReport]:
        """Validate against every registered platform, keyed by platform key."""
        return {spec.key: self.validate(descriptor, spec) for spec in self.registry}

    def _score_dimensions(self, descriptor: ImageDescriptor, spec: PlatformSpec):
        if descriptor.width >= spec.ideal_width and descriptor.height >= spec.ideal_height:
            tier = 'ideal'
        elif descriptor.width >= spec.min_width and descriptor.height >= spec.min_height:
            tier = 'minimum'
        else:
            tier = 'below_minimum'
        return CheckScores.DIMENSION[tier], tier

    def _score_alt_text(self, alt_text: str, spec: PlatformSpec):
        length = len((alt_text or '').strip())
        if length == 0:
            tier = 'missing'
        elif length < spec.alt_text_min:
            tier = 'too_short'
        elif length > spec.alt_text_max:
            tier = 'too_long'
        else:
            tier = 'within_band'
        return CheckScores.ALT_TEXT[tier], tier

    def _score_format(self, descriptor: ImageDescriptor, spec: PlatformSpec):
        candidates = {descriptor.format, descriptor.canonical_format}
        if candidates & spec.preferred_formats:
            tier = 'preferred'
        elif candidates & spec.accepted_formats:
            tier = 'accepted'
        else:
            tier = 'unsupported'
        return CheckScores.FORMAT[tier], tier

    def _recommendations(self, descriptor: ImageDescriptor, spec: PlatformSpec,
                         dimension_tier: str, alt_tier: str, format_tier: str,
                         estimated_kb: int, aspect_ratio: str) -> List[str]:
        # Order is fixed: dimensions, format, alt text, file size
        recommendations = []

        if dimension_tier == 'below_minimum':
            recommendations.append(
                f"Increase image dimensions to at least {spec.min_width}x{spec.min_height} pixels "
                f"(currently {descriptor.width}x{descriptor.height})")
        elif dimension_tier == 'minimum':
            recommendations.append(
                f"Use {spec.ideal_width}x{spec.ideal_height} pixels or larger for best results "
                f"on {spec.display_name}")
        if spec.aspect_ratio and aspect_ratio != spec.aspect_ratio:
            recommendations.append(
                f"Crop dimensions to a {spec.aspect_ratio} aspect ratio (currently {aspect_ratio})")

        if format_tier != 'preferred':
            recommendations.append(
                f"Convert format from {descriptor.format} to one of: "
                f"{', '.join(sorted(spec.preferred_formats))}")

        length = len(descriptor.alt_text.strip())
        if alt_tier == 'missing':
            recommendations.append(
                f"Add alt text describing the product ({spec.alt_text_min}-{spec.alt_text_max} characters)")
        elif alt_tier == 'too_short':
            recommendations.append(
                f"Expand alt text to at least {spec.alt_text_min} characters (currently {length})")
        elif alt_tier == 'too_long':
            recommendations.append(
                f"Shorten alt text to {spec.alt_text_max} characters or fewer (currently {length})")

        if estimated_kb > spec.max_file_size_kb:
            recommendations.append(
                f"Reduce file size below {spec.max_file_size_kb} KB (estimated {estimated_kb} KB)")

        return recommendations
