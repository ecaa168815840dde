"""
Data models for platform compliance scoring.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Tuple

from ..config import config_section
from ..errors import ValidationError
from ..utils.serialization import to_jsonable


class ComplianceStatus(Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    ACCEPTABLE = "ACCEPTABLE"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"

    @classmethod
    def from_score(cls, score: float) -> 'ComplianceStatus':
        if score >= 90:
            return cls.EXCELLENT
        if score >= 75:
            return cls.GOOD
        if score >= 60:
            return cls.ACCEPTABLE
        return cls.NEEDS_IMPROVEMENT


@dataclass(frozen=True)
class CheckWeights:
    """Relative weight of each compliance check; normalized when scoring."""
    dimension: float = 40
    alt_text: float = 30
    format: float = 15
    file_size: float = 15

    def __post_init__(self):
        for name in ('dimension', 'alt_text', 'format', 'file_size'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(name, f"weight must be a finite number, got {value!r}")
            if value < 0:
                raise ValidationError(name, "weight must not be negative")
        if self.total <= 0:
            raise ValidationError('weights', "at least one weight must be positive")

    @property
    def total(self) -> float:
        return self.dimension + self.alt_text + self.format + self.file_size

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'CheckWeights':
        return cls(**config_section(config, 'compliance.weights', cls))


@dataclass(frozen=True)
class PlatformSpec:
    """
    Published image requirements of one discovery platform.

    Every platform shares this shape; adding a platform means adding data,
    not code.
    """
    key: str
    display_name: str
    min_width: int
    min_height: int
    ideal_width: int
    ideal_height: int
    preferred_formats: FrozenSet[str]
    accepted_formats: FrozenSet[str] = frozenset()
    alt_text_min: int = 50
    alt_text_max: int = 150
    max_file_size_kb: int = 8192
    aspect_ratio: str = ""
    notes: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'preferred_formats', frozenset(f.lower() for f in self.preferred_formats))
        object.__setattr__(self, 'accepted_formats', frozenset(f.lower() for f in self.accepted_formats))
        object.__setattr__(self, 'notes', tuple(self.notes))
        if self.ideal_width < self.min_width or self.ideal_height < self.min_height:
            raise ValidationError('ideal_width', f"ideal dimensions of '{self.key}' are below the minimum")
        if self.alt_text_min > self.alt_text_max:
            raise ValidationError('alt_text_min', f"alt text band of '{self.key}' is empty")

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, Any]) -> 'PlatformSpec':
        """Build a spec from a config mapping, naming any missing field."""
        required = ('min_width', 'min_height', 'ideal_width', 'ideal_height', 'preferred_formats')
        for name in required:
            if name not in data:
                raise ValidationError(name, f"missing from platform '{key}'")
        return cls(
            key=key,
            display_name=data.get('display_name', key),
            min_width=int(data['min_width']),
            min_height=int(data['min_height']),
            ideal_width=int(data['ideal_width']),
            ideal_height=int(data['ideal_height']),
            preferred_formats=frozenset(data['preferred_formats']),
            accepted_formats=frozenset(data.get('accepted_formats', ())),
            alt_text_min=int(data.get('alt_text_min', 50)),
            alt_text_max=int(data.get('alt_text_max', 150)),
            max_file_size_kb=int(data.get('max_file_size_kb', 8192)),
            aspect_ratio=data.get('aspect_ratio', ''),
            notes=tuple(data.get('notes', ())),
        )


@dataclass(frozen=True)
class ComplianceChecks:
    dimension: bool
    alt_text: bool
    format: bool
    file_size: bool


@dataclass(frozen=True)
class ComplianceReport:
    """Graded result of validating one image against one platform."""
    platform: str
    status: ComplianceStatus
    score: int
    checks: ComplianceChecks
    recommendations: Tuple[str, ...]
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status is not ComplianceStatus.NEEDS_IMPROVEMENT

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)
