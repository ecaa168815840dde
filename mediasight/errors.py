"""
Exception hierarchy for MediaSight.

All errors raised by the engine are input errors: they are deterministic,
never retried, and always propagate to the immediate caller.
"""


class MediaSightError(Exception):
    """Base exception for MediaSight."""
    pass


class ValidationError(MediaSightError, ValueError):
    """Raised when a required field is missing or out of range."""

    def __init__(self, field: str, message: str = ""):
        self.field = field
        self.message = message or "missing required field"
        super().__init__(f"{field}: {self.message}")


class UnknownPlatformError(MediaSightError, LookupError):
    """Raised when a compliance platform key is not registered."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"Unknown platform spec: {platform}")


class UnknownLicenseError(MediaSightError, LookupError):
    """Raised when a license type is outside the supported set."""

    def __init__(self, license_type: str):
        self.license_type = license_type
        super().__init__(f"Unknown license type: {license_type}")
