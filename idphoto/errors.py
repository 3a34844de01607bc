"""Exception taxonomy for the compliance engine.

Per-check failures are reported as CheckResult data, never raised. These
exceptions cover structural problems only: unusable input, configuration
mistakes, and detector faults that trigger the heuristic fallback.
"""

from __future__ import annotations


class PhotoComplianceError(Exception):
    """Base class for all idphoto errors."""


class InvalidInput(PhotoComplianceError, ValueError):
    """Source is not an image or has no pixels."""


class InvalidDimension(InvalidInput):
    """Requested sample or canvas dimension is not positive."""


class AnalysisFailure(PhotoComplianceError, RuntimeError):
    """Pixel sampling or analysis failed internally."""


class DetectorUnavailable(PhotoComplianceError, RuntimeError):
    """External face detector is missing or raised."""


class ConfigurationError(PhotoComplianceError, ValueError):
    """Unsupported configuration value (target size, margin, env variable)."""


class SessionStateError(PhotoComplianceError, RuntimeError):
    """Operation is not allowed in the current session state."""
