"""
Exceptions raised by the Unscented Kalman Filter.
"""

class UKFError(Exception):
    """Base class for filter errors."""

class DegenerateMeasurementError(UKFError):
    """Radar range too close to zero for bearing and range rate to be defined."""

class NonPositiveSemiDefiniteCovarianceError(UKFError):
    """Augmented covariance has no Cholesky factor. The filter state is unrecoverable."""

class SingularInnovationCovarianceError(UKFError):
    """Innovation covariance S cannot be inverted."""

class UninitializedStateError(UKFError):
    """State accessed before the first measurement was processed."""

class StaleSigmaPointsError(UKFError):
    """Update called with sigma points from an earlier prediction."""
