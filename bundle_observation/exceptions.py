"""
Exception hierarchy for bundle observation operations.

All package exceptions subclass ``BundleObservationError`` and the matching
built-in exception, so callers can catch either.
"""


class BundleObservationError(Exception):
    """Base exception for all bundle observation errors."""


class SettingsError(BundleObservationError, ValueError):
    """Malformed or inconsistent solve settings."""


class InvalidStateError(BundleObservationError, RuntimeError):
    """
    The observation is not in a state that allows the requested operation.

    Raised when a solve option requires a trajectory source the observation
    does not have, or when solve settings have not been set.
    """


class ParameterCorrectionError(InvalidStateError):
    """
    Corrections could not be applied to an observation.

    The solver must treat this as fatal to the current iteration. The
    underlying failure is available as ``__cause__``.
    """
