"""
Exceptions raised by the trajectory generators.

Every failure is raised from the call that detected it, before any output or
retained state is touched.
"""


class WalkgenError(ValueError):
    pass


class ConfigurationError(WalkgenError):
    """A parameter is outside of its domain. The configuration is left unchanged."""


class SequencingError(WalkgenError):
    """Footsteps are not chronologically consistent with each other or with the start time."""


class InfeasibleTimingError(WalkgenError):
    """The requested timings cannot produce an always-grounded phase timeline."""
