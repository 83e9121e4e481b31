"""Exception types raised by orbitprop propagations.

Every failure of a propagation is raised as a subclass of
:class:`IntegrationError`.  Nothing is clamped or retried automatically:
callers that batch many propagations catch the base class per call and
decide whether to retry with a looser tolerance or a larger step ceiling.

Failures that happen inside the stepping loop carry the partial trajectory
recorded up to that point (``error.trajectory``) and the time of the last
accepted sample (``error.t``) so they can be inspected.  Configuration
errors are detected before any step is taken and carry neither.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from orbitprop.trajectory import Trajectory


class IntegrationError(Exception):
    """Base class for all propagation failures.

    Args:
        message: Human-readable description of the failure.
        t: Time of the last accepted sample when the failure occurred,
            or ``None`` if integration never started.
        trajectory: Samples accepted before the failure, or ``None``.
    """

    def __init__(
        self,
        message: str,
        t: float | None = None,
        trajectory: Trajectory | None = None,
    ) -> None:
        super().__init__(message)
        self.t = t
        self.trajectory = trajectory


class InvalidConfig(IntegrationError, ValueError):
    """Non-positive tolerance, step bound, or step count supplied."""


class SingularState(IntegrationError):
    """Position magnitude collapsed below the singularity epsilon."""


class NonFiniteResult(IntegrationError):
    """A stage derivative or solution component became NaN or infinite."""


class StepSizeUnderflow(IntegrationError):
    """Step size was driven below the configured minimum."""


class MaxStepsExceeded(IntegrationError):
    """Accepted-step count reached the ceiling before the end time."""
