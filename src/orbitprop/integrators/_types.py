"""Type definitions for the Dormand-Prince propagator.

Provides the data types shared by the trial-step kernel, the step-size
controller and the driver loop:

- :class:`IntegrationConfig`: Tolerances, step bounds and controller
  factors for one propagation.
- :class:`TrialStep`: Output of a single DP54 trial step, before the
  controller has decided whether to accept it.
- :class:`StepDecision`: The controller's verdict on a trial step.
- :class:`IntegratorStatus`: States of the stepping state machine.
- :class:`IntegrationStats`: Work counters attached to each trajectory.

The tuple types are :class:`~typing.NamedTuple` instances, which JAX treats
as pytrees automatically, so :class:`TrialStep` can be returned from a
``jax.jit``-compiled function.
"""

from __future__ import annotations

import enum
import math
import operator
from typing import NamedTuple

from jax import Array

from orbitprop.errors import InvalidConfig


class IntegrationConfig(NamedTuple):
    """Configuration for one adaptive propagation.

    Default values are a reasonable starting point for heliocentric
    propagation in km and km/s.

    Attributes:
        rel_tol: Relative error tolerance per component. Components with
            large magnitude are controlled by this tolerance.
        abs_tol: Absolute error tolerance per component. Components with
            magnitude near zero are controlled by this tolerance.
        initial_step: Magnitude of the first trial step. The sign is taken
            from the direction of propagation.
        max_steps: Maximum number of accepted steps before the propagation
            fails with ``MaxStepsExceeded``.
        min_step: Step-size floor. If the controller would shrink the step
            below this, the propagation fails with ``StepSizeUnderflow``.
        max_step: Step-size ceiling. Proposed steps are clamped to it.
        safety_factor: Multiplicative safety factor applied to step-size
            predictions. Values < 1.0 produce conservative step sizes.
        min_scale_factor: Minimum allowed ratio ``|h_next| / |h|``.
            Prevents excessively aggressive step-size reduction.
        max_scale_factor: Maximum allowed ratio ``|h_next| / |h|`` after
            an accepted step. Right after a rejection the ratio is capped
            at 1.0 to avoid accept/reject oscillation.
    """

    rel_tol: float = 1e-6
    abs_tol: float = 1e-8
    initial_step: float = 10.0
    max_steps: int = 100_000
    min_step: float = 1e-10
    max_step: float = math.inf
    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0

    def validate(self) -> IntegrationConfig:
        """Check every field, returning ``self`` when valid.

        Raises:
            InvalidConfig: If a tolerance, step bound or step count is not
                positive, if ``min_step > max_step``, or if the controller
                factors are out of range.
        """
        for name in ("rel_tol", "abs_tol", "initial_step", "min_step"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0.0):
                raise InvalidConfig(f"{name} must be positive and finite, got {value}")
        if math.isnan(self.max_step) or self.max_step <= 0.0:
            raise InvalidConfig(f"max_step must be positive, got {self.max_step}")
        if isinstance(self.max_steps, bool):
            raise InvalidConfig(f"max_steps must be an integer, got {self.max_steps!r}")
        try:
            operator.index(self.max_steps)
        except TypeError:
            raise InvalidConfig(
                f"max_steps must be an integer, got {self.max_steps!r}"
            ) from None
        if self.max_steps <= 0:
            raise InvalidConfig(f"max_steps must be positive, got {self.max_steps}")
        if self.min_step > self.max_step:
            raise InvalidConfig(
                f"min_step ({self.min_step}) must not exceed max_step ({self.max_step})"
            )
        if not 0.0 < self.safety_factor < 1.0:
            raise InvalidConfig(
                f"safety_factor must lie in (0, 1), got {self.safety_factor}"
            )
        if not 0.0 < self.min_scale_factor < 1.0:
            raise InvalidConfig(
                f"min_scale_factor must lie in (0, 1), got {self.min_scale_factor}"
            )
        if not (math.isfinite(self.max_scale_factor) and self.max_scale_factor > 1.0):
            raise InvalidConfig(
                f"max_scale_factor must be finite and > 1, got {self.max_scale_factor}"
            )
        return self


class TrialStep(NamedTuple):
    """Result of a single DP54 trial step.

    Attributes:
        state_high: 5th-order solution at ``t + h`` (propagated on accept).
        state_low: Embedded 4th-order solution at ``t + h``.
        error_estimate: RMS-normalized error. ``<= 1.0`` meets tolerance.
        k_last: Derivative at ``(t + h, state_high)``; equal to the first
            stage of the next step if this one is accepted (FSAL).
        finite: ``True`` when every stage and both solutions are finite.
        singular: ``True`` when any stage state is singular for the model.
    """

    state_high: Array
    state_low: Array
    error_estimate: Array
    k_last: Array
    finite: Array
    singular: Array


class StepDecision(NamedTuple):
    """Verdict of the step-size controller.

    Attributes:
        accept: Whether the trial step meets tolerance.
        next_h: Proposed size of the next (or retried) step, signed like
            the current step and clamped to ``[min_step, max_step]``.
        underflow: ``True`` when the unclamped proposal was below
            ``min_step``, i.e. the integration has stalled.
    """

    accept: bool
    next_h: float
    underflow: bool


class IntegratorStatus(enum.Enum):
    """States of the propagation state machine."""

    INITIALIZING = "initializing"
    STEPPING = "stepping"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONVERGED = "converged"
    FAILED = "failed"


class IntegrationStats(NamedTuple):
    """Work counters for a propagation.

    Attributes:
        n_accepted: Number of accepted steps.
        n_rejected: Number of rejected trial steps.
        n_evaluations: Number of dynamics evaluations.
        status: Terminal state of the propagation.
    """

    n_accepted: int = 0
    n_rejected: int = 0
    n_evaluations: int = 0
    status: IntegratorStatus = IntegratorStatus.INITIALIZING
