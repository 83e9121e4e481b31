"""Adaptive step-size control for embedded Runge-Kutta methods.

Provides the error-norm computation used inside the DP54 trial step and
the :class:`StepSizeController` that turns that norm into an
accept/reject verdict and a new step size.  The algorithm follows the
standard embedded Runge-Kutta error control approach:

1. Compute a normalized RMS error using mixed absolute/relative tolerances.
2. Accept the step if the normalized error is <= 1.0.
3. Predict the next step size from the error and the order of the
   embedded estimate, within safety and scale-factor bounds.

The controller holds no mutable state, so the acceptance policy can be
tested on its own without evaluating any dynamics.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from orbitprop.config import get_dtype
from orbitprop.integrators._types import IntegrationConfig, StepDecision


def compute_error_norm(
    error_vec: ArrayLike,
    state_new: ArrayLike,
    state_old: ArrayLike,
    abs_tol: float,
    rel_tol: float,
) -> Array:
    """Compute the normalized error norm for adaptive step-size control.

    Uses a mixed absolute/relative tolerance per component with the RMS
    norm over components. The step is accepted when the returned value is
    <= 1.0.

    The per-component tolerance is:

    .. math::

        \\text{sc}_i = \\text{abs\\_tol} + \\text{rel\\_tol}
            \\cdot \\max(|y^{\\text{new}}_i|, |y^{\\text{old}}_i|)

    and the norm is :math:`\\sqrt{\\frac{1}{n}\\sum_i (e_i / \\text{sc}_i)^2}`.

    Args:
        error_vec: Difference between high-order and low-order solutions.
        state_new: High-order solution (accepted state).
        state_old: State at the beginning of the step.
        abs_tol: Absolute error tolerance.
        rel_tol: Relative error tolerance.

    Returns:
        jax.Array: Scalar normalized error. Step is accepted if <= 1.0.
    """
    error_vec = jnp.asarray(error_vec, dtype=get_dtype())
    state_new = jnp.asarray(state_new, dtype=get_dtype())
    state_old = jnp.asarray(state_old, dtype=get_dtype())

    scale = abs_tol + rel_tol * jnp.maximum(jnp.abs(state_new), jnp.abs(state_old))
    return jnp.sqrt(jnp.mean((error_vec / scale) ** 2))


@dataclass(frozen=True)
class StepSizeController:
    """Accept/reject policy and step-size predictor.

    The next step size is

    .. math::

        h_{\\text{next}} = h \\cdot \\text{clip}\\left(S \\cdot
            \\text{err}^{-1/(q+1)}, f_{\\min}, f_{\\max}\\right)

    where *S* is the safety factor and *q* the order of the embedded error
    estimate. :math:`f_{\\max}` is ``max_scale_factor`` after a clean
    acceptance and 1.0 on a rejection or right after one, so a rejected
    step is always retried with a strictly smaller step.

    Args:
        min_step: Absolute minimum step size.
        max_step: Absolute maximum step size.
        safety_factor: Multiplicative safety factor (typically 0.9).
        min_scale_factor: Minimum allowed ratio ``|h_next| / |h|``.
        max_scale_factor: Maximum allowed ratio ``|h_next| / |h|``.
        order: Order of the error estimator (4 for DP54).
    """

    min_step: float = 1e-10
    max_step: float = math.inf
    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0
    order: float = 4.0

    @classmethod
    def from_config(cls, config: IntegrationConfig, order: float = 4.0) -> StepSizeController:
        """Build a controller from the step bounds and factors of *config*."""
        return cls(
            min_step=config.min_step,
            max_step=config.max_step,
            safety_factor=config.safety_factor,
            min_scale_factor=config.min_scale_factor,
            max_scale_factor=config.max_scale_factor,
            order=order,
        )

    def scale_factor(self, error_norm: float, after_rejection: bool = False) -> float:
        """Return the clamped ratio ``|h_next| / |h|`` for *error_norm*."""
        error = float(error_norm)
        accept = error <= 1.0
        max_factor = self.max_scale_factor if (accept and not after_rejection) else 1.0

        if not math.isfinite(error):
            return self.min_scale_factor
        if error == 0.0:
            return max_factor

        raw = self.safety_factor * error ** (-1.0 / (self.order + 1.0))
        return min(max(raw, self.min_scale_factor), max_factor)

    def evaluate(
        self,
        error_norm: float,
        current_h: float,
        after_rejection: bool = False,
    ) -> StepDecision:
        """Decide on a trial step and propose the next step size.

        Args:
            error_norm: Normalized error from :func:`compute_error_norm`.
            current_h: Step size of the trial step (negative for backward
                propagation).
            after_rejection: Whether the previous trial step was rejected.

        Returns:
            StepDecision: ``accept``, the signed ``next_h`` clamped to
            ``[min_step, max_step]``, and whether the unclamped value fell
            below ``min_step``.

        Examples:
            ```python
            from orbitprop.integrators import StepSizeController
            controller = StepSizeController()
            controller.evaluate(2.0, 100.0)
            ```
        """
        error = float(error_norm)
        h = float(current_h)
        accept = math.isfinite(error) and error <= 1.0

        abs_h_next = abs(h) * self.scale_factor(error, after_rejection)
        underflow = abs_h_next < self.min_step
        abs_h_next = min(max(abs_h_next, self.min_step), self.max_step)

        return StepDecision(
            accept=accept,
            next_h=math.copysign(abs_h_next, h),
            underflow=underflow,
        )
