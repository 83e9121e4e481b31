"""Dormand-Prince 5(4) integration kernel.

Provides the building blocks of the adaptive propagator in
:mod:`orbitprop.propagator`, implemented in JAX so the trial step can be
compiled with ``jax.jit`` and batched with ``jax.vmap``:

- :func:`dp54_trial_step` -- One Dormand-Prince 5(4) trial step
- :func:`compute_error_norm` -- Mixed-tolerance RMS error norm
- :class:`StepSizeController` -- Accept/reject policy and step resizing

The trial step shares the common dynamics interface::

    trial = dp54_trial_step(dynamics, t, state, h, abs_tol, rel_tol)

where ``dynamics.derivative(t, x) -> dx`` defines the ODE right-hand side,
and the result is a :class:`TrialStep` named tuple.
"""

from orbitprop.integrators._adaptive import StepSizeController, compute_error_norm
from orbitprop.integrators._types import (
    IntegrationConfig,
    IntegrationStats,
    IntegratorStatus,
    StepDecision,
    TrialStep,
)
from orbitprop.integrators.dp54 import dp54_trial_step, dp54_trial_step_jit

__all__ = [
    "IntegrationConfig",
    "IntegrationStats",
    "IntegratorStatus",
    "StepDecision",
    "StepSizeController",
    "TrialStep",
    "compute_error_norm",
    "dp54_trial_step",
    "dp54_trial_step_jit",
]
