"""Dormand-Prince 5(4) trial step (DP54).

Implements one trial step of the Dormand-Prince embedded Runge-Kutta
method: a 5th-order solution for propagation and a 4th-order solution for
error estimation, both built from the same 7 stage derivatives.

The Dormand-Prince method has the First-Same-As-Last (FSAL) property: the
7th stage of step *n* is the derivative at the new state and is identical
to the 1st stage of step *n+1* when the step is accepted.  The trial step
returns it as ``k_last`` and accepts it back as ``k_first``, so an accepted
step costs 6 new derivative evaluations instead of 7.

The trial step never decides acceptance itself; it reports the normalized
error together with ``finite`` and ``singular`` flags, and the driver in
:mod:`orbitprop.integrators.propagator` applies the
:class:`~orbitprop.integrators.StepSizeController` and raises on failures.
This keeps the kernel free of Python control flow so it can be compiled
once per dynamics model with ``jax.jit``.

The Butcher tableau coefficients are the standard Dormand-Prince values:

- Nodes (c): [0, 1/5, 3/10, 4/5, 8/9, 1, 1]
- 5th-order weights (b_high): [35/384, 0, 500/1113, 125/192, -2187/6784, 11/84, 0]
- 4th-order weights (b_low): [5179/57600, 0, 7571/16695, 393/640, -92097/339200,
  187/2100, 1/40]
"""

from __future__ import annotations

from typing import Optional

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from orbitprop.config import get_dtype
from orbitprop.dynamics import DynamicsModel
from orbitprop.integrators._adaptive import compute_error_norm
from orbitprop.integrators._types import TrialStep

# Butcher tableau coefficients as Python tuples (cast at call time).
# Nodes
_C = (0.0, 1.0 / 5.0, 3.0 / 10.0, 4.0 / 5.0, 8.0 / 9.0, 1.0, 1.0)

# Coupling coefficients (lower-triangular rows)
_A1 = (1.0 / 5.0,)
_A2 = (3.0 / 40.0, 9.0 / 40.0)
_A3 = (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0)
_A4 = (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0)
_A5 = (9017.0 / 3168.0, -355.0 / 33.0, 46732.0 / 5247.0, 49.0 / 176.0, -5103.0 / 18656.0)

# 5th-order weights (primary solution); also the last row of the tableau,
# so the 7th stage is evaluated at the 5th-order solution
_B_HIGH = (35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0, -2187.0 / 6784.0, 11.0 / 84.0, 0.0)

# 4th-order weights (error estimation)
_B_LOW = (
    5179.0 / 57600.0,
    0.0,
    7571.0 / 16695.0,
    393.0 / 640.0,
    -92097.0 / 339200.0,
    187.0 / 2100.0,
    1.0 / 40.0,
)

# New derivative evaluations per trial step when the first stage is reused
FSAL_EVALUATIONS = 6


def dp54_trial_step(
    dynamics: DynamicsModel,
    t: ArrayLike,
    state: ArrayLike,
    h: ArrayLike,
    abs_tol: ArrayLike,
    rel_tol: ArrayLike,
    k_first: Optional[ArrayLike] = None,
) -> TrialStep:
    """Attempt a single DP54 step of size ``h`` from ``(t, state)``.

    Pure and traceable; compatible with ``jax.jit`` and ``jax.vmap``.

    Args:
        dynamics: Model providing ``derivative(t, x)`` and
            ``is_singular(x)``.
        t: Current time.
        state: Current state vector.
        h: Trial step size. May be negative for backward propagation.
        abs_tol: Absolute error tolerance.
        rel_tol: Relative error tolerance.
        k_first: Derivative at ``(t, state)`` if already known (the
            ``k_last`` of the previous accepted step). Evaluated here when
            ``None``.

    Returns:
        TrialStep: Named tuple with fields:
            - ``state_high``: 5th-order state at ``t + h``.
            - ``state_low``: 4th-order state at ``t + h``.
            - ``error_estimate``: RMS-normalized error.
            - ``k_last``: Derivative at ``(t + h, state_high)``.
            - ``finite``: Whether all stages and solutions are finite.
            - ``singular``: Whether any stage state is singular.

    Examples:
        ```python
        import jax.numpy as jnp
        from orbitprop.constants import GM_EARTH
        from orbitprop.dynamics import TwoBodyDynamics
        from orbitprop.integrators import dp54_trial_step
        dynamics = TwoBodyDynamics(mu=GM_EARTH)
        x0 = jnp.array([7000.0, 0.0, 0.0, 0.0, 7.546, 0.0])
        trial = dp54_trial_step(dynamics, 0.0, x0, 10.0, 1e-8, 1e-6)
        trial.error_estimate
        ```
    """
    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    state = jnp.asarray(state, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    f = dynamics.derivative

    k0 = f(t, state) if k_first is None else jnp.asarray(k_first, dtype=dtype)

    s1 = state + h * _A1[0] * k0
    k1 = f(t + _C[1] * h, s1)
    s2 = state + h * (_A2[0] * k0 + _A2[1] * k1)
    k2 = f(t + _C[2] * h, s2)
    s3 = state + h * (_A3[0] * k0 + _A3[1] * k1 + _A3[2] * k2)
    k3 = f(t + _C[3] * h, s3)
    s4 = state + h * (_A4[0] * k0 + _A4[1] * k1 + _A4[2] * k2 + _A4[3] * k3)
    k4 = f(t + _C[4] * h, s4)
    s5 = state + h * (
        _A5[0] * k0 + _A5[1] * k1 + _A5[2] * k2 + _A5[3] * k3 + _A5[4] * k4
    )
    k5 = f(t + _C[5] * h, s5)

    # 5th-order solution (primary); _B_HIGH[1] = _B_HIGH[6] = 0
    state_high = state + h * (
        _B_HIGH[0] * k0
        + _B_HIGH[2] * k2
        + _B_HIGH[3] * k3
        + _B_HIGH[4] * k4
        + _B_HIGH[5] * k5
    )
    k6 = f(t + _C[6] * h, state_high)

    # 4th-order solution (for error estimation)
    state_low = state + h * (
        _B_LOW[0] * k0
        + _B_LOW[2] * k2
        + _B_LOW[3] * k3
        + _B_LOW[4] * k4
        + _B_LOW[5] * k5
        + _B_LOW[6] * k6
    )

    error = compute_error_norm(state_high - state_low, state_high, state, abs_tol, rel_tol)

    stage_states = jnp.stack([state, s1, s2, s3, s4, s5, state_high])
    singular = jnp.any(jax.vmap(dynamics.is_singular)(stage_states))

    finite = (
        jnp.all(jnp.isfinite(jnp.stack([k0, k1, k2, k3, k4, k5, k6])))
        & jnp.all(jnp.isfinite(state_high))
        & jnp.all(jnp.isfinite(state_low))
    )

    return TrialStep(
        state_high=state_high,
        state_low=state_low,
        error_estimate=error,
        k_last=k6,
        finite=finite,
        singular=singular,
    )


# Compiled once per (hashable) dynamics model and input signature.
dp54_trial_step_jit = jax.jit(dp54_trial_step, static_argnums=(0,))
