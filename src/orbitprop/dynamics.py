"""Point-mass gravitational dynamics for two-body propagation.

Provides the acceleration of a body orbiting a single central attractor
located at the origin, and :class:`TwoBodyDynamics`, the
``(t, state) -> derivative`` model consumed by the integrators.

Dynamics models are frozen dataclasses: they are hashable, which lets the
integrator use them as static arguments of ``jax.jit`` so that each model
is compiled once and reused for every step of every propagation.

Any object implementing the :class:`DynamicsModel` protocol can be
propagated, e.g. a perturbed model wrapping :class:`TwoBodyDynamics`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from orbitprop.config import get_dtype
from orbitprop.errors import SingularState

DEFAULT_SINGULARITY_EPS = 1e-6


class DynamicsModel(Protocol):
    """Interface expected by the integrators.

    Both methods must be pure and JAX-traceable.
    """

    def derivative(self, t: ArrayLike, state: ArrayLike) -> Array:
        ...

    def is_singular(self, state: ArrayLike) -> Array:
        ...


def accel_point_mass(r_object: ArrayLike, mu: float) -> Array:
    """Acceleration due to a point mass located at the origin.

    Computes ``-mu * r / |r|^3``.  No singularity guard is applied; check
    :meth:`TwoBodyDynamics.is_singular` before trusting the result.

    Args:
        r_object: Position of the object.  Shape ``(3,)`` or ``(6,)``
            (only first 3 elements used).
        mu: Gravitational parameter of the attracting body, in units
            consistent with *r_object* (e.g. km^3/s^2 for km).

    Returns:
        Acceleration vector, shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from orbitprop.constants import GM_EARTH, R_EARTH
        from orbitprop.dynamics import accel_point_mass
        a = accel_point_mass(jnp.array([R_EARTH, 0.0, 0.0]), GM_EARTH)
        ```
    """
    r = jnp.asarray(r_object, dtype=get_dtype())[:3]
    r_norm = jnp.linalg.norm(r)
    return -mu * r / r_norm**3


@dataclass(frozen=True)
class TwoBodyDynamics:
    """Unperturbed two-body equations of motion.

    The state derivative is ``[v, -mu * r / |r|^3]``.  The model is
    stateless apart from its immutable parameters and is safe to share
    between concurrent propagations.

    Args:
        mu: Gravitational parameter of the central body (mass times the
            gravitational constant).  Must be positive and finite.
        singularity_eps: Position magnitude below which a state is
            considered singular (collision with the attractor).

    Examples:
        ```python
        import jax.numpy as jnp
        from orbitprop.constants import GM_SUN
        from orbitprop.dynamics import TwoBodyDynamics
        dynamics = TwoBodyDynamics(mu=GM_SUN)
        dx = dynamics(0.0, jnp.array([1.5e8, 0.0, 0.0, 0.0, 29.8, 0.0]))
        ```
    """

    mu: float
    singularity_eps: float = DEFAULT_SINGULARITY_EPS

    def __post_init__(self) -> None:
        # Plain floats keep the model hashable for jax.jit static arguments
        object.__setattr__(self, "mu", float(self.mu))
        object.__setattr__(self, "singularity_eps", float(self.singularity_eps))
        if not (math.isfinite(self.mu) and self.mu > 0.0):
            raise ValueError(f"mu must be positive and finite, got {self.mu}")
        if not (math.isfinite(self.singularity_eps) and self.singularity_eps > 0.0):
            raise ValueError(
                f"singularity_eps must be positive and finite, got {self.singularity_eps}"
            )

    def derivative(self, t: ArrayLike, state: ArrayLike) -> Array:
        """State derivative ``[vx, vy, vz, ax, ay, az]``.

        Args:
            t: Time (unused; the model is autonomous).
            state: ``[x, y, z, vx, vy, vz]``.

        Returns:
            jax.Array: Time-derivative of *state*.
        """
        state = jnp.asarray(state, dtype=get_dtype())
        a = accel_point_mass(state[:3], self.mu)
        return jnp.concatenate([state[3:6], a])

    def is_singular(self, state: ArrayLike) -> Array:
        """Return whether the position magnitude is below ``singularity_eps``."""
        state = jnp.asarray(state, dtype=get_dtype())
        return jnp.linalg.norm(state[:3]) < self.singularity_eps

    def checked_derivative(self, t: ArrayLike, state: ArrayLike) -> Array:
        """Evaluate :meth:`derivative` eagerly, refusing singular states.

        Not traceable; intended for one-off evaluations outside the
        integrator, which performs the same check on every stage.

        Raises:
            SingularState: If the position magnitude is below
                ``singularity_eps``.
        """
        if bool(self.is_singular(state)):
            raise SingularState(
                f"Position magnitude below {self.singularity_eps} at t={float(t)}",
                t=float(t),
            )
        return self.derivative(t, state)

    def __call__(self, t: ArrayLike, state: ArrayLike) -> Array:
        return self.derivative(t, state)
