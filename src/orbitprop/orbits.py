"""Two-body orbit quantities for an arbitrary central body.

This module provides the integrals of motion of the unperturbed two-body
problem, used to set up propagations and to check their quality:

- **Conserved quantities**: specific orbital energy and specific angular
  momentum, both constant along an exact two-body trajectory.
- **Orbit size and period**: semi-major axis and period from a state.
- **Element conversion**: Keplerian elements to a Cartesian state, with a
  JAX-traceable Kepler equation solver.

Every function takes the gravitational parameter ``mu`` explicitly, so any
consistent unit system works (e.g. km and km^3/s^2 for heliocentric
orbits).  All functions use JAX operations and are compatible with
``jax.jit``, ``jax.vmap``, and ``jax.grad``.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from orbitprop.config import get_dtype

# ──────────────────────────────────────────────
# Conserved quantities
# ──────────────────────────────────────────────


def specific_energy(state: ArrayLike, mu: float) -> Array:
    """Specific orbital energy ``v^2 / 2 - mu / r``.

    Accepts a single state ``(6,)`` or a batch ``(N, 6)``, e.g. the
    ``states`` array of a trajectory.

    Args:
        state: ``[x, y, z, vx, vy, vz]``.
        mu: Gravitational parameter of the central body.

    Returns:
        Specific energy, scalar or shape ``(N,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from orbitprop.constants import GM_EARTH
        from orbitprop.orbits import specific_energy
        eps = specific_energy(jnp.array([7000.0, 0.0, 0.0, 0.0, 7.546, 0.0]), GM_EARTH)
        ```
    """
    state = jnp.asarray(state, dtype=get_dtype())
    r = jnp.linalg.norm(state[..., :3], axis=-1)
    v_sq = jnp.sum(state[..., 3:6] ** 2, axis=-1)
    return 0.5 * v_sq - mu / r


def angular_momentum(state: ArrayLike) -> Array:
    """Specific angular momentum vector ``r x v``.

    Args:
        state: ``[x, y, z, vx, vy, vz]``, shape ``(6,)`` or ``(N, 6)``.

    Returns:
        Angular momentum vector, shape ``(3,)`` or ``(N, 3)``.
    """
    state = jnp.asarray(state, dtype=get_dtype())
    return jnp.cross(state[..., :3], state[..., 3:6])


# ──────────────────────────────────────────────
# Orbital period and semi-major axis
# ──────────────────────────────────────────────


def semimajor_axis_from_state(state: ArrayLike, mu: float) -> Array:
    """Semi-major axis from the vis-viva equation.

    Negative for hyperbolic states.

    Args:
        state: ``[x, y, z, vx, vy, vz]``.
        mu: Gravitational parameter of the central body.

    Returns:
        Semi-major axis, in the distance unit of *state*.
    """
    return -mu / (2.0 * specific_energy(state, mu))


def orbital_period(a: ArrayLike, mu: float) -> Array:
    """Compute the orbital period for semi-major axis *a*.

    Args:
        a: Semi-major axis.
        mu: Gravitational parameter of the central body.

    Returns:
        Orbital period, in the time unit implied by *mu*.

    Examples:
        ```python
        from orbitprop.constants import AU, GM_SUN
        from orbitprop.orbits import orbital_period
        T = orbital_period(AU, GM_SUN)  # ~3.156e7 s
        ```
    """
    a = jnp.asarray(a, dtype=get_dtype())
    return 2.0 * jnp.pi * jnp.sqrt(a**3 / mu)


def orbital_period_from_state(state: ArrayLike, mu: float) -> Array:
    """Compute the orbital period of a bound state via the vis-viva equation."""
    return orbital_period(semimajor_axis_from_state(state, mu), mu)


# ──────────────────────────────────────────────
# Element conversion
# ──────────────────────────────────────────────


def anomaly_mean_to_eccentric(anm_mean: ArrayLike, e: ArrayLike) -> Array:
    """Convert mean anomaly to eccentric anomaly.

    Solves Kepler's equation ``M = E - e * sin(E)`` for ``E`` using
    Newton-Raphson iteration implemented with ``jax.lax.fori_loop``
    for JAX traceability.

    Args:
        anm_mean: Mean anomaly. Units: *rad*
        e: Eccentricity, ``0 <= e < 1``.

    Returns:
        Eccentric anomaly in ``[0, 2pi)``. Units: *rad*
    """
    M = jnp.asarray(anm_mean, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    M = M % (2.0 * jnp.pi)

    # Initial guess: M for low eccentricity, pi for high eccentricity
    E0 = jnp.where(e < 0.8, M, jnp.pi)

    def newton_step(_, E):
        f = E - e * jnp.sin(E) - M
        return E - f / (1.0 - e * jnp.cos(E))

    return jax.lax.fori_loop(0, 10, newton_step, E0)


def state_koe_to_cartesian(x_oe: ArrayLike, mu: float, use_degrees: bool = False) -> Array:
    """Convert Keplerian orbital elements to a Cartesian state vector.

    Element ordering is ``[a, e, i, RAAN, omega, M]``: semi-major axis,
    eccentricity, inclination, right ascension of the ascending node,
    argument of periapsis and mean anomaly.

    Solves Kepler's equation to obtain the eccentric anomaly, then
    constructs position and velocity via the perifocal P and Q vectors
    (Montenbruck & Gill Eq. 2.43-2.44).

    Args:
        x_oe: Orbital elements. Semi-major axis in the distance unit of
            *mu*, angles in *rad* (or *deg* if ``use_degrees=True``).
        mu: Gravitational parameter of the central body.
        use_degrees: If ``True``, interpret angular elements as degrees.

    Returns:
        State ``[x, y, z, vx, vy, vz]``.

    Examples:
        ```python
        import jax.numpy as jnp
        from orbitprop.constants import AU, GM_SUN
        from orbitprop.orbits import state_koe_to_cartesian
        state = state_koe_to_cartesian(jnp.array([AU, 0.0167, 0.0, 0.0, 0.0, 0.0]), GM_SUN)
        ```

    References:
        O. Montenbruck and E. Gill, *Satellite Orbits*, 2012, Eq. 2.43-2.44.
    """
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())

    a, e, i, raan, omega, M = (x_oe[k] for k in range(6))

    if use_degrees:
        i = jnp.deg2rad(i)
        raan = jnp.deg2rad(raan)
        omega = jnp.deg2rad(omega)
        M = jnp.deg2rad(M)

    E = anomaly_mean_to_eccentric(M, e)

    cos_o = jnp.cos(omega)
    sin_o = jnp.sin(omega)
    cos_R = jnp.cos(raan)
    sin_R = jnp.sin(raan)
    cos_i = jnp.cos(i)
    sin_i = jnp.sin(i)

    P = jnp.array(
        [
            cos_o * cos_R - sin_o * cos_i * sin_R,
            cos_o * sin_R + sin_o * cos_i * cos_R,
            sin_o * sin_i,
        ]
    )

    Q = jnp.array(
        [
            -sin_o * cos_R - cos_o * cos_i * sin_R,
            -sin_o * sin_R + cos_o * cos_i * cos_R,
            cos_o * sin_i,
        ]
    )

    cos_E = jnp.cos(E)
    sin_E = jnp.sin(E)
    sqrt_1me2 = jnp.sqrt(1.0 - e * e)

    r_vec = a * (cos_E - e) * P + a * sqrt_1me2 * sin_E * Q
    r_mag = jnp.linalg.norm(r_vec)
    v_vec = (jnp.sqrt(mu * a) / r_mag) * (-sin_E * P + sqrt_1me2 * cos_E * Q)

    return jnp.concatenate([r_vec, v_vec])
