"""The state module provides the ``StateVector`` value type.

A ``StateVector`` holds the six Cartesian components of a body's state
relative to the central attractor: position ``(x, y, z)`` followed by
velocity ``(vx, vy, vz)``, in whatever consistent distance/time unit pair
the caller chooses.  It is immutable; arithmetic returns new instances and
is componentwise.

The class is registered as a JAX pytree, so it can be passed through
``jax.jit``, ``jax.vmap`` and ``jax.tree_util`` utilities unchanged.
Internally the integrators work on plain length-6 arrays; use
:meth:`StateVector.to_array` and :meth:`StateVector.from_array` at the
boundary.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from orbitprop.config import get_dtype

_STATE_SIZE = 6

_COMPONENT_NAMES = ("x", "y", "z", "vx", "vy", "vz")


class StateVector:
    """Immutable 6-element Cartesian state ``[x, y, z, vx, vy, vz]``.

    Constructors:
        StateVector(x, y, z, vx, vy, vz)
        StateVector.from_array(jnp.array([...]))

    Supports ``a + b``, ``a - b``, ``k * a``, ``a * k`` and ``-a``, all
    componentwise.  Indexing and iteration yield the six components.

    Examples:
        ```python
        from orbitprop import StateVector
        s = StateVector(7000.0, 0.0, 0.0, 0.0, 7.5, 0.0)
        s.position
        (2.0 * s).x
        ```
    """

    __slots__ = ('_data',)

    def __init__(
        self,
        x: float,
        y: float,
        z: float,
        vx: float,
        vy: float,
        vz: float,
    ) -> None:
        self._data = jnp.asarray([x, y, z, vx, vy, vz], dtype=get_dtype())

    @classmethod
    def _from_internal(cls, data):
        """Wrap an existing array without copying or validation.

        Used by pytree unflatten (where *data* may be a tracer) and by the
        arithmetic operators.
        """
        obj = object.__new__(cls)
        obj._data = data
        return obj

    @classmethod
    def from_array(cls, values: ArrayLike) -> StateVector:
        """Build a StateVector from any length-6 array-like.

        Args:
            values: ``[x, y, z, vx, vy, vz]``.

        Returns:
            StateVector: New state.

        Raises:
            ValueError: If *values* does not hold exactly six elements.
        """
        data = jnp.asarray(values, dtype=get_dtype()).reshape(-1)
        if data.shape[0] != _STATE_SIZE:
            raise ValueError(
                f"StateVector requires exactly {_STATE_SIZE} components, "
                f"got {data.shape[0]}"
            )
        return cls._from_internal(data)

    def to_array(self) -> Array:
        """Return the state as a length-6 ``jax.Array``."""
        return self._data

    # Component access

    @property
    def position(self) -> Array:
        """Position vector ``[x, y, z]``."""
        return self._data[:3]

    @property
    def velocity(self) -> Array:
        """Velocity vector ``[vx, vy, vz]``."""
        return self._data[3:]

    @property
    def x(self) -> Array:
        return self._data[0]

    @property
    def y(self) -> Array:
        return self._data[1]

    @property
    def z(self) -> Array:
        return self._data[2]

    @property
    def vx(self) -> Array:
        return self._data[3]

    @property
    def vy(self) -> Array:
        return self._data[4]

    @property
    def vz(self) -> Array:
        return self._data[5]

    def is_finite(self) -> Array:
        """Return whether every component is finite."""
        return jnp.all(jnp.isfinite(self._data))

    def __len__(self) -> int:
        return _STATE_SIZE

    def __getitem__(self, index):
        return self._data[index]

    def __iter__(self):
        return iter(self._data)

    # Arithmetic operators

    def __add__(self, other: StateVector) -> StateVector:
        if not isinstance(other, StateVector):
            return NotImplemented
        return StateVector._from_internal(self._data + other._data)

    def __sub__(self, other: StateVector) -> StateVector:
        if not isinstance(other, StateVector):
            return NotImplemented
        return StateVector._from_internal(self._data - other._data)

    def __mul__(self, scale: float) -> StateVector:
        if isinstance(scale, StateVector):
            return NotImplemented
        return StateVector._from_internal(self._data * scale)

    def __rmul__(self, scale: float) -> StateVector:
        return self.__mul__(scale)

    def __neg__(self) -> StateVector:
        return StateVector._from_internal(-self._data)

    def scale(self, factor: float) -> StateVector:
        """Return a new state with every component multiplied by *factor*."""
        return self.__mul__(factor)

    # Comparison

    def __eq__(self, other):
        if not isinstance(other, StateVector):
            return NotImplemented
        return jnp.array_equal(self._data, other._data)

    def __ne__(self, other):
        if not isinstance(other, StateVector):
            return NotImplemented
        return ~self.__eq__(other)

    def __hash__(self):
        return hash(tuple(float(v) for v in self._data))

    # String representations

    def __repr__(self):
        parts = ", ".join(
            f"{name}={float(v)!r}" for name, v in zip(_COMPONENT_NAMES, self._data)
        )
        return f"StateVector({parts})"


def as_state_array(state: StateVector | ArrayLike) -> Array:
    """Coerce a StateVector or length-6 array-like to a state array.

    Args:
        state: A :class:`StateVector` or anything ``jnp.asarray`` accepts.

    Returns:
        jax.Array: Length-6 array in the configured dtype.

    Raises:
        ValueError: If the input does not hold exactly six elements.
    """
    if isinstance(state, StateVector):
        return jnp.asarray(state.to_array(), dtype=get_dtype())
    return StateVector.from_array(state).to_array()


# Register StateVector as a JAX pytree so it can be used with jit, vmap, etc.
jax.tree_util.register_pytree_node(
    StateVector,
    lambda s: ((s._data,), None),
    lambda _, children: StateVector._from_internal(*children),
)
