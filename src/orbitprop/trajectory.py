"""Trajectory containers produced by a propagation.

:class:`TrajectoryRecorder` accumulates accepted ``(t, state)`` samples
while the integrator runs.  It is append-only and enforces the sample
invariants as points arrive: every component finite, and time strictly
monotone in the direction of propagation.  :meth:`TrajectoryRecorder.to_trajectory`
freezes the samples into an immutable :class:`Trajectory` that the caller
owns.

No interpolation between samples is performed; a trajectory holds exactly
the accepted integrator steps.
"""

from __future__ import annotations

import math
from typing import NamedTuple

import jax.numpy as jnp
import numpy as np
import polars as pl
from jax import Array
from jax.typing import ArrayLike

from orbitprop.config import get_dtype
from orbitprop.integrators._types import IntegrationStats
from orbitprop.state import StateVector

_STATE_COLUMNS = ("x", "y", "z", "vx", "vy", "vz")


class TrajectorySample(NamedTuple):
    """A single accepted point of a trajectory.

    Attributes:
        t: Sample time.
        state: State at *t* as a length-6 array.
    """

    t: float
    state: Array


class Trajectory:
    """Immutable, ordered sequence of accepted propagation samples.

    Times are stored in float64 regardless of the configured state dtype,
    so the last time equals the requested end time exactly.

    Args:
        times: Sample times, shape ``(N,)``, strictly monotone.
        states: Sample states, shape ``(N, 6)``.
        stats: Work counters of the propagation that produced the samples.

    Examples:
        ```python
        traj = propagate(...)
        traj.final_time, traj.final_state
        for t, state in traj:
            ...
        ```
    """

    __slots__ = ('_times', '_states', '_stats')

    def __init__(
        self,
        times: ArrayLike,
        states: ArrayLike,
        stats: IntegrationStats | None = None,
    ) -> None:
        times = jnp.asarray(times, dtype=jnp.float64).reshape(-1)
        states = jnp.asarray(states, dtype=get_dtype()).reshape(-1, 6)
        if times.shape[0] != states.shape[0]:
            raise ValueError(
                f"times and states must have the same length, "
                f"got {times.shape[0]} and {states.shape[0]}"
            )
        if times.shape[0] == 0:
            raise ValueError("A trajectory requires at least one sample")
        self._times = times
        self._states = states
        self._stats = stats if stats is not None else IntegrationStats()

    @property
    def times(self) -> Array:
        """Sample times, shape ``(N,)``."""
        return self._times

    @property
    def states(self) -> Array:
        """Sample states, shape ``(N, 6)``."""
        return self._states

    @property
    def stats(self) -> IntegrationStats:
        """Work counters and terminal status of the propagation."""
        return self._stats

    @property
    def initial_time(self) -> float:
        return float(self._times[0])

    @property
    def initial_state(self) -> StateVector:
        return StateVector.from_array(self._states[0])

    @property
    def final_time(self) -> float:
        """Time of the last sample."""
        return float(self._times[-1])

    @property
    def final_state(self) -> StateVector:
        """State of the last sample."""
        return StateVector.from_array(self._states[-1])

    @property
    def samples(self) -> list[TrajectorySample]:
        """All samples as a list of :class:`TrajectorySample`."""
        return list(self)

    def __len__(self) -> int:
        return int(self._times.shape[0])

    def __getitem__(self, index: int) -> TrajectorySample:
        return TrajectorySample(t=float(self._times[index]), state=self._states[index])

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def to_polars(self) -> pl.DataFrame:
        """Return the samples as a DataFrame with columns ``t, x, y, z, vx, vy, vz``."""
        states = np.asarray(self._states)
        data = {"t": np.asarray(self._times)}
        for i, name in enumerate(_STATE_COLUMNS):
            data[name] = states[:, i]
        return pl.DataFrame(data)

    def __repr__(self):
        return (
            f"Trajectory(samples={len(self)}, t=[{self.initial_time}, "
            f"{self.final_time}], status={self._stats.status.value})"
        )


class TrajectoryRecorder:
    """Append-only accumulator of accepted samples.

    Args:
        direction: ``1.0`` for forward propagation (increasing time) or
            ``-1.0`` for backward propagation.
    """

    def __init__(self, direction: float = 1.0) -> None:
        if direction not in (1.0, -1.0):
            raise ValueError(f"direction must be 1.0 or -1.0, got {direction}")
        self._direction = direction
        self._times: list[float] = []
        self._states: list[Array] = []

    @property
    def direction(self) -> float:
        return self._direction

    def append(self, t: float, state: ArrayLike) -> None:
        """Record an accepted sample.

        Args:
            t: Sample time.
            state: Length-6 state at *t*.

        Raises:
            ValueError: If *t* or any state component is not finite, or if
                *t* does not strictly continue the direction of time.
        """
        t = float(t)
        state = jnp.asarray(state, dtype=get_dtype()).reshape(-1)
        if state.shape[0] != 6:
            raise ValueError(f"state must have 6 components, got {state.shape[0]}")
        if not math.isfinite(t) or not bool(jnp.all(jnp.isfinite(state))):
            raise ValueError(f"Refusing to record non-finite sample at t={t}")
        if self._times and (t - self._times[-1]) * self._direction <= 0.0:
            raise ValueError(
                f"Sample time {t} does not advance past {self._times[-1]}"
            )
        self._times.append(t)
        self._states.append(state)

    def __len__(self) -> int:
        return len(self._times)

    @property
    def samples(self) -> list[TrajectorySample]:
        """Recorded samples in order."""
        return [TrajectorySample(t, s) for t, s in zip(self._times, self._states)]

    @property
    def last(self) -> TrajectorySample | None:
        """Most recent sample, or ``None`` if nothing has been recorded."""
        if not self._times:
            return None
        return TrajectorySample(self._times[-1], self._states[-1])

    def to_trajectory(self, stats: IntegrationStats | None = None) -> Trajectory:
        """Freeze the recorded samples into a :class:`Trajectory`.

        Raises:
            ValueError: If no sample has been recorded.
        """
        if not self._times:
            raise ValueError("Cannot build a trajectory from an empty recorder")
        return Trajectory(
            jnp.asarray(self._times, dtype=jnp.float64),
            jnp.stack(self._states),
            stats,
        )
