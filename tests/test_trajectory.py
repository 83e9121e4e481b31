"""Tests for the orbitprop.trajectory module."""

import jax.numpy as jnp
import polars as pl
import pytest

from orbitprop.integrators import IntegrationStats, IntegratorStatus
from orbitprop.state import StateVector
from orbitprop.trajectory import Trajectory, TrajectoryRecorder, TrajectorySample


def _state(k=0.0):
    return jnp.array([1.0 + k, 2.0, 3.0, 0.1, 0.2, 0.3])


class TestTrajectoryRecorder:
    def test_append_and_len(self):
        rec = TrajectoryRecorder()
        assert len(rec) == 0
        assert rec.last is None
        rec.append(0.0, _state())
        rec.append(1.5, _state(1.0))
        assert len(rec) == 2
        assert rec.last.t == 1.5
        assert jnp.allclose(rec.last.state, _state(1.0))

    def test_samples_ordered(self):
        rec = TrajectoryRecorder()
        for i in range(4):
            rec.append(float(i), _state(i))
        assert [s.t for s in rec.samples] == [0.0, 1.0, 2.0, 3.0]
        assert all(isinstance(s, TrajectorySample) for s in rec.samples)

    def test_rejects_non_increasing_time(self):
        rec = TrajectoryRecorder()
        rec.append(1.0, _state())
        with pytest.raises(ValueError, match="does not advance"):
            rec.append(1.0, _state())
        with pytest.raises(ValueError, match="does not advance"):
            rec.append(0.5, _state())

    def test_backward_direction(self):
        rec = TrajectoryRecorder(direction=-1.0)
        rec.append(10.0, _state())
        rec.append(5.0, _state())
        with pytest.raises(ValueError):
            rec.append(6.0, _state())
        assert rec.direction == -1.0

    def test_invalid_direction(self):
        with pytest.raises(ValueError, match="direction"):
            TrajectoryRecorder(direction=0.0)

    def test_rejects_non_finite_state(self):
        rec = TrajectoryRecorder()
        with pytest.raises(ValueError, match="non-finite"):
            rec.append(0.0, jnp.array([jnp.nan, 0.0, 0.0, 0.0, 0.0, 0.0]))

    def test_rejects_non_finite_time(self):
        rec = TrajectoryRecorder()
        with pytest.raises(ValueError, match="non-finite"):
            rec.append(float("inf"), _state())

    def test_rejects_wrong_size(self):
        rec = TrajectoryRecorder()
        with pytest.raises(ValueError, match="6 components"):
            rec.append(0.0, jnp.ones(3))

    def test_empty_to_trajectory_raises(self):
        with pytest.raises(ValueError, match="empty"):
            TrajectoryRecorder().to_trajectory()

    def test_to_trajectory(self):
        rec = TrajectoryRecorder()
        rec.append(0.0, _state())
        rec.append(2.0, _state(1.0))
        stats = IntegrationStats(1, 0, 7, IntegratorStatus.CONVERGED)
        traj = rec.to_trajectory(stats)
        assert len(traj) == 2
        assert traj.stats == stats


class TestTrajectory:
    def _traj(self):
        times = jnp.array([0.0, 1.0, 86400.0])
        states = jnp.stack([_state(0.0), _state(1.0), _state(2.0)])
        return Trajectory(times, states, IntegrationStats(status=IntegratorStatus.CONVERGED))

    def test_shapes(self):
        traj = self._traj()
        assert traj.times.shape == (3,)
        assert traj.states.shape == (3, 6)
        assert traj.times.dtype == jnp.float64

    def test_endpoints(self):
        traj = self._traj()
        assert traj.initial_time == 0.0
        assert traj.final_time == 86400.0
        assert isinstance(traj.final_state, StateVector)
        assert float(traj.final_state.x) == pytest.approx(3.0)
        assert float(traj.initial_state.x) == pytest.approx(1.0)

    def test_indexing_and_iteration(self):
        traj = self._traj()
        first = traj[0]
        assert first.t == 0.0
        assert jnp.allclose(first.state, _state())
        assert [s.t for s in traj] == [0.0, 1.0, 86400.0]
        assert len(traj.samples) == 3

    def test_default_stats(self):
        traj = Trajectory(jnp.array([0.0]), _state()[None, :])
        assert traj.stats.status is IntegratorStatus.INITIALIZING

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="same length"):
            Trajectory(jnp.array([0.0, 1.0]), _state()[None, :])

    def test_empty(self):
        with pytest.raises(ValueError, match="at least one"):
            Trajectory(jnp.zeros(0), jnp.zeros((0, 6)))

    def test_to_polars(self):
        df = self._traj().to_polars()
        assert isinstance(df, pl.DataFrame)
        assert df.columns == ["t", "x", "y", "z", "vx", "vy", "vz"]
        assert df.height == 3
        assert df["t"][-1] == 86400.0
        assert df["x"][2] == pytest.approx(3.0)

    def test_repr(self):
        assert "converged" in repr(self._traj())
