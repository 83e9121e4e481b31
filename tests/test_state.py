"""Tests for the orbitprop.state module."""

import jax
import jax.numpy as jnp
import pytest

from orbitprop.state import StateVector, as_state_array


def _state():
    return StateVector(1.0, 2.0, 3.0, 0.1, 0.2, 0.3)


class TestConstruction:
    def test_components(self):
        s = _state()
        assert float(s.x) == 1.0
        assert float(s.y) == 2.0
        assert float(s.z) == 3.0
        assert float(s.vx) == pytest.approx(0.1)
        assert float(s.vy) == pytest.approx(0.2)
        assert float(s.vz) == pytest.approx(0.3)

    def test_position_velocity(self):
        s = _state()
        assert jnp.allclose(s.position, jnp.array([1.0, 2.0, 3.0]))
        assert jnp.allclose(s.velocity, jnp.array([0.1, 0.2, 0.3]))

    def test_from_array(self):
        s = StateVector.from_array([1.0, 2.0, 3.0, 0.1, 0.2, 0.3])
        assert bool(s == _state())

    def test_from_array_wrong_size(self):
        with pytest.raises(ValueError, match="exactly 6"):
            StateVector.from_array([1.0, 2.0, 3.0])

    def test_len_and_iter(self):
        s = _state()
        assert len(s) == 6
        assert [float(v) for v in s][:3] == [1.0, 2.0, 3.0]
        assert float(s[2]) == 3.0

    def test_is_finite(self):
        assert bool(_state().is_finite())
        assert not bool(StateVector(jnp.nan, 0.0, 0.0, 0.0, 0.0, 0.0).is_finite())

    def test_repr(self):
        assert repr(_state()).startswith("StateVector(x=1.0")


class TestArithmetic:
    def test_add(self):
        s = _state() + _state()
        assert jnp.allclose(s.to_array(), 2.0 * _state().to_array())

    def test_sub(self):
        s = _state() - _state()
        assert jnp.allclose(s.to_array(), jnp.zeros(6))

    def test_scale(self):
        a = 3.0 * _state()
        b = _state() * 3.0
        c = _state().scale(3.0)
        assert bool(a == b)
        assert bool(b == c)
        assert float(a.z) == pytest.approx(9.0)

    def test_neg(self):
        assert jnp.allclose((-_state()).to_array(), -_state().to_array())

    def test_immutable_operands(self):
        a = _state()
        _ = a + a
        assert float(a.x) == 1.0

    def test_inequality(self):
        assert bool(_state() != StateVector(0.0, 0.0, 0.0, 0.0, 0.0, 0.0))


class TestPytree:
    def test_tree_roundtrip(self):
        leaves, treedef = jax.tree_util.tree_flatten(_state())
        rebuilt = jax.tree_util.tree_unflatten(treedef, leaves)
        assert isinstance(rebuilt, StateVector)
        assert bool(rebuilt == _state())

    def test_jit(self):
        @jax.jit
        def double(s):
            return s + s

        out = double(_state())
        assert isinstance(out, StateVector)
        assert float(out.x) == pytest.approx(2.0)


class TestAsStateArray:
    def test_from_state_vector(self):
        arr = as_state_array(_state())
        assert arr.shape == (6,)

    def test_from_list(self):
        arr = as_state_array([1, 2, 3, 4, 5, 6])
        assert arr.dtype == jnp.float64

    def test_wrong_shape(self):
        with pytest.raises(ValueError):
            as_state_array(jnp.zeros(5))
