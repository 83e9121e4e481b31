"""Tests for the orbitprop.config module."""

import jax.numpy as jnp
import pytest

from orbitprop.config import get_dtype, set_dtype
from orbitprop.constants import GM_EARTH, R_EARTH
from orbitprop.orbits import orbital_period
from orbitprop.state import StateVector


class TestGetSetDtype:
    def test_default_dtype(self):
        assert get_dtype() == jnp.float64

    def test_x64_enabled(self):
        """Importing orbitprop enables JAX 64-bit mode."""
        assert jnp.zeros(1, dtype=jnp.float64).dtype == jnp.float64

    def test_set_float32(self):
        set_dtype(jnp.float32)
        assert get_dtype() == jnp.float32

    def test_set_float16(self):
        set_dtype(jnp.float16)
        assert get_dtype() == jnp.float16

    def test_set_bfloat16(self):
        set_dtype(jnp.bfloat16)
        assert get_dtype() == jnp.bfloat16

    def test_roundtrip(self):
        for dtype in (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64):
            set_dtype(dtype)
            assert get_dtype() == dtype

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.int32)

    def test_invalid_dtype_string_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype("float32")


class TestDtypePropagation:
    def test_state_vector_follows_dtype(self):
        set_dtype(jnp.float32)
        s = StateVector(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
        assert s.to_array().dtype == jnp.float32

    def test_state_vector_default_float64(self):
        s = StateVector(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
        assert s.to_array().dtype == jnp.float64

    def test_orbit_functions_follow_dtype(self):
        set_dtype(jnp.float32)
        T = orbital_period(R_EARTH + 500.0, GM_EARTH)
        assert T.dtype == jnp.float32
