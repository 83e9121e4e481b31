import jax.numpy as jnp
import pytest

from orbitprop.config import set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    float64 is the package default, but tests that switch dtype (e.g.
    test_config.py) must not leak their setting into other tests running
    in the same pytest-xdist worker.
    """
    set_dtype(jnp.float64)
    yield
    set_dtype(jnp.float64)
