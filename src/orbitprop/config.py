"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
throughout orbitprop.  The default is ``jnp.float64``: importing this module
enables JAX's 64-bit mode (``jax_enable_x64``), since mixed absolute/relative
error control on heliocentric distances (~1e8 km) at ``abs_tol = 1e-8`` is
meaningless in single precision.

Switching to ``jnp.float32`` is still allowed, e.g. for quick GPU/TPU
experiments with loose tolerances.  Call ``set_dtype`` **before** any
propagation; the JIT-compiled trial step is retraced when input dtypes
change.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

jax.config.update("jax_enable_x64", True)
_dtype = jnp.float64


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for orbitprop.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is (re-)enabled via
    ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.

    Examples:
        ```python
        import jax.numpy as jnp
        from orbitprop import set_dtype
        set_dtype(jnp.float32)
        ```
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float64``).
    """
    return _dtype
