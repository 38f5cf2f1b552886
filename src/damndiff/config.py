"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
for states and the independent variable throughout damndiff.  The default
is ``jnp.float32`` for GPU/TPU compatibility.  Switching to
``jnp.float64`` automatically enables JAX's 64-bit mode
(``jax_enable_x64``).

Call ``set_dtype`` **before** any JIT compilation, just like JAX's own
``jax.config.update("jax_enable_x64", True)``.  Under JIT, ``get_dtype()``
runs during tracing and its result is baked into the compiled program.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

_dtype = jnp.float32


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for damndiff.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is automatically
    enabled via ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
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
        The active float dtype (default ``jnp.float32``).
    """
    return _dtype


def get_step_count_tolerance() -> float:
    """Return the relative tolerance used when rounding step counts.

    A span/step ratio within this relative distance of an integer is
    treated as that integer, so a step size that was itself computed in
    the configured precision (e.g. ``jnp.float32(0.01)``) does not add a
    spurious extra step.

    - ``float16``:  1e-2
    - ``bfloat16``: 1e-2
    - ``float32``:  1e-5
    - ``float64``:  1e-9

    Returns:
        float: Relative tolerance.
    """
    if _dtype == jnp.float64:
        return 1e-9
    if _dtype == jnp.float32:
        return 1e-5
    # float16 and bfloat16
    return 1e-2
