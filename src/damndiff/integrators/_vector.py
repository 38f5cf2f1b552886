"""Elementwise state arithmetic shared by the integrators.

Both helpers are pure and traceable. Shapes are checked eagerly (they are
static under JAX tracing): mismatched operands raise
:class:`~damndiff.errors.DimensionMismatch` instead of broadcasting or
truncating.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.errors import DimensionMismatch


def add_vec(a: ArrayLike, b: ArrayLike) -> Array:
    """Elementwise sum of two states of identical shape.

    Args:
        a: First operand.
        b: Second operand.

    Returns:
        jax.Array: ``a + b``.

    Raises:
        DimensionMismatch: If the shapes of *a* and *b* differ.

    Examples:
        ```python
        from damndiff.integrators import add_vec
        add_vec([1.0, 2.0], [0.5, 0.5])  # [1.5, 2.5]
        ```
    """
    a = jnp.asarray(a, dtype=get_dtype())
    b = jnp.asarray(b, dtype=get_dtype())
    if a.shape != b.shape:
        raise DimensionMismatch(f"Cannot add vectors of shapes {a.shape} and {b.shape}")
    return a + b


def vec_scalar_mul(a: ArrayLike, scalar: ArrayLike) -> Array:
    """Scale every component of a state by a scalar.

    Args:
        a: State to scale.
        scalar: Scalar factor.

    Returns:
        jax.Array: ``scalar * a`` with the shape of *a*.

    Raises:
        DimensionMismatch: If *scalar* is not 0-dimensional.
    """
    if jnp.ndim(scalar) != 0:
        raise DimensionMismatch(f"Expected a scalar factor, got shape {jnp.shape(scalar)}")
    a = jnp.asarray(a, dtype=get_dtype())
    return a * jnp.asarray(scalar, dtype=get_dtype())
