"""Derivative interfaces accepted by every damndiff integrator.

A derivative supplies the right-hand side of the IVP ``dy/dx = f(x, y)``.
Two equivalent shapes are accepted wherever an integrator asks for
``deriv``:

- a plain callable ``f(x, y) -> dy``, e.g. a function or closure;
- any object exposing ``eval(x, y) -> dy`` (see :class:`ScalarDerivative`
  and :class:`SystemDerivative`).

Integrators never subclass or inspect the derivative beyond that.  The
callback must be written with ``jax.numpy`` so it can be traced inside
``jax.lax`` loops.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, Union, runtime_checkable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.errors import DimensionMismatch


@runtime_checkable
class ScalarDerivative(Protocol):
    """Derivative of a scalar ODE: ``eval(x, y) -> dy/dx`` with scalar ``y``."""

    def eval(self, x: ArrayLike, y: ArrayLike) -> ArrayLike: ...


@runtime_checkable
class SystemDerivative(Protocol):
    """Derivative of an ODE system.

    ``eval(x, y) -> dy/dx`` where ``y`` is a 1-D state vector and the
    result has the same length.
    """

    def eval(self, x: ArrayLike, y: ArrayLike) -> ArrayLike: ...


Derivative = Union[Callable[[ArrayLike, ArrayLike], ArrayLike], ScalarDerivative, SystemDerivative]


def as_derivative(deriv: Derivative) -> Callable[[Array, Array], Array]:
    """Normalise a caller-supplied derivative into a checked callable.

    The returned function casts the derivative's output to the configured
    dtype and verifies that its shape equals the shape of the state it was
    evaluated at.  Shapes are static under JAX tracing, so the check also
    runs inside ``jax.jit`` and ``jax.lax`` loops.

    Args:
        deriv: Callable ``f(x, y)`` or object with an ``eval(x, y)`` method.

    Returns:
        Callable ``f(x, y) -> jax.Array``.

    Raises:
        TypeError: If *deriv* is neither callable nor exposes ``eval``.
    """
    if getattr(deriv, "_damndiff_checked", False):
        return deriv

    fn = deriv.eval if isinstance(deriv, (ScalarDerivative, SystemDerivative)) else deriv
    if not callable(fn):
        raise TypeError(
            f"Derivative must be callable or expose eval(x, y), got {type(deriv).__name__}"
        )

    def f(x: Array, y: Array) -> Array:
        dy = jnp.asarray(fn(x, y), dtype=get_dtype())
        if dy.shape != jnp.shape(y):
            raise DimensionMismatch(
                f"Derivative returned shape {dy.shape} for a state of shape {jnp.shape(y)}"
            )
        return dy

    f._damndiff_checked = True
    return f
