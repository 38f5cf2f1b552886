"""Heun's method (explicit trapezoidal predictor-corrector).

An Euler predictor ``y* = y + h f(x, y)`` followed by a trapezoidal
corrector averaging the slopes at both ends of the step:

.. math::

    y_{n+1} = y_n + \\frac{h}{2}\\left(f(x_n, y_n) + f(x_n + h, y^*)\\right)

Second order.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import StepResult


def heun_step(deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike) -> StepResult:
    """Perform a single Heun predictor-corrector step.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state.
        h: Step size. May be negative for backward integration.

    Returns:
        StepResult: State at ``x + h``; ``error_estimate`` is 0.0 and
        ``dt_next`` equals ``h``.
    """
    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    slope = f(x, y)
    y_pred = y + h * slope
    y_new = y + 0.5 * h * (slope + f(x + h, y_pred))

    return StepResult(
        state=y_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def heun_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with Heun's method.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments and
    raised errors.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return heun_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "heun")
