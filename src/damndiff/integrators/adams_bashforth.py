"""Two-step Adams-Bashforth with a one-step lookahead.

A classic AB2 formula needs the slope at the previous node.  This variant
is self-starting: it evaluates the slope at the current node and at an
Euler lookahead node and combines them with the AB2 weights:

.. math::

    f_0 = f(x_n, y_n), \\quad f_1 = f(x_n + h, y_n + h f_0)

    y_{n+1} = y_n + h \\left(\\tfrac{3}{2} f_1 - \\tfrac{1}{2} f_0\\right)

No history is carried between steps, so the method is a one-step scheme
and runs under the same fixed-step driver as the Runge-Kutta methods.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import StepResult


def adams_bashforth_step(
    deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike
) -> StepResult:
    """Perform a single lookahead Adams-Bashforth step.

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

    f0 = f(x, y)
    f1 = f(x + h, y + h * f0)

    return StepResult(
        state=y + h * (1.5 * f1 - 0.5 * f0),
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def adams_bashforth_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with lookahead Adams-Bashforth.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments and
    raised errors.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return adams_bashforth_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "adams_bashforth")
