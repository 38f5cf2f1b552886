"""Adams-Moulton corrector applied to an Euler lookahead.

The implicit two-step Adams-Moulton weights ``(5, 8, -1) / 12`` are used
in a self-starting form: the unknown end-of-step slope comes from an
explicit Euler predictor and the trailing history term is dropped.

.. math::

    f_0 = f(x_n, y_n), \\quad f_1 = f(x_n + h, y_n + h f_0)

    y_{n+1} = y_n + \\frac{h}{12} \\left(5 f_1 + 8 f_0\\right)

The weights sum to 13/12, so the scheme is first-order consistent only up
to that factor; it is kept for compatibility with existing results rather
than as a production-grade corrector.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import StepResult


def adams_moulton_step(
    deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike
) -> StepResult:
    """Perform a single lookahead Adams-Moulton step.

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
        state=y + h * (5.0 * f1 + 8.0 * f0) / 12.0,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def adams_moulton_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with lookahead Adams-Moulton.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments and
    raised errors.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return adams_moulton_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "adams_moulton")
