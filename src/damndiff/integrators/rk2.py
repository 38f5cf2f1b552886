"""Second-order Runge-Kutta integrator (RK2).

Two stages with Heun weights:

.. math::

    \\begin{array}{c|cc}
    0 &     &     \\\\
    1 &  1  &     \\\\
    \\hline
      & 1/2 & 1/2
    \\end{array}

``k1 = h f(x, y)``, ``k2 = h f(x + h, y + k1)``, ``y += (k1 + k2) / 2``.
Algebraically the same update as :mod:`~damndiff.integrators.heun`, written
in stage form.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import StepResult


def rk2_step(deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike) -> StepResult:
    """Perform a single RK2 step.

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

    k1 = h * f(x, y)
    k2 = h * f(x + h, y + k1)

    return StepResult(
        state=y + 0.5 * (k1 + k2),
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def rk2_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with RK2.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments and
    raised errors.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return rk2_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "rk2")
