"""Yoshida 4th-order symplectic integrator.

Triple-jump composition of velocity-Verlet sub-steps of sizes
``w1 h, w0 h, w1 h`` with

.. math::

    w_1 = \\frac{1}{2 - 2^{1/3}}, \\qquad w_0 = -2^{1/3} w_1

so that ``2 w1 + w0 = 1`` and the third-order error terms cancel.

Fourth order for separable systems only (see
:mod:`~damndiff.integrators._symplectic`); Lotka-Volterra style coupling,
where a position rate depends on the positions, gives first order.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._symplectic import position_mask, velocity_verlet_substep
from damndiff.integrators._types import StepResult

_W1 = 1.0 / (2.0 - 2.0 ** (1.0 / 3.0))
_W0 = -(2.0 ** (1.0 / 3.0)) * _W1
_WEIGHTS = (_W1, _W0, _W1)


def yoshida4_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    n_position: int | None = None,
) -> StepResult:
    """Perform a single 4th-order Yoshida step.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx`` of a ``[q, p]`` system.
        x: Current independent variable.
        y: Current 1-D state ``[q, p]``.
        h: Step size. May be negative for backward integration.
        n_position: Number of leading position components. Defaults to
            ``len(y) // 2``.

    Returns:
        StepResult: State at ``x + h``; ``error_estimate`` is 0.0 and
        ``dt_next`` equals ``h``.

    Raises:
        DimensionMismatch: If ``y`` is not 1-D or ``n_position`` is out of
            range.
    """
    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)
    mask = position_mask(y, n_position)

    x_sub = x
    for w in _WEIGHTS:
        y = velocity_verlet_substep(f, x_sub, y, w * h, mask)
        x_sub = x_sub + w * h

    return StepResult(
        state=y,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def yoshida4_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    n_position: int | None = None,
) -> Array:
    """Integrate a partitioned system from ``x0`` to ``x_target`` with Yoshida-4.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments
    and :func:`yoshida4_step` for ``n_position``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    position_mask(jnp.asarray(y0), n_position)
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return yoshida4_step(deriv, x, y, dt, n_position)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "yoshida4")
