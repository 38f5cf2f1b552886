"""Forest-Ruth 4th-order symplectic integrator.

A drift-first composition of four drifts and three kicks:

.. math::

    \\theta = \\frac{1}{2 - 2^{1/3}}, \\quad
    c = \\left(\\tfrac{\\theta}{2}, \\tfrac{1-\\theta}{2},
              \\tfrac{1-\\theta}{2}, \\tfrac{\\theta}{2}\\right), \\quad
    d = (\\theta, 1 - 2\\theta, \\theta)

One step applies ``drift(c1 h), kick(d1 h), drift(c2 h), kick(d2 h),
drift(c3 h), kick(d3 h), drift(c4 h)``.  The middle kick has a negative
coefficient, so a step briefly moves backwards in ``x``.

Fourth order for separable systems whose rates do not depend on ``x``
(see :mod:`~damndiff.integrators._symplectic`).  An ``x``-dependent
position rate is integrated by a midpoint rule per drift, and any other
coupling reduces the method to first order.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._symplectic import drift, kick, position_mask
from damndiff.integrators._types import StepResult

_THETA = 1.0 / (2.0 - 2.0 ** (1.0 / 3.0))
_C = (0.5 * _THETA, 0.5 * (1.0 - _THETA), 0.5 * (1.0 - _THETA), 0.5 * _THETA)
_D = (_THETA, 1.0 - 2.0 * _THETA, _THETA)


def forest_ruth_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    n_position: int | None = None,
) -> StepResult:
    """Perform a single Forest-Ruth step.

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
    for c, d in zip(_C[:3], _D):
        y = drift(f, x_sub, y, c * h, mask)
        x_sub = x_sub + c * h
        y = kick(f, x_sub, y, d * h, mask)
    y = drift(f, x_sub, y, _C[3] * h, mask)

    return StepResult(
        state=y,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def forest_ruth_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    n_position: int | None = None,
) -> Array:
    """Integrate a partitioned system from ``x0`` to ``x_target`` with Forest-Ruth.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments
    and :func:`forest_ruth_step` for ``n_position``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    position_mask(jnp.asarray(y0), n_position)
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return forest_ruth_step(deriv, x, y, dt, n_position)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "forest_ruth")
