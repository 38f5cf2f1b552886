"""Bogacki-Shampine 3(2) embedded integrator.

Four-stage explicit Runge-Kutta pair with the first-same-as-last (FSAL)
property: the last stage ``k4 = f(x + h, y_3)`` is the first stage of the
next step.

.. math::

    \\begin{array}{c|cccc}
    0   &     &     &     &     \\\\
    1/2 & 1/2 &     &     &     \\\\
    3/4 &  0  & 3/4 &     &     \\\\
    1   & 2/9 & 1/3 & 4/9 &     \\\\
    \\hline
        & 2/9 & 1/3 & 4/9 &  0  \\\\
        & 7/24 & 1/4 & 1/3 & 1/8
    \\end{array}

The 3rd-order solution is propagated and the 2nd-order one only feeds the
error estimate. :func:`bogacki_shampine_step` reports the suggested next
step, but :func:`bogacki_shampine_solve` keeps ``h`` fixed.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._adaptive import compute_error_norm, compute_next_step_size
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import AdaptiveConfig, StepResult

_C = (0.0, 1.0 / 2.0, 3.0 / 4.0, 1.0)
_B_HIGH = (2.0 / 9.0, 1.0 / 3.0, 4.0 / 9.0)
_B_LOW = (7.0 / 24.0, 1.0 / 4.0, 1.0 / 3.0, 1.0 / 8.0)


def bogacki_shampine_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    config: AdaptiveConfig | None = None,
) -> StepResult:
    """Perform a single Bogacki-Shampine step.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.
        config: Controls the ``dt_next`` suggestion. Uses default
            :class:`AdaptiveConfig` if ``None``.

    Returns:
        StepResult: 3rd-order state at ``x + h``, ``max|y3 - y2|`` as
        ``error_estimate`` and the order-2 step-size prediction as
        ``dt_next``.
    """
    if config is None:
        config = AdaptiveConfig()

    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    k1 = f(x, y)
    k2 = f(x + _C[1] * h, y + h * 0.5 * k1)
    k3 = f(x + _C[2] * h, y + h * 0.75 * k2)
    y3 = y + h * (_B_HIGH[0] * k1 + _B_HIGH[1] * k2 + _B_HIGH[2] * k3)
    k4 = f(x + h, y3)
    y2 = y + h * (_B_LOW[0] * k1 + _B_LOW[1] * k2 + _B_LOW[2] * k3 + _B_LOW[3] * k4)

    error = compute_error_norm(y3, y2)
    dt_next = compute_next_step_size(
        error,
        h,
        config.tolerance,
        2.0,
        config.safety_factor,
        config.min_step,
        config.max_step,
    )

    return StepResult(state=y3, dt_used=h, error_estimate=error, dt_next=dt_next)


def bogacki_shampine_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with fixed-step Bogacki-Shampine.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments and
    raised errors.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return bogacki_shampine_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "bogacki_shampine")
