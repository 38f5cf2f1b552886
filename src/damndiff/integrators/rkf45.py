"""Runge-Kutta-Fehlberg 4(5) adaptive integrator (RKF45).

Implements the Fehlberg embedded Runge-Kutta method with a 5th-order solution
for propagation and a 4th-order solution for error estimation. The method uses
6 stages per step.

Every step is accepted: the difference between the two embedded solutions
only sizes the *next* step (see :mod:`~damndiff.integrators._adaptive`).
:func:`rkf45_solve` repeats steps inside a bounded ``jax.lax.while_loop``
until ``x_target`` is reached, shortening the final step so that it lands
on the target exactly.

The Butcher tableau coefficients are taken from the standard Fehlberg
formulation:

- Nodes (c): [0, 1/4, 3/8, 12/13, 1, 1/2]
- 5th-order weights (b_high): [16/135, 0, 6656/12825, 28561/56430, -9/50, 2/55]
- 4th-order weights (b_low): [25/216, 0, 1408/2565, 2197/4104, -1/5, 0]
"""

from __future__ import annotations

import logging

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.errors import StepLimitExceeded
from damndiff.integrators._adaptive import compute_error_norm, compute_next_step_size
from damndiff.integrators._driver import resolve_grid
from damndiff.integrators._types import AdaptiveConfig, StepResult

logger = logging.getLogger(__name__)

# Butcher tableau coefficients as Python tuples (cast at call time).
# Nodes
_C = (0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0)

# Coupling coefficients (lower-triangular rows)
_A1 = (1.0 / 4.0,)
_A2 = (3.0 / 32.0, 9.0 / 32.0)
_A3 = (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0)
_A4 = (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0)
_A5 = (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0)

# 5th-order weights (propagated solution)
_B_HIGH = (16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0, -9.0 / 50.0, 2.0 / 55.0)

# 4th-order weights (error estimation)
_B_LOW = (25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0, -1.0 / 5.0, 0.0)


def rkf45_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    config: AdaptiveConfig | None = None,
) -> StepResult:
    """Perform a single RKF45 step and predict the next step size.

    The step of size ``h`` is always taken; the 5th-order solution is
    returned. Compatible with ``jax.jit`` and ``jax.vmap``.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.
        config: Adaptive step-size configuration. Uses default
            :class:`AdaptiveConfig` if ``None``.

    Returns:
        StepResult: Named tuple with fields:
            - ``state``: 5th-order solution at ``x + h``.
            - ``dt_used``: Always equals ``h``.
            - ``error_estimate``: ``max|y5 - y4|`` over the state.
            - ``dt_next``: ``h * (tolerance / error) ** 0.2`` scaled by
              ``config.safety_factor`` (1.0 by default),
              clamped to ``[min_step, max_step]``; ``h`` when the error
              is zero.

    Examples:
        ```python
        import jax.numpy as jnp
        from damndiff.integrators import rkf45_step
        def harmonic(x, y):
            return jnp.array([y[1], -y[0]])
        result = rkf45_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.1)
        result.state  # ~[cos(0.1), -sin(0.1)]
        ```
    """
    if config is None:
        config = AdaptiveConfig()

    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    k0 = f(x, y)
    k1 = f(x + _C[1] * h, y + h * _A1[0] * k0)
    k2 = f(x + _C[2] * h, y + h * (_A2[0] * k0 + _A2[1] * k1))
    k3 = f(x + _C[3] * h, y + h * (_A3[0] * k0 + _A3[1] * k1 + _A3[2] * k2))
    k4 = f(
        x + _C[4] * h,
        y + h * (_A4[0] * k0 + _A4[1] * k1 + _A4[2] * k2 + _A4[3] * k3),
    )
    k5 = f(
        x + _C[5] * h,
        y + h * (_A5[0] * k0 + _A5[1] * k1 + _A5[2] * k2 + _A5[3] * k3 + _A5[4] * k4),
    )

    y_high = y + h * (
        _B_HIGH[0] * k0 + _B_HIGH[2] * k2 + _B_HIGH[3] * k3 + _B_HIGH[4] * k4 + _B_HIGH[5] * k5
    )
    y_low = y + h * (_B_LOW[0] * k0 + _B_LOW[2] * k2 + _B_LOW[3] * k3 + _B_LOW[4] * k4)

    error = compute_error_norm(y_high, y_low)
    dt_next = compute_next_step_size(
        error,
        h,
        config.tolerance,
        4.0,
        config.safety_factor,
        config.min_step,
        config.max_step,
    )

    return StepResult(
        state=y_high,
        dt_used=h,
        error_estimate=error,
        dt_next=dt_next,
    )


def rkf45_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    config: AdaptiveConfig | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with adaptive RKF45.

    ``h`` (or ``(x_target - x0) / steps``) is only the initial step; each
    following step uses the previous step's ``dt_next``. The last step is
    shortened to end exactly at ``x_target``.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x0: Initial independent variable.
        y0: Initial state (scalar or 1-D vector).
        x_target: Independent variable to integrate to.
        h: Signed initial step size. Mutually exclusive with *steps*.
        steps: Derive the initial step as ``(x_target - x0) / steps``.
        config: Adaptive step-size configuration. Uses default
            :class:`AdaptiveConfig` if ``None``.

    Returns:
        jax.Array: State at ``x_target``, same shape as ``y0``.

    Raises:
        ZeroStepSize: If ``h == 0``.
        InvalidStepDirection: If ``h`` points away from ``x_target``.
        StepLimitExceeded: If ``x_target`` is not reached within
            ``config.max_steps`` steps.

    Examples:
        ```python
        from damndiff.integrators import rkf45_solve
        rkf45_solve(lambda x, y: x + y, 0.0, 1.0, 1.0, h=0.1)  # ~2e - 2
        ```
    """
    if config is None:
        config = AdaptiveConfig()

    h0, n = resolve_grid(x0, x_target, h, steps)
    dtype = get_dtype()
    y0 = jnp.asarray(y0, dtype=dtype)
    if n == 0:
        return y0

    f = as_derivative(deriv)
    x_end = jnp.asarray(x_target, dtype=dtype)

    # Carry: (x, y, h, n_steps, done)
    def cond_fn(carry):
        _x, _y, _h, n_steps, done = carry
        return (~done) & (n_steps < config.max_steps)

    def body_fn(carry):
        x, y, h_cur, n_steps, _done = carry
        remaining = x_end - x
        last = jnp.abs(h_cur) >= jnp.abs(remaining)
        h_eff = jnp.where(last, remaining, h_cur)
        result = rkf45_step(f, x, y, h_eff, config)
        x_new = jnp.where(last, x_end, x + h_eff)
        return (x_new, result.state, result.dt_next, n_steps + 1, last)

    init_carry = (
        jnp.asarray(x0, dtype=dtype),
        y0,
        jnp.asarray(h0, dtype=dtype),
        jnp.asarray(0, dtype=jnp.int32),
        jnp.asarray(False),
    )

    _x, y_out, _h, n_steps, done = jax.lax.while_loop(cond_fn, body_fn, init_carry)

    if not bool(done):
        raise StepLimitExceeded(
            f"rkf45 did not reach x_target={float(x_target)} within "
            f"{config.max_steps} steps"
        )

    logger.debug("rkf45: reached x=%g in %d steps", float(x_target), int(n_steps))
    return y_out
