"""Threshold-gated quantized-state integrators (QSS1, QSS2, QSS3).

These are fixed-step approximations of quantized state system methods.
Each step computes a trial increment with an explicit Runge-Kutta method
of order 1 (Euler), 2 (Heun) or 3 (Kutta's third-order method) and commits
it component-wise only where ``|increment| >= delta_q``; the remaining
components hold their previous value.

With ``delta_q = 0`` every increment commits and the methods reduce to the
underlying Runge-Kutta scheme.  Large quanta make slowly varying
components stay flat until the derivative pushes them past the threshold,
which suits piecewise-constant inputs such as
:func:`~damndiff.models.create_quantized_step_input`.

:func:`qss_sys_solve` runs the order-2 gated step on a system and returns
every node of the solution.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import (
    resolve_grid,
    solve_fixed_step,
    solve_fixed_step_trajectory,
)
from damndiff.integrators._types import StepResult, Trajectory


def _check_delta_q(delta_q: float) -> float:
    delta_q = float(delta_q)
    if not delta_q >= 0.0:
        raise ValueError(f"delta_q must be non-negative, got {delta_q}")
    return delta_q


def _euler_increment(f: Callable, x: Array, y: Array, h: Array) -> Array:
    return h * f(x, y)


def _heun_increment(f: Callable, x: Array, y: Array, h: Array) -> Array:
    k1 = f(x, y)
    k2 = f(x + h, y + h * k1)
    return 0.5 * h * (k1 + k2)


def _kutta3_increment(f: Callable, x: Array, y: Array, h: Array) -> Array:
    k1 = f(x, y)
    k2 = f(x + 0.5 * h, y + 0.5 * h * k1)
    k3 = f(x + h, y - h * k1 + 2.0 * h * k2)
    return h * (k1 + 4.0 * k2 + k3) / 6.0


_INCREMENTS = {1: _euler_increment, 2: _heun_increment, 3: _kutta3_increment}


def _qss_step(
    order: int,
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    delta_q: float,
) -> StepResult:
    delta_q = _check_delta_q(delta_q)

    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    increment = _INCREMENTS[order](f, x, y, h)
    y_new = jnp.where(jnp.abs(increment) >= delta_q, y + increment, y)

    return StepResult(
        state=y_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def qss1_step(
    deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike, delta_q: float
) -> StepResult:
    """Perform a single QSS1 step (Euler increment, gated by ``delta_q``).

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.
        delta_q: Quantum. Components whose increment is smaller than this
            in magnitude keep their current value. Must be a concrete,
            non-negative number.

    Returns:
        StepResult: Gated state at ``x + h``; ``error_estimate`` is 0.0
        and ``dt_next`` equals ``h``.

    Raises:
        ValueError: If ``delta_q`` is negative.

    Examples:
        ```python
        from damndiff.integrators import qss1_step
        qss1_step(lambda x, y: -y, 0.0, 1.0, 0.1, delta_q=0.05).state  # 0.9
        qss1_step(lambda x, y: -y, 0.0, 1.0, 0.1, delta_q=0.5).state   # 1.0
        ```
    """
    return _qss_step(1, deriv, x, y, h, delta_q)


def qss2_step(
    deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike, delta_q: float
) -> StepResult:
    """Perform a single QSS2 step (Heun increment, gated by ``delta_q``).

    See :func:`qss1_step` for the arguments.
    """
    return _qss_step(2, deriv, x, y, h, delta_q)


def qss3_step(
    deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike, delta_q: float
) -> StepResult:
    """Perform a single QSS3 step (Kutta RK3 increment, gated by ``delta_q``).

    See :func:`qss1_step` for the arguments.
    """
    return _qss_step(3, deriv, x, y, h, delta_q)


def _qss_solve(order, deriv, x0, y0, x_target, h, steps, delta_q) -> Array:
    delta_q = _check_delta_q(delta_q)
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return _qss_step(order, deriv, x, y, dt, delta_q)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, f"qss{order}")


def qss1_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    delta_q: float,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with QSS1.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x0: Initial independent variable.
        y0: Initial state (scalar or 1-D vector).
        x_target: Independent variable to integrate to.
        h: Signed step size. Mutually exclusive with *steps*.
        steps: Number of equal steps between ``x0`` and ``x_target``.
        delta_q: Non-negative quantum gating each committed increment.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.

    Raises:
        ValueError: If ``delta_q`` is negative.
        ZeroStepSize: If ``h == 0``.
        InvalidStepDirection: If ``h`` points away from ``x_target``.
    """
    return _qss_solve(1, deriv, x0, y0, x_target, h, steps, delta_q)


def qss2_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    delta_q: float,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with QSS2.

    See :func:`qss1_solve` for the arguments and raised errors.
    """
    return _qss_solve(2, deriv, x0, y0, x_target, h, steps, delta_q)


def qss3_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    delta_q: float,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with QSS3.

    See :func:`qss1_solve` for the arguments and raised errors.
    """
    return _qss_solve(3, deriv, x0, y0, x_target, h, steps, delta_q)


def qss_sys_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    delta_q: float,
) -> Trajectory:
    """Integrate an ODE system with QSS2 and return the whole trajectory.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx`` of a system.
        x0: Initial independent variable.
        y0: Initial 1-D state vector.
        x_target: Independent variable to integrate to.
        h: Signed step size. Mutually exclusive with *steps*.
        steps: Number of equal steps between ``x0`` and ``x_target``.
        delta_q: Non-negative quantum gating each committed increment.

    Returns:
        Trajectory: ``n + 1`` nodes ``(x, y)`` starting at ``(x0, y0)``.

    Raises:
        ValueError: If ``delta_q`` is negative.
        ZeroStepSize: If ``h == 0``.
        InvalidStepDirection: If ``h`` points away from ``x_target``.

    Examples:
        ```python
        import jax.numpy as jnp
        from damndiff.integrators import qss_sys_solve
        traj = qss_sys_solve(lambda x, y: -y, 0.0, jnp.array([1.0, 2.0]), 1.0,
                             steps=10, delta_q=1e-3)
        traj.x.shape, traj.y.shape  # (11,), (11, 2)
        ```
    """
    delta_q = _check_delta_q(delta_q)
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return _qss_step(2, deriv, x, y, dt, delta_q)

    return solve_fixed_step_trajectory(step_fn, float(x0), y0, h, n, "qss_sys")
