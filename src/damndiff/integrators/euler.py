"""Explicit Euler integrator.

The simplest one-stage method, ``y_{n+1} = y_n + h f(x_n, y_n)``. First
order: the global error is :math:`O(h)`. Works unchanged for scalar
states and ODE systems.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import StepResult
from damndiff.integrators._vector import add_vec, vec_scalar_mul


def euler_step(deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike) -> StepResult:
    """Perform a single explicit Euler step.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx`` (callable or ``eval`` object).
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.

    Returns:
        StepResult: State at ``x + h``; ``error_estimate`` is 0.0 and
        ``dt_next`` equals ``h``.

    Examples:
        ```python
        from damndiff.integrators import euler_step
        result = euler_step(lambda x, y: -y, 0.0, 1.0, 0.1)
        result.state  # 0.9
        ```
    """
    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    y_new = add_vec(y, vec_scalar_mul(f(x, y), h))

    return StepResult(
        state=y_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def euler_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with explicit Euler.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x0: Initial independent variable.
        y0: Initial state (scalar or 1-D vector).
        x_target: Independent variable to integrate to.
        h: Signed step size. Mutually exclusive with *steps*.
        steps: Number of equal steps between ``x0`` and ``x_target``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.

    Raises:
        ZeroStepSize: If ``h == 0``.
        InvalidStepDirection: If ``h`` points away from ``x_target``.
        DimensionMismatch: If ``deriv`` returns a differently shaped state.

    Examples:
        ```python
        from damndiff.integrators import euler_solve
        euler_solve(lambda x, y: -y, 0.0, 1.0, 1.0, h=0.01)  # ~0.3660
        ```
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return euler_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "euler")
