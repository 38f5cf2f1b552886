"""Classic 4th-order Runge-Kutta integrator (RK4).

Implements the standard four-stage, 4th-order explicit Runge-Kutta method
for numerical integration of ordinary differential equations and systems.
This is a fixed-step method with no adaptive step-size control.

The Butcher tableau for RK4 is:

.. math::

    \\begin{array}{c|cccc}
    0   &     &     &     &   \\\\
    1/2 & 1/2 &     &     &   \\\\
    1/2 &  0  & 1/2 &     &   \\\\
    1   &  0  &  0  &  1  &   \\\\
    \\hline
        & 1/6 & 1/3 & 1/3 & 1/6
    \\end{array}

The method achieves 4th-order accuracy, meaning the local truncation error
is :math:`O(h^5)` and the global error is :math:`O(h^4)`. It integrates
right-hand sides that are polynomials of degree <= 3 in ``x`` exactly.
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


def rk4_step(deriv: Derivative, x: ArrayLike, y: ArrayLike, h: ArrayLike) -> StepResult:
    """Perform a single RK4 integration step.

    Advances the state from ``x`` to ``x + h`` using the classic
    4th-order Runge-Kutta method. Compatible with ``jax.jit``,
    ``jax.vmap`` and ``jax.grad``.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.

    Returns:
        StepResult: Named tuple with fields:
            - ``state``: State at ``x + h``.
            - ``dt_used``: Always equals ``h``.
            - ``error_estimate``: Always 0.0 (no error estimate for
              fixed-step methods).
            - ``dt_next``: Always equals ``h``.

    Examples:
        ```python
        import jax.numpy as jnp
        from damndiff.integrators import rk4_step
        def harmonic(x, y):
            return jnp.array([y[1], -y[0]])
        result = rk4_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.01)
        result.state  # ~[cos(0.01), -sin(0.01)]
        ```
    """
    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    k1 = vec_scalar_mul(f(x, y), h)
    k2 = vec_scalar_mul(f(x + 0.5 * h, add_vec(y, vec_scalar_mul(k1, 0.5))), h)
    k3 = vec_scalar_mul(f(x + 0.5 * h, add_vec(y, vec_scalar_mul(k2, 0.5))), h)
    k4 = vec_scalar_mul(f(x + h, add_vec(y, k3)), h)

    y_new = add_vec(y, (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0)

    return StepResult(
        state=y_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def rk4_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with classic RK4.

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
        from damndiff.integrators import rk4_solve
        rk4_solve(lambda x, y: -y, 0.0, 1.0, 1.0, h=0.01)  # ~0.367879
        ```
    """
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return rk4_step(deriv, x, y, dt)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "rk4")
