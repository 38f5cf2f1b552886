"""Two-stage Radau IA and Radau IIA integrators.

Both are 3rd-order collocation methods whose stage equations

.. math::

    K_i = f\\left(x + c_i h,\\; y + h \\sum_j a_{ij} K_j\\right)

are implicit.  The stages start from ``K_i = f(x, y)`` and are refined by
``iterations`` Jacobi fixed-point sweeps, each of which evaluates every
stage from the previous sweep's values.  One sweep (the default) gives a
cheap explicit second-order scheme; more sweeps converge to the implicit
solution while ``h`` times the Lipschitz constant of ``f`` is below one.
There is no Newton solve, so these are not suitable for stiff problems.

Radau IIA (``c = (1/3, 1)``) includes the right end point of the step,
Radau IA (``c = (0, 2/3)``) the left one.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype
from damndiff.derivatives import Derivative, as_derivative
from damndiff.integrators._driver import resolve_grid, solve_fixed_step
from damndiff.integrators._types import StepResult
from damndiff.integrators._vector import add_vec, vec_scalar_mul

# (c, A, b) per method
_RADAU_IA = (
    (0.0, 2.0 / 3.0),
    ((1.0 / 4.0, -1.0 / 4.0), (1.0 / 4.0, 5.0 / 12.0)),
    (1.0 / 4.0, 3.0 / 4.0),
)
_RADAU_IIA = (
    (1.0 / 3.0, 1.0),
    ((5.0 / 12.0, -1.0 / 12.0), (3.0 / 4.0, 1.0 / 4.0)),
    (3.0 / 4.0, 1.0 / 4.0),
)


def _radau_step(tableau, deriv, x, y, h, iterations) -> StepResult:
    if int(iterations) < 1:
        raise ValueError(f"iterations must be >= 1, got {iterations}")
    c, a, b = tableau

    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    def stage_input(row, k1, k2):
        return add_vec(y, vec_scalar_mul(row[0] * k1 + row[1] * k2, h))

    def sweep(_, stages):
        k1, k2 = stages
        return (
            f(x + c[0] * h, stage_input(a[0], k1, k2)),
            f(x + c[1] * h, stage_input(a[1], k1, k2)),
        )

    f0 = f(x, y)
    k1, k2 = jax.lax.fori_loop(0, int(iterations), sweep, (f0, f0))
    y_new = add_vec(y, vec_scalar_mul(b[0] * k1 + b[1] * k2, h))

    return StepResult(
        state=y_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def radau_ia_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    iterations: int = 1,
) -> StepResult:
    """Perform a single two-stage Radau IA step.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.
        iterations: Number of fixed-point sweeps over the stage equations.

    Returns:
        StepResult: State at ``x + h``; ``error_estimate`` is 0.0 and
        ``dt_next`` equals ``h``.

    Raises:
        ValueError: If ``iterations < 1``.
    """
    return _radau_step(_RADAU_IA, deriv, x, y, h, iterations)


def radau_iia_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    iterations: int = 1,
) -> StepResult:
    """Perform a single two-stage Radau IIA step.

    Args:
        deriv: Derivative ``f(x, y) -> dy/dx``.
        x: Current independent variable.
        y: Current state (scalar or 1-D vector).
        h: Step size. May be negative for backward integration.
        iterations: Number of fixed-point sweeps over the stage equations.

    Returns:
        StepResult: State at ``x + h``; ``error_estimate`` is 0.0 and
        ``dt_next`` equals ``h``.

    Raises:
        ValueError: If ``iterations < 1``.

    Examples:
        ```python
        from damndiff.integrators import radau_iia_step
        radau_iia_step(lambda x, y: -y, 0.0, 1.0, 0.1, iterations=8).state
        # ~exp(-0.1)
        ```
    """
    return _radau_step(_RADAU_IIA, deriv, x, y, h, iterations)


def _radau_solve(name, tableau, deriv, x0, y0, x_target, h, steps, iterations) -> Array:
    if int(iterations) < 1:
        raise ValueError(f"iterations must be >= 1, got {iterations}")
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return _radau_step(tableau, deriv, x, y, dt, iterations)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, name)


def radau_ia_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    iterations: int = 1,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with Radau IA.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments
    and :func:`radau_ia_step` for ``iterations``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    return _radau_solve("radau_ia", _RADAU_IA, deriv, x0, y0, x_target, h, steps, iterations)


def radau_iia_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    iterations: int = 1,
) -> Array:
    """Integrate an IVP from ``x0`` to ``x_target`` with Radau IIA.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments
    and :func:`radau_iia_step` for ``iterations``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    return _radau_solve("radau_iia", _RADAU_IIA, deriv, x0, y0, x_target, h, steps, iterations)
