"""Velocity-Verlet (kick-drift-kick) symplectic integrator.

Half-kick of the momenta, full drift of the positions with the updated
momenta at the step midpoint, then a second half-kick with the forces at
the new positions.  Same order and conservation properties as leapfrog;
the two differ only in which half of the state is evaluated at the step
midpoint.

Second order for separable systems only (see
:mod:`~damndiff.integrators._symplectic`); otherwise first order.
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


def verlet_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    n_position: int | None = None,
) -> StepResult:
    """Perform a single velocity-Verlet step.

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

    return StepResult(
        state=velocity_verlet_substep(f, x, y, h, mask),
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def verlet_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    n_position: int | None = None,
) -> Array:
    """Integrate a partitioned system from ``x0`` to ``x_target`` with velocity-Verlet.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments
    and :func:`verlet_step` for ``n_position``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    position_mask(jnp.asarray(y0), n_position)
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return verlet_step(deriv, x, y, dt, n_position)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "verlet")
