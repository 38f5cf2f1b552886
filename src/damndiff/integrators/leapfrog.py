"""Leapfrog (Stormer-Verlet, drift-kick-drift) symplectic integrator.

For a partitioned state ``y = [q, p]`` one step is

1. drift the positions by ``h/2``,
2. kick the momenta by ``h`` using the derivative at ``x + h/2``,
3. drift the positions by another ``h/2``.

This is the drift-kick-drift form with one full kick, not the
kick-drift-kick pattern that applies two ``h/2`` updates of the whole
derivative; the kick-drift-kick form is :mod:`~damndiff.integrators.verlet`.

Second order, time-reversible and symplectic for separable systems (see
:mod:`~damndiff.integrators._symplectic`): the energy error of a
Hamiltonian system stays bounded instead of drifting.  Systems whose
position rate depends on the positions reduce it to first order.
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


def leapfrog_step(
    deriv: Derivative,
    x: ArrayLike,
    y: ArrayLike,
    h: ArrayLike,
    n_position: int | None = None,
) -> StepResult:
    """Perform a single drift-kick-drift leapfrog step.

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

    Examples:
        ```python
        import jax.numpy as jnp
        from damndiff.integrators import leapfrog_step
        def harmonic(x, y):
            return jnp.array([y[1], -y[0]])
        leapfrog_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.01).state
        ```
    """
    dtype = get_dtype()
    f = as_derivative(deriv)
    x = jnp.asarray(x, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)
    mask = position_mask(y, n_position)

    half = 0.5 * h
    y = drift(f, x, y, half, mask)
    y = kick(f, x + half, y, h, mask)
    y = drift(f, x + half, y, half, mask)

    return StepResult(
        state=y,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
    )


def leapfrog_solve(
    deriv: Derivative,
    x0: ArrayLike,
    y0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    *,
    steps: int | None = None,
    n_position: int | None = None,
) -> Array:
    """Integrate a partitioned system from ``x0`` to ``x_target`` with leapfrog.

    See :func:`~damndiff.integrators.euler_solve` for the grid arguments
    and :func:`leapfrog_step` for ``n_position``.

    Returns:
        jax.Array: State after the last step, same shape as ``y0``.
    """
    position_mask(jnp.asarray(y0), n_position)
    h, n = resolve_grid(x0, x_target, h, steps)

    def step_fn(x, y, dt):
        return leapfrog_step(deriv, x, y, dt, n_position)

    return solve_fixed_step(step_fn, float(x0), y0, h, n, "leapfrog")
