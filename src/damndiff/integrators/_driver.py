"""Step-grid resolution and bounded fixed-step drivers.

Every ``*_solve`` function goes through :func:`resolve_grid`, which turns
``(x0, x_target, h)`` or ``(x0, x_target, steps)`` into a validated step
size and an integral step count.  The drivers then run exactly that many
steps with ``jax.lax.fori_loop`` (final state) or ``jax.lax.scan``
(trajectory).  The step count is computed in Python, so grid parameters
must be concrete values; the loop bodies themselves are traced.

The count reproduces ``while x < x_target: x += h``: when the span is not a
multiple of ``h`` the last step overshoots ``x_target`` by less than ``h``.
Node ``i`` is evaluated at ``x0 + i * h`` so no floating-point drift
accumulates in the independent variable.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype, get_step_count_tolerance
from damndiff.errors import InvalidStepDirection, ZeroStepSize
from damndiff.integrators._types import StepResult, Trajectory

logger = logging.getLogger(__name__)

StepFn = Callable[[Array, Array, Array], StepResult]


def _as_finite_float(name: str, value: ArrayLike) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value


def resolve_grid(
    x0: ArrayLike,
    x_target: ArrayLike,
    h: ArrayLike | None = None,
    steps: int | None = None,
) -> tuple[float, int]:
    """Validate the integration grid and compute the number of steps.

    Exactly one of *h* and *steps* must be given.  With *steps*, the step
    size is ``(x_target - x0) / steps`` and no overshoot occurs.  With *h*,
    the count is ``ceil((x_target - x0) / h)``, except that a ratio within
    :func:`~damndiff.config.get_step_count_tolerance` of an integer is
    rounded to it.

    Args:
        x0: Initial value of the independent variable.
        x_target: Value of the independent variable to integrate to.
        h: Signed step size.
        steps: Positive number of steps.

    Returns:
        tuple[float, int]: ``(h, n)``. ``n`` is 0 when ``x0 == x_target``.

    Raises:
        ValueError: If both or neither of *h* and *steps* are given, if
            *steps* is not a positive integer, or if any value is not finite.
        ZeroStepSize: If *h* is zero.
        InvalidStepDirection: If *h* points away from *x_target*.

    Examples:
        ```python
        from damndiff.integrators import resolve_grid
        resolve_grid(0.0, 1.0, h=0.01)     # (0.01, 100)
        resolve_grid(0.0, 1.0, h=0.3)      # (0.3, 4), overshoots to 1.2
        resolve_grid(0.0, 40.0, steps=8)   # (5.0, 8)
        ```
    """
    if (h is None) == (steps is None):
        raise ValueError("Exactly one of h or steps must be given")

    x0 = _as_finite_float("x0", x0)
    x_target = _as_finite_float("x_target", x_target)
    span = x_target - x0

    if steps is not None:
        if isinstance(steps, bool) or int(steps) != steps or steps <= 0:
            raise ValueError(f"steps must be a positive integer, got {steps!r}")
        if span == 0.0:
            return 0.0, 0
        return span / int(steps), int(steps)

    h = _as_finite_float("h", h)
    if h == 0.0:
        raise ZeroStepSize("Step size h must be nonzero")
    if span == 0.0:
        return h, 0
    if (span > 0.0) != (h > 0.0):
        raise InvalidStepDirection(
            f"Step size h={h} does not move from x0={x0} towards x_target={x_target}"
        )

    ratio = span / h
    nearest = round(ratio)
    if nearest > 0 and math.isclose(ratio, nearest, rel_tol=get_step_count_tolerance()):
        return h, int(nearest)
    return h, max(int(math.ceil(ratio)), 1)


def solve_fixed_step(
    step_fn: StepFn,
    x0: float,
    y0: ArrayLike,
    h: float,
    n: int,
    method: str,
) -> Array:
    """Run ``n`` fixed steps of ``step_fn`` and return the final state.

    Args:
        step_fn: ``step_fn(x, y, h) -> StepResult`` for one method.
        x0: Initial independent variable.
        y0: Initial state.
        h: Step size from :func:`resolve_grid`.
        n: Step count from :func:`resolve_grid`.
        method: Method name, used for logging.

    Returns:
        jax.Array: State after ``n`` steps.
    """
    dtype = get_dtype()
    y0 = jnp.asarray(y0, dtype=dtype)
    if n == 0:
        return y0

    x0_arr = jnp.asarray(x0, dtype=dtype)
    h_arr = jnp.asarray(h, dtype=dtype)

    def body(i, y):
        x = x0_arr + jnp.asarray(i, dtype=dtype) * h_arr
        return step_fn(x, y, h_arr).state

    logger.debug("%s: %d steps of size %g from x=%g", method, n, h, x0)
    return jax.lax.fori_loop(0, n, body, y0)


def solve_fixed_step_trajectory(
    step_fn: StepFn,
    x0: float,
    y0: ArrayLike,
    h: float,
    n: int,
    method: str,
) -> Trajectory:
    """Run ``n`` fixed steps of ``step_fn`` and return every node.

    Args:
        step_fn: ``step_fn(x, y, h) -> StepResult`` for one method.
        x0: Initial independent variable.
        y0: Initial state.
        h: Step size from :func:`resolve_grid`.
        n: Step count from :func:`resolve_grid`.
        method: Method name, used for logging.

    Returns:
        Trajectory: ``n + 1`` nodes including the initial point.
    """
    dtype = get_dtype()
    y0 = jnp.asarray(y0, dtype=dtype)
    x0_arr = jnp.asarray(x0, dtype=dtype)
    if n == 0:
        return Trajectory(x=x0_arr[None], y=y0[None])

    h_arr = jnp.asarray(h, dtype=dtype)
    xs = x0_arr + jnp.arange(n + 1, dtype=dtype) * h_arr

    def body(y, x):
        y_new = step_fn(x, y, h_arr).state
        return y_new, y_new

    logger.debug("%s: %d steps of size %g from x=%g (trajectory)", method, n, h, x0)
    _, ys = jax.lax.scan(body, y0, xs[:-1])
    return Trajectory(x=xs, y=jnp.concatenate([y0[None], ys]))
