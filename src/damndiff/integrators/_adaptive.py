"""Adaptive step-size utilities for embedded Runge-Kutta pairs.

Provides the error-norm and step-size prediction shared by RKF45 and
Bogacki-Shampine. Steps are never rejected: the prediction only sizes the
*following* step.

1. The local error is the largest absolute difference between the two
   embedded solutions.
2. The next step is scaled by ``(tolerance / error) ** (1 / (p + 1))``.
3. A zero error (exact solution, e.g. polynomial right-hand sides) keeps
   the current step instead of dividing by zero.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from damndiff.config import get_dtype


def compute_error_norm(state_high: ArrayLike, state_low: ArrayLike) -> Array:
    """Compute the absolute local error estimate of an embedded pair.

    Uses the infinity norm, so scalar states reduce to ``|high - low|``.

    Args:
        state_high: Higher-order solution.
        state_low: Lower-order solution.

    Returns:
        jax.Array: Scalar non-negative error estimate.
    """
    state_high = jnp.asarray(state_high, dtype=get_dtype())
    state_low = jnp.asarray(state_low, dtype=get_dtype())
    return jnp.max(jnp.abs(state_high - state_low))


def compute_next_step_size(
    error: ArrayLike,
    h: ArrayLike,
    tolerance: float,
    order: float,
    safety_factor: float,
    min_step: float,
    max_step: float,
) -> Array:
    """Compute the next step size from the current error estimate.

    .. math::

        h_{\\text{next}} = h \\cdot S \\cdot
            \\left(\\frac{\\text{tol}}{\\text{error}}\\right)^{1/(p+1)}

    where *S* is the safety factor and *p* the order of the error
    estimator.  A zero error returns ``h`` unchanged.  The magnitude is
    clamped to ``[min_step, max_step]`` and the sign of ``h`` is preserved
    for backward integration.

    Args:
        error: Error from :func:`compute_error_norm`.
        h: Current step size (may be negative).
        tolerance: Target absolute local error.
        order: Order of the error estimator (4.0 for RKF45, 2.0 for
            Bogacki-Shampine).
        safety_factor: Multiplicative safety factor.
        min_step: Absolute minimum step size.
        max_step: Absolute maximum step size.

    Returns:
        jax.Array: Suggested next step size with the same sign as ``h``.
    """
    dtype = get_dtype()
    error = jnp.asarray(error, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    abs_h = jnp.abs(h)
    sign_h = jnp.sign(h)

    exponent = 1.0 / (order + 1.0)
    # jnp.where evaluates both branches; keep the unused one finite.
    safe_error = jnp.where(error > 0.0, error, 1.0)
    scaled = abs_h * safety_factor * jnp.power(tolerance / safe_error, exponent)
    abs_h_next = jnp.where(error > 0.0, scaled, abs_h)

    abs_h_next = jnp.clip(abs_h_next, min_step, max_step)

    return sign_h * abs_h_next
