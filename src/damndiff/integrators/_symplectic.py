"""Partitioned drift/kick sub-steps shared by the symplectic integrators.

The state ``y = [q, p]`` is split after its first ``n_position``
components.  A *drift* advances the positions ``q`` with the position part
of the derivative, a *kick* advances the momenta ``p`` with the momentum
part.  A drift over ``[x, x + a]`` evaluates the derivative at ``x + a/2``.

The compositions built from these sub-steps reach their stated order only
for separable systems: the position rate may depend on the momenta and
``x`` but not on the positions, and the momentum rate may depend on the
positions and ``x`` but not on the momenta.  Then each sub-step is the
exact flow of one half of a Hamiltonian (up to the midpoint rule in ``x``)
and the composition is symplectic.  For any other coupling, such as the
Lotka-Volterra equations, every sub-step is an explicit Euler update of a
non-constant rate and the composition is only first order.

Both sub-steps evaluate the full derivative and mask out the half that
does not move, which keeps shapes static under JAX tracing.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array

from damndiff.errors import DimensionMismatch
from damndiff.integrators._vector import add_vec, vec_scalar_mul


def position_mask(y: Array, n_position: int | None) -> Array:
    """Boolean mask selecting the position block of a partitioned state.

    Args:
        y: 1-D state vector.
        n_position: Number of leading position components, or ``None``
            for ``len(y) // 2``.

    Returns:
        jax.Array: Boolean array shaped like ``y``, ``True`` on positions.

    Raises:
        DimensionMismatch: If ``y`` is not 1-D or ``n_position`` lies
            outside ``[0, len(y)]``.
    """
    if jnp.ndim(y) != 1:
        raise DimensionMismatch(
            f"Symplectic integrators need a 1-D [q, p] state, got shape {jnp.shape(y)}"
        )
    n = jnp.shape(y)[0]
    if n_position is None:
        n_position = n // 2
    if not 0 <= n_position <= n:
        raise DimensionMismatch(f"n_position={n_position} outside [0, {n}]")
    return jnp.arange(n) < n_position


def drift(f: Callable, x: Array, y: Array, a: Array, mask: Array) -> Array:
    """Advance the positions by ``a * f(x + a/2, y)[q]``."""
    dy = jnp.where(mask, f(x + 0.5 * a, y), 0.0)
    return add_vec(y, vec_scalar_mul(dy, a))


def kick(f: Callable, x: Array, y: Array, b: Array, mask: Array) -> Array:
    """Advance the momenta by ``b * f(x, y)[p]``."""
    dy = jnp.where(mask, 0.0, f(x, y))
    return add_vec(y, vec_scalar_mul(dy, b))


def velocity_verlet_substep(f: Callable, x: Array, y: Array, h: Array, mask: Array) -> Array:
    """Kick-drift-kick sub-step of size ``h``, shared by Verlet and Yoshida.

    The full drift is evaluated at the midpoint ``x + h/2``.
    """
    y = kick(f, x, y, 0.5 * h, mask)
    y = drift(f, x, y, h, mask)
    return kick(f, x + h, y, 0.5 * h, mask)
