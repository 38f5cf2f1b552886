"""Example derivative functions.

Ready-made right-hand sides for demonstrations and tests. Each is a plain
``f(x, y) -> dy/dx`` written with ``jax.numpy`` so it can be passed to
every integrator in :mod:`damndiff.integrators`. Models with parameters
are built by ``create_*`` factories that capture the parameters in a
closure.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike


def exponential_decay(x: ArrayLike, y: ArrayLike) -> Array:
    """``dy/dx = -y``; exact solution ``y0 * exp(-(x - x0))``.

    Works component-wise on systems.
    """
    return -jnp.asarray(y)


def sine_cosine(x: ArrayLike, y: ArrayLike) -> Array:
    """Scalar ODE ``dy/dx = sin(y) - cos(x)``."""
    return jnp.sin(y) - jnp.cos(x)


def linear_sum(x: ArrayLike, y: ArrayLike) -> Array:
    """Scalar ODE ``dy/dx = x + y``.

    With ``y(0) = y0`` the exact solution is ``(y0 + 1) e^x - x - 1``.
    """
    return x + y


def harmonic_oscillator(x: ArrayLike, y: ArrayLike) -> Array:
    """Unit harmonic oscillator with state ``[q, p]``.

    ``dq/dx = p``, ``dp/dx = -q``. The energy ``(q^2 + p^2) / 2`` is
    conserved.
    """
    return jnp.array([y[1], -y[0]])


def harmonic_energy(y: ArrayLike) -> Array:
    """Energy of :func:`harmonic_oscillator` at state ``[q, p]``."""
    y = jnp.asarray(y)
    return 0.5 * (y[0] ** 2 + y[1] ** 2)


def create_lotka_volterra(
    alpha: float = 0.1,
    beta: float = 0.02,
    gamma: float = 0.3,
    delta: float = 0.01,
) -> Callable[[ArrayLike, ArrayLike], Array]:
    """Create a Lotka-Volterra predator-prey model.

    State ``[prey, predator]``:

    .. math::

        \\dot{u} = \\alpha u - \\beta u v, \\qquad
        \\dot{v} = \\delta u v - \\gamma v

    Args:
        alpha: Prey growth rate.
        beta: Predation rate.
        gamma: Predator death rate.
        delta: Predator growth per prey eaten.

    Returns:
        A callable ``f(x, y) -> dy/dx``.

    Examples:
        ```python
        import jax.numpy as jnp
        from damndiff.models import create_lotka_volterra
        from damndiff.integrators import rk4_solve
        lv = create_lotka_volterra()
        rk4_solve(lv, 0.0, jnp.array([40.0, 10.0]), 40.0, h=0.01)
        ```
    """

    def lotka_volterra(x: ArrayLike, y: ArrayLike) -> Array:
        prey, predator = y[0], y[1]
        return jnp.array(
            [
                alpha * prey - beta * prey * predator,
                delta * prey * predator - gamma * predator,
            ]
        )

    return lotka_volterra


def create_lorenz(
    sigma: float = 10.0,
    rho: float = 28.0,
    beta: float = 8.0 / 3.0,
) -> Callable[[ArrayLike, ArrayLike], Array]:
    """Create the Lorenz system with state ``[x, y, z]``.

    Args:
        sigma: Prandtl number.
        rho: Rayleigh number.
        beta: Geometric factor.

    Returns:
        A callable ``f(t, s) -> ds/dt``.
    """

    def lorenz(t: ArrayLike, s: ArrayLike) -> Array:
        return jnp.array(
            [
                sigma * (s[1] - s[0]),
                s[0] * (rho - s[2]) - s[1],
                s[0] * s[1] - beta * s[2],
            ]
        )

    return lorenz


def create_quantized_step_input(
    switch_at: float = 1.0,
    amplitude: float = 10.0,
) -> Callable[[ArrayLike, ArrayLike], Array]:
    """Create ``dy/dx = u(x) - trunc(y)`` driven by a step input.

    ``u(x)`` is 0 before ``switch_at`` and ``amplitude`` afterwards; the
    feedback uses the truncated (quantized) state. Piecewise constant in
    both arguments, which suits the QSS integrators.

    Args:
        switch_at: Value of ``x`` at which the input switches on.
        amplitude: Input level after the switch.

    Returns:
        A callable ``f(x, y) -> dy/dx``.
    """

    def quantized_step_input(x: ArrayLike, y: ArrayLike) -> Array:
        u = jnp.where(x < switch_at, 0.0, amplitude)
        return u - jnp.trunc(y)

    return quantized_step_input
