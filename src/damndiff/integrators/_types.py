"""Type definitions for numerical integrators.

Provides the core data types used across all integrator implementations:

- :class:`StepResult`: Output of every step function, containing the new state,
  actual step used, error estimate, and suggested next step.
- :class:`AdaptiveConfig`: Configuration for adaptive step-size control in
  the RKF45 solver.
- :class:`Trajectory`: Sampled independent variable and states returned by
  trajectory-producing solvers.

All types are :class:`~typing.NamedTuple` instances, which JAX treats as
pytrees automatically. This means they work seamlessly with ``jax.jit``,
``jax.vmap``, and ``jax.lax`` control flow primitives.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from jax import Array


class StepResult(NamedTuple):
    """Result of a single integrator step.

    Returned by every ``*_step`` function. For fixed-step methods without an
    embedded error estimate, ``error_estimate`` is always 0.0 and ``dt_next``
    equals ``dt_used``.

    Attributes:
        state: State at ``x + dt_used``.
        dt_used: Step actually taken. Always the requested step: no method
            in damndiff rejects and retries a step.
        error_estimate: Absolute local error estimate (maximum over state
            components) for embedded pairs (RKF45, Bogacki-Shampine). Always
            0.0 otherwise.
        dt_next: Suggested step for the next call. Computed from the error
            estimate by RKF45 and Bogacki-Shampine, equal to ``dt_used``
            otherwise.
    """

    state: Array
    dt_used: Array
    error_estimate: Array
    dt_next: Array


class AdaptiveConfig(NamedTuple):
    """Configuration for adaptive step-size control.

    Used by ``rkf45_step`` and ``rkf45_solve``. The next step is predicted as
    ``h * safety_factor * (tolerance / error) ** (1 / 5)``; a zero error
    keeps the current step.

    Attributes:
        tolerance: Target absolute local error per step.
        safety_factor: Multiplicative safety factor applied to step-size
            predictions. The default ``1.0`` gives the bare Fehlberg update;
            ``0.9`` is a common conservative choice.
        min_step: Absolute minimum step size the controller may predict.
        max_step: Absolute maximum step size the controller may predict.
        max_steps: Maximum number of steps ``rkf45_solve`` may take before
            giving up. Prevents unbounded loops.
    """

    tolerance: float = 1e-6
    safety_factor: float = 1.0
    min_step: float = 1e-12
    max_step: float = math.inf
    max_steps: int = 100_000


class Trajectory(NamedTuple):
    """Sampled solution of an IVP.

    Attributes:
        x: Independent variable at every node, shape ``(n + 1,)``, starting
            with ``x0``.
        y: State at every node, shape ``(n + 1, *state_shape)``, starting
            with ``y0``.
    """

    x: Array
    y: Array
