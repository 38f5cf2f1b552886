"""Numerical integrators for initial value problems.

Provides fixed-step, adaptive, symplectic, Radau and threshold-gated QSS
integrators, all implemented in JAX for compatibility with ``jax.jit``,
``jax.vmap``, and automatic differentiation. Every method works for scalar
states and 1-D ODE systems alike.

Available integrators:

- :func:`euler_step` -- Explicit Euler (1st order)
- :func:`heun_step` -- Heun predictor-corrector (2nd order)
- :func:`rk2_step` -- Two-stage Runge-Kutta (2nd order)
- :func:`rk4_step` -- Classic 4th-order Runge-Kutta
- :func:`rkf45_step` -- Runge-Kutta-Fehlberg 4(5) (adaptive step)
- :func:`bogacki_shampine_step` -- Bogacki-Shampine 3(2) (error estimate)
- :func:`adams_bashforth_step` -- Adams-Bashforth with one-step lookahead
- :func:`adams_moulton_step` -- Adams-Moulton with one-step lookahead
- :func:`qss1_step`, :func:`qss2_step`, :func:`qss3_step` -- Threshold-gated
  quantized-state steps
- :func:`leapfrog_step` -- Leapfrog, drift-kick-drift (symplectic)
- :func:`verlet_step` -- Velocity-Verlet, kick-drift-kick (symplectic)
- :func:`forest_ruth_step` -- Forest-Ruth (4th-order symplectic)
- :func:`yoshida4_step` -- Yoshida triple jump (4th-order symplectic)
- :func:`radau_ia_step`, :func:`radau_iia_step` -- Two-stage Radau schemes

All step functions share a common interface::

    result = step_fn(deriv, x, y, h)

where ``deriv(x, y) -> dy`` defines the ODE right-hand side, and the
result is a :class:`StepResult` named tuple. Each method has a matching
``*_solve(deriv, x0, y0, x_target, h=None, *, steps=None)`` driver that
integrates over a validated, bounded grid.
"""

from damndiff.integrators._driver import resolve_grid
from damndiff.integrators._types import AdaptiveConfig, StepResult, Trajectory
from damndiff.integrators._vector import add_vec, vec_scalar_mul
from damndiff.integrators.adams_bashforth import adams_bashforth_solve, adams_bashforth_step
from damndiff.integrators.adams_moulton import adams_moulton_solve, adams_moulton_step
from damndiff.integrators.bogacki_shampine import bogacki_shampine_solve, bogacki_shampine_step
from damndiff.integrators.euler import euler_solve, euler_step
from damndiff.integrators.forest_ruth import forest_ruth_solve, forest_ruth_step
from damndiff.integrators.heun import heun_solve, heun_step
from damndiff.integrators.leapfrog import leapfrog_solve, leapfrog_step
from damndiff.integrators.qss import (
    qss1_solve,
    qss1_step,
    qss2_solve,
    qss2_step,
    qss3_solve,
    qss3_step,
    qss_sys_solve,
)
from damndiff.integrators.radau import (
    radau_ia_solve,
    radau_ia_step,
    radau_iia_solve,
    radau_iia_step,
)
from damndiff.integrators.rk2 import rk2_solve, rk2_step
from damndiff.integrators.rk4 import rk4_solve, rk4_step
from damndiff.integrators.rkf45 import rkf45_solve, rkf45_step
from damndiff.integrators.verlet import verlet_solve, verlet_step
from damndiff.integrators.yoshida4 import yoshida4_solve, yoshida4_step

__all__ = [
    "AdaptiveConfig",
    "StepResult",
    "Trajectory",
    "resolve_grid",
    "add_vec",
    "vec_scalar_mul",
    "euler_step",
    "euler_solve",
    "heun_step",
    "heun_solve",
    "rk2_step",
    "rk2_solve",
    "rk4_step",
    "rk4_solve",
    "rkf45_step",
    "rkf45_solve",
    "bogacki_shampine_step",
    "bogacki_shampine_solve",
    "adams_bashforth_step",
    "adams_bashforth_solve",
    "adams_moulton_step",
    "adams_moulton_solve",
    "qss1_step",
    "qss1_solve",
    "qss2_step",
    "qss2_solve",
    "qss3_step",
    "qss3_solve",
    "qss_sys_solve",
    "leapfrog_step",
    "leapfrog_solve",
    "verlet_step",
    "verlet_solve",
    "forest_ruth_step",
    "forest_ruth_solve",
    "yoshida4_step",
    "yoshida4_solve",
    "radau_ia_step",
    "radau_ia_solve",
    "radau_iia_step",
    "radau_iia_solve",
]
