"""
damndiff is a small library of numerical integrators for ordinary differential equations implemented in JAX.
"""

from .config import set_dtype, get_dtype, get_step_count_tolerance

from .errors import (
    IntegrationError,
    DimensionMismatch,
    InvalidStepDirection,
    ZeroStepSize,
    StepLimitExceeded,
)

from .derivatives import (
    ScalarDerivative,
    SystemDerivative,
    as_derivative,
)

from .integrators import (
    AdaptiveConfig,
    StepResult,
    Trajectory,
    euler_solve,
    heun_solve,
    rk2_solve,
    rk4_solve,
    rkf45_solve,
    bogacki_shampine_solve,
    adams_bashforth_solve,
    adams_moulton_solve,
    qss1_solve,
    qss2_solve,
    qss3_solve,
    qss_sys_solve,
    leapfrog_solve,
    verlet_solve,
    forest_ruth_solve,
    yoshida4_solve,
    radau_ia_solve,
    radau_iia_solve,
)
