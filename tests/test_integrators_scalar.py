"""Tests for the integrators on scalar IVPs.

Tests cover:
- The reference decay scenario (Euler and RK4, h=0.01 over [0, 1])
- Convergence order of every fixed-step method
- Polynomial exactness (RK4 is exact for degree <= 3 polynomials)
- Adams lookahead update formulas
- Adaptive step-size behaviour (RKF45) and embedded error (Bogacki-Shampine)
- Threshold gating of the QSS family
- JIT and vmap compatibility
"""

import logging
import math

import jax
import jax.numpy as jnp
import pytest

from damndiff.errors import StepLimitExceeded
from damndiff.integrators import (
    AdaptiveConfig,
    StepResult,
    adams_bashforth_solve,
    adams_bashforth_step,
    adams_moulton_solve,
    adams_moulton_step,
    bogacki_shampine_solve,
    bogacki_shampine_step,
    euler_solve,
    euler_step,
    heun_solve,
    heun_step,
    qss1_solve,
    qss1_step,
    qss2_solve,
    qss2_step,
    qss3_solve,
    qss3_step,
    radau_ia_solve,
    radau_iia_solve,
    rk2_solve,
    rk2_step,
    rk4_solve,
    rk4_step,
    rkf45_solve,
    rkf45_step,
)
from damndiff.integrators._adaptive import compute_next_step_size
from damndiff.models import create_quantized_step_input, linear_sum, sine_cosine


# ──────────────────────────────────────────────
# Helper dynamics functions
# ──────────────────────────────────────────────

def _exponential_decay(x, y):
    """dy/dx = -y. Solution: y(x) = y0 * exp(-x)."""
    return -y


def _constant(x, y):
    """dy/dx = 1. Solution: y(x) = y0 + x."""
    return jnp.ones_like(y)


def _linear(x, y):
    """dy/dx = x. Solution: y(x) = y0 + x^2 / 2."""
    return x * jnp.ones_like(y)


def _cubic(x, y):
    """dy/dx = 3x^2. Solution: y(x) = y0 + x^3."""
    return 3.0 * x**2 * jnp.ones_like(y)


def _decay_error(solve, h, **kwargs):
    return abs(float(solve(_exponential_decay, 0.0, 1.0, 1.0, h=h, **kwargs)) - math.exp(-1.0))


# ──────────────────────────────────────────────
# Reference scenario
# ──────────────────────────────────────────────

class TestReferenceScenario:
    def test_euler_decay(self):
        """Euler with h=0.01 over [0, 1] takes 100 steps: 0.99 ** 100."""
        y = euler_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.01)
        assert float(y) == pytest.approx(0.99**100, abs=1e-12)
        assert float(y) == pytest.approx(0.36603, abs=1e-5)

    def test_rk4_decay(self):
        y = rk4_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.01)
        assert float(y) == pytest.approx(math.exp(-1.0), abs=1e-6)

    def test_sine_cosine_methods_agree(self):
        """The demo ODE sin(y) - cos(x) gives the same answer for all accurate methods."""
        reference = float(rk4_solve(sine_cosine, 0.0, 1.0, 2.0, h=0.001))
        for solve in (heun_solve, rk2_solve, bogacki_shampine_solve):
            assert float(solve(sine_cosine, 0.0, 1.0, 2.0, h=0.001)) == pytest.approx(
                reference, abs=1e-5
            )
        assert float(euler_solve(sine_cosine, 0.0, 1.0, 2.0, h=0.001)) == pytest.approx(
            reference, abs=1e-2
        )


# ──────────────────────────────────────────────
# Convergence order
# ──────────────────────────────────────────────

class TestConvergenceOrder:
    @pytest.mark.parametrize(
        "solve, order",
        [
            (euler_solve, 1),
            (heun_solve, 2),
            (rk2_solve, 2),
            (bogacki_shampine_solve, 3),
            (rk4_solve, 4),
        ],
    )
    def test_halving_h(self, solve, order):
        ratio = _decay_error(solve, 0.1) / _decay_error(solve, 0.05)
        expected = 2.0**order
        assert expected * 0.85 < ratio < expected * 1.15

    def test_adams_bashforth_first_order(self):
        ratio = _decay_error(adams_bashforth_solve, 0.02) / _decay_error(
            adams_bashforth_solve, 0.01
        )
        assert 1.8 < ratio < 2.2

    @pytest.mark.parametrize("solve", [radau_ia_solve, radau_iia_solve])
    def test_radau_single_sweep_second_order(self, solve):
        ratio = _decay_error(solve, 0.1) / _decay_error(solve, 0.05)
        assert 3.5 < ratio < 4.6

    @pytest.mark.parametrize("solve", [radau_ia_solve, radau_iia_solve])
    def test_radau_converged_third_order(self, solve):
        ratio = _decay_error(solve, 0.1, iterations=12) / _decay_error(
            solve, 0.05, iterations=12
        )
        assert 6.5 < ratio < 9.5

    @pytest.mark.parametrize("solve", [radau_ia_solve, radau_iia_solve])
    def test_radau_iterations_improve_accuracy(self, solve):
        assert _decay_error(solve, 0.1, iterations=12) < _decay_error(solve, 0.1)

    def test_radau_invalid_iterations(self):
        with pytest.raises(ValueError, match="iterations"):
            radau_iia_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.1, iterations=0)


# ──────────────────────────────────────────────
# Single steps and exactness
# ──────────────────────────────────────────────

class TestFixedSteps:
    def test_euler_single_step(self):
        result = euler_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(0.9)

    def test_heun_single_step(self):
        """Heun on y' = -y gives 1 - h + h^2 / 2."""
        result = heun_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(0.905)

    def test_rk2_equals_heun(self):
        a = rk2_step(sine_cosine, 0.3, 0.7, 0.05).state
        b = heun_step(sine_cosine, 0.3, 0.7, 0.05).state
        assert float(a) == pytest.approx(float(b), abs=1e-14)

    def test_step_result_fields(self):
        result = rk4_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert isinstance(result, StepResult)
        assert float(result.dt_used) == pytest.approx(0.1)
        assert float(result.error_estimate) == 0.0
        assert float(result.dt_next) == pytest.approx(0.1)

    def test_euler_exact_for_constant(self):
        y = euler_solve(_constant, 0.0, 5.0, 2.0, h=0.25)
        assert float(y) == pytest.approx(7.0, abs=1e-12)

    def test_heun_exact_for_linear(self):
        y = heun_solve(_linear, 0.0, 0.0, 2.0, h=0.5)
        assert float(y) == pytest.approx(2.0, abs=1e-12)

    def test_rk4_exact_for_constant(self):
        y = rk4_solve(_constant, 0.0, 1.0, 3.0, h=1.0)
        assert float(y) == pytest.approx(4.0, abs=1e-12)

    def test_rk4_exact_for_linear(self):
        y = rk4_solve(_linear, 0.0, 0.0, 1.0, h=0.5)
        assert float(y) == pytest.approx(0.5, abs=1e-12)

    def test_rk4_exact_for_cubic(self):
        y = rk4_solve(_cubic, 0.0, 1.0, 1.0, h=0.25)
        assert float(y) == pytest.approx(2.0, abs=1e-12)

    def test_backward_single_step(self):
        result = rk4_step(_exponential_decay, 1.0, 1.0, -0.1)
        assert float(result.state) == pytest.approx(math.exp(0.1), abs=1e-6)


# ──────────────────────────────────────────────
# Adams lookahead methods
# ──────────────────────────────────────────────

class TestAdams:
    def test_bashforth_update(self):
        """f0 = -1, f1 = -0.9: y = 1 + 0.1 (1.5 * -0.9 + 0.5) = 0.915."""
        result = adams_bashforth_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(0.915)

    def test_moulton_update(self):
        """f0 = -1, f1 = -0.9: y = 1 + 0.1 (5 * -0.9 - 8) / 12."""
        result = adams_moulton_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(1.0 + 0.1 * (-4.5 - 8.0) / 12.0)

    def test_bashforth_solve_accuracy(self):
        y = adams_bashforth_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.001)
        assert float(y) == pytest.approx(math.exp(-1.0), abs=1e-3)

    def test_moulton_solve_matches_steps(self):
        y = 1.0
        for i in range(5):
            y = adams_moulton_step(_exponential_decay, 0.1 * i, y, 0.1).state
        assert float(adams_moulton_solve(_exponential_decay, 0.0, 1.0, 0.5, steps=5)) == (
            pytest.approx(float(y), abs=1e-12)
        )

    def test_bashforth_exact_for_constant(self):
        y = adams_bashforth_solve(_constant, 0.0, 0.0, 1.0, h=0.1)
        assert float(y) == pytest.approx(1.0, abs=1e-12)


# ──────────────────────────────────────────────
# RKF45
# ──────────────────────────────────────────────

class TestRKF45:
    def test_adaptive_config_defaults(self):
        config = AdaptiveConfig()
        assert config.tolerance == 1e-6
        assert config.safety_factor == 1.0
        assert config.min_step == 1e-12
        assert config.max_step == math.inf
        assert config.max_steps == 100_000

    def test_single_step_accuracy(self):
        result = rkf45_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(math.exp(-0.1), abs=1e-8)

    def test_error_estimate_nonzero(self):
        result = rkf45_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.error_estimate) > 0.0

    def test_step_always_taken(self):
        """Even a step far above tolerance is accepted with the requested size."""
        result = rkf45_step(_exponential_decay, 0.0, 1.0, 2.0)
        assert float(result.dt_used) == pytest.approx(2.0)
        assert float(result.dt_next) < 2.0

    def test_dt_next_formula(self):
        """Default config: h_new = h * (tol / err) ** 0.2."""
        result = rkf45_step(_exponential_decay, 0.0, 1.0, 0.1)
        err = float(result.error_estimate)
        expected = 0.1 * (1e-6 / err) ** 0.2
        assert float(result.dt_next) == pytest.approx(expected, rel=1e-9)
        assert float(result.dt_next) == pytest.approx(0.23726, rel=1e-4)

    def test_dt_next_safety_factor_opt_in(self):
        bare = rkf45_step(_exponential_decay, 0.0, 1.0, 0.1)
        scaled = rkf45_step(_exponential_decay, 0.0, 1.0, 0.1, AdaptiveConfig(safety_factor=0.9))
        assert float(scaled.dt_next) == pytest.approx(0.9 * float(bare.dt_next), rel=1e-9)

    def test_zero_error_keeps_step(self):
        result = rkf45_step(lambda x, y: jnp.zeros_like(y), 0.0, 1.0, 0.1)
        assert float(result.error_estimate) == 0.0
        assert float(result.dt_next) == pytest.approx(0.1)

    def test_next_step_size_zero_error(self):
        h = compute_next_step_size(0.0, -0.25, 1e-6, 4.0, 0.9, 1e-12, math.inf)
        assert float(h) == pytest.approx(-0.25)

    def test_next_step_size_clamped(self):
        h = compute_next_step_size(1e-20, 0.1, 1e-6, 4.0, 0.9, 1e-12, 0.5)
        assert float(h) == pytest.approx(0.5)
        h = compute_next_step_size(1e10, 0.1, 1e-6, 4.0, 0.9, 1e-3, math.inf)
        assert float(h) == pytest.approx(1e-3)

    def test_backward_dt_next_negative(self):
        result = rkf45_step(_exponential_decay, 1.0, 1.0, -0.1)
        assert float(result.dt_next) < 0.0

    def test_error_below_tolerance_in_most_steps(self):
        """With a 0.9 safety factor, marching with dt_next keeps the local error under tolerance."""
        config = AdaptiveConfig(tolerance=1e-8, safety_factor=0.9)
        x, y, h = 0.0, jnp.asarray(1.0), 0.1
        errors = []
        while x < 2.0:
            result = rkf45_step(linear_sum, x, y, h, config)
            errors.append(float(result.error_estimate))
            x += float(result.dt_used)
            y = result.state
            h = float(result.dt_next)
        below = sum(err <= config.tolerance for err in errors)
        assert len(errors) > 10
        assert below / len(errors) >= 0.8

    def test_solve_linear_sum(self):
        """y' = x + y, y(0) = 1: y(1) = 2e - 2."""
        y = rkf45_solve(linear_sum, 0.0, 1.0, 1.0, h=0.1)
        assert float(y) == pytest.approx(2.0 * math.e - 2.0, abs=1e-5)

    def test_solve_lands_on_target(self):
        """A constant slope integrates to exactly x_target - x0."""
        y = rkf45_solve(_constant, 0.0, 0.0, 1.0, h=0.3)
        assert float(y) == pytest.approx(1.0, abs=1e-12)

    def test_solve_backward(self):
        y = rkf45_solve(_exponential_decay, 1.0, math.exp(-1.0), 0.0, h=-0.1)
        assert float(y) == pytest.approx(1.0, abs=1e-5)

    def test_solve_with_steps(self):
        y = rkf45_solve(_exponential_decay, 0.0, 1.0, 1.0, steps=4)
        assert float(y) == pytest.approx(math.exp(-1.0), abs=1e-5)

    def test_solve_step_limit(self):
        config = AdaptiveConfig(max_steps=5, max_step=0.01)
        with pytest.raises(StepLimitExceeded, match="5 steps"):
            rkf45_solve(_exponential_decay, 0.0, 1.0, 10.0, h=0.01, config=config)


# ──────────────────────────────────────────────
# Bogacki-Shampine
# ──────────────────────────────────────────────

class TestBogackiShampine:
    def test_single_step_accuracy(self):
        result = bogacki_shampine_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(math.exp(-0.1), abs=1e-5)

    def test_third_order_update(self):
        """On y' = -y the accepted value is 1 - h + h^2/2 - h^3/6."""
        h = 0.1
        result = bogacki_shampine_step(_exponential_decay, 0.0, 1.0, h)
        assert float(result.state) == pytest.approx(1 - h + h**2 / 2 - h**3 / 6, abs=1e-14)

    def test_error_estimate(self):
        result = bogacki_shampine_step(_exponential_decay, 0.0, 1.0, 0.1)
        assert 0.0 < float(result.error_estimate) < 1e-3

    def test_exact_for_quadratic(self):
        result = bogacki_shampine_step(_linear, 0.0, 0.0, 1.0)
        assert float(result.state) == pytest.approx(0.5, abs=1e-14)

    def test_solve_keeps_fixed_step(self):
        """The solve result equals repeated fixed-size steps."""
        y = jnp.asarray(1.0)
        for i in range(10):
            y = bogacki_shampine_step(_exponential_decay, 0.1 * i, y, 0.1).state
        y_solve = bogacki_shampine_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.1)
        assert float(y_solve) == pytest.approx(float(y), abs=1e-12)


# ──────────────────────────────────────────────
# QSS family
# ──────────────────────────────────────────────

class TestQSS:
    @pytest.mark.parametrize(
        "qss_step, rk_step", [(qss1_step, euler_step), (qss2_step, heun_step)]
    )
    def test_zero_quantum_reduces_to_rk(self, qss_step, rk_step):
        a = qss_step(sine_cosine, 0.2, 0.4, 0.1, 0.0).state
        b = rk_step(sine_cosine, 0.2, 0.4, 0.1).state
        assert float(a) == pytest.approx(float(b), abs=1e-14)

    def test_qss3_zero_quantum_third_order(self):
        h = 0.1
        result = qss3_step(_exponential_decay, 0.0, 1.0, h, 0.0)
        assert float(result.state) == pytest.approx(1 - h + h**2 / 2 - h**3 / 6, abs=1e-14)

    @pytest.mark.parametrize("qss_step", [qss1_step, qss2_step, qss3_step])
    def test_large_quantum_holds_state(self, qss_step):
        result = qss_step(_exponential_decay, 0.0, 1.0, 0.1, 0.5)
        assert float(result.state) == 1.0

    def test_threshold_is_inclusive(self):
        result = qss1_step(_constant, 0.0, 0.0, 0.25, 0.25)
        assert float(result.state) == pytest.approx(0.25)

    def test_component_wise_gating(self):
        y0 = jnp.array([1.0, 0.001])
        result = qss1_step(_exponential_decay, 0.0, y0, 0.1, 0.01)
        assert jnp.allclose(result.state, jnp.array([0.9, 0.001]))

    def test_negative_quantum_raises(self):
        with pytest.raises(ValueError, match="delta_q"):
            qss1_step(_exponential_decay, 0.0, 1.0, 0.1, -1e-3)
        with pytest.raises(ValueError, match="delta_q"):
            qss2_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.1, delta_q=-1.0)

    @pytest.mark.parametrize(
        "qss_solve, rk_solve",
        [(qss1_solve, euler_solve), (qss2_solve, heun_solve)],
    )
    def test_solve_zero_quantum_matches_rk(self, qss_solve, rk_solve):
        a = qss_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.01, delta_q=0.0)
        b = rk_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.01)
        assert float(a) == pytest.approx(float(b), abs=1e-12)

    def test_qss3_solve_accuracy(self):
        y = qss3_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.01, delta_q=1e-6)
        assert float(y) == pytest.approx(math.exp(-1.0), abs=1e-6)

    def test_quantized_step_input(self):
        """The state decays below 1, then settles just above the input level 10."""
        model = create_quantized_step_input()
        y = qss1_solve(model, 0.0, 1.0, 10.0, h=0.1, delta_q=0.05)
        assert 10.0 <= float(y) <= 10.1 + 1e-9


# ──────────────────────────────────────────────
# JAX compatibility tests
# ──────────────────────────────────────────────

class TestJAXCompatibility:
    def test_jit_rk4(self):
        @jax.jit
        def step(x, y, h):
            return rk4_step(_exponential_decay, x, y, h)

        result = step(0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(math.exp(-0.1), abs=1e-6)

    def test_jit_rkf45(self):
        @jax.jit
        def step(x, y, h):
            return rkf45_step(linear_sum, x, y, h)

        result = step(0.0, 1.0, 0.1)
        assert jnp.isfinite(result.state)
        assert jnp.isfinite(result.dt_next)

    def test_jit_qss(self):
        @jax.jit
        def step(x, y, h):
            return qss2_step(_exponential_decay, x, y, h, 0.01)

        result = step(0.0, 1.0, 0.1)
        assert float(result.state) == pytest.approx(0.905)

    def test_vmap_initial_conditions(self):
        y0 = jnp.array([1.0, 2.0, 3.0])

        def step(y):
            return bogacki_shampine_step(_exponential_decay, 0.0, y, 0.1).state

        results = jax.vmap(step)(y0)
        assert results.shape == (3,)
        assert jnp.allclose(results, y0 * math.exp(-0.1), atol=1e-5)

    def test_grad_through_step(self):
        def final(y0):
            return rk4_step(_exponential_decay, 0.0, y0, 0.1).state

        assert float(jax.grad(final)(1.0)) == pytest.approx(math.exp(-0.1), abs=1e-6)


# ──────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────

class TestLogging:
    def test_fixed_step_solve_logs_step_count(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="damndiff"):
            euler_solve(_exponential_decay, 0.0, 1.0, 1.0, h=0.01)
        assert "euler: 100 steps" in caplog.text

    def test_rkf45_solve_logs_step_count(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="damndiff"):
            rkf45_solve(linear_sum, 0.0, 1.0, 1.0, h=0.1)
        assert "rkf45: reached" in caplog.text
