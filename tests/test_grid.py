"""Tests for step-grid resolution and the bounded fixed-step drivers."""

import math

import jax.numpy as jnp
import pytest

from damndiff.errors import InvalidStepDirection, ZeroStepSize
from damndiff.integrators import euler_solve, resolve_grid, rk4_solve


# ──────────────────────────────────────────────
# resolve_grid
# ──────────────────────────────────────────────

class TestResolveGrid:
    def test_step_size_exact_multiple(self):
        h, n = resolve_grid(0.0, 1.0, h=0.01)
        assert h == 0.01
        assert n == 100

    def test_step_size_with_overshoot(self):
        """A span that is not a multiple of h takes one extra, overshooting step."""
        assert resolve_grid(0.0, 1.0, h=0.3) == (0.3, 4)

    def test_steps(self):
        assert resolve_grid(0.0, 40.0, steps=8) == (5.0, 8)

    def test_backward(self):
        h, n = resolve_grid(1.0, 0.0, h=-0.1)
        assert h == -0.1
        assert n == 10

    def test_backward_steps(self):
        h, n = resolve_grid(2.0, 0.0, steps=4)
        assert h == pytest.approx(-0.5)
        assert n == 4

    def test_zero_span_with_h(self):
        assert resolve_grid(3.0, 3.0, h=0.1) == (0.1, 0)

    def test_zero_span_with_steps(self):
        assert resolve_grid(3.0, 3.0, steps=5) == (0.0, 0)

    def test_accepts_jax_scalars(self):
        h, n = resolve_grid(jnp.asarray(0.0), jnp.asarray(2.0), h=jnp.asarray(0.5))
        assert n == 4

    def test_h_larger_than_span(self):
        assert resolve_grid(0.0, 1.0, h=5.0) == (5.0, 1)


class TestResolveGridErrors:
    def test_both_h_and_steps(self):
        with pytest.raises(ValueError, match="Exactly one"):
            resolve_grid(0.0, 1.0, h=0.1, steps=10)

    def test_neither_h_nor_steps(self):
        with pytest.raises(ValueError, match="Exactly one"):
            resolve_grid(0.0, 1.0)

    @pytest.mark.parametrize("steps", [0, -3, 2.5, True])
    def test_invalid_steps(self, steps):
        with pytest.raises(ValueError, match="positive integer"):
            resolve_grid(0.0, 1.0, steps=steps)

    def test_zero_step_size(self):
        with pytest.raises(ZeroStepSize):
            resolve_grid(0.0, 1.0, h=0.0)

    def test_zero_step_size_on_zero_span(self):
        with pytest.raises(ZeroStepSize):
            resolve_grid(1.0, 1.0, h=0.0)

    def test_wrong_direction_forward(self):
        with pytest.raises(InvalidStepDirection):
            resolve_grid(0.0, 1.0, h=-0.1)

    def test_wrong_direction_backward(self):
        with pytest.raises(InvalidStepDirection):
            resolve_grid(1.0, 0.0, h=0.1)

    @pytest.mark.parametrize(
        "x0, x_target, h",
        [(0.0, math.inf, 0.1), (math.nan, 1.0, 0.1), (0.0, 1.0, math.nan)],
    )
    def test_non_finite(self, x0, x_target, h):
        with pytest.raises(ValueError, match="finite"):
            resolve_grid(x0, x_target, h=h)


# ──────────────────────────────────────────────
# Fixed-step driver behaviour
# ──────────────────────────────────────────────

class TestFixedStepDriver:
    def test_zero_span_returns_initial_state(self):
        y = euler_solve(lambda x, y: -y, 1.0, 2.0, 1.0, h=0.1)
        assert float(y) == 2.0

    def test_zero_span_vector(self):
        y0 = jnp.array([1.0, 2.0, 3.0])
        y = rk4_solve(lambda x, y: -y, 0.0, y0, 0.0, steps=3)
        assert jnp.array_equal(y, y0)

    def test_overshoot_matches_while_loop(self):
        """h=0.3 over [0, 1] runs four steps, to x=1.2."""
        y = euler_solve(lambda x, y: jnp.ones_like(y), 0.0, 0.0, 1.0, h=0.3)
        assert float(y) == pytest.approx(1.2)

    def test_steps_do_not_overshoot(self):
        y = euler_solve(lambda x, y: jnp.ones_like(y), 0.0, 0.0, 1.0, steps=4)
        assert float(y) == pytest.approx(1.0)

    def test_nodes_at_x0_plus_ih(self):
        """Euler on dy/dx = x sums h * x_i over the nodes x_i = i * h."""
        y = euler_solve(lambda x, y: x, 0.0, 0.0, 1.0, h=0.1)
        assert float(y) == pytest.approx(0.45, abs=1e-12)

    def test_backward_integration(self):
        y = rk4_solve(lambda x, y: -y, 1.0, jnp.exp(-1.0), 0.0, h=-0.01)
        assert float(y) == pytest.approx(1.0, abs=1e-9)

    def test_many_small_steps_count(self):
        """1000 steps of 0.001 land on 1.0 without a spurious extra step."""
        y = euler_solve(lambda x, y: jnp.ones_like(y), 0.0, 0.0, 1.0, h=0.001)
        assert float(y) == pytest.approx(1.0, abs=1e-9)
