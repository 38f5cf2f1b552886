# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "damndiff"]
#
# [tool.uv.sources]
# damndiff = { path = ".." }
# ///
"""Run every damndiff integrator on the demonstration models.

Integrates the scalar ODE ``dy/dx = sin(y) - cos(x)`` with each scalar
method, then the Lotka-Volterra, Lorenz, decay and harmonic oscillator
systems with each vector method, and prints the final states.

Requires damndiff to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/integrate_demo.py [OPTIONS]

Examples:
    # Defaults (float64, h=0.01)
    uv run examples/integrate_demo.py

    # Coarser step in single precision, with solver debug logging
    uv run examples/integrate_demo.py --step 0.05 --precision float32 --verbose
"""

import enum
import functools
import logging
import time
from typing import Annotated

import jax.numpy as jnp
import typer

from damndiff import set_dtype
from damndiff.integrators import (
    AdaptiveConfig,
    adams_bashforth_solve,
    adams_moulton_solve,
    bogacki_shampine_solve,
    euler_solve,
    forest_ruth_solve,
    heun_solve,
    leapfrog_solve,
    qss1_solve,
    qss2_solve,
    qss3_solve,
    qss_sys_solve,
    radau_ia_solve,
    radau_iia_solve,
    rk2_solve,
    rk4_solve,
    rkf45_solve,
    verlet_solve,
    yoshida4_solve,
)
from damndiff.models import (
    create_lorenz,
    create_lotka_volterra,
    create_quantized_step_input,
    exponential_decay,
    harmonic_energy,
    harmonic_oscillator,
    sine_cosine,
)


class Precision(enum.StrEnum):
    """Floating-point precision."""

    float32 = "float32"
    float64 = "float64"


def _report(name: str, value, elapsed: float) -> None:
    values = ", ".join(f"{v:.6f}" for v in jnp.atleast_1d(jnp.asarray(value)).tolist())
    print(f"  {name:<18} [{values}]  ({elapsed * 1e3:.1f} ms)")


def main(
    step: Annotated[float, typer.Option(help="Fixed step size for every method")] = 0.01,
    precision: Annotated[Precision, typer.Option(help="Float dtype")] = Precision.float64,
    delta_q: Annotated[float, typer.Option(help="Quantum for the QSS methods")] = 1e-4,
    verbose: Annotated[bool, typer.Option(help="Log solver step counts")] = False,
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    set_dtype(jnp.float64 if precision == Precision.float64 else jnp.float32)
    rkf45 = functools.partial(
        rkf45_solve,
        config=AdaptiveConfig(tolerance=1e-6 if precision == Precision.float64 else 1e-3),
    )

    # ── Scalar ODE: dy/dx = sin(y) - cos(x), y(0) = 1, x in [0, 10] ──────────
    print("\n── Scalar ODE: dy/dx = sin(y) - cos(x) ──")
    scalar_methods = {
        "euler": euler_solve,
        "heun": heun_solve,
        "rk2": rk2_solve,
        "rk4": rk4_solve,
        "rkf45": rkf45,
        "bogacki_shampine": bogacki_shampine_solve,
        "adams_bashforth": adams_bashforth_solve,
        "adams_moulton": adams_moulton_solve,
    }
    for name, solve in scalar_methods.items():
        t0 = time.perf_counter()
        y = solve(sine_cosine, 0.0, 1.0, 10.0, h=step)
        _report(name, y, time.perf_counter() - t0)

    for name, solve in (("qss1", qss1_solve), ("qss2", qss2_solve), ("qss3", qss3_solve)):
        t0 = time.perf_counter()
        y = solve(sine_cosine, 0.0, 1.0, 10.0, h=step, delta_q=delta_q)
        _report(name, y, time.perf_counter() - t0)

    # ── Quantized step input ─────────────────────────────────────────────────
    print("\n── Quantized step input: dy/dx = u(x) - trunc(y) ──")
    t0 = time.perf_counter()
    y = qss1_solve(create_quantized_step_input(), 0.0, 1.0, 10.0, h=0.1, delta_q=0.05)
    _report("qss1", y, time.perf_counter() - t0)

    # ── Lotka-Volterra: [40, 10], x in [0, 40] ───────────────────────────────
    print("\n── Lotka-Volterra (alpha=0.1, beta=0.02, gamma=0.3, delta=0.01) ──")
    lotka_volterra = create_lotka_volterra()
    y0 = jnp.array([40.0, 10.0])
    vector_methods = {
        "euler": euler_solve,
        "rk4": rk4_solve,
        "radau_ia": radau_ia_solve,
        "radau_iia": radau_iia_solve,
    }
    for name, solve in vector_methods.items():
        t0 = time.perf_counter()
        y = solve(lotka_volterra, 0.0, y0, 40.0, h=step)
        _report(name, y, time.perf_counter() - t0)

    t0 = time.perf_counter()
    trajectory = qss_sys_solve(lotka_volterra, 0.0, y0, 40.0, h=step, delta_q=delta_q)
    _report("qss_sys", trajectory.y[-1], time.perf_counter() - t0)
    print(f"  qss_sys trajectory: {trajectory.y.shape[0]} nodes")

    # ── Lorenz: [1, 1, 1], t in [0, 5] ───────────────────────────────────────
    print("\n── Lorenz (sigma=10, rho=28, beta=8/3) ──")
    lorenz = create_lorenz()
    for name, solve in (("rk4", rk4_solve), ("rkf45", rkf45)):
        t0 = time.perf_counter()
        y = solve(lorenz, 0.0, jnp.array([1.0, 1.0, 1.0]), 5.0, h=step)
        _report(name, y, time.perf_counter() - t0)

    # ── Decay system: [-y0, -y1], h = 0.08 ───────────────────────────────────
    print("\n── Decay system: dy/dx = -y ──")
    for name, solve in (("euler", euler_solve), ("rk4", rk4_solve)):
        t0 = time.perf_counter()
        y = solve(exponential_decay, 0.0, jnp.array([1.0, 2.0]), 1.0, h=0.08)
        _report(name, y, time.perf_counter() - t0)

    # ── Harmonic oscillator: energy after 10,000 steps ───────────────────────
    print("\n── Harmonic oscillator: relative energy drift ──")
    y0 = jnp.array([1.0, 0.0])
    e0 = float(harmonic_energy(y0))
    symplectic_methods = {
        "euler": euler_solve,
        "leapfrog": leapfrog_solve,
        "verlet": verlet_solve,
        "forest_ruth": forest_ruth_solve,
        "yoshida4": yoshida4_solve,
    }
    for name, solve in symplectic_methods.items():
        y = solve(harmonic_oscillator, 0.0, y0, 10_000 * step, steps=10_000)
        drift = (float(harmonic_energy(y)) - e0) / e0
        print(f"  {name:<18} {drift:+.3e}")

    print("\nDone.")


if __name__ == "__main__":
    typer.run(main)
