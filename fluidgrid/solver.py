"""
solver.py - Pressure Projection
===============================
The pressure projection step pushes the velocity field towards
INCOMPRESSIBILITY (div(v) = 0).

After diffusion and advection the velocity field is generally NOT
divergence-free (fluid "piles up" in some cells). We fix this by:
  1. Computing divergence of the current velocity field
  2. Relaxing the pressure equation against it
  3. Subtracting the pressure gradient from velocity: v = v - ∇p

This is called "Helmholtz-Hodge decomposition": any vector field
can be decomposed into a divergence-free part + a curl-free part (gradient).
We want the divergence-free part.

The pressure relaxation uses a fixed (a=1, c=6) and the same N sweeps as
diffusion, so the result is an approximation bounded in cost, not an exact
Poisson solve.
"""

import time

import numpy as np

from .grid import FieldKind, as_grid, compute_divergence, set_boundary
from .diffuse import lin_solve


PRESSURE_A = 1.0
PRESSURE_C = 6.0


def project(vx: np.ndarray, vy: np.ndarray, p: np.ndarray, div: np.ndarray,
            N: int) -> dict:
    """
    Remove divergence from (vx, vy) in place.

    Args:
        vx, vy : Flat velocity fields (modified in place)
        p      : Scratch for pressure, overwritten
        div    : Scratch for divergence, overwritten
        N      : Grid side

    Returns:
        dict with timing and divergence metrics (for benchmarking)
    """
    t_start = time.perf_counter()

    # Step 1: divergence of the incoming velocity, zero pressure guess
    np.copyto(div, compute_divergence(vx, vy, N))
    divergence_before = np.abs(div).max()
    as_grid(p, N)[1:-1, 1:-1] = 0.0

    set_boundary(FieldKind.DENSITY, div, N)
    set_boundary(FieldKind.DENSITY, p, N)

    # Step 2: relax the pressure equation
    lin_solve(FieldKind.DENSITY, p, div, PRESSURE_A, PRESSURE_C, N)

    # Step 3: subtract the pressure gradient
    _subtract_pressure_gradient(vx, vy, p, N)

    set_boundary(FieldKind.X_VELOCITY, vx, N)
    set_boundary(FieldKind.Y_VELOCITY, vy, N)

    t_end = time.perf_counter()

    div_after = compute_divergence(vx, vy, N)

    return {
        "time_ms"               : (t_end - t_start) * 1000,
        "iterations"            : N,
        "divergence_before_max" : float(divergence_before),
        "divergence_after_max"  : float(np.abs(div_after).max()),
        "divergence_after_mean" : float(np.abs(div_after[_interior(N)]).mean()),
    }


def _interior(N: int) -> np.ndarray:
    mask = np.zeros((N, N), dtype=bool)
    mask[1:-1, 1:-1] = True
    return mask.ravel()


def _subtract_pressure_gradient(vx: np.ndarray, vy: np.ndarray,
                                p: np.ndarray, N: int):
    """
    v_new = v_old - ∇p, central differences on interior cells.

    The gradient is scaled by N to undo the 1/N in the divergence.
    """
    u = as_grid(vx, N)
    v = as_grid(vy, N)
    pg = as_grid(p, N)

    u[1:-1, 1:-1] -= 0.5 * (pg[1:-1, 2:] - pg[1:-1, :-2]) * N
    v[1:-1, 1:-1] -= 0.5 * (pg[2:, 1:-1] - pg[:-2, 1:-1]) * N
