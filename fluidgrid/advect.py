"""
advect.py - Semi-Lagrangian Advection
=====================================
This is what makes fluid look like it's *actually flowing*.

The algorithm (per interior cell):
  1. Look at the current cell center position.
  2. Trace BACKWARD along the velocity field by one timestep.
     → "Where did the stuff in this cell come FROM?"
  3. Clamp that position into [0.5, N-1.5] so the 2x2 stencil stays
     inside the grid.
  4. Bilinearly interpolate the source field there.

Unconditionally stable: we only ever interpolate, never extrapolate,
at the price of some numerical smoothing for large displacements.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np

from .grid import as_grid, set_boundary


def _bilinear_interpolate(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation of a 2D [y, x] field at fractional positions.

    Positions must already be clamped so that floor(pos) + 1 is in range.
    """
    i0 = np.floor(x).astype(np.intp)
    j0 = np.floor(y).astype(np.intp)
    i1 = i0 + 1
    j1 = j0 + 1

    s1 = x - i0
    s0 = 1.0 - s1
    t1 = y - j0
    t0 = 1.0 - t1

    return (
        s0 * (t0 * field[j0, i0] + t1 * field[j1, i0]) +
        s1 * (t0 * field[j0, i1] + t1 * field[j1, i1])
    )


def advect(b: int, d: np.ndarray, d0: np.ndarray,
           vx: np.ndarray, vy: np.ndarray, dt: float, N: int):
    """
    Carry d0 along (vx, vy) for one timestep, writing the result into d.

    Args:
        b      : FieldKind for the final boundary pass
        d      : Flat destination field
        d0     : Flat source field (must not alias d)
        vx, vy : Flat velocity fields doing the carrying
        dt     : Timestep
        N      : Grid side

    Modifies: d (in-place)
    """
    # Multiply dt by (N-2) to convert velocity into interior-cell units
    dt0 = dt * (N - 2)

    j, i = np.mgrid[1:N - 1, 1:N - 1]
    u = as_grid(vx, N)[1:-1, 1:-1]
    v = as_grid(vy, N)[1:-1, 1:-1]

    x_back = np.clip(i - dt0 * u, 0.5, N - 1.5)
    y_back = np.clip(j - dt0 * v, 0.5, N - 1.5)

    as_grid(d, N)[1:-1, 1:-1] = _bilinear_interpolate(as_grid(d0, N), x_back, y_back)
    set_boundary(b, d, N)
