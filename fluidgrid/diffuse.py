"""
diffuse.py - Diffusion via Gauss-Seidel Relaxation
==================================================
Diffusion makes fluids spread out over time.
  - High diffusion  → density spreads fast (watercolor bleed)
  - Low diffusion   → density stays tight (laser-focused smoke column)
  - High viscosity  → thick fluid (honey)
  - Low viscosity   → thin fluid (air, water)

The math: We need to solve the implicit heat equation:
  (I - a·∇²) x_new = x_old

where a = dt * diffusion * (N-2)²

Implicit diffusion is unconditionally stable: large dt smooths more,
it never blows up.

The same relaxation also solves the pressure equation in solver.py,
just with different coefficients.

Gauss-Seidel updates in place, so later cells see neighbours that were
already updated in the same sweep. To keep the sweep vectorized we visit
the interior in red/black (checkerboard) order: every red cell only has
black neighbours and vice versa, so each colour is one NumPy assignment
and the black half reads the red values written just before it.

The sweep count is fixed at N, not "until converged". That bounds the cost
of a step no matter what the field looks like.
"""

import numpy as np

from .grid import as_grid, set_boundary


def _checkerboard(N: int) -> tuple[np.ndarray, np.ndarray]:
    """Red/black masks over the (N-2, N-2) interior block."""
    j, i = np.indices((N - 2, N - 2))
    red = (i + j) % 2 == 0
    return red, ~red


def lin_solve(b: int, x: np.ndarray, x0: np.ndarray, a: float, c: float,
              N: int, iterations: int = None):
    """
    Relax x[i,j] = (x0[i,j] + a * sum_of_4_neighbors) / c over the interior.

    Args:
        b          : FieldKind used for boundary enforcement after each sweep
        x          : Flat field being solved for (updated in place)
        x0         : Flat right-hand side
        a, c       : Neighbour weight and normalisation
        N          : Grid side
        iterations : Sweep count, N when omitted
    """
    if iterations is None:
        iterations = N

    g = as_grid(x, N)
    rhs = as_grid(x0, N)[1:-1, 1:-1]
    inner = g[1:-1, 1:-1]  # view, writes land in x
    c_recip = 1.0 / c
    masks = _checkerboard(N)

    for _ in range(iterations):
        for mask in masks:
            neighbors = (
                g[1:-1, 2: ] +   # x+1
                g[1:-1, :-2] +   # x-1
                g[2:,  1:-1] +   # y+1
                g[:-2, 1:-1]     # y-1
            )
            inner[mask] = ((rhs + a * neighbors) * c_recip)[mask]

        set_boundary(b, x, N)


def diffuse(b: int, x: np.ndarray, x0: np.ndarray, diff: float, dt: float, N: int):
    """
    Implicit diffusion of x0 into x.

    diff == 0 gives a == 0, which copies x0 into the interior and then
    enforces the boundary, so it is still run rather than skipped.

    Modifies: x (in-place)
    """
    a = dt * diff * (N - 2) * (N - 2)
    lin_solve(b, x, x0, a, 1.0 + 4.0 * a, N)
