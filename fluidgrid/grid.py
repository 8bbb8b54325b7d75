"""
grid.py - Collocated Square Grid
================================
The foundation of the entire simulation.

Layout:
  - Every field (density, vx, vy) lives at CELL CENTERS, one value per cell.
  - Storage is a flat array of N*N floats; cell (x, y) sits at x + y*N.
  - Rows/cols 0 and N-1 are the boundary ring. They are never solved for,
    only filled in from the interior by set_boundary().

A 2D view of a field (see as_grid) is indexed [y, x] and shares memory with
the flat array, so slicing the view is the same as walking ix() offsets.
"""

from enum import IntEnum

import numpy as np

from .config import validate_grid_size


class FieldKind(IntEnum):
    """Boundary tag: decides which edges flip sign in set_boundary()."""
    DENSITY = 0
    X_VELOCITY = 1
    Y_VELOCITY = 2


def ix(x: int, y: int, N: int) -> int:
    """Linear offset of cell (x, y). Caller guarantees 0 <= x, y < N."""
    return x + y * N


def as_grid(field: np.ndarray, N: int) -> np.ndarray:
    """2D [y, x] view onto a flat field (no copy)."""
    return field.reshape(N, N)


def set_boundary(b: int, field: np.ndarray, N: int):
    """
    Fill the boundary ring from the interior.

      - Top/bottom rows copy the adjacent interior row, negated for Y_VELOCITY
        (no flow through horizontal walls).
      - Left/right columns copy the adjacent interior column, negated for
        X_VELOCITY (no flow through vertical walls).
      - Corners average their two edge neighbours, whatever the kind.

    Modifies: field (in-place)
    """
    g = as_grid(field, N)

    sy = -1.0 if b == FieldKind.Y_VELOCITY else 1.0
    g[0,  1:-1] = sy * g[1,  1:-1]
    g[-1, 1:-1] = sy * g[-2, 1:-1]

    sx = -1.0 if b == FieldKind.X_VELOCITY else 1.0
    g[1:-1, 0 ] = sx * g[1:-1, 1 ]
    g[1:-1, -1] = sx * g[1:-1, -2]

    # ── Corners ───────────────────────────────────────────────────────────
    g[0,  0 ] = 0.5 * (g[0,  1 ] + g[1,  0 ])
    g[-1, 0 ] = 0.5 * (g[-1, 1 ] + g[-2, 0 ])
    g[0,  -1] = 0.5 * (g[0,  -2] + g[1,  -1])
    g[-1, -1] = 0.5 * (g[-1, -2] + g[-2, -1])


def compute_divergence(vx: np.ndarray, vy: np.ndarray, N: int) -> np.ndarray:
    """
    Scaled central-difference divergence used by the pressure solve:

      div[i,j] = -0.5 * (vx[i+1,j] - vx[i-1,j] + vy[i,j+1] - vy[i,j-1]) / N

    Only interior cells are filled; the boundary ring is left at zero.

    Returns: flat array of N*N values.
    """
    u = as_grid(vx, N)
    v = as_grid(vy, N)
    div = np.zeros(N * N, dtype=vx.dtype)
    as_grid(div, N)[1:-1, 1:-1] = -0.5 * (
        u[1:-1, 2:] - u[1:-1, :-2] +
        v[2:, 1:-1] - v[:-2, 1:-1]
    ) / N
    return div


def _read_only(field: np.ndarray) -> np.ndarray:
    view = field.view()
    view.flags.writeable = False
    return view


class FluidGrid:
    """
    N x N collocated grid storing all simulation state.
    This is the single source of truth passed between all physics steps.

    Out-of-range forcing coordinates are clamped into [0, N-1].
    """

    def __init__(self, N: int = 64, dtype=np.float64):
        """
        Args:
            N     : Cells per axis, at least 3
            dtype : Float type of every field
        """
        self.N = validate_grid_size(N)
        size = self.N * self.N

        # ── Simulated fields ───────────────────────────────────────────────
        self._density = np.zeros(size, dtype=dtype)
        self._vx = np.zeros(size, dtype=dtype)
        self._vy = np.zeros(size, dtype=dtype)

        # ── Scratch, overwritten on every step ─────────────────────────────
        # Contents are only meaningful inside the call that last wrote them.
        self.density_prev = np.zeros(size, dtype=dtype)
        self.vx_prev = np.zeros(size, dtype=dtype)
        self.vy_prev = np.zeros(size, dtype=dtype)
        self.pressure = np.zeros(size, dtype=dtype)
        self.divergence = np.zeros(size, dtype=dtype)

    # ── Mutable access for the solver ──────────────────────────────────────

    @property
    def density_field(self) -> np.ndarray:
        return self._density

    @property
    def vx_field(self) -> np.ndarray:
        return self._vx

    @property
    def vy_field(self) -> np.ndarray:
        return self._vy

    # ── Read-only access for renderers ─────────────────────────────────────

    @property
    def density(self) -> np.ndarray:
        return _read_only(self._density)

    @property
    def vx(self) -> np.ndarray:
        return _read_only(self._vx)

    @property
    def vy(self) -> np.ndarray:
        return _read_only(self._vy)

    def density_snapshot(self) -> np.ndarray:
        """Read-only copy of the density field, safe to keep across steps."""
        return _read_only(self._density.copy())

    def density_grid(self) -> np.ndarray:
        """Read-only [y, x] view of density, ready for imshow."""
        return _read_only(as_grid(self._density, self.N))

    def clamp(self, x: int, y: int) -> tuple[int, int]:
        N = self.N
        return min(max(int(x), 0), N - 1), min(max(int(y), 0), N - 1)

    def add_density(self, x: int, y: int, amount: float):
        """Add `amount` of density at cell (x, y)."""
        x, y = self.clamp(x, y)
        self._density[ix(x, y, self.N)] += amount

    def add_velocity(self, x: int, y: int, amount_x: float, amount_y: float):
        """Add a velocity impulse at cell (x, y)."""
        x, y = self.clamp(x, y)
        i = ix(x, y, self.N)
        self._vx[i] += amount_x
        self._vy[i] += amount_y

    def snapshot_previous(self):
        """Copy the current fields into their scratch twins."""
        np.copyto(self.vx_prev, self._vx)
        np.copyto(self.vy_prev, self._vy)
        np.copyto(self.density_prev, self._density)

    def compute_divergence(self) -> np.ndarray:
        return compute_divergence(self._vx, self._vy, self.N)

    def total_density(self) -> float:
        return float(self._density.sum())

    def reset(self):
        """Zero out all fields. Useful for running multiple simulations."""
        for arr in [self._density, self._vx, self._vy,
                    self.density_prev, self.vx_prev, self.vy_prev,
                    self.pressure, self.divergence]:
            arr[:] = 0.0

    def __repr__(self):
        max_div = np.abs(self.compute_divergence()).max()
        max_vel = max(np.abs(self._vx).max(), np.abs(self._vy).max())
        return (
            f"FluidGrid(N={self.N})\n"
            f"  density  : max={self._density.max():.4f}, sum={self._density.sum():.2f}\n"
            f"  velocity : max_component={max_vel:.4f}\n"
            f"  divergence: max={max_div:.6f}"
        )
