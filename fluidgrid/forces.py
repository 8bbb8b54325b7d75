"""
forces.py - External Forcing (Injections, Emitters, User Input)
===============================================================
Everything that pushes density or momentum INTO the grid from outside.

Forcing is never applied halfway through a step. Input sources either
call FluidGrid.add_density / add_velocity directly between steps, or queue
events in a ForcingBuffer that the simulation drains at the start of the
next step. Emitters are continuous sources applied at every step.

All coordinates are grid-space and get clamped into [0, N-1].
"""

from dataclasses import dataclass

import numpy as np

from .grid import FluidGrid, as_grid


# ── Defaults of the original interactive setup ───────────────────────────────
POINTER_DENSITY = 100.0        # density added per frame under the pointer
CENTER_DENSITY  = 100.0        # centre source injected every tick
CENTER_VELOCITY = (1.0, 0.0)


class ForcingBuffer:
    """
    Collects injections between ticks.

    Usage:
        buf = ForcingBuffer()
        buf.add_density(10, 12, 50.0)      # from a mouse handler
        buf.apply(grid)                    # at the start of step()
    """

    def __init__(self):
        self._events = []

    def add_density(self, x: int, y: int, amount: float):
        self._events.append(("density", x, y, amount, 0.0))

    def add_velocity(self, x: int, y: int, amount_x: float, amount_y: float):
        self._events.append(("velocity", x, y, amount_x, amount_y))

    def __len__(self):
        return len(self._events)

    def apply(self, grid: FluidGrid) -> int:
        """Apply every queued event in arrival order, then clear. Returns the count."""
        events, self._events = self._events, []
        for kind, x, y, a, b in events:
            if kind == "density":
                grid.add_density(x, y, a)
            else:
                grid.add_velocity(x, y, a, b)
        return len(events)


@dataclass
class Emitter:
    """
    A continuous source: density and velocity added at one cell every step.

    Args:
        x, y     : Source cell
        density  : Density added per step
        velocity : (vx, vy) added per step
        radius   : 0 for a single cell, otherwise a square brush
    """
    x: int
    y: int
    density: float = CENTER_DENSITY
    velocity: tuple = CENTER_VELOCITY
    radius: int = 0

    def apply(self, grid: FluidGrid):
        if self.radius > 0:
            splat_density(grid, self.x, self.y, self.density, self.radius)
            splat_velocity(grid, self.x, self.y, *self.velocity, radius=self.radius)
        else:
            grid.add_density(self.x, self.y, self.density)
            grid.add_velocity(self.x, self.y, *self.velocity)

    @classmethod
    def centered(cls, N: int, **kwargs) -> "Emitter":
        """Source at the grid centre, like the original always-on injection."""
        return cls(N // 2, N // 2, **kwargs)


def _brush(grid: FluidGrid, x: int, y: int, radius: int) -> tuple[slice, slice]:
    x, y = grid.clamp(x, y)
    N = grid.N
    x0, x1 = max(0, x - radius), min(N, x + radius + 1)
    y0, y1 = max(0, y - radius), min(N, y + radius + 1)
    return slice(y0, y1), slice(x0, x1)


def splat_density(grid: FluidGrid, x: int, y: int, amount: float, radius: int = 2):
    """
    Inject density over a square brush centred at (x, y).
    Every covered cell receives `amount`.
    """
    rows, cols = _brush(grid, x, y, radius)
    as_grid(grid.density_field, grid.N)[rows, cols] += amount


def splat_velocity(grid: FluidGrid, x: int, y: int,
                   amount_x: float, amount_y: float, radius: int = 2):
    """Apply a velocity impulse over a square brush centred at (x, y)."""
    rows, cols = _brush(grid, x, y, radius)
    as_grid(grid.vx_field, grid.N)[rows, cols] += amount_x
    as_grid(grid.vy_field, grid.N)[rows, cols] += amount_y


def add_random_central_velocity(grid: FluidGrid, magnitude: float,
                                rng: np.random.Generator = None) -> tuple[float, float]:
    """
    Kick the centre cell in a random direction.

    Args:
        magnitude : Length of the velocity added
        rng       : numpy Generator, a fresh default one when omitted

    Returns the (vx, vy) that was added.
    """
    if rng is None:
        rng = np.random.default_rng()
    angle = rng.uniform(0.0, 2.0 * np.pi)
    vx, vy = magnitude * np.cos(angle), magnitude * np.sin(angle)
    grid.add_velocity(grid.N // 2, grid.N // 2, vx, vy)
    return float(vx), float(vy)


def fade_density(grid: FluidGrid, rate: float):
    """
    Decay all density by a fraction `rate` (0 = keep, 1 = clear).
    Keeps a continuously fed scene from saturating.
    """
    if not 0.0 <= rate <= 1.0:
        raise ValueError(f"fade rate must be in [0, 1], got {rate}")
    density = grid.density_field
    density[:] *= (1.0 - rate)
