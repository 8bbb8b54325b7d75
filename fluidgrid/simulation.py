"""
simulation.py - Master Physics Loop
===================================
This is the complete simulation step that ties everything together.
One call to `step()` advances the fluid by dt.

Physics pipeline per frame:
  1. Apply pending forcing (queued injections, emitters)
  2. Snapshot velocity and density into scratch
  3. Diffuse velocity (viscosity)
  4. Project velocity (remove divergence)
  5. Advect velocity (self-advection)
  6. Project again (clean up after advection)
  7. Diffuse density
  8. Advect density

This follows the "Stable Fluids" paper by Jos Stam.

Nothing here schedules itself: a driver (main.py, the visualizer, a test)
calls step() on whatever cadence it likes. Instrumentation is attached with
add_observer() instead of being mixed into the math.
"""

import logging
import time

import numpy as np

from .config import FluidParams
from .grid import FluidGrid, FieldKind
from .advect import advect
from .diffuse import diffuse
from .forces import ForcingBuffer, Emitter
from .solver import project

logger = logging.getLogger(__name__)


class FluidSimulation:
    """
    The complete 2D fluid simulation.

    Usage:
        sim = FluidSimulation(N=64, diffusion=0.0001)
        sim.add_density(32, 32, 100.0)
        for frame in range(100):
            sim.step()
            density = sim.density          # Hand to renderer
    """

    def __init__(self, N: int = None, dt: float = None,
                 diffusion: float = None, viscosity: float = None,
                 params: FluidParams = None):
        """
        Args:
            N          : Grid resolution (cells per axis)
            dt         : Default timestep used by step()
            diffusion  : Density spreading rate
            viscosity  : Velocity spreading rate
            params     : A full FluidParams; keyword values override it
        """
        base = (params or FluidParams()).to_dict()
        overrides = {"N": N, "dt": dt, "diffusion": diffusion, "viscosity": viscosity}
        base.update({k: v for k, v in overrides.items() if v is not None})
        self.params = FluidParams.from_dict(base)

        self.grid = FluidGrid(N=self.params.N)
        self.forcing = ForcingBuffer()
        self.emitters = []
        self.frame = 0
        self.perf_log = []   # stores timing data per frame
        self._observers = []

    @property
    def N(self) -> int:
        return self.grid.N

    # ── Forcing ───────────────────────────────────────────────────────────

    def add_density(self, x: int, y: int, amount: float):
        self.grid.add_density(x, y, amount)

    def add_velocity(self, x: int, y: int, amount_x: float, amount_y: float):
        self.grid.add_velocity(x, y, amount_x, amount_y)

    def queue_density(self, x: int, y: int, amount: float):
        """Buffer a density injection for the start of the next step."""
        self.forcing.add_density(x, y, amount)

    def queue_velocity(self, x: int, y: int, amount_x: float, amount_y: float):
        """Buffer a velocity injection for the start of the next step."""
        self.forcing.add_velocity(x, y, amount_x, amount_y)

    def add_emitter(self, emitter: Emitter) -> Emitter:
        self.emitters.append(emitter)
        return emitter

    def remove_emitter(self, emitter: Emitter):
        self.emitters.remove(emitter)

    # ── Observers ─────────────────────────────────────────────────────────

    def add_observer(self, callback):
        """Register callback(metrics: dict), called after every step."""
        self._observers.append(callback)

    def remove_observer(self, callback):
        self._observers.remove(callback)

    # ── Read access for renderers ─────────────────────────────────────────

    @property
    def density(self) -> np.ndarray:
        return self.grid.density

    @property
    def vx(self) -> np.ndarray:
        return self.grid.vx

    @property
    def vy(self) -> np.ndarray:
        return self.grid.vy

    def density_snapshot(self) -> np.ndarray:
        return self.grid.density_snapshot()

    def density_grid(self) -> np.ndarray:
        return self.grid.density_grid()

    # ── Stepping ──────────────────────────────────────────────────────────

    def step(self, dt: float = None) -> dict:
        """
        Advance simulation by one timestep.

        Args:
            dt : Timestep, params.dt when omitted
                 Must be positive; ValueError otherwise.

        Returns performance metrics dict for benchmarking.
        """
        if dt is None:
            dt = self.params.dt
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        N = self.N
        visc = self.params.viscosity
        diff = self.params.diffusion

        t_total_start = time.perf_counter()
        g = self.grid
        vx, vy, density = g.vx_field, g.vy_field, g.density_field

        # ── Step 1: External forcing ───────────────────────────────────────
        t0 = time.perf_counter()
        n_events = self.forcing.apply(g)
        for emitter in self.emitters:
            emitter.apply(g)
        t_forces = (time.perf_counter() - t0) * 1000

        # ── Step 2: Save previous state as relaxation source ───────────────
        g.snapshot_previous()

        # ── Step 3: Diffuse velocity (viscosity) ───────────────────────────
        t0 = time.perf_counter()
        diffuse(FieldKind.X_VELOCITY, vx, g.vx_prev, visc, dt, N)
        diffuse(FieldKind.Y_VELOCITY, vy, g.vy_prev, visc, dt, N)
        t_diffuse_vel = (time.perf_counter() - t0) * 1000

        # ── Step 4: Project velocity ───────────────────────────────────────
        t0 = time.perf_counter()
        project(vx, vy, g.pressure, g.divergence, N)
        t_project1 = (time.perf_counter() - t0) * 1000

        # ── Step 5: Advect velocity (self-advection) ───────────────────────
        t0 = time.perf_counter()
        # The projected velocity is both the carried field and the carrier
        np.copyto(g.vx_prev, vx)
        np.copyto(g.vy_prev, vy)
        advect(FieldKind.X_VELOCITY, vx, g.vx_prev, g.vx_prev, g.vy_prev, dt, N)
        advect(FieldKind.Y_VELOCITY, vy, g.vy_prev, g.vx_prev, g.vy_prev, dt, N)
        t_advect_vel = (time.perf_counter() - t0) * 1000

        # ── Step 6: Project again (clean up post-advection divergence) ─────
        t0 = time.perf_counter()
        proj_metrics = project(vx, vy, g.pressure, g.divergence, N)
        t_project2 = (time.perf_counter() - t0) * 1000

        # ── Step 7: Diffuse density ────────────────────────────────────────
        t0 = time.perf_counter()
        diffuse(FieldKind.DENSITY, density, g.density_prev, diff, dt, N)
        t_diffuse_den = (time.perf_counter() - t0) * 1000

        # ── Step 8: Advect density ─────────────────────────────────────────
        t0 = time.perf_counter()
        np.copyto(g.density_prev, density)
        advect(FieldKind.DENSITY, density, g.density_prev, vx, vy, dt, N)
        t_advect_den = (time.perf_counter() - t0) * 1000

        # ── Frame bookkeeping ──────────────────────────────────────────────
        self.frame += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame"            : self.frame,
            "dt"               : dt,
            "forcing_events"   : n_events,
            "total_ms"         : t_total,
            "fps"              : 1000.0 / t_total if t_total > 0 else 0,
            "forces_ms"        : t_forces,
            "diffuse_vel_ms"   : t_diffuse_vel,
            "project1_ms"      : t_project1,
            "advect_vel_ms"    : t_advect_vel,
            "project2_ms"      : t_project2,
            "diffuse_den_ms"   : t_diffuse_den,
            "advect_den_ms"    : t_advect_den,
            "divergence_max"   : proj_metrics["divergence_after_max"],
            "divergence_mean"  : proj_metrics["divergence_after_mean"],
            "density_total"    : g.total_density(),
        }
        self.perf_log.append(metrics)
        logger.debug("frame %d: %.2fms, density_total=%.4f, div_max=%.6f",
                     self.frame, t_total, metrics["density_total"],
                     metrics["divergence_max"])

        for callback in list(self._observers):
            callback(metrics)
        return metrics

    def reset(self):
        """Zero every field and forget queued forcing; emitters stay registered."""
        self.grid.reset()
        self.forcing = ForcingBuffer()
        self.frame = 0
        self.perf_log = []
        logger.debug("simulation reset (N=%d)", self.N)

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        div = g.compute_divergence()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  N={self.N}")
        print(f"  Density   : max={g.density.max():.4f}, total={g.total_density():.2f}")
        print(f"  Velocity  : max_vx={np.abs(g.vx).max():.4f}, max_vy={np.abs(g.vy).max():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
