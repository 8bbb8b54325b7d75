"""
visualizer.py - 2D Density Viewer
=================================
Renders the density field of a FluidSimulation once per frame and turns
mouse input into grid-space injections.

  - Left button held  → add density under the pointer
  - Right button drag → push velocity along the drag direction

The renderer only ever reads density AFTER step() has returned, and it
clamps density into [0, 1] for display. The solver itself never clamps.

Uses matplotlib FuncAnimation for real-time updates.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import LinearSegmentedColormap

from fluidgrid.forces import POINTER_DENSITY, fade_density

# Custom smoke colormap: transparent black → orange → white
SMOKE_COLORS = ["#000000", "#1a0a00", "#ff6a00", "#ffffff"]
smoke_cmap = LinearSegmentedColormap.from_list("smoke", SMOKE_COLORS)

# Linear blue → red ramp: empty cells are blue, saturated cells red
thermal_cmap = LinearSegmentedColormap.from_list("thermal", ["#0000ff", "#ff0000"])

COLORMAPS = {"smoke": smoke_cmap, "thermal": thermal_cmap}

POINTER_VELOCITY_SCALE = 0.5


def density_to_rgba(density: np.ndarray, N: int) -> np.ndarray:
    """
    Map density to an (N, N, 4) float RGBA image, rows indexed by y.

    Intensity is density clamped into [0, 1]:
      R = intensity, G = 0, B = 1 - intensity, A = 1
    """
    intensity = np.clip(np.asarray(density, dtype=np.float64).reshape(N, N), 0.0, 1.0)
    rgba = np.zeros((N, N, 4))
    rgba[..., 0] = intensity
    rgba[..., 2] = 1.0 - intensity
    rgba[..., 3] = 1.0
    return rgba


def pointer_to_cell(xdata, ydata, N: int):
    """
    Map imshow data coordinates to a clamped grid cell.
    Returns None when the pointer is outside the axes.
    """
    if xdata is None or ydata is None:
        return None
    x = int(np.clip(np.floor(xdata + 0.5), 0, N - 1))
    y = int(np.clip(np.floor(ydata + 0.5), 0, N - 1))
    return x, y


class FluidVisualizer:
    """
    Real-time viewer of the fluid simulation.

    Usage (standalone):
        from fluidgrid import FluidSimulation, Emitter
        from visualizer import FluidVisualizer

        sim = FluidSimulation(N=64)
        sim.add_emitter(Emitter.centered(64))
        viz = FluidVisualizer(sim)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation, cmap: str = "smoke", vmax: float = 1.0,
                 fade: float = 0.0):
        """
        Args:
            simulation : FluidSimulation instance
            cmap       : "smoke" or "thermal"
            vmax       : Density shown at full colour
            fade       : Density decay per frame (0 = none)
        """
        if cmap not in COLORMAPS:
            raise ValueError(f"Unknown colormap: {cmap}. Use one of {sorted(COLORMAPS)}.")
        self.sim = simulation
        self.N = simulation.N
        self.cmap = COLORMAPS[cmap]
        self.vmax = vmax
        self.fade = fade

        self._pressed = None
        self._last_cell = None

        self._setup_figure()

    def _setup_figure(self):
        """Initialize the matplotlib figure and hook up the mouse."""
        self.fig, self.ax = plt.subplots(figsize=(6, 6))
        self.fig.patch.set_facecolor('#0a0a0a')
        self.ax.set_facecolor('#0a0a0a')
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        for spine in self.ax.spines.values():
            spine.set_edgecolor('#333333')

        self.img = self.ax.imshow(
            np.zeros((self.N, self.N)), cmap=self.cmap,
            vmin=0, vmax=self.vmax,
            interpolation='bilinear',
            origin='lower',
            aspect='equal'
        )

        self.title_text = self.fig.suptitle(
            "Fluid Sim | Frame 0 | 0.0 FPS",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )

        self.fig.canvas.mpl_connect("button_press_event", self._on_press)
        self.fig.canvas.mpl_connect("button_release_event", self._on_release)
        self.fig.canvas.mpl_connect("motion_notify_event", self._on_motion)

        plt.tight_layout()

    # ── Input source ──────────────────────────────────────────────────────

    def _on_press(self, event):
        if event.inaxes is not self.ax:
            return
        self._pressed = event.button
        self._last_cell = pointer_to_cell(event.xdata, event.ydata, self.N)

    def _on_release(self, event):
        self._pressed = None
        self._last_cell = None

    def _on_motion(self, event):
        if self._pressed is None or event.inaxes is not self.ax:
            return
        cell = pointer_to_cell(event.xdata, event.ydata, self.N)
        if cell is None:
            return
        if self._pressed == 3 and self._last_cell is not None:
            dx = cell[0] - self._last_cell[0]
            dy = cell[1] - self._last_cell[1]
            self.sim.queue_velocity(*cell, dx * POINTER_VELOCITY_SCALE,
                                    dy * POINTER_VELOCITY_SCALE)
        self._last_cell = cell

    def _apply_pointer(self):
        """Left button held: add density at the last known cell, once per frame."""
        if self._pressed == 1 and self._last_cell is not None:
            self.sim.queue_density(*self._last_cell, POINTER_DENSITY)

    # ── Frame loop ────────────────────────────────────────────────────────

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the image."""
        self._apply_pointer()

        metrics = self.sim.step()
        if self.fade > 0:
            fade_density(self.sim.grid, self.fade)

        self.img.set_data(self.sim.density_grid())

        self.title_text.set_text(
            f"Fluid Sim | Frame {metrics['frame']} | "
            f"{metrics['fps']:.1f} FPS | "
            f"div_max={metrics['divergence_max']:.5f}"
        )

        return [self.img, self.title_text]

    def run(self, fps: int = 30, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = infinite)
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False,
        )
        plt.show()

    def save_gif(self, path: str = "fluid_sim.gif", fps: int = 10, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=100, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
