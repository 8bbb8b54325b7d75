"""
recorder.py - Density Frame Recorder
====================================
Runs a scripted simulation and saves what a renderer would have seen.

Output structure on disk:
  frames/
    run_001/
      frame_0000_density.npy    ← shape (N*N,), offset x + y*N
      frame_0000.png            ← optional preview (blue → red ramp)
      ...
    run_002/
      ...
    metadata.json               ← params, emitters, frame counts

Load a frame back with:
  d = np.load("frames/run_001/frame_0000_density.npy").reshape(N, N)  # [y, x]
"""

import json
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from fluidgrid import FluidSimulation, FluidParams, Emitter
from fluidgrid.forces import add_random_central_velocity, fade_density
from visualizer import density_to_rgba


class FrameRecorder:
    """
    Steps a simulation and captures density snapshots.

    Usage:
        rec = FrameRecorder(output_dir="frames", params=FluidParams(N=64))
        rec.record_run(run_id=1, n_frames=200, random_seed=42)
    """

    def __init__(self, output_dir: str = "frames", params: FluidParams = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.params = params or FluidParams()
        self.metadata = {
            "params": self.params.to_dict(),
            "runs": []
        }

    def record_run(
        self,
        run_id: int,
        n_frames: int = 200,
        random_seed: int = None,
        n_emitters: int = 1,
        kick: float = 0.0,
        fade: float = 0.0,
        save_every: int = 1,
        save_png: bool = False,
    ) -> dict:
        """
        Record one simulation run.

        Args:
            run_id      : Integer ID for this run (used in folder name)
            n_frames    : How many steps to simulate
            random_seed : For reproducibility (emitter placement, kicks)
            n_emitters  : Number of continuous sources
            kick        : Magnitude of a random central velocity kick per frame
            fade        : Density decay per frame
            save_every  : Save a snapshot every k frames (1 = all frames)
            save_png    : Also write a colour preview per saved frame
        """
        rng = np.random.default_rng(random_seed)

        run_dir = self.output_dir / f"run_{run_id:03d}"
        run_dir.mkdir(parents=True, exist_ok=True)

        sim = FluidSimulation(params=self.params)
        N = sim.N

        emitters = []
        for _ in range(n_emitters):
            x = int(rng.integers(N // 4, 3 * N // 4))
            y = int(rng.integers(1, max(2, N // 4)))
            velocity = (float(rng.uniform(-0.5, 0.5)), 1.0)
            emitters.append(sim.add_emitter(Emitter(x, y, density=10.0, velocity=velocity)))

        print(f"\n[Recorder] Starting run {run_id:03d} | "
              f"{n_frames} frames | {n_emitters} emitter(s) | seed={random_seed}")

        saved_count = 0
        for frame in range(n_frames):
            if kick > 0:
                add_random_central_velocity(sim.grid, kick, rng)

            metrics = sim.step()
            if fade > 0:
                fade_density(sim.grid, fade)

            if frame % save_every == 0:
                prefix = run_dir / f"frame_{frame:04d}"
                density = sim.density_snapshot()
                np.save(f"{prefix}_density.npy", density)
                if save_png:
                    plt.imsave(f"{prefix}.png", density_to_rgba(density, N), origin="lower")
                saved_count += 1

            if frame % 50 == 0:
                print(f"  Frame {frame:04d}/{n_frames} | "
                      f"{metrics['fps']:.1f} FPS | "
                      f"div_max={metrics['divergence_max']:.5f} | "
                      f"density={metrics['density_total']:.1f}")

        print(f"[Recorder] Run {run_id:03d} done. Saved {saved_count} snapshots → {run_dir}")

        run_meta = {
            "run_id"       : run_id,
            "n_frames"     : n_frames,
            "saved_frames" : saved_count,
            "save_every"   : save_every,
            "random_seed"  : random_seed,
            "kick"         : kick,
            "fade"         : fade,
            "emitters"     : [
                {"x": e.x, "y": e.y, "density": e.density, "velocity": list(e.velocity)}
                for e in emitters
            ],
            "directory"    : str(run_dir),
        }
        self.metadata["runs"].append(run_meta)

        meta_path = self.output_dir / "metadata.json"
        with open(meta_path, "w") as f:
            json.dump(self.metadata, f, indent=2)

        return run_meta

    def record(self, n_runs: int = 3, frames_per_run: int = 200, save_every: int = 2,
               save_png: bool = False):
        """Record several runs, each with its own seed."""
        print(f"\n{'='*60}")
        print(f"  Recording: {n_runs} runs × {frames_per_run} frames")
        print(f"{'='*60}")

        for run_id in range(1, n_runs + 1):
            self.record_run(
                run_id=run_id,
                n_frames=frames_per_run,
                random_seed=run_id * 42,
                save_every=save_every,
                save_png=save_png,
            )

        print(f"\n✓ Recording complete. Metadata: {self.output_dir / 'metadata.json'}")
