"""
main.py - Master Entry Point
============================
Top-level driver: decides WHEN to call step(), the solver decides WHAT a
step does.

Usage:
    python main.py                       # Headless run (default)
    python main.py --mode live           # Live window, mouse injects density
    python main.py --mode benchmark      # Per-stage timing breakdown
    python main.py --mode record         # Save density frames to ./frames/
"""

import argparse
import logging

import numpy as np


def build_params(args):
    from fluidgrid import FluidParams
    return FluidParams(N=args.N, dt=args.dt,
                       diffusion=args.diffusion, viscosity=args.viscosity)


def run_live(params, fade: float = 0.0):
    """Live interactive visualization with an always-on centre source."""
    from fluidgrid import FluidSimulation, Emitter
    from visualizer import FluidVisualizer

    print(f"Starting live simulation (N={params.N})...")
    print("Left mouse adds density, right-drag pushes the fluid. Close the window to exit.\n")

    sim = FluidSimulation(params=params)
    sim.add_emitter(Emitter.centered(params.N, density=1.0, velocity=(0.5, 0.0)))
    viz = FluidVisualizer(sim, fade=fade)
    viz.run(fps=30)


def run_headless(params, frames: int = 100):
    """Run simulation without display, prints stats every 10 frames."""
    from fluidgrid import FluidSimulation, Emitter

    print(f"\nHeadless simulation | N={params.N} | {frames} frames")
    print(f"{'─'*60}")

    sim = FluidSimulation(params=params)
    sim.add_emitter(Emitter.centered(params.N))
    total_times = []

    for f in range(frames):
        metrics = sim.step()
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Frame {f:03d} | {metrics['total_ms']:6.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"density={metrics['density_total']:.1f}")

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")


def run_benchmark(params, frames: int = 50):
    """
    Detailed performance breakdown.
    Shows how long each physics stage takes.
    """
    from fluidgrid import FluidSimulation, Emitter

    print(f"\n{'='*60}")
    print(f"  BENCHMARK | N={params.N} | {frames} frames")
    print(f"{'='*60}")

    sim = FluidSimulation(params=params)
    sim.add_emitter(Emitter.centered(params.N))

    # Warm up
    for _ in range(5):
        sim.step()

    logs = []
    sim.add_observer(logs.append)
    for _ in range(frames):
        sim.step()

    keys = ["forces_ms", "diffuse_vel_ms", "project1_ms",
            "advect_vel_ms", "project2_ms", "diffuse_den_ms",
            "advect_den_ms", "total_ms"]

    print(f"\n{'Step':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  FPS (physics only): {1000/np.mean(total_vals):.1f}")


def run_record(params, n_runs: int = 3, frames: int = 200, save_png: bool = False):
    """Save density snapshots of scripted runs to ./frames/."""
    from recorder import FrameRecorder

    print(f"\nRecord mode")
    print(f"  N={params.N}, {n_runs} runs, {frames} frames/run")
    print(f"  Saving to: ./frames/\n")

    rec = FrameRecorder(output_dir="frames", params=params)
    rec.record(n_runs=n_runs, frames_per_run=frames, save_every=2, save_png=save_png)


def main(argv=None):
    parser = argparse.ArgumentParser(description="2D Stable Fluid Simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark", "record"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--N",         type=int,   default=64,    help="Grid resolution (default: 64)")
    parser.add_argument("--dt",        type=float, default=0.1,   help="Timestep (default: 0.1)")
    parser.add_argument("--diffusion", type=float, default=0.0,   help="Density diffusion rate")
    parser.add_argument("--viscosity", type=float, default=1e-7,  help="Velocity viscosity")
    parser.add_argument("--frames",    type=int,   default=100,   help="Number of frames")
    parser.add_argument("--runs",      type=int,   default=3,     help="Number of recorded runs")
    parser.add_argument("--fade",      type=float, default=0.0,   help="Density fade per frame (live mode)")
    parser.add_argument("--png",       action="store_true",       help="Also save PNG previews (record mode)")
    parser.add_argument("--verbose",   action="store_true",       help="Log every step")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        params = build_params(args)
    except ValueError as e:
        parser.error(str(e))

    if args.mode == "live":
        run_live(params, fade=args.fade)
    elif args.mode == "headless":
        run_headless(params, frames=args.frames)
    elif args.mode == "benchmark":
        run_benchmark(params, frames=args.frames)
    elif args.mode == "record":
        run_record(params, n_runs=args.runs, frames=args.frames, save_png=args.png)


if __name__ == "__main__":
    main()
