"""
main.py — Entry Point
======================
Runs the 2D stable-fluids solver.

Usage:
    python main.py                    # Headless run, prints stats (default)
    python main.py --mode live        # Live visualization, drag to stir
    python main.py --mode benchmark   # Per-stage timing breakdown
"""

import argparse
import logging

import numpy as np


def build_simulation(args):
    from stablefluid import FluidSimulation

    return FluidSimulation(
        N=args.N,
        dt=args.dt,
        diffusion=args.diffusion,
        viscosity=args.viscosity,
        iterations=args.iterations,
        vorticity=not args.no_vorticity,
        buoyancy=not args.no_buoyancy,
    )


def feed_emitter(sim, N: int):
    """Steady smoke source at bottom center, pushing upward."""
    sim.add_density(N // 2, 2, 10.0)
    sim.add_force(N // 2, 2, 0.0, 2.0)


def run_live(args):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation (N={args.N})...")
    print("Drag to stir, 'r' resets velocity, 'c' clears density. Close the window to exit.\n")

    sim = build_simulation(args)
    sim.reset_velocity()
    viz = FluidVisualizer(sim)
    viz.run(fps=30)


def run_headless(args):
    """Run simulation without display — prints stats every 10 frames."""
    N = args.N
    print(f"\nHeadless simulation | N={N} | {args.frames} frames")
    print(f"{'─'*60}")

    sim = build_simulation(args)
    total_times = []

    for f in range(args.frames):
        feed_emitter(sim, N)
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
    sim.print_status()


def run_benchmark(args):
    """
    Detailed performance breakdown.
    Shows how long each physics stage takes.
    """
    N = args.N
    print(f"\n{'='*60}")
    print(f"  BENCHMARK | N={N} | iterations={args.iterations} | {args.frames} frames")
    print(f"{'='*60}")

    sim = build_simulation(args)

    # Warm up
    for _ in range(5):
        feed_emitter(sim, N)
        sim.step()

    logs = []
    for _ in range(args.frames):
        feed_emitter(sim, N)
        logs.append(sim.step())

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


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="2D Stable Fluids Simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--N",          type=int,   default=64,     help="Grid resolution (default: 64)")
    parser.add_argument("--frames",     type=int,   default=100,    help="Number of frames")
    parser.add_argument("--dt",         type=float, default=0.2,    help="Timestep (default: 0.2)")
    parser.add_argument("--diffusion",  type=float, default=0.0001, help="Density diffusion rate")
    parser.add_argument("--viscosity",  type=float, default=0.0,    help="Velocity viscosity")
    parser.add_argument("--iterations", type=int,   default=10,     help="Gauss-Seidel sweeps per solve")
    parser.add_argument("--no-vorticity", action="store_true", help="Disable vorticity confinement")
    parser.add_argument("--no-buoyancy",  action="store_true", help="Disable buoyancy")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )

    if args.mode == "live":
        run_live(args)
    elif args.mode == "headless":
        run_headless(args)
    elif args.mode == "benchmark":
        run_benchmark(args)


if __name__ == "__main__":
    main()
