#!/usr/bin/env python3
"""
Headless runner: runs a scenario for a number of frames and reports
statistics and performance.
"""

import argparse
import logging
import sys
import time

import pic2d
from pic2d import scenarios
from pic2d.core.config import InteractionType
from pic2d.simulation import FluidSimulation


def main(argv=None):
    parser = argparse.ArgumentParser(description="PIC Fluid Simulation (Headless)")
    parser.add_argument("--scenario", default="dam_break", choices=["dam_break", "basin"])
    parser.add_argument("--cols", type=int, default=64)
    parser.add_argument("--rows", type=int, default=32)
    parser.add_argument("--cell-size", type=float, default=1.0)
    parser.add_argument("--radius", type=float, default=0.3, help="Particle radius")
    parser.add_argument("--steps", type=int, default=100, help="Number of frames to run")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0)
    parser.add_argument("--gravity", type=float, default=-9.8)
    parser.add_argument("--pressure-iters", type=int, default=20)
    parser.add_argument("--flip-ratio", type=float, default=0.0)
    parser.add_argument("--backend", choices=["cpu", "numba", "auto"], default="auto")
    parser.add_argument("--erode", action="store_true",
                        help="Destroy terrain around the grid centre every frame")
    parser.add_argument("--report-every", type=int, default=10)
    parser.add_argument("--log-level", default="INFO")

    args = parser.parse_args(argv)

    root = logging.getLogger("pic2d")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(getattr(logging, str(args.log_level).upper(), logging.INFO))

    print(f"Loading scenario: {args.scenario}")
    scenario_funcs = {
        "dam_break": scenarios.create_dam_break,
        "basin": scenarios.create_basin,
    }
    config, grid, particles = scenario_funcs[args.scenario](
        cols=args.cols, rows=args.rows, cell_size=args.cell_size,
        particle_radius=args.radius
    )
    config.delta_time = args.dt
    config.gravity = args.gravity
    config.pressure_iterations = args.pressure_iters
    config.flip_ratio = args.flip_ratio

    # Set backend
    if args.backend == "auto":
        backend = pic2d.auto_select_backend(max(config.num_particles, config.total_cells))
        print(f"Auto-selected {backend.upper()} backend for {config.num_particles} particles")
    else:
        if not pic2d.set_backend(args.backend):
            print(f"Warning: Backend '{args.backend}' not available")
        backend = pic2d.get_backend()
    config.backend = backend

    pic2d.print_backend_info()

    try:
        sim = FluidSimulation(config, grid, particles)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return 1

    if args.erode:
        bw, bh = config.bounds_size
        sim.set_interaction((0.5 * bw, 0.5 * bh), InteractionType.DESTROY_TERRAIN,
                            radius=0.25 * min(bw, bh))

    print(f"\nSimulation info:")
    print(f"  Particles: {config.num_particles}")
    print(f"  Grid: {config.size[0]}x{config.size[1]} cells")
    print(f"  Pressure iterations: {config.pressure_iterations}")
    print(f"  Steps: {args.steps}")

    t_start = time.perf_counter()
    for step in range(1, args.steps + 1):
        sim.step()
        if step % args.report_every == 0 or step == args.steps:
            stats = sim.get_statistics()
            print(f"Step {step:5d}: water cells {stats['water_cells']:5d}, "
                  f"max |div| {stats['max_divergence']:.2e}, "
                  f"max speed {stats['max_speed']:.2f}, "
                  f"{stats['step_time'] * 1000:.1f} ms")
    elapsed = time.perf_counter() - t_start

    print(f"\nTotal time: {elapsed:.2f} s ({args.steps / max(elapsed, 1e-9):.1f} steps/s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
