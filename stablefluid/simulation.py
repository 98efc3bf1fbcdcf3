"""
simulation.py — Frame Step Protocol
====================================
Ties the physics modules together. One call to `velocity_step()` followed
by one call to `density_step()` advances the fluid by dt; `step()` does both
and returns timing metrics.

Velocity step:
  1. Integrate external forces (u_prev, v_prev)
  2. Vorticity confinement force (optional)
  3. Buoyancy force (optional)
  4. Diffuse velocity (viscosity)
  5. Project (enforce incompressibility)
  6. Advect velocity through itself
  7. Project again (advection does not preserve divergence)
  8. Clear the force buffers

Density step:
  1. Integrate density sources (density_prev)
  2. Diffuse density
  3. Advect density through the updated velocity
  4. Clear the source buffer

Diffusion and advection read a "previous" buffer and write a "current" one.
Before each we swap the buffer references (no copy), so the result lands in
the field later stages read as authoritative.
"""

import logging
import time

import numpy as np
from .advect import advect, bilinear_sample
from .diffuse import diffuse
from .forces import add_source, buoyancy, splat_density, splat_force, vorticity_confinement
from .grid import BoundaryKind, FluidGrid
from .solver import project

logger = logging.getLogger(__name__)


class FluidSimulation:
    """
    The complete 2D fluid simulation.

    Usage:
        sim = FluidSimulation(N=64)
        for frame in range(100):
            sim.add_density(32, 4)           # Inject smoke at bottom-center
            sim.add_force(32, 4, 0.0, 5.0)   # ...pushing upward
            sim.step()
            density = sim.grid.density       # Hand to visualizer

    Not thread-safe: callers must serialise steps and accessor calls.
    """

    def __init__(self, N: int = 64, dt: float = 0.2, diffusion: float = 0.0001,
                 viscosity: float = 0.0, iterations: int = 10,
                 vorticity: bool = True, buoyancy: bool = True):
        """
        Args:
            N          : Interior grid resolution (N × N cells)
            dt         : Timestep
            diffusion  : Smoke spreading rate (keep small for clean smoke)
            viscosity  : Fluid thickness (0 = air-like)
            iterations : Gauss-Seidel sweeps per diffusion/pressure solve
            vorticity  : Enable vorticity confinement
            buoyancy   : Enable buoyancy forcing

        Raises:
            GridConfigError : on a non-positive N or invalid parameter
        """
        self.grid = FluidGrid(N=N, dt=dt, diffusion=diffusion, viscosity=viscosity,
                              iterations=iterations, vorticity=vorticity,
                              buoyancy=buoyancy)
        self.frame = 0
        self.perf_log = []   # stores metrics per frame
        self._timings = {}
        self._projection = {}
        logger.info("FluidSimulation ready: N=%d %s", N, self.grid.config())

    # ── Configuration ────────────────────────────────────────────────────────

    def configure(self, **changes):
        """Change solver parameters between frames (see FluidGrid.configure)."""
        self.grid.configure(**changes)
        logger.info("Solver reconfigured: %s", changes)

    # ── Accessors for the input/render layers ────────────────────────────────

    def set_cell(self, field, x: int, y: int, value: float):
        self.grid.set_cell(field, x, y, value)

    def get_cell(self, field, x: int, y: int) -> float:
        return self.grid.get_cell(field, x, y)

    def add_force(self, x: int, y: int, du: float, dv: float):
        """Queue a force at (x, y) and its four neighbours for the next step."""
        splat_force(self.grid, x, y, du, dv)

    def add_density(self, x: int, y: int, amount: float = 50.0):
        """Queue a density source at (x, y) for the next step."""
        splat_density(self.grid, x, y, amount)

    def sample_velocity(self, x: float, y: float) -> tuple:
        """
        Bilinear velocity at a fractional grid position.
        Lets the render layer move its own particles with the flow.
        """
        N = self.grid.N
        px = np.clip(float(x), 0.5, N + 0.5)
        py = np.clip(float(y), 0.5, N + 0.5)
        return (float(bilinear_sample(self.grid.u, px, py)),
                float(bilinear_sample(self.grid.v, px, py)))

    def reset_velocity(self):
        self.grid.reset_velocity()

    def reset_density(self):
        self.grid.reset_density()

    # ── Stepping ─────────────────────────────────────────────────────────────

    def _mark(self, stage: str, t0: float) -> float:
        now = time.perf_counter()
        self._timings[stage] = (now - t0) * 1000
        return now

    def velocity_step(self):
        """Advance u, v by one timestep, consuming the queued forces."""
        g = self.grid
        t0 = time.perf_counter()

        # ── Step 1-3: Forces ───────────────────────────────────────────────
        add_source(g, g.u, g.u_prev)
        add_source(g, g.v, g.v_prev)

        if g.vorticity:
            vorticity_confinement(g, g.u_prev, g.v_prev)
            add_source(g, g.u, g.u_prev)
            add_source(g, g.v, g.v_prev)

        if g.buoyancy:
            buoyancy(g, g.v_prev)
            add_source(g, g.v, g.v_prev)
        t0 = self._mark("forces_ms", t0)

        # ── Step 4: Diffuse velocity (viscosity) ───────────────────────────
        g.swap_u()
        diffuse(g, BoundaryKind.LEFT_RIGHT, g.u, g.u_prev, g.viscosity)
        g.swap_v()
        diffuse(g, BoundaryKind.TOP_BOTTOM, g.v, g.v_prev, g.viscosity)
        t0 = self._mark("diffuse_vel_ms", t0)

        # ── Step 5: Project ────────────────────────────────────────────────
        project(g, g.u, g.v, g.u_prev, g.v_prev)
        t0 = self._mark("project1_ms", t0)

        # ── Step 6: Self-advection ─────────────────────────────────────────
        g.swap_u()
        g.swap_v()
        advect(g, BoundaryKind.LEFT_RIGHT, g.u, g.u_prev, g.u_prev, g.v_prev)
        advect(g, BoundaryKind.TOP_BOTTOM, g.v, g.v_prev, g.u_prev, g.v_prev)
        t0 = self._mark("advect_vel_ms", t0)

        # ── Step 7: Project again ──────────────────────────────────────────
        self._projection = project(g, g.u, g.v, g.u_prev, g.v_prev)
        self._mark("project2_ms", t0)

        # ── Step 8: Forces are one-shot ────────────────────────────────────
        g.u_prev.fill(0.0)
        g.v_prev.fill(0.0)

    def density_step(self):
        """Advance the density by one timestep, consuming the queued sources."""
        g = self.grid
        t0 = time.perf_counter()

        add_source(g, g.density, g.density_prev)

        g.swap_d()
        diffuse(g, BoundaryKind.NONE, g.density, g.density_prev, g.diffusion)
        t0 = self._mark("diffuse_den_ms", t0)

        g.swap_d()
        advect(g, BoundaryKind.NONE, g.density, g.density_prev, g.u, g.v)
        self._mark("advect_den_ms", t0)

        g.density_prev.fill(0.0)

    def step(self) -> dict:
        """
        Advance the simulation by one frame (velocity, then density).

        Returns performance metrics dict for benchmarking.
        """
        t_start = time.perf_counter()
        self._timings = {}

        self.velocity_step()
        self.density_step()

        self.frame += 1
        t_total = (time.perf_counter() - t_start) * 1000

        metrics = {
            "frame"          : self.frame,
            "total_ms"       : t_total,
            "fps"            : 1000.0 / t_total if t_total > 0 else 0,
            **self._timings,
            "divergence_max" : self._projection.get("divergence_after_max", 0.0),
            "divergence_mean": self._projection.get("divergence_after_mean", 0.0),
            "density_total"  : float(self.grid.density.sum()),
        }
        self.perf_log.append(metrics)
        logger.debug("frame %d: %.2fms div_max=%.3e density=%.3f",
                     self.frame, t_total, metrics["divergence_max"],
                     metrics["density_total"])
        return metrics

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        div = g.compute_divergence()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  N={g.N}  dt={g.dt}  iterations={g.iterations}")
        print(f"  Density   : max={g.density.max():.4f}, total={g.density.sum():.2f}")
        print(f"  Velocity  : max_u={np.abs(g.u).max():.4f}, max_v={np.abs(g.v).max():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
