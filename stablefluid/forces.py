"""
forces.py — Sources and Body Forces (Vorticity Confinement, Buoyancy, Input)
=============================================================================
Everything that pushes energy or material INTO the grid each timestep.

  - add_source            : fold a source buffer into a field (× dt)
  - vorticity_confinement : re-inject the small swirls numerical diffusion eats
  - buoyancy              : dense/hot regions rise
  - splat_force/density   : user input (mouse drag, emitters)

Vorticity confinement, after Fedkiw, Stam & Jensen, "Visual Simulation of
Smoke" (SIGGRAPH 2001):

  ω  = curl(u, v)
  N  = ∇|ω| / ‖∇|ω|‖
  f  = (-N_y · ω, N_x · ω)

The difference stencils below halve only the subtracted neighbour
(`a - b*0.5`, not `0.5*(a - b)`). Changing them changes the look of the swirls.
"""

import numpy as np
from .grid import FluidGrid


# ── Buoyancy parameters ───────────────────────────────────────────────────────
BUOYANCY_DENSITY_COEFF = 0.000625   # a: lift per unit density
BUOYANCY_THERMAL_COEFF = 0.015      # b: pull back toward the grid average


def add_source(grid: FluidGrid, x: np.ndarray, s: np.ndarray):
    """
    Integrate a source buffer: x += s * dt over every cell.

    Not idempotent: the caller clears `s` once the step is done.

    Modifies: x (in-place)
    """
    x += s * grid.dt


def curl(grid: FluidGrid, i: int, j: int) -> float:
    """Scalar curl of the grid's velocity at interior cell (i, j)."""
    u, v = grid.u, grid.v
    du_dy = u[i, j + 1] - u[i, j - 1] * 0.5
    dv_dx = v[i + 1, j] - v[i - 1, j] * 0.5
    return float(du_dy - dv_dx)


def _curl_field(grid: FluidGrid) -> np.ndarray:
    """`curl` evaluated at every interior cell at once. Shape (N, N)."""
    u, v, N = grid.u, grid.v, grid.N
    du_dy = u[1:N+1, 2:] - u[1:N+1, :N] * 0.5
    dv_dx = v[2:, 1:N+1] - v[:N, 1:N+1] * 0.5
    return du_dy - dv_dx


def vorticity_confinement(grid: FluidGrid, fx: np.ndarray, fy: np.ndarray):
    """
    Compute the confinement force into (fx, fy) for every interior cell.

    The curl magnitude is kept in grid.curl between steps. Cell (i, j) sees
    this step's magnitude at (i-1, j) and (i, j-1) but still the previous
    step's at (i+1, j) and (i, j+1), the same view an in-place sweep in
    (i, j) order has.

    Modifies: fx, fy (interior overwritten), grid.curl
    """
    N = grid.N
    inner = (slice(1, N + 1), slice(1, N + 1))

    w = _curl_field(grid)

    # This step's |ω|, on a zero ring
    fresh = np.zeros_like(grid.curl)
    fresh[inner] = np.abs(w)

    # Gradient of |ω|; forward neighbours from the previous step
    prev = grid.curl
    dx = prev[2:, 1:N+1] - fresh[:N, 1:N+1] * 0.5
    dy = prev[1:N+1, 2:] - fresh[1:N+1, :N] * 0.5
    grid.curl[inner] = fresh[inner]

    norm = np.sqrt(dx * dx + dy * dy)
    # Flat |ω| has no direction
    norm[norm == 0] = 1.0
    dx /= norm
    dy /= norm

    fx[inner] = dy * w * -1
    fy[inner] = dx * w


def buoyancy(grid: FluidGrid, out: np.ndarray) -> np.ndarray:
    """
    Vertical buoyancy force per interior cell, written into `out`.

    The grid-average density stands in for the ambient temperature:
      F = a·d - b·(d - d_avg)

    Modifies: out (interior overwritten)
    """
    N = grid.N
    d = grid.density[1:N+1, 1:N+1]

    # Average over the N² interior, summed over all storage cells
    t_amb = grid.density.sum() / (N * N)

    out[1:N+1, 1:N+1] = (BUOYANCY_DENSITY_COEFF * d
                         - BUOYANCY_THERMAL_COEFF * (d - t_amb))
    return out


def _plus_stencil(grid: FluidGrid, x: int, y: int) -> tuple:
    """Cell (x, y) clamped to the interior, plus its neighbours inside the interior."""
    N = grid.N
    cx = min(max(int(x), 1), N)
    cy = min(max(int(y), 1), N)
    xs = np.array([cx, cx + 1, cx - 1, cx, cx])
    ys = np.array([cy, cy, cy, cy + 1, cy - 1])
    keep = (xs >= 1) & (xs <= N) & (ys >= 1) & (ys <= N)
    return xs[keep], ys[keep]


def splat_force(grid: FluidGrid, x: int, y: int, du: float, dv: float):
    """
    Add a force (du, dv) at cell (x, y) and its four neighbours.
    Picked up by the next velocity step.

    Modifies: grid.u_prev, grid.v_prev
    """
    xs, ys = _plus_stencil(grid, x, y)
    grid.u_prev[xs, ys] += du
    grid.v_prev[xs, ys] += dv


def splat_density(grid: FluidGrid, x: int, y: int, amount: float = 50.0):
    """
    Add a density source at cell (x, y), clamped to the interior.
    Picked up by the next density step.

    Modifies: grid.density_prev
    """
    N = grid.N
    cx = min(max(int(x), 1), N)
    cy = min(max(int(y), 1), N)
    grid.density_prev[cx, cy] += amount
