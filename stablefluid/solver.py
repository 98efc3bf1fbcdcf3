"""
solver.py — Pressure Projection
================================
The pressure projection step enforces INCOMPRESSIBILITY:
  div(v) = 0 everywhere

After diffusion and advection, the velocity field is generally NOT
divergence-free (fluid "piles up" in some cells). We fix this by:
  1. Computing divergence of the current velocity field
  2. Solving the Poisson equation for pressure: ∇²p = div(v)
  3. Subtracting the pressure gradient from velocity: v = v - ∇p

This is called "Helmholtz-Hodge decomposition" — any vector field
can be decomposed into a divergence-free part + a curl-free part (gradient).
We want the divergence-free part.

The Poisson solve reuses the Gauss-Seidel primitive from diffuse.py with
a = 1, c = 4, so its accuracy is bounded by grid.iterations.
"""

import numpy as np
from .diffuse import linear_solve
from .grid import BoundaryKind, FluidGrid


def project(grid: FluidGrid, u: np.ndarray, v: np.ndarray,
            p: np.ndarray, div: np.ndarray) -> dict:
    """
    Pressure projection: make (u, v) (approximately) divergence-free.

    Args:
        grid   : Supplies N and the sweep count
        u, v   : Velocity components, corrected in place
        p, div : Scratch buffers (the step passes the *_prev twins);
                 both are overwritten

    Returns:
        dict with divergence metrics (for benchmarking)
    """
    N = grid.N
    h = 1.0 / N
    inner = (slice(1, N + 1), slice(1, N + 1))

    div_before = np.abs(grid.compute_divergence(u, v)).max()

    # Step 1: divergence, scaled so the Poisson update is (div + Σp) / 4
    div[inner] = -0.5 * h * (
        u[2:, 1:N+1] - u[:N, 1:N+1] +
        v[1:N+1, 2:] - v[1:N+1, :N]
    )
    p[inner] = 0.0
    grid.set_boundary(BoundaryKind.NONE, div)
    grid.set_boundary(BoundaryKind.NONE, p)

    # Step 2: solve ∇²p = div
    linear_solve(grid, BoundaryKind.NONE, p, div, 1.0, 4.0)

    # Step 3: subtract ∇p (central differences)
    u[inner] -= 0.5 * (p[2:, 1:N+1] - p[:N, 1:N+1]) / h
    v[inner] -= 0.5 * (p[1:N+1, 2:] - p[1:N+1, :N]) / h
    grid.set_boundary(BoundaryKind.LEFT_RIGHT, u)
    grid.set_boundary(BoundaryKind.TOP_BOTTOM, v)

    div_after = np.abs(grid.compute_divergence(u, v))
    return {
        "divergence_before_max": float(div_before),
        "divergence_after_max":  float(div_after.max()),
        "divergence_after_mean": float(div_after.mean()),
    }
