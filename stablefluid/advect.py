"""
advect.py — Semi-Lagrangian Advection
======================================
This is what makes fluid look like it's *actually flowing*.

The algorithm (per interior cell):
  1. Look at the current cell center position (i, j).
  2. Trace BACKWARD along the velocity field by one timestep (dt).
     → "Where did the stuff in this cell come FROM?"
  3. Sample the source field at that back-traced position
     using bilinear interpolation (it'll land between grid cells).
  4. That sampled value becomes the new value for this cell.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np
from .grid import BoundaryKind, FluidGrid


def bilinear_sample(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation of a padded field at fractional positions.

    Positions must already lie in [0.5, N+0.5] so that the stencil
    (i0, i0+1) × (j0, j0+1) stays inside the (N+2)² storage.

    Args:
        field : (N+2, N+2) array addressed as field[i, j]
        x, y  : Query positions in grid-index units (same shape)

    Returns:
        Interpolated values, same shape as x/y
    """
    # Lower corner of the 4-cell stencil, upper corner
    i0 = np.floor(x).astype(np.intp)
    j0 = np.floor(y).astype(np.intp)
    i1 = i0 + 1
    j1 = j0 + 1

    # Fractional weights
    s1 = x - i0
    s0 = 1 - s1
    t1 = y - j0
    t0 = 1 - t1

    return (s0 * (t0 * field[i0, j0] + t1 * field[i0, j1]) +
            s1 * (t0 * field[i1, j0] + t1 * field[i1, j1]))


def advect(grid: FluidGrid, kind: BoundaryKind, d: np.ndarray, d0: np.ndarray,
           u: np.ndarray, v: np.ndarray):
    """
    Carry d0 along (u, v) for one timestep, writing the result into d.

    Used for density (carried by the velocity) and for velocity itself
    (self-advection, where d0 is one of u/v).

    Modifies: d (in-place), including its boundary ring
    """
    N = grid.N

    # Cell centres of the interior, in grid-index units
    i, j = np.meshgrid(
        np.arange(1, N + 1, dtype=np.float64),
        np.arange(1, N + 1, dtype=np.float64),
        indexing='ij'
    )

    # Back-trace. dt * N converts a domain velocity to cells per step.
    dt0 = grid.dt * N
    x = i - dt0 * u[1:N+1, 1:N+1]
    y = j - dt0 * v[1:N+1, 1:N+1]

    # Keep the stencil within the padded grid
    x = np.clip(x, 0.5, N + 0.5)
    y = np.clip(y, 0.5, N + 0.5)

    d[1:N+1, 1:N+1] = bilinear_sample(d0, x, y)
    grid.set_boundary(kind, d)
