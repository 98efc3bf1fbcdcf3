"""
grid.py — Padded Collocated Grid
=================================
The foundation of the entire simulation.

Layout:
  - N × N interior cells, wrapped in a one-cell boundary ring
    → every field has (N+2) × (N+2) storage cells
  - Velocity `u`, `v` and density `d` all live at CELL CENTERS
  - Cell (i, j) sits at flat index  i + (N+2) * j

Every field is a float64 array of shape (N+2, N+2) addressed as field[i, j]
and allocated in Fortran order, so `field.ravel(order="F")` is a zero-copy
view of exactly that flat layout, and walking along i walks contiguous memory.

Each live field has an "old" twin. The twins double as scratch space during
a step and as the source buffers external input writes forces/density into
before the step begins.
"""

import logging
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)


class Field(str, Enum):
    """The six addressable fields, by their accessor names."""

    U = "u"
    V = "v"
    D = "d"
    U_OLD = "uOld"
    V_OLD = "vOld"
    D_OLD = "dOld"


# Field → FluidGrid attribute holding its buffer
_FIELD_ATTRS = {
    Field.U: "u",
    Field.V: "v",
    Field.D: "density",
    Field.U_OLD: "u_prev",
    Field.V_OLD: "v_prev",
    Field.D_OLD: "density_prev",
}


class BoundaryKind(Enum):
    """
    How edge cells derive their value from the adjacent interior cell.

    NONE        : mirror on every wall (scalars: density, pressure, divergence)
    LEFT_RIGHT  : negated across the left/right walls (x-velocity)
    TOP_BOTTOM  : negated across the top/bottom walls (y-velocity)
    """

    NONE = 0
    LEFT_RIGHT = 1
    TOP_BOTTOM = 2


class GridConfigError(ValueError):
    """Raised for an invalid resolution or solver parameter."""


class CellIndexError(IndexError):
    """Raised when an accessor is given coordinates outside the padded grid."""


CONFIG_KEYS = ("dt", "diffusion", "viscosity", "iterations", "vorticity", "buoyancy")


class FluidGrid:
    """
    (N+2)² padded grid storing all simulation state.
    This is the single source of truth passed between all physics steps.
    """

    def __init__(self, N: int, dt: float = 0.2, diffusion: float = 0.0001,
                 viscosity: float = 0.0, iterations: int = 10,
                 vorticity: bool = True, buoyancy: bool = True):
        """
        Args:
            N          : Interior resolution (N × N cells)
            dt         : Timestep
            diffusion  : How fast density spreads (0 = no spreading)
            viscosity  : Fluid thickness (0 = inviscid)
            iterations : Gauss-Seidel sweeps per linear solve
            vorticity  : Enable vorticity confinement
            buoyancy   : Enable buoyancy forcing
        """
        if isinstance(N, bool) or not isinstance(N, (int, np.integer)) or N <= 0:
            raise GridConfigError(f"Grid resolution must be a positive integer, got {N!r}")

        self.N = int(N)
        self.size = self.N + 2
        self.num_cells = self.size * self.size

        self.dt = 0.0
        self.diffusion = 0.0
        self.viscosity = 0.0
        self.iterations = 0
        self.vorticity = False
        self.buoyancy = False
        self.configure(dt=dt, diffusion=diffusion, viscosity=viscosity,
                       iterations=iterations, vorticity=vorticity,
                       buoyancy=buoyancy)

        # ── Current state ──────────────────────────────────────────────────
        self.u       = self._zeros()
        self.v       = self._zeros()
        self.density = self._zeros()

        # ── Previous-step / source buffers ─────────────────────────────────
        self.u_prev       = self._zeros()
        self.v_prev       = self._zeros()
        self.density_prev = self._zeros()

        # Vorticity magnitude, persists between steps
        self.curl = self._zeros()

        logger.info("Allocated %dx%d grid (%d storage cells per field)",
                    self.N, self.N, self.num_cells)

    def _zeros(self) -> np.ndarray:
        return np.zeros((self.size, self.size), dtype=np.float64, order="F")

    # ── Configuration ────────────────────────────────────────────────────────

    def configure(self, **changes):
        """
        Validate and apply solver parameters. Safe to call between frames.

        Raises GridConfigError for unknown keys or out-of-range values;
        nothing is applied unless every change is valid.
        """
        unknown = set(changes) - set(CONFIG_KEYS)
        if unknown:
            raise GridConfigError(f"Unknown solver parameter(s): {', '.join(sorted(unknown))}")

        for key in ("dt", "diffusion", "viscosity"):
            if key in changes:
                value = changes[key]
                if not np.isfinite(value) or value < 0:
                    raise GridConfigError(f"{key} must be a finite non-negative number, got {value!r}")
        if "iterations" in changes:
            iterations = changes["iterations"]
            if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)) or iterations < 0:
                raise GridConfigError(f"iterations must be a non-negative integer, got {iterations!r}")

        for key, value in changes.items():
            if key == "iterations":
                value = int(value)
            elif key in ("vorticity", "buoyancy"):
                value = bool(value)
            else:
                value = float(value)
            setattr(self, key, value)

    def config(self) -> dict:
        """Current solver parameters."""
        return {key: getattr(self, key) for key in CONFIG_KEYS}

    # ── Indexing & accessors ─────────────────────────────────────────────────

    def idx(self, i: int, j: int) -> int:
        """Flat index of cell (i, j)."""
        return i + self.size * j

    def field(self, name) -> np.ndarray:
        """Buffer currently bound to `name` (a Field or its string value)."""
        return getattr(self, _FIELD_ATTRS[Field(name)])

    def _check_cell(self, x: int, y: int):
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise CellIndexError(
                f"Cell ({x}, {y}) is outside the {self.size}x{self.size} padded grid"
            )

    def set_cell(self, name, x: int, y: int, value: float):
        """Write one cell of a field. Coordinates include the boundary ring."""
        buf = self.field(name)
        self._check_cell(x, y)
        buf[x, y] = value

    def get_cell(self, name, x: int, y: int) -> float:
        """Read one cell of a field. Coordinates include the boundary ring."""
        buf = self.field(name)
        self._check_cell(x, y)
        return float(buf[x, y])

    # ── Double buffering ─────────────────────────────────────────────────────
    # Swaps exchange array references; nothing is copied.

    def swap_u(self):
        self.u, self.u_prev = self.u_prev, self.u

    def swap_v(self):
        self.v, self.v_prev = self.v_prev, self.v

    def swap_d(self):
        self.density, self.density_prev = self.density_prev, self.density

    # ── Boundaries ───────────────────────────────────────────────────────────

    def set_boundary(self, kind: BoundaryKind, x: np.ndarray):
        """
        Fill the boundary ring of `x` from its interior neighbours.

        - LEFT_RIGHT: x[0, j] = -x[1, j], x[N+1, j] = -x[N, j]
        - TOP_BOTTOM: x[i, 0] = -x[i, 1], x[i, N+1] = -x[i, N]
        - otherwise the edge cell mirrors its neighbour
        - corners are the average of their two adjacent edge cells
        """
        N = self.N

        if kind is BoundaryKind.LEFT_RIGHT:
            x[0,     1:N+1] = -x[1, 1:N+1]
            x[N + 1, 1:N+1] = -x[N, 1:N+1]
        else:
            x[0,     1:N+1] = x[1, 1:N+1]
            x[N + 1, 1:N+1] = x[N, 1:N+1]

        if kind is BoundaryKind.TOP_BOTTOM:
            x[1:N+1, 0    ] = -x[1:N+1, 1]
            x[1:N+1, N + 1] = -x[1:N+1, N]
        else:
            x[1:N+1, 0    ] = x[1:N+1, 1]
            x[1:N+1, N + 1] = x[1:N+1, N]

        x[0,     0    ] = 0.5 * (x[1, 0    ] + x[0,     1])
        x[0,     N + 1] = 0.5 * (x[1, N + 1] + x[0,     N])
        x[N + 1, 0    ] = 0.5 * (x[N, 0    ] + x[N + 1, 1])
        x[N + 1, N + 1] = 0.5 * (x[N, N + 1] + x[N + 1, N])

    # ── Bulk resets ──────────────────────────────────────────────────────────

    def reset_velocity(self):
        """
        Set every velocity cell to a small non-zero value.
        Renderers read the sign of u/v as a flow direction, so exact zero is avoided.
        """
        self.u.fill(0.001)
        self.v.fill(0.001)
        logger.info("Velocity reset")

    def reset_density(self):
        """Zero the density field."""
        self.density.fill(0.0)
        logger.info("Density reset")

    # ── Diagnostics ──────────────────────────────────────────────────────────

    def compute_divergence(self, u: np.ndarray = None, v: np.ndarray = None) -> np.ndarray:
        """
        Central-difference divergence of (u, v) over the interior cells.
        Defaults to the grid's own velocity.

        For an incompressible fluid this should be ~0 everywhere.
        Returns: (N, N) array, entry [i-1, j-1] belongs to cell (i, j).
        """
        u = self.u if u is None else u
        v = self.v if v is None else v
        N = self.N
        return 0.5 * N * (
            u[2:, 1:N+1] - u[:N, 1:N+1] +
            v[1:N+1, 2:] - v[1:N+1, :N]
        )

    def save_state(self) -> dict:
        """Snapshot the authoritative fields as independent copies."""
        return {
            "velocity_u": self.u.copy(order="F"),
            "velocity_v": self.v.copy(order="F"),
            "density":    self.density.copy(order="F"),
        }

    def __repr__(self):
        max_div = np.abs(self.compute_divergence()).max()
        max_vel = max(np.abs(self.u).max(), np.abs(self.v).max())
        return (
            f"FluidGrid(N={self.N}, dt={self.dt})\n"
            f"  density  : max={self.density.max():.4f}, sum={self.density.sum():.2f}\n"
            f"  velocity : max_magnitude={max_vel:.4f}\n"
            f"  divergence: max={max_div:.6f} (target: ~0)"
        )
