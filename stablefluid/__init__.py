"""
stablefluid/ — 2D Stable Fluids Solver
=======================================
Exports the interfaces the input and rendering layers use.

Renderers read:        FluidSimulation → get_cell(), sample_velocity(), grid.density
Input handlers write:  FluidSimulation → add_force(), add_density(), set_cell()
The frame loop calls:  FluidSimulation → step()  (or velocity_step(); density_step())
"""

from .grid import BoundaryKind, CellIndexError, Field, FluidGrid, GridConfigError
from .simulation import FluidSimulation

__all__ = [
    "BoundaryKind",
    "CellIndexError",
    "Field",
    "FluidGrid",
    "FluidSimulation",
    "GridConfigError",
]
