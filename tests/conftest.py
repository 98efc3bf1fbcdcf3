"""Pytest configuration and fixtures for the stable-fluids solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Make main.py / visualizer.py importable without installing
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def small_grid():
    """8x8 interior grid with default parameters."""
    from stablefluid import FluidGrid

    return FluidGrid(N=8)


@pytest.fixture
def sim16():
    """16x16 simulation with default parameters."""
    from stablefluid import FluidSimulation

    return FluidSimulation(N=16)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def reference_gauss_seidel(grid, kind, x, x0, a, c):
    """Cell-by-cell in-place sweep in (i, j) order, for comparison."""
    N = grid.N
    inv_c = 1.0 / c
    for _ in range(grid.iterations):
        for i in range(1, N + 1):
            for j in range(1, N + 1):
                x[i, j] = (x0[i, j] + a * (x[i - 1, j] + x[i + 1, j] + x[i, j - 1] + x[i, j + 1])) * inv_c
        grid.set_boundary(kind, x)


@pytest.fixture
def gauss_seidel_reference():
    return reference_gauss_seidel
