"""Tests for the Gauss-Seidel relaxation primitive and implicit diffusion."""

import numpy as np
import pytest

from stablefluid import BoundaryKind, FluidGrid
from stablefluid.diffuse import diffuse, linear_solve


def _random_field(rng, N):
    x = np.zeros((N + 2, N + 2), order="F")
    x[1:N+1, 1:N+1] = rng.normal(size=(N, N))
    return x


class TestLinearSolve:
    @pytest.mark.parametrize("kind", list(BoundaryKind))
    @pytest.mark.parametrize("a, c", [(1.0, 4.0), (0.3, 2.2)])
    def test_matches_in_place_sweep(self, rng, gauss_seidel_reference, kind, a, c):
        """The diagonal sweep performs the same updates as the cell-by-cell loop."""
        grid = FluidGrid(N=7, iterations=6)
        x0 = _random_field(rng, 7)
        x = _random_field(rng, 7)
        expected = x.copy(order="F")

        linear_solve(grid, kind, x, x0, a, c)
        gauss_seidel_reference(grid, kind, expected, x0, a, c)

        np.testing.assert_allclose(x, expected, rtol=0, atol=1e-12)

    def test_zero_iterations_is_a_no_op(self, rng):
        grid = FluidGrid(N=6, iterations=0)
        x = _random_field(rng, 6)
        before = x.copy()
        linear_solve(grid, BoundaryKind.NONE, x, _random_field(rng, 6), 1.0, 4.0)
        np.testing.assert_array_equal(x, before)

    def test_boundary_applied_after_sweeps(self, rng):
        grid = FluidGrid(N=6, iterations=3)
        x = _random_field(rng, 6)
        linear_solve(grid, BoundaryKind.LEFT_RIGHT, x, _random_field(rng, 6), 0.5, 3.0)
        np.testing.assert_array_equal(x[0, 1:7], -x[1, 1:7])
        np.testing.assert_array_equal(x[7, 1:7], -x[6, 1:7])

    def test_converges_to_solution(self, rng):
        """Enough sweeps solve x - a·Σneighbours = x0 on the interior."""
        grid = FluidGrid(N=6, iterations=200)
        a = 0.5
        x0 = _random_field(rng, 6)
        x = np.zeros_like(x0)
        linear_solve(grid, BoundaryKind.NONE, x, x0, a, 1.0 + 4.0 * a)

        neighbours = x[:-2, 1:-1] + x[2:, 1:-1] + x[1:-1, :-2] + x[1:-1, 2:]
        residual = (1.0 + 4.0 * a) * x[1:-1, 1:-1] - a * neighbours - x0[1:-1, 1:-1]
        assert np.abs(residual).max() < 1e-10


class TestDiffuse:
    def test_hot_cell_stays_within_bounds(self):
        """No overshoot: every value lies between the cold and hot extremes."""
        grid = FluidGrid(N=8, diffusion=0.01, iterations=10)
        x0 = np.zeros((10, 10), order="F")
        x0[4, 4] = 1.0
        x = np.zeros_like(x0)

        diffuse(grid, BoundaryKind.NONE, x, x0, grid.diffusion)

        assert x.min() >= 0.0
        assert x.max() <= 1.0
        assert 0.0 < x[4, 4] < 1.0
        for i, j in [(3, 4), (5, 4), (4, 3), (4, 5)]:
            assert 0.0 < x[i, j] < x[4, 4]

    def test_conserves_mass_with_mirrored_walls(self):
        grid = FluidGrid(N=8, diffusion=0.005, iterations=30)
        x0 = np.zeros((10, 10), order="F")
        x0[1, 1] = 3.0
        x0[6, 2] = 2.0
        x = np.zeros_like(x0)

        diffuse(grid, BoundaryKind.NONE, x, x0, grid.diffusion)

        assert x[1:9, 1:9].sum() == pytest.approx(5.0, rel=1e-9)

    def test_zero_coefficient_copies_source(self, rng):
        grid = FluidGrid(N=6)
        x0 = _random_field(rng, 6)
        x = np.zeros_like(x0)
        diffuse(grid, BoundaryKind.NONE, x, x0, 0.0)
        np.testing.assert_array_equal(x[1:7, 1:7], x0[1:7, 1:7])
