"""Tests for source integration, vorticity confinement, buoyancy and input splats."""

import math

import numpy as np
import pytest

from stablefluid import FluidGrid
from stablefluid.forces import (
    BUOYANCY_DENSITY_COEFF,
    BUOYANCY_THERMAL_COEFF,
    add_source,
    buoyancy,
    curl,
    splat_density,
    splat_force,
    vorticity_confinement,
)


def reference_confinement(grid, fx, fy):
    """Cell-by-cell confinement in (i, j) order, updating grid.curl in place."""
    N = grid.N
    mag = grid.curl
    for i in range(1, N + 1):
        for j in range(1, N + 1):
            mag[i, j] = abs(curl(grid, i, j))
            dx = mag[i + 1, j] - mag[i - 1, j] * 0.5
            dy = mag[i, j + 1] - mag[i, j - 1] * 0.5
            norm = math.sqrt(dx * dx + dy * dy)
            if norm == 0:
                norm = 1.0
            dx /= norm
            dy /= norm
            w = curl(grid, i, j)
            fx[i, j] = dy * w * -1
            fy[i, j] = dx * w


class TestAddSource:
    def test_scales_by_dt(self):
        grid = FluidGrid(N=4, dt=0.25)
        x = np.zeros((6, 6), order="F")
        s = np.zeros_like(x)
        s[2, 3] = 8.0
        add_source(grid, x, s)
        assert x[2, 3] == 2.0
        assert np.count_nonzero(x) == 1

    def test_accumulates(self):
        grid = FluidGrid(N=4, dt=0.5)
        x = np.ones((6, 6), order="F")
        s = np.full_like(x, 2.0)
        add_source(grid, x, s)
        add_source(grid, x, s)
        np.testing.assert_array_equal(x, 3.0)


class TestCurl:
    def test_lopsided_difference(self):
        """Only the subtracted neighbour is halved."""
        grid = FluidGrid(N=6)
        grid.u[3, 4] = 2.0   # j + 1
        assert curl(grid, 3, 3) == 2.0

        grid.u[3, 4] = 0.0
        grid.u[3, 2] = 2.0   # j - 1
        assert curl(grid, 3, 3) == -1.0

    def test_velocity_terms(self):
        grid = FluidGrid(N=6)
        grid.v[4, 3] = 3.0   # i + 1
        grid.v[2, 3] = 4.0   # i - 1
        assert curl(grid, 3, 3) == -(3.0 - 4.0 * 0.5)


class TestVorticityConfinement:
    def test_matches_in_place_sweep_over_two_steps(self, rng):
        grid = FluidGrid(N=7)
        ref = FluidGrid(N=7)
        fx, fy = np.zeros_like(grid.u), np.zeros_like(grid.u)
        rx, ry = np.zeros_like(grid.u), np.zeros_like(grid.u)

        for _ in range(2):
            grid.u[:] = rng.normal(size=grid.u.shape)
            grid.v[:] = rng.normal(size=grid.v.shape)
            ref.u[:] = grid.u
            ref.v[:] = grid.v

            vorticity_confinement(grid, fx, fy)
            reference_confinement(ref, rx, ry)

            np.testing.assert_allclose(fx, rx, rtol=0, atol=1e-12)
            np.testing.assert_allclose(fy, ry, rtol=0, atol=1e-12)
            np.testing.assert_allclose(grid.curl, ref.curl, rtol=0, atol=1e-12)

    def test_flat_gradient_gives_no_nan(self, rng):
        """With no curl history, cell (1, 1) sees a zero gradient."""
        grid = FluidGrid(N=5)
        grid.u[:] = rng.normal(size=grid.u.shape)
        grid.v[:] = rng.normal(size=grid.v.shape)
        fx, fy = np.zeros_like(grid.u), np.zeros_like(grid.u)

        vorticity_confinement(grid, fx, fy)

        assert np.all(np.isfinite(fx))
        assert np.all(np.isfinite(fy))
        assert fx[1, 1] == 0.0
        assert fy[1, 1] == 0.0

    def test_still_fluid_has_no_force(self):
        grid = FluidGrid(N=5)
        fx, fy = np.ones_like(grid.u), np.ones_like(grid.u)
        vorticity_confinement(grid, fx, fy)
        assert not fx[1:6, 1:6].any()
        assert not fy[1:6, 1:6].any()
        # Ring of the force buffers is left alone
        assert fx[0, 0] == 1.0

    def test_keeps_curl_magnitude(self, rng):
        grid = FluidGrid(N=5)
        grid.u[:] = rng.normal(size=grid.u.shape)
        fx, fy = np.zeros_like(grid.u), np.zeros_like(grid.u)
        vorticity_confinement(grid, fx, fy)
        assert grid.curl[2, 3] == pytest.approx(abs(curl(grid, 2, 3)))
        assert not grid.curl[0, :].any()


class TestBuoyancy:
    def test_single_dense_cell(self):
        N = 8
        grid = FluidGrid(N=N)
        grid.density[4, 4] = 4.0
        out = np.full_like(grid.v, -7.0)

        buoyancy(grid, out)

        t_amb = 4.0 / (N * N)
        assert out[4, 4] == pytest.approx(BUOYANCY_DENSITY_COEFF * 4.0
                                          - BUOYANCY_THERMAL_COEFF * (4.0 - t_amb))
        assert out[2, 6] == pytest.approx(BUOYANCY_THERMAL_COEFF * t_amb)
        assert out[0, 4] == -7.0

    def test_average_includes_boundary_ring(self):
        N = 4
        grid = FluidGrid(N=N)
        grid.density[:] = 1.0
        out = np.zeros_like(grid.v)
        buoyancy(grid, out)
        t_amb = (N + 2) ** 2 / (N * N)
        assert out[2, 2] == pytest.approx(BUOYANCY_DENSITY_COEFF
                                          - BUOYANCY_THERMAL_COEFF * (1.0 - t_amb))

    def test_no_density_no_force(self):
        grid = FluidGrid(N=4)
        out = np.ones_like(grid.v)
        buoyancy(grid, out)
        assert not out[1:5, 1:5].any()


class TestSplats:
    def test_force_plus_stencil(self):
        grid = FluidGrid(N=8)
        splat_force(grid, 4, 5, 2.0, -1.0)
        cells = {(4, 5), (5, 5), (3, 5), (4, 6), (4, 4)}
        for i in range(10):
            for j in range(10):
                expected = (2.0, -1.0) if (i, j) in cells else (0.0, 0.0)
                assert (grid.u_prev[i, j], grid.v_prev[i, j]) == expected

    def test_force_accumulates(self):
        grid = FluidGrid(N=8)
        splat_force(grid, 4, 4, 1.0, 0.0)
        splat_force(grid, 4, 4, 1.0, 0.0)
        assert grid.u_prev[4, 4] == 2.0

    def test_force_at_corner_stays_inside(self):
        grid = FluidGrid(N=8)
        splat_force(grid, 0, -3, 1.0, 1.0)
        assert np.count_nonzero(grid.u_prev) == 3
        assert grid.u_prev[1, 1] == 1.0
        assert not grid.u_prev[0, :].any()
        assert not grid.u_prev[:, 0].any()

    def test_density_clamped(self):
        grid = FluidGrid(N=8)
        splat_density(grid, 100, 4)
        splat_density(grid, 3, 3, 2.5)
        assert grid.density_prev[8, 4] == 50.0
        assert grid.density_prev[3, 3] == 2.5
