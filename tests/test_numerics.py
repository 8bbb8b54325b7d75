"""Tests for relaxation, diffusion, projection and advection."""

import numpy as np
import pytest

from fluidgrid import FieldKind, ix
from fluidgrid.advect import advect
from fluidgrid.diffuse import diffuse, lin_solve
from fluidgrid.grid import as_grid, compute_divergence, set_boundary
from fluidgrid.solver import project

from helpers import gaussian_source, interior


class TestLinearSolve:

    def test_zero_coupling_copies_source(self, random_field):
        N = 10
        x0 = random_field(N, seed=1)
        x = np.zeros(N * N)
        lin_solve(FieldKind.DENSITY, x, x0, 0.0, 1.0, N)
        np.testing.assert_array_equal(interior(x, N), interior(x0, N))

    def test_boundary_enforced_after_solve(self, random_field):
        N = 10
        x0 = random_field(N, seed=2)
        x = np.zeros(N * N)
        lin_solve(FieldKind.X_VELOCITY, x, x0, 0.5, 3.0, N)
        g = as_grid(x, N)
        np.testing.assert_array_equal(g[1:-1, 0], -g[1:-1, 1])
        np.testing.assert_array_equal(g[1:-1, -1], -g[1:-1, -2])

    def test_converges_to_fixed_point(self, random_field):
        # With c = 1 + 4a the sweep is a contraction; enough sweeps hit the fixed point
        N = 8
        a = 0.2
        c = 1 + 4 * a
        x0 = random_field(N, seed=4)
        x = np.zeros(N * N)
        lin_solve(FieldKind.DENSITY, x, x0, a, c, N, iterations=200)
        g, rhs = as_grid(x, N), as_grid(x0, N)
        neighbors = g[1:-1, 2:] + g[1:-1, :-2] + g[2:, 1:-1] + g[:-2, 1:-1]
        residual = g[1:-1, 1:-1] - (rhs[1:-1, 1:-1] + a * neighbors) / c
        assert np.abs(residual).max() < 1e-10

    def test_default_sweep_count_is_grid_size(self, random_field):
        N = 9
        x0 = random_field(N, seed=5)
        x_default = np.zeros(N * N)
        x_explicit = np.zeros(N * N)
        lin_solve(FieldKind.DENSITY, x_default, x0, 1.0, 6.0, N)
        lin_solve(FieldKind.DENSITY, x_explicit, x0, 1.0, 6.0, N, iterations=N)
        np.testing.assert_array_equal(x_default, x_explicit)


class TestDiffuse:

    def test_zero_rate_is_identity_on_interior(self, random_field):
        N = 12
        x0 = random_field(N, seed=6)
        x = x0.copy()
        diffuse(FieldKind.DENSITY, x, x0, 0.0, 0.1, N)
        np.testing.assert_array_equal(interior(x, N), interior(x0, N))

    def test_mass_roughly_preserved(self):
        N = 32
        x0 = np.zeros(N * N)
        x0[ix(16, 16, N)] = 50.0
        x0[ix(15, 16, N)] = 25.0
        x = x0.copy()
        diffuse(FieldKind.DENSITY, x, x0, 0.0005, 0.1, N)
        assert x.sum() == pytest.approx(x0.sum(), rel=1e-3)

    def test_spreads_peak(self):
        N = 16
        x0 = np.zeros(N * N)
        x0[ix(8, 8, N)] = 10.0
        x = x0.copy()
        diffuse(FieldKind.DENSITY, x, x0, 0.01, 0.1, N)
        assert x[ix(8, 8, N)] < 10.0
        assert x[ix(9, 8, N)] > 0.0
        assert x[ix(8, 7, N)] == pytest.approx(x[ix(8, 9, N)], rel=1e-3)

    def test_large_rate_stays_bounded(self):
        N = 16
        x0 = np.zeros(N * N)
        x0[ix(8, 8, N)] = 10.0
        x = x0.copy()
        diffuse(FieldKind.DENSITY, x, x0, 1000.0, 10.0, N)
        assert np.all(np.isfinite(x))
        assert x.max() <= 10.0 + 1e-9


class TestProject:

    def test_zero_velocity_untouched(self):
        N = 12
        vx, vy = np.zeros(N * N), np.zeros(N * N)
        p, div = np.empty(N * N), np.empty(N * N)
        metrics = project(vx, vy, p, div, N)
        assert not vx.any() and not vy.any()
        assert metrics["divergence_after_max"] == 0.0

    def test_divergence_reduced(self):
        N = 32
        vx, vy = gaussian_source(N, sigma=1.5)
        before = np.linalg.norm(compute_divergence(vx, vy, N))
        p, div = np.empty(N * N), np.empty(N * N)
        metrics = project(vx, vy, p, div, N)
        after = np.linalg.norm(compute_divergence(vx, vy, N))
        assert after < before
        assert metrics["divergence_before_max"] > 0.0

    def test_velocity_boundaries_enforced(self):
        N = 16
        vx, vy = gaussian_source(N, sigma=3.0)
        p, div = np.empty(N * N), np.empty(N * N)
        project(vx, vy, p, div, N)
        u, v = as_grid(vx, N), as_grid(vy, N)
        np.testing.assert_array_equal(u[1:-1, 0], -u[1:-1, 1])
        np.testing.assert_array_equal(v[0, 1:-1], -v[1, 1:-1])

    def test_scratch_contents_ignored(self):
        N = 16
        vx_a, vy_a = gaussian_source(N)
        vx_b, vy_b = vx_a.copy(), vy_a.copy()
        project(vx_a, vy_a, np.zeros(N * N), np.zeros(N * N), N)
        project(vx_b, vy_b, np.full(N * N, 7.0), np.full(N * N, -3.0), N)
        np.testing.assert_allclose(vx_a, vx_b)
        np.testing.assert_allclose(vy_a, vy_b)


class TestAdvect:

    def test_zero_velocity_is_identity(self, random_field):
        N = 12
        d0 = random_field(N, seed=7)
        d = np.zeros(N * N)
        zero = np.zeros(N * N)
        advect(FieldKind.DENSITY, d, d0, zero, zero, 0.1, N)
        np.testing.assert_array_equal(interior(d, N), interior(d0, N))

    def test_shift_by_one_cell(self):
        N = 16
        dt = 0.5
        d0 = np.zeros(N * N)
        d0[ix(6, 7, N)] = 1.0
        vx = np.full(N * N, 1.0 / (dt * (N - 2)))
        vy = np.zeros(N * N)
        d = np.zeros(N * N)
        advect(FieldKind.DENSITY, d, d0, vx, vy, dt, N)
        assert d[ix(7, 7, N)] == pytest.approx(1.0)
        assert d[ix(6, 7, N)] == pytest.approx(0.0, abs=1e-9)

    def test_half_cell_shift_interpolates(self):
        N = 10
        dt = 0.25
        d0 = np.zeros(N * N)
        d0[ix(4, 4, N)] = 2.0
        vx = np.zeros(N * N)
        vy = np.full(N * N, 0.5 / (dt * (N - 2)))
        d = np.zeros(N * N)
        advect(FieldKind.DENSITY, d, d0, vx, vy, dt, N)
        assert d[ix(4, 4, N)] == pytest.approx(1.0)
        assert d[ix(4, 5, N)] == pytest.approx(1.0)

    def test_huge_velocity_stays_in_range(self, random_field):
        N = 12
        d0 = np.abs(random_field(N, seed=8))
        vx = np.full(N * N, 1e6)
        vy = np.full(N * N, -1e6)
        d = np.zeros(N * N)
        advect(FieldKind.DENSITY, d, d0, vx, vy, 1.0, N)
        assert np.all(np.isfinite(d))
        assert d.max() <= d0.max()
        assert d.min() >= 0.0

    def test_boundary_enforced(self, random_field):
        N = 8
        d0 = random_field(N, seed=9)
        d = np.zeros(N * N)
        zero = np.zeros(N * N)
        advect(FieldKind.Y_VELOCITY, d, d0, zero, zero, 0.1, N)
        expected = d.copy()
        set_boundary(FieldKind.Y_VELOCITY, expected, N)
        np.testing.assert_array_equal(d, expected)
