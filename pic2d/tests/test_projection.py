"""
Tests for the pressure projection.
"""

import numpy as np
import pytest
import pic2d
from pic2d.core.grid import GridArrays, CellType
from pic2d.physics.projection_vectorized import compute_divergence


def seeded_grid(cols=8, rows=6, seed=0):
    grid = GridArrays.allocate((cols, rows))
    rng = np.random.default_rng(seed)
    grid.velocity_in_x[:] = rng.uniform(-1, 1, grid.total_cells)
    grid.velocity_in_y[:] = rng.uniform(-1, 1, grid.total_cells)
    return grid


class TestSinglePass:

    def test_isolated_water_cell_divergence_shrinks(self, backend):
        grid = seeded_grid()
        c = grid.cell_index(3, 2)
        grid.cell_type[c] = CellType.WATER
        before = compute_divergence(grid, use_out=False)[c]

        pic2d.project_pressure(grid, 1.9)

        after = compute_divergence(grid)[c]
        assert abs(after) < abs(before)
        assert after == pytest.approx(-0.9 * before, rel=1e-4, abs=1e-6)

    def test_solid_neighbour_face_is_fixed(self, backend):
        grid = seeded_grid()
        c = grid.cell_index(3, 2)
        grid.cell_type[c] = CellType.WATER
        grid.cell_type[c - 1] = CellType.STONE
        before = compute_divergence(grid, use_out=False)[c]

        pic2d.project_pressure(grid, 1.9)

        assert grid.velocity_out_x[c] == grid.velocity_in_x[c]
        assert grid.velocity_out_x[c + 1] != grid.velocity_in_x[c + 1]
        assert abs(compute_divergence(grid)[c]) < abs(before)

    def test_enclosed_water_cell_is_left_alone(self, backend):
        grid = seeded_grid()
        c = grid.cell_index(3, 2)
        grid.cell_type[c] = CellType.WATER
        for n in (c - 1, c + 1, c - grid.cols, c + grid.cols):
            grid.cell_type[n] = CellType.TERRAIN

        pic2d.project_pressure(grid, 1.9)

        np.testing.assert_array_equal(grid.velocity_out_x, grid.velocity_in_x)
        np.testing.assert_array_equal(grid.velocity_out_y, grid.velocity_in_y)

    def test_no_water_copies_field(self, backend):
        grid = seeded_grid()
        grid.fill_border()

        pic2d.project_pressure(grid, 1.9)

        np.testing.assert_array_equal(grid.velocity_out_x, grid.velocity_in_x)
        np.testing.assert_array_equal(grid.velocity_out_y, grid.velocity_in_y)

    def test_border_water_cells_are_skipped(self, backend):
        grid = seeded_grid()
        grid.cell_type[:] = CellType.WATER
        interior = np.zeros((grid.rows, grid.cols), dtype=bool)
        interior[1:-1, 1:-1] = True
        # Faces touched by interior cells: their own and the right/top neighbours
        touched_x = interior.copy()
        touched_x[:, 1:] |= interior[:, :-1]
        touched_y = interior.copy()
        touched_y[1:, :] |= interior[:-1, :]

        pic2d.project_pressure(grid, 1.9)

        untouched_x = ~touched_x.ravel()
        untouched_y = ~touched_y.ravel()
        np.testing.assert_array_equal(grid.velocity_out_x[untouched_x],
                                      grid.velocity_in_x[untouched_x])
        np.testing.assert_array_equal(grid.velocity_out_y[untouched_y],
                                      grid.velocity_in_y[untouched_y])


class TestConvergence:

    def test_repeated_passes_remove_divergence(self, backend):
        grid = seeded_grid(12, 10, seed=4)
        grid.fill_border()
        grid.fill_rect(3, 2, 9, 8, CellType.WATER)
        water = grid.cell_type == CellType.WATER
        initial = np.max(np.abs(compute_divergence(grid, use_out=False)[water]))

        for _ in range(200):
            pic2d.project_pressure(grid, 1.9)
            grid.swap_velocities()

        final = np.max(np.abs(compute_divergence(grid, use_out=False)[water]))
        assert final < 1e-2 * initial

    def test_solid_faces_never_change(self, backend):
        grid = seeded_grid(12, 10, seed=9)
        grid.fill_border()
        grid.fill_rect(3, 2, 9, 8, CellType.WATER)
        grid.fill_rect(5, 4, 7, 6, CellType.TERRAIN)
        solid = grid.as_2d(grid.is_solid_mask())
        faces_x = solid.copy()
        faces_x[:, 1:] |= solid[:, :-1]
        faces_y = solid.copy()
        faces_y[1:, :] |= solid[:-1, :]
        faces_x = faces_x.ravel()
        faces_y = faces_y.ravel()
        start_x = grid.velocity_in_x[faces_x].copy()
        start_y = grid.velocity_in_y[faces_y].copy()

        for _ in range(10):
            pic2d.project_pressure(grid, 1.9)
            grid.swap_velocities()

        np.testing.assert_array_equal(grid.velocity_in_x[faces_x], start_x)
        np.testing.assert_array_equal(grid.velocity_in_y[faces_y], start_y)
