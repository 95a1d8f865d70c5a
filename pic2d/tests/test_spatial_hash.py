"""
Tests for the counting-sort spatial hash.
"""

import numpy as np
import pytest
import pic2d
from pic2d.core.config import EMPTY_CELL
from pic2d.core.grid import GridArrays
from pic2d.core.particles import ParticleArrays
from pic2d.core.spatial_hash_vectorized import (
    SpatialHashIndex,
    containing_cells,
    get_cell_particles,
    get_statistics
)


def random_particles(grid: GridArrays, n: int, seed: int = 1) -> ParticleArrays:
    rng = np.random.default_rng(seed)
    w, h = grid.bounds_size
    positions = np.column_stack([rng.uniform(0, w, n), rng.uniform(0, h, n)])
    return ParticleArrays.from_positions(positions)


class TestLookup:
    """BuildLookup and BuildStartIndices."""

    def test_build_lookup_records_containing_cell(self, backend, make_particles):
        grid = GridArrays.allocate((4, 3), (2.0, 1.0))
        particles = make_particles([(0.5, 0.5), (7.9, 2.9), (3.0, 1.5), (-1.0, 10.0)])
        index = SpatialHashIndex.allocate(4, grid.total_cells)

        pic2d.build_lookup(index, particles, 4, grid)

        # Last particle is outside the grid and clamps to column 0, row 2
        assert index.lookup_keys.tolist() == [0, 11, 5, 8]
        assert index.lookup_values.tolist() == [0, 1, 2, 3]

    def test_start_indices_mark_run_boundaries(self, backend):
        index = SpatialHashIndex.allocate(6, 9)
        index.lookup_keys[:] = [1, 1, 4, 4, 4, 7]
        index.lookup_values[:] = [5, 0, 2, 1, 3, 4]

        pic2d.clear_indices(index)
        pic2d.build_start_indices(index, 6)

        expected = [EMPTY_CELL] * 9
        expected[1] = 0
        expected[4] = 2
        expected[7] = 5
        assert index.start_indices.tolist() == expected

    def test_clear_indices_resets_every_cell(self, backend):
        index = SpatialHashIndex.allocate(4, 12)
        index.start_indices[:] = np.arange(12)

        pic2d.clear_indices(index)

        assert np.all(index.start_indices == EMPTY_CELL)

    def test_unsorted_keys_fail_debug_check(self, backend):
        index = SpatialHashIndex.allocate(3, 5)
        index.lookup_keys[:] = [3, 1, 2]

        with pytest.raises(AssertionError):
            pic2d.build_start_indices(index, 3, check_sorted=True)

    def test_no_particles_leaves_cells_empty(self, backend):
        grid = GridArrays.allocate((5, 5))
        particles = ParticleArrays.allocate(10)
        index = SpatialHashIndex.allocate(10, grid.total_cells)

        pic2d.build_spatial_hash(index, particles, 0, grid)

        assert np.all(index.start_indices == EMPTY_CELL)


class TestContiguity:
    """Runs found through start_indices cover exactly the particles of a cell."""

    def test_runs_are_contiguous_and_complete(self, backend):
        grid = GridArrays.allocate((10, 8), (1.0, 1.0))
        n = 300
        particles = random_particles(grid, n)
        index = SpatialHashIndex.allocate(n, grid.total_cells)

        pic2d.build_spatial_hash(index, particles, n, grid, check_sorted=True)

        keys = index.lookup_keys[:n]
        assert np.all(np.diff(keys) >= 0)
        counts = np.bincount(keys, minlength=grid.total_cells)

        for c in range(grid.total_cells):
            start = index.start_indices[c]
            if counts[c] == 0:
                assert start == EMPTY_CELL
                continue
            end = start + counts[c]
            assert np.all(keys[start:end] == c)
            assert start == 0 or keys[start - 1] != c
            assert end == n or keys[end] != c

    def test_values_are_a_permutation_matching_keys(self, backend):
        grid = GridArrays.allocate((6, 6), (0.5, 0.5))
        n = 100
        particles = random_particles(grid, n, seed=7)
        index = SpatialHashIndex.allocate(n, grid.total_cells)

        pic2d.build_spatial_hash(index, particles, n, grid)

        values = index.lookup_values[:n]
        assert sorted(values.tolist()) == list(range(n))

        col, row = containing_cells(particles.position_x[values], particles.position_y[values], grid)
        np.testing.assert_array_equal(row * grid.cols + col, index.lookup_keys[:n])

    def test_rebuild_forgets_previous_frame(self, backend, make_particles):
        grid = GridArrays.allocate((4, 4))
        particles = make_particles([(0.5, 0.5), (0.6, 0.6)])
        index = SpatialHashIndex.allocate(2, grid.total_cells)
        pic2d.build_spatial_hash(index, particles, 2, grid)
        assert index.start_indices[0] == 0

        particles.position_x[:] = 3.5
        particles.position_y[:] = 3.5
        pic2d.build_spatial_hash(index, particles, 2, grid)

        assert index.start_indices[0] == EMPTY_CELL
        assert index.start_indices[15] == 0


class TestQueries:

    def test_get_cell_particles(self, make_particles):
        grid = GridArrays.allocate((4, 4))
        particles = make_particles([(2.5, 1.5), (0.5, 0.5), (2.2, 1.1), (3.5, 3.5)])
        index = SpatialHashIndex.allocate(4, grid.total_cells)
        pic2d.build_spatial_hash(index, particles, 4, grid, backend='cpu')

        assert sorted(get_cell_particles(index, grid.cell_index(2, 1), 4).tolist()) == [0, 2]
        assert get_cell_particles(index, grid.cell_index(3, 3), 4).tolist() == [3]
        assert len(get_cell_particles(index, grid.cell_index(1, 1), 4)) == 0

    def test_statistics(self, make_particles):
        grid = GridArrays.allocate((4, 4))
        particles = make_particles([(2.5, 1.5), (0.5, 0.5), (2.2, 1.1)])
        index = SpatialHashIndex.allocate(3, grid.total_cells)
        pic2d.build_spatial_hash(index, particles, 3, grid, backend='cpu')

        stats = get_statistics(index, 3)

        assert stats['total_cells'] == 16
        assert stats['occupied_cells'] == 2
        assert stats['max_particles_per_cell'] == 2
        assert stats['mean_particles_per_occupied_cell'] == pytest.approx(1.5)
