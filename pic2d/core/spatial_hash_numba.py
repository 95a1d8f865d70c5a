"""
Numba-optimized counting-sort spatial hash.

Each kernel is a parallel-for over particles or cells; every task writes
only its own slot, so no atomics are needed.
"""

import numpy as np
import numba as nb
from .grid import GridArrays
from .particles import ParticleArrays
from .spatial_hash_vectorized import SpatialHashIndex
from .config import EMPTY_CELL


@nb.njit(cache=True)
def containing_cell(px: float, py: float, cell_size_x: float, cell_size_y: float,
                    cols: int, rows: int) -> int:
    """Flat id of the cell containing (px, py), clamped to the grid."""
    col = int(np.floor(px / cell_size_x))
    row = int(np.floor(py / cell_size_y))
    col = max(0, min(col, cols - 1))
    row = max(0, min(row, rows - 1))
    return row * cols + col


@nb.njit(parallel=True, cache=True)
def clear_indices_numba(start_indices: np.ndarray):
    for c in nb.prange(start_indices.shape[0]):
        start_indices[c] = EMPTY_CELL


@nb.njit(parallel=True, cache=True)
def build_lookup_numba(position_x: np.ndarray, position_y: np.ndarray, n_active: int,
                       cell_size_x: float, cell_size_y: float, cols: int, rows: int,
                       lookup_keys: np.ndarray, lookup_values: np.ndarray):
    for i in nb.prange(n_active):
        lookup_keys[i] = containing_cell(position_x[i], position_y[i],
                                         cell_size_x, cell_size_y, cols, rows)
        lookup_values[i] = i


@nb.njit(parallel=True, cache=True)
def build_start_indices_numba(lookup_keys: np.ndarray, n_active: int,
                              start_indices: np.ndarray):
    """Run-boundary detection over sorted keys."""
    for i in nb.prange(n_active):
        key = lookup_keys[i]
        if i == 0 or lookup_keys[i - 1] != key:
            start_indices[key] = i


def clear_indices_numba_wrapper(index: SpatialHashIndex):
    clear_indices_numba(index.start_indices)


def build_lookup_numba_wrapper(index: SpatialHashIndex, particles: ParticleArrays,
                               n_active: int, grid: GridArrays):
    build_lookup_numba(
        particles.position_x, particles.position_y, n_active,
        grid.cell_size_x, grid.cell_size_y, grid.cols, grid.rows,
        index.lookup_keys, index.lookup_values
    )


def build_start_indices_numba_wrapper(index: SpatialHashIndex, n_active: int,
                                      check_sorted: bool = False):
    if check_sorted and n_active > 1:
        keys = index.lookup_keys[:n_active]
        assert np.all(keys[1:] >= keys[:-1]), "lookup keys must be sorted"
    build_start_indices_numba(index.lookup_keys, n_active, index.start_indices)


