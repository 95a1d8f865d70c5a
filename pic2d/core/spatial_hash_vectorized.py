"""
Vectorized counting-sort spatial hash for particle collision queries.

The index maps each grid cell to a contiguous run of particles:

- ``lookup_keys[i]``   cell id of a particle (sorted before use)
- ``lookup_values[i]`` original particle index, permuted like the keys
- ``start_indices[c]`` first sorted position whose key is ``c``, or -1

Rebuilt every frame with::

    clear_indices -> build_lookup -> sort_lookup -> build_start_indices
"""

import numpy as np
from dataclasses import dataclass
from typing import Tuple
from .config import EMPTY_CELL
from .grid import GridArrays
from .particles import ParticleArrays


def containing_cells(position_x: np.ndarray, position_y: np.ndarray,
                     grid: GridArrays) -> Tuple[np.ndarray, np.ndarray]:
    """Column and row of the cell containing each position, clamped to the grid."""
    col = np.floor(position_x / grid.cell_size_x).astype(np.int32)
    row = np.floor(position_y / grid.cell_size_y).astype(np.int32)
    np.clip(col, 0, grid.cols - 1, out=col)
    np.clip(row, 0, grid.rows - 1, out=row)
    return col, row


@dataclass
class SpatialHashIndex:
    """Lookup buffers, pre-sized to the particle and cell capacities."""
    lookup_keys: np.ndarray     # shape: (N,) int32
    lookup_values: np.ndarray   # shape: (N,) int32
    start_indices: np.ndarray   # shape: (C,) int32

    @staticmethod
    def allocate(max_particles: int, total_cells: int) -> 'SpatialHashIndex':
        return SpatialHashIndex(
            lookup_keys=np.zeros(max_particles, dtype=np.int32),
            lookup_values=np.zeros(max_particles, dtype=np.int32),
            start_indices=np.full(total_cells, EMPTY_CELL, dtype=np.int32),
        )


def clear_indices_vectorized(index: SpatialHashIndex):
    """Mark every cell as empty."""
    index.start_indices.fill(EMPTY_CELL)


def build_lookup_vectorized(index: SpatialHashIndex, particles: ParticleArrays,
                            n_active: int, grid: GridArrays):
    """Record (cell id, particle index) for every active particle."""
    col, row = containing_cells(particles.position_x[:n_active],
                                particles.position_y[:n_active], grid)
    index.lookup_keys[:n_active] = row * grid.cols + col
    index.lookup_values[:n_active] = np.arange(n_active, dtype=np.int32)


def sort_lookup(index: SpatialHashIndex, n_active: int):
    """Stable sort of the lookup pairs by cell id.

    Stands in for the host-side parallel sort; any stable sort by key
    satisfies ``build_start_indices``.
    """
    order = np.argsort(index.lookup_keys[:n_active], kind="stable")
    index.lookup_keys[:n_active] = index.lookup_keys[:n_active][order]
    index.lookup_values[:n_active] = index.lookup_values[:n_active][order]


def build_start_indices_vectorized(index: SpatialHashIndex, n_active: int,
                                   check_sorted: bool = False):
    """Record the start of each run of equal keys.

    Args:
        index: Spatial hash with sorted lookup keys
        n_active: Number of active particles
        check_sorted: Assert the sort precondition (debug aid)
    """
    if n_active == 0:
        return
    keys = index.lookup_keys[:n_active]
    if check_sorted:
        assert np.all(keys[1:] >= keys[:-1]), "lookup keys must be sorted"

    run_start = np.ones(n_active, dtype=bool)
    run_start[1:] = keys[1:] != keys[:-1]
    positions = np.nonzero(run_start)[0].astype(np.int32)
    index.start_indices[keys[positions]] = positions


def get_cell_particles(index: SpatialHashIndex, cell_id: int, n_active: int) -> np.ndarray:
    """Particle indices stored in ``cell_id`` (empty array if none)."""
    start = index.start_indices[cell_id]
    if start == EMPTY_CELL:
        return np.array([], dtype=np.int32)
    other = np.nonzero(index.lookup_keys[start:n_active] != cell_id)[0]
    end = start + int(other[0]) if len(other) else n_active
    return index.lookup_values[start:end].copy()


def get_statistics(index: SpatialHashIndex, n_active: int) -> dict:
    """Get hash table statistics for debugging."""
    total_cells = len(index.start_indices)
    counts = np.bincount(index.lookup_keys[:n_active], minlength=total_cells)
    occupied = counts > 0

    return {
        'total_cells': total_cells,
        'occupied_cells': int(np.sum(occupied)),
        'occupancy_rate': float(np.sum(occupied)) / total_cells,
        'max_particles_per_cell': int(np.max(counts)) if n_active else 0,
        'mean_particles_per_occupied_cell': float(np.mean(counts[occupied])) if np.any(occupied) else 0.0,
    }
