"""
Numba-optimized particle separation, one task per particle.
"""

import numpy as np
import numba as nb
from ..core.grid import GridArrays
from ..core.particles import ParticleArrays
from ..core.config import EMPTY_CELL
from ..core.spatial_hash_vectorized import SpatialHashIndex
from ..core.spatial_hash_numba import containing_cell


@nb.njit(parallel=True, fastmath=True, cache=True)
def push_particles_apart_numba(position_x: np.ndarray, position_y: np.ndarray,
                               position_out_x: np.ndarray, position_out_y: np.ndarray,
                               n_active: int, radius: float,
                               lookup_keys: np.ndarray, lookup_values: np.ndarray,
                               start_indices: np.ndarray,
                               cell_size_x: float, cell_size_y: float, cols: int, rows: int):
    min_dist = 2.0 * radius
    for i in nb.prange(n_active):
        px = position_x[i]
        py = position_y[i]
        out_x = px
        out_y = py

        c = containing_cell(px, py, cell_size_x, cell_size_y, cols, rows)
        col = c % cols
        row = c // cols
        x0 = max(col - 1, 1)
        x1 = min(col + 1, cols - 2)
        y0 = max(row - 1, 1)
        y1 = min(row + 1, rows - 2)

        for cy in range(y0, y1 + 1):
            for cx in range(x0, x1 + 1):
                cell = cy * cols + cx
                k = start_indices[cell]
                if k == EMPTY_CELL:
                    continue
                while k < n_active and lookup_keys[k] == cell:
                    q = lookup_values[k]
                    k += 1
                    if q == i:
                        continue
                    dx = px - position_x[q]
                    dy = py - position_y[q]
                    d = np.sqrt(dx * dx + dy * dy)
                    if d == 0.0 or d > min_dist:
                        continue
                    s = 0.5 * (min_dist - d) / d
                    out_x += dx * s
                    out_y += dy * s

        position_out_x[i] = out_x
        position_out_y[i] = out_y


def push_particles_apart_numba_wrapper(particles: ParticleArrays, n_active: int,
                                       index: SpatialHashIndex, grid: GridArrays,
                                       radius: float):
    """Wrapper for Numba collision resolution that matches standard interface."""
    push_particles_apart_numba(
        particles.position_x, particles.position_y,
        particles.position_out_x, particles.position_out_y,
        n_active, float(radius),
        index.lookup_keys, index.lookup_values, index.start_indices,
        grid.cell_size_x, grid.cell_size_y, grid.cols, grid.rows
    )
