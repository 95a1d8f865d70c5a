"""
Numba-optimized per-frame cell classification.
"""

import numpy as np
import numba as nb
from ..core.grid import GridArrays, CellType
from ..core.particles import ParticleArrays
from ..core.spatial_hash_numba import containing_cell

AIR = int(CellType.AIR)
WATER = int(CellType.WATER)


@nb.njit(parallel=True, cache=True)
def empty_cells_numba(cell_type: np.ndarray, weight_x: np.ndarray, weight_y: np.ndarray,
                      velocity_in_x: np.ndarray, velocity_in_y: np.ndarray,
                      velocity_out_x: np.ndarray, velocity_out_y: np.ndarray):
    for c in nb.prange(cell_type.shape[0]):
        if cell_type[c] == WATER:
            cell_type[c] = AIR
        weight_x[c] = 0.0
        weight_y[c] = 0.0
        velocity_in_x[c] = velocity_out_x[c]
        velocity_in_y[c] = velocity_out_y[c]
        velocity_out_x[c] = 0.0
        velocity_out_y[c] = 0.0


@nb.njit(parallel=True, cache=True)
def fill_cells_numba(cell_type: np.ndarray, position_x: np.ndarray, position_y: np.ndarray,
                     n_active: int, cell_size_x: float, cell_size_y: float,
                     cols: int, rows: int):
    # Concurrent tasks may hit the same cell, but all write the same value
    for i in nb.prange(n_active):
        c = containing_cell(position_x[i], position_y[i], cell_size_x, cell_size_y, cols, rows)
        if cell_type[c] == AIR:
            cell_type[c] = WATER


def empty_cells_numba_wrapper(grid: GridArrays):
    empty_cells_numba(
        grid.cell_type, grid.weight_x, grid.weight_y,
        grid.velocity_in_x, grid.velocity_in_y,
        grid.velocity_out_x, grid.velocity_out_y
    )


def fill_cells_numba_wrapper(grid: GridArrays, particles: ParticleArrays, n_active: int):
    fill_cells_numba(
        grid.cell_type, particles.position_x, particles.position_y, n_active,
        grid.cell_size_x, grid.cell_size_y, grid.cols, grid.rows
    )
