"""
Numba-optimized user interaction, one task per cell.
"""

import numpy as np
import numba as nb
from typing import Tuple
from ..core.grid import GridArrays, CellType
from ..core.config import PUSH_INCREMENT

AIR = int(CellType.AIR)
TERRAIN = int(CellType.TERRAIN)


@nb.njit(parallel=True, fastmath=True, cache=True)
def apply_interaction_numba(cell_type: np.ndarray,
                            velocity_in_x: np.ndarray, velocity_in_y: np.ndarray,
                            velocity_out_x: np.ndarray, velocity_out_y: np.ndarray,
                            cols: int, rows: int, cell_size_x: float, cell_size_y: float,
                            point_x: float, point_y: float, input_type: int, radius: float):
    radius2 = radius * radius
    for c in nb.prange(cols * rows):
        velocity_out_x[c] = velocity_in_x[c]
        velocity_out_y[c] = velocity_in_y[c]

        col = c % cols
        row = c // cols
        if col == 0 or row == 0 or col == cols - 1 or row == rows - 1:
            continue

        dx = (col + 0.5) * cell_size_x - point_x
        dy = (row + 0.5) * cell_size_y - point_y
        if dx * dx + dy * dy > radius2:
            continue

        if input_type == 2:
            if cell_type[c] == TERRAIN:
                cell_type[c] = AIR
        elif input_type == 1:
            if cell_type[c] == AIR:
                velocity_out_x[c] += PUSH_INCREMENT
                velocity_out_y[c] += PUSH_INCREMENT


def apply_interaction_numba_wrapper(grid: GridArrays, point: Tuple[float, float],
                                    input_type: int, radius: float):
    """Wrapper for Numba interaction that matches standard interface."""
    apply_interaction_numba(
        grid.cell_type,
        grid.velocity_in_x, grid.velocity_in_y,
        grid.velocity_out_x, grid.velocity_out_y,
        grid.cols, grid.rows, grid.cell_size_x, grid.cell_size_y,
        float(point[0]), float(point[1]), int(input_type), float(radius)
    )
