"""
Vectorized user interaction: terrain destruction and velocity push.
"""

import numpy as np
from typing import Tuple
from ..core.grid import GridArrays, CellType
from ..core.config import InteractionType, PUSH_INCREMENT


def interaction_mask(grid: GridArrays, point: Tuple[float, float], radius: float) -> np.ndarray:
    """Interior cells whose centre lies within ``radius`` of ``point``, flat."""
    cx = (np.arange(grid.cols, dtype=np.float32) + 0.5) * grid.cell_size_x
    cy = (np.arange(grid.rows, dtype=np.float32) + 0.5) * grid.cell_size_y
    dx = cx[np.newaxis, :] - point[0]
    dy = cy[:, np.newaxis] - point[1]
    inside = dx * dx + dy * dy <= radius * radius

    # Border cells are never edited
    inside[0, :] = False
    inside[-1, :] = False
    inside[:, 0] = False
    inside[:, -1] = False
    return inside.ravel()


def apply_interaction_vectorized(grid: GridArrays, point: Tuple[float, float],
                                 input_type: int, radius: float):
    """Copy velocities in -> out and apply the selected interaction.

    Args:
        grid: Grid arrays
        point: World-space interaction centre
        input_type: InteractionType code
        radius: Interaction radius
    """
    grid.velocity_out_x[:] = grid.velocity_in_x
    grid.velocity_out_y[:] = grid.velocity_in_y

    if input_type not in (InteractionType.PUSH, InteractionType.DESTROY_TERRAIN):
        return

    mask = interaction_mask(grid, point, radius)

    if input_type == InteractionType.DESTROY_TERRAIN:
        grid.cell_type[mask & (grid.cell_type == CellType.TERRAIN)] = CellType.AIR
    else:
        air = mask & (grid.cell_type == CellType.AIR)
        grid.velocity_out_x[air] += PUSH_INCREMENT
        grid.velocity_out_y[air] += PUSH_INCREMENT
