"""
Vectorized per-frame cell classification.

``empty_cells`` resets the fluid state and rotates the velocity generations
before particle velocities are splatted; ``fill_cells`` marks every Air
cell holding a particle as Water.
"""

from ..core.grid import GridArrays, CellType
from ..core.particles import ParticleArrays
from ..core.spatial_hash_vectorized import containing_cells


def empty_cells_vectorized(grid: GridArrays):
    """Water -> Air, clear weights, velocity_in <- velocity_out, zero velocity_out."""
    grid.cell_type[grid.cell_type == CellType.WATER] = CellType.AIR
    grid.weight_x.fill(0.0)
    grid.weight_y.fill(0.0)
    grid.velocity_in_x[:] = grid.velocity_out_x
    grid.velocity_in_y[:] = grid.velocity_out_y
    grid.velocity_out_x.fill(0.0)
    grid.velocity_out_y.fill(0.0)


def fill_cells_vectorized(grid: GridArrays, particles: ParticleArrays, n_active: int):
    """Mark Air cells containing at least one particle as Water."""
    col, row = containing_cells(particles.position_x[:n_active],
                                particles.position_y[:n_active], grid)
    cells = row * grid.cols + col
    # Solid cells never flip
    cells = cells[grid.cell_type[cells] == CellType.AIR]
    grid.cell_type[cells] = CellType.WATER
