"""Core PIC components: grid, particles, configuration, spatial hashing and backends."""

from .grid import GridArrays, CellType, SOLID_TYPES
from .particles import ParticleArrays
from .config import (
    SimulationConfig,
    InteractionType,
    OVER_RELAXATION,
    PUSH_INCREMENT,
    EMPTY_CELL
)
from .spatial_hash_vectorized import SpatialHashIndex, containing_cells, get_cell_particles

__all__ = [
    'GridArrays',
    'CellType',
    'SOLID_TYPES',
    'ParticleArrays',
    'SimulationConfig',
    'InteractionType',
    'OVER_RELAXATION',
    'PUSH_INCREMENT',
    'EMPTY_CELL',
    'SpatialHashIndex',
    'containing_cells',
    'get_cell_particles'
]
