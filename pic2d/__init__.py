"""PIC (Particle-In-Cell) incompressible fluid simulation on a staggered grid."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

from .api import (
    # Stages
    integrate_particles,
    apply_interaction,
    empty_cells,
    fill_cells,
    particles_to_grid,
    normalize_velocities,
    project_pressure,
    grid_to_particles,
    clear_indices,
    build_lookup,
    sort_lookup,
    build_start_indices,
    build_spatial_hash,
    push_particles_apart,

    # Backend management
    set_backend,
    get_backend,
    auto_select_backend,
    print_backend_info,
)
from .core import (
    GridArrays,
    CellType,
    ParticleArrays,
    SimulationConfig,
    InteractionType,
    SpatialHashIndex
)
from .simulation import FluidSimulation

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # Stages
    'integrate_particles',
    'apply_interaction',
    'empty_cells',
    'fill_cells',
    'particles_to_grid',
    'normalize_velocities',
    'project_pressure',
    'grid_to_particles',
    'clear_indices',
    'build_lookup',
    'sort_lookup',
    'build_start_indices',
    'build_spatial_hash',
    'push_particles_apart',

    # Backend management
    'set_backend',
    'get_backend',
    'auto_select_backend',
    'print_backend_info',

    # Core classes
    'GridArrays',
    'CellType',
    'ParticleArrays',
    'SimulationConfig',
    'InteractionType',
    'SpatialHashIndex',
    'FluidSimulation'
]
