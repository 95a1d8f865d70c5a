"""
Unified API for the PIC solver with automatic backend dispatch.

Every simulation stage is exposed as one function that dispatches to the
CPU (NumPy) or Numba implementation based on the current backend. Stage
calls are synchronous, so returning from one call is the barrier before
the next stage starts.
"""

import numpy as np
from typing import Optional, Tuple
from .core.backend import dispatch, set_backend, get_backend, auto_select_backend, print_backend_info
from .core.backend import register_implementation, Backend
from .core.grid import GridArrays
from .core.particles import ParticleArrays
from .core.config import OVER_RELAXATION
from .core.spatial_hash_vectorized import (
    SpatialHashIndex,
    sort_lookup,
    clear_indices_vectorized,
    build_lookup_vectorized,
    build_start_indices_vectorized
)

# CPU implementations
from .physics.integration_vectorized import integrate_particles_vectorized
from .physics.interaction_vectorized import apply_interaction_vectorized
from .physics.classification_vectorized import empty_cells_vectorized, fill_cells_vectorized
from .physics.transfer_vectorized import (
    particles_to_grid_vectorized,
    normalize_velocities_vectorized,
    grid_to_particles_vectorized
)
from .physics.projection_vectorized import project_pressure_vectorized
from .physics.collision_vectorized import push_particles_apart_vectorized

# Register CPU implementations
_CPU_IMPLEMENTATIONS = {
    "integrate_particles": integrate_particles_vectorized,
    "apply_interaction": apply_interaction_vectorized,
    "empty_cells": empty_cells_vectorized,
    "fill_cells": fill_cells_vectorized,
    "particles_to_grid": particles_to_grid_vectorized,
    "normalize_velocities": normalize_velocities_vectorized,
    "grid_to_particles": grid_to_particles_vectorized,
    "project_pressure": project_pressure_vectorized,
    "clear_indices": clear_indices_vectorized,
    "build_lookup": build_lookup_vectorized,
    "build_start_indices": build_start_indices_vectorized,
    "push_particles_apart": push_particles_apart_vectorized,
}
for _name, _impl in _CPU_IMPLEMENTATIONS.items():
    register_implementation(_name, Backend.CPU, _impl)

# Try to import and register Numba implementations
try:
    from .physics.integration_numba import integrate_particles_numba_wrapper
    from .physics.interaction_numba import apply_interaction_numba_wrapper
    from .physics.classification_numba import empty_cells_numba_wrapper, fill_cells_numba_wrapper
    from .physics.transfer_numba import (
        particles_to_grid_numba_wrapper,
        normalize_velocities_numba_wrapper,
        grid_to_particles_numba_wrapper
    )
    from .physics.projection_numba import project_pressure_numba_wrapper
    from .physics.collision_numba import push_particles_apart_numba_wrapper
    from .core.spatial_hash_numba import (
        clear_indices_numba_wrapper,
        build_lookup_numba_wrapper,
        build_start_indices_numba_wrapper
    )

    _NUMBA_IMPLEMENTATIONS = {
        "integrate_particles": integrate_particles_numba_wrapper,
        "apply_interaction": apply_interaction_numba_wrapper,
        "empty_cells": empty_cells_numba_wrapper,
        "fill_cells": fill_cells_numba_wrapper,
        "particles_to_grid": particles_to_grid_numba_wrapper,
        "normalize_velocities": normalize_velocities_numba_wrapper,
        "grid_to_particles": grid_to_particles_numba_wrapper,
        "project_pressure": project_pressure_numba_wrapper,
        "clear_indices": clear_indices_numba_wrapper,
        "build_lookup": build_lookup_numba_wrapper,
        "build_start_indices": build_start_indices_numba_wrapper,
        "push_particles_apart": push_particles_apart_numba_wrapper,
    }
    for _name, _impl in _NUMBA_IMPLEMENTATIONS.items():
        register_implementation(_name, Backend.NUMBA, _impl)

except ImportError:
    pass


# Public API functions that dispatch to appropriate backend
def integrate_particles(particles: ParticleArrays, n_active: int, grid: GridArrays,
                        dt: float, gravity: float, radius: float,
                        backend: Optional[str] = None):
    """Apply gravity, advance positions and clamp particles to the walls.

    Args:
        particles: Particle arrays
        n_active: Number of active particles
        grid: Grid defining the domain walls
        dt: Time step
        gravity: Vertical acceleration
        radius: Particle radius
        backend: Override backend ('cpu', 'numba', or None for current)
    """
    dispatch("integrate_particles", particles, n_active, grid, dt, gravity, radius, backend=backend)


def apply_interaction(grid: GridArrays, point: Tuple[float, float], input_type: int,
                      radius: float, backend: Optional[str] = None):
    """Copy velocities in -> out and apply the user interaction."""
    dispatch("apply_interaction", grid, point, input_type, radius, backend=backend)


def empty_cells(grid: GridArrays, backend: Optional[str] = None):
    """Reset Water cells and weights and rotate the velocity generations."""
    dispatch("empty_cells", grid, backend=backend)


def fill_cells(grid: GridArrays, particles: ParticleArrays, n_active: int,
               backend: Optional[str] = None):
    """Mark Air cells that contain particles as Water."""
    dispatch("fill_cells", grid, particles, n_active, backend=backend)


def particles_to_grid(grid: GridArrays, particles: ParticleArrays, n_active: int,
                      backend: Optional[str] = None):
    """Splat particle velocities into velocity_out and weight."""
    dispatch("particles_to_grid", grid, particles, n_active, backend=backend)


def normalize_velocities(grid: GridArrays, backend: Optional[str] = None):
    """Average splatted velocities and restore solid-boundary components."""
    dispatch("normalize_velocities", grid, backend=backend)


def project_pressure(grid: GridArrays, over_relaxation: float = OVER_RELAXATION,
                     backend: Optional[str] = None):
    """Run one pressure projection pass from velocity_in into velocity_out."""
    dispatch("project_pressure", grid, over_relaxation, backend=backend)


def grid_to_particles(grid: GridArrays, particles: ParticleArrays, n_active: int,
                      flip_ratio: float = 0.0,
                      pre_x: Optional[np.ndarray] = None,
                      pre_y: Optional[np.ndarray] = None,
                      backend: Optional[str] = None):
    """Sample velocity_in back onto particles with a PIC/FLIP blend."""
    dispatch("grid_to_particles", grid, particles, n_active, flip_ratio, pre_x, pre_y,
             backend=backend)


def clear_indices(index: SpatialHashIndex, backend: Optional[str] = None):
    """Mark every cell of the spatial hash as empty."""
    dispatch("clear_indices", index, backend=backend)


def build_lookup(index: SpatialHashIndex, particles: ParticleArrays, n_active: int,
                 grid: GridArrays, backend: Optional[str] = None):
    """Record the (cell id, particle index) pairs of the spatial hash."""
    dispatch("build_lookup", index, particles, n_active, grid, backend=backend)


def build_start_indices(index: SpatialHashIndex, n_active: int, check_sorted: bool = False,
                        backend: Optional[str] = None):
    """Record where each cell's run starts in the sorted lookup."""
    dispatch("build_start_indices", index, n_active, check_sorted, backend=backend)


def build_spatial_hash(index: SpatialHashIndex, particles: ParticleArrays, n_active: int,
                       grid: GridArrays, check_sorted: bool = False,
                       backend: Optional[str] = None):
    """Full rebuild: clear, lookup, sort, start indices."""
    clear_indices(index, backend=backend)
    build_lookup(index, particles, n_active, grid, backend=backend)
    sort_lookup(index, n_active)
    build_start_indices(index, n_active, check_sorted, backend=backend)


def push_particles_apart(particles: ParticleArrays, n_active: int, index: SpatialHashIndex,
                         grid: GridArrays, radius: float, backend: Optional[str] = None):
    """Separate overlapping particles into position_out."""
    dispatch("push_particles_apart", particles, n_active, index, grid, radius, backend=backend)
