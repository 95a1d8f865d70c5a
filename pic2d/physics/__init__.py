"""Simulation stages: integration, interaction, classification, transfer, projection, collision."""

from .integration_vectorized import (
    integrate_particles_vectorized,
    apply_wall_clamp_vectorized,
    wall_bounds
)
from .interaction_vectorized import apply_interaction_vectorized, interaction_mask
from .classification_vectorized import empty_cells_vectorized, fill_cells_vectorized
from .transfer_vectorized import (
    particles_to_grid_vectorized,
    normalize_velocities_vectorized,
    grid_to_particles_vectorized,
    splat_stencil
)
from .projection_vectorized import project_pressure_vectorized, compute_divergence
from .collision_vectorized import push_particles_apart_vectorized, candidate_pairs

__all__ = [
    # Integration
    'integrate_particles_vectorized',
    'apply_wall_clamp_vectorized',
    'wall_bounds',
    # Interaction
    'apply_interaction_vectorized',
    'interaction_mask',
    # Classification
    'empty_cells_vectorized',
    'fill_cells_vectorized',
    # Transfer
    'particles_to_grid_vectorized',
    'normalize_velocities_vectorized',
    'grid_to_particles_vectorized',
    'splat_stencil',
    # Projection
    'project_pressure_vectorized',
    'compute_divergence',
    # Collision
    'push_particles_apart_vectorized',
    'candidate_pairs'
]
