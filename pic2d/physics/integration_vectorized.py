"""
Vectorized gravity integration and wall clamping for particles.
"""

import numpy as np
from typing import Tuple
from ..core.particles import ParticleArrays
from ..core.grid import GridArrays


def wall_bounds(grid: GridArrays, radius: float) -> Tuple[float, float, float, float]:
    """Allowed particle extent (xmin, xmax, ymin, ymax).

    Particles stay one cell plus one radius away from every domain edge.
    """
    xmin = grid.cell_size_x + radius
    xmax = (grid.cols - 1) * grid.cell_size_x - radius
    ymin = grid.cell_size_y + radius
    ymax = (grid.rows - 1) * grid.cell_size_y - radius
    return xmin, xmax, ymin, ymax


def integrate_particles_vectorized(particles: ParticleArrays, n_active: int, grid: GridArrays,
                                   dt: float, gravity: float, radius: float):
    """Symplectic Euler step under gravity followed by an inelastic wall clamp.

    Args:
        particles: Particle arrays
        n_active: Number of active particles
        grid: Grid defining the domain walls
        dt: Time step
        gravity: Vertical acceleration (negative points down)
        radius: Particle radius
    """
    vx = particles.velocity_x[:n_active]
    vy = particles.velocity_y[:n_active]
    px = particles.position_x[:n_active]
    py = particles.position_y[:n_active]

    vy += dt * gravity
    px += vx * dt
    py += vy * dt

    apply_wall_clamp_vectorized(particles, n_active, wall_bounds(grid, radius))


def apply_wall_clamp_vectorized(particles: ParticleArrays, n_active: int,
                                bounds: Tuple[float, float, float, float]):
    """Clamp positions into bounds, zeroing the velocity of a hit wall.

    Args:
        particles: Particle arrays
        n_active: Number of active particles
        bounds: (xmin, xmax, ymin, ymax)
    """
    xmin, xmax, ymin, ymax = bounds
    vx = particles.velocity_x[:n_active]
    vy = particles.velocity_y[:n_active]
    px = particles.position_x[:n_active]
    py = particles.position_y[:n_active]

    hit_x = (px < xmin) | (px > xmax)
    np.clip(px, xmin, xmax, out=px)
    vx[hit_x] = 0.0

    hit_y = (py < ymin) | (py > ymax)
    np.clip(py, ymin, ymax, out=py)
    vy[hit_y] = 0.0
