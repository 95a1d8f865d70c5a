"""
Numba-optimized gravity integration and wall clamping.
"""

import numpy as np
import numba as nb
from ..core.particles import ParticleArrays
from ..core.grid import GridArrays
from .integration_vectorized import wall_bounds


@nb.njit(parallel=True, fastmath=True, cache=True)
def integrate_particles_numba(position_x: np.ndarray, position_y: np.ndarray,
                              velocity_x: np.ndarray, velocity_y: np.ndarray,
                              n_active: int, dt: float, gravity: float,
                              xmin: float, xmax: float, ymin: float, ymax: float):
    for i in nb.prange(n_active):
        velocity_y[i] += dt * gravity
        x = position_x[i] + velocity_x[i] * dt
        y = position_y[i] + velocity_y[i] * dt

        if x < xmin:
            x = xmin
            velocity_x[i] = 0.0
        elif x > xmax:
            x = xmax
            velocity_x[i] = 0.0

        if y < ymin:
            y = ymin
            velocity_y[i] = 0.0
        elif y > ymax:
            y = ymax
            velocity_y[i] = 0.0

        position_x[i] = x
        position_y[i] = y


def integrate_particles_numba_wrapper(particles: ParticleArrays, n_active: int, grid: GridArrays,
                                      dt: float, gravity: float, radius: float):
    """Wrapper for Numba integration that matches standard interface."""
    xmin, xmax, ymin, ymax = wall_bounds(grid, radius)
    integrate_particles_numba(
        particles.position_x, particles.position_y,
        particles.velocity_x, particles.velocity_y,
        n_active, dt, gravity, xmin, xmax, ymin, ymax
    )
