"""
Host-side orchestration of one PIC simulation frame.

``FluidSimulation`` owns the grid, particle and spatial hash buffers and
calls the stages in their required order. Every stage call returns only
after the whole pass is done, so each call is a barrier for the next.

Frame order::

    integrate -> interact -> empty -> splat (P2G) -> fill -> normalize
    -> project x K -> gather (G2P) -> spatial hash -> push apart
"""

import logging
import time
from typing import Optional, Tuple

import numpy as np

from . import api
from .core.config import SimulationConfig, InteractionType
from .core.grid import GridArrays, CellType
from .core.particles import ParticleArrays
from .core.spatial_hash_vectorized import SpatialHashIndex, get_statistics as hash_statistics
from .physics.projection_vectorized import compute_divergence

logger = logging.getLogger(__name__)


class FluidSimulation:
    """Fixed-capacity PIC/FLIP fluid simulation.

    Args:
        config: Simulation parameters (validated here)
        grid: Pre-built grid; an all-Air grid of ``config.size`` if None
        particles: Pre-built particles; ``config.num_particles`` zeroed
            particles if None. When given with ``num_particles == 0`` the
            whole capacity is live and written back to the config.

    Raises:
        ValueError: If the grid or particle buffers do not fit the config
    """

    def __init__(self, config: SimulationConfig, grid: Optional[GridArrays] = None,
                 particles: Optional[ParticleArrays] = None):
        config.validate()
        self.config = config

        if grid is None:
            grid = GridArrays.allocate(config.size, config.cell_size)
        if (grid.cols, grid.rows) != tuple(config.size):
            raise ValueError(f"Grid is {grid.cols}x{grid.rows}, config expects "
                             f"{config.size[0]}x{config.size[1]}")

        if particles is None:
            particles = ParticleArrays.allocate(config.num_particles)
        elif config.num_particles == 0:
            # Supplied buffers are all live unless the config says otherwise
            config.num_particles = particles.capacity
        if particles.capacity < config.num_particles:
            raise ValueError(f"Particle buffers hold {particles.capacity} particles, "
                             f"config needs {config.num_particles}")

        self.grid = grid
        self.particles = particles
        self.index = SpatialHashIndex.allocate(particles.capacity, grid.total_cells)
        self.n_active = config.num_particles
        self.frame = 0
        self.last_step_time = 0.0

        # Grid velocities before projection, for the FLIP correction
        self._pre_x = np.zeros(grid.total_cells, dtype=np.float32)
        self._pre_y = np.zeros(grid.total_cells, dtype=np.float32)

        logger.info("Simulation: %dx%d cells, %d particles, backend %s",
                    grid.cols, grid.rows, self.n_active, config.backend or api.get_backend())

    @property
    def backend(self) -> Optional[str]:
        return self.config.backend

    def set_interaction(self, point: Tuple[float, float],
                        input_type: InteractionType = InteractionType.PUSH,
                        radius: Optional[float] = None):
        """Set the interaction applied on the next frames."""
        self.config.interaction_input_point = (float(point[0]), float(point[1]))
        self.config.interaction_input_type = InteractionType(input_type)
        if radius is not None:
            self.config.interaction_input_radius = float(radius)

    def clear_interaction(self):
        self.config.interaction_input_type = InteractionType.NONE

    def step(self, dt: Optional[float] = None):
        """Advance the simulation by one frame.

        Args:
            dt: Time step; ``config.delta_time`` if None
        """
        cfg = self.config
        dt = cfg.delta_time if dt is None else dt
        grid, particles, n = self.grid, self.particles, self.n_active
        backend = cfg.backend
        t0 = time.perf_counter()

        api.integrate_particles(particles, n, grid, dt, cfg.gravity, cfg.particle_radius,
                                backend=backend)
        api.apply_interaction(grid, cfg.interaction_input_point, cfg.interaction_input_type,
                              cfg.interaction_input_radius, backend=backend)

        # Particle -> grid
        api.empty_cells(grid, backend=backend)
        api.particles_to_grid(grid, particles, n, backend=backend)
        api.fill_cells(grid, particles, n, backend=backend)
        api.normalize_velocities(grid, backend=backend)

        # Fresh field becomes the projection input
        grid.swap_velocities()
        self._pre_x[:] = grid.velocity_in_x
        self._pre_y[:] = grid.velocity_in_y
        for _ in range(cfg.pressure_iterations):
            api.project_pressure(grid, cfg.over_relaxation, backend=backend)
            grid.swap_velocities()

        # Grid -> particle
        api.grid_to_particles(grid, particles, n, cfg.flip_ratio, self._pre_x, self._pre_y,
                              backend=backend)

        api.build_spatial_hash(self.index, particles, n, grid, backend=backend)
        api.push_particles_apart(particles, n, self.index, grid, cfg.particle_radius,
                                 backend=backend)
        particles.swap_positions()

        self.frame += 1
        self.last_step_time = time.perf_counter() - t0
        if logger.isEnabledFor(logging.DEBUG):
            stats = self.get_statistics()
            logger.debug("Frame %d: %d water cells, max |div| %.3e, max speed %.3f (%.1f ms)",
                         self.frame, stats['water_cells'], stats['max_divergence'],
                         stats['max_speed'], self.last_step_time * 1000)

    def run(self, n_steps: int, dt: Optional[float] = None):
        """Advance ``n_steps`` frames."""
        for _ in range(n_steps):
            self.step(dt)

    def water_divergence(self) -> np.ndarray:
        """Divergence of the current field (velocity_in) on Water cells."""
        div = compute_divergence(self.grid, use_out=False)
        return div[self.grid.cell_type == CellType.WATER]

    def get_statistics(self) -> dict:
        """Summary of the current frame for logging and diagnostics."""
        n = self.n_active
        div = self.water_divergence()
        speed = np.linalg.norm(self.particles.get_velocities(slice(0, n)), axis=1)
        stats = {
            'frame': self.frame,
            'particles': n,
            'water_cells': self.grid.count(CellType.WATER),
            'terrain_cells': self.grid.count(CellType.TERRAIN),
            'max_divergence': float(np.max(np.abs(div))) if len(div) else 0.0,
            'max_speed': float(np.max(speed)) if n else 0.0,
            'step_time': self.last_step_time,
        }
        stats.update({f'hash_{k}': v for k, v in hash_statistics(self.index, n).items()})
        return stats
