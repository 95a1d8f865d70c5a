"""
Particle state using the Structure-of-Arrays (SoA) pattern.

Positions come in two generations: ``position_*`` is the current snapshot
read by every pass, ``position_out_*`` receives the corrected positions
written by collision resolution. ``swap_positions`` makes the corrected
generation current.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional


@dataclass
class ParticleArrays:
    """Structure of Arrays for efficient vectorization.

    All arrays are pre-allocated with float32 and never resized.
    """
    position_x: np.ndarray      # shape: (N,) float32
    position_y: np.ndarray      # shape: (N,) float32
    position_out_x: np.ndarray  # shape: (N,) float32
    position_out_y: np.ndarray  # shape: (N,) float32
    velocity_x: np.ndarray      # shape: (N,) float32
    velocity_y: np.ndarray      # shape: (N,) float32

    @staticmethod
    def allocate(max_particles: int) -> 'ParticleArrays':
        """Pre-allocate zeroed arrays for ``max_particles`` particles."""
        def zeros():
            return np.zeros(max_particles, dtype=np.float32)

        return ParticleArrays(
            position_x=zeros(),
            position_y=zeros(),
            position_out_x=zeros(),
            position_out_y=zeros(),
            velocity_x=zeros(),
            velocity_y=zeros(),
        )

    @staticmethod
    def from_positions(positions: np.ndarray, velocities: Optional[np.ndarray] = None) -> 'ParticleArrays':
        """Build particle arrays from an ``(N, 2)`` position array."""
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 2)
        particles = ParticleArrays.allocate(len(positions))
        particles.position_x[:] = positions[:, 0]
        particles.position_y[:] = positions[:, 1]
        particles.position_out_x[:] = positions[:, 0]
        particles.position_out_y[:] = positions[:, 1]
        if velocities is not None:
            velocities = np.asarray(velocities, dtype=np.float32).reshape(-1, 2)
            particles.velocity_x[:] = velocities[:, 0]
            particles.velocity_y[:] = velocities[:, 1]
        return particles

    @property
    def capacity(self) -> int:
        return len(self.position_x)

    def get_positions(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle positions as (N, 2) array for convenience."""
        if indices is None:
            return np.column_stack((self.position_x, self.position_y))
        return np.column_stack((self.position_x[indices], self.position_y[indices]))

    def get_velocities(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle velocities as (N, 2) array for convenience."""
        if indices is None:
            return np.column_stack((self.velocity_x, self.velocity_y))
        return np.column_stack((self.velocity_x[indices], self.velocity_y[indices]))

    def swap_positions(self):
        """Make the corrected position generation current."""
        self.position_x, self.position_out_x = self.position_out_x, self.position_x
        self.position_y, self.position_out_y = self.position_out_y, self.position_y
