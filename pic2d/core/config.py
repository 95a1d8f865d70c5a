"""
Per-frame simulation parameters and solver constants.
"""

import warnings
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Tuple, Mapping, Any, Optional

# Successive over-relaxation factor of the pressure projection
OVER_RELAXATION = 1.9

# Velocity added to Air cells under a push interaction
PUSH_INCREMENT = 0.1

# start_indices sentinel for cells without particles
EMPTY_CELL = -1


class InteractionType(IntEnum):
    """User interaction applied by the interaction stage."""
    NONE = 0
    PUSH = 1
    DESTROY_TERRAIN = 2


@dataclass
class SimulationConfig:
    """Configuration of a simulation run.

    ``size`` is the grid in (cols, rows) cells, ``cell_size`` the world size
    of one cell. ``interaction_input_strength`` is accepted for hosts that
    pass it but the push effect does not use it.
    """
    size: Tuple[int, int] = (64, 32)
    cell_size: Tuple[float, float] = (1.0, 1.0)
    num_particles: int = 0

    gravity: float = -9.8
    delta_time: float = 1.0 / 60.0
    particle_radius: float = 0.3

    interaction_input_point: Tuple[float, float] = (0.0, 0.0)
    interaction_input_type: InteractionType = InteractionType.NONE
    interaction_input_radius: float = 0.0
    interaction_input_strength: float = 0.0

    pressure_iterations: int = 20
    over_relaxation: float = OVER_RELAXATION
    flip_ratio: float = 0.0
    backend: Optional[str] = None

    @property
    def total_cells(self) -> int:
        return int(self.size[0]) * int(self.size[1])

    @property
    def bounds_size(self) -> Tuple[float, float]:
        return self.size[0] * self.cell_size[0], self.size[1] * self.cell_size[1]

    def validate(self):
        """Check parameters once before a simulation starts.

        Raises:
            ValueError: If any parameter is out of range
        """
        cols, rows = self.size
        if cols < 3 or rows < 3:
            raise ValueError(f"Grid must be at least 3x3 cells, got {cols}x{rows}")
        if self.cell_size[0] <= 0 or self.cell_size[1] <= 0:
            raise ValueError(f"Cell size must be positive, got {self.cell_size}")
        if self.num_particles < 0:
            raise ValueError(f"num_particles must be non-negative, got {self.num_particles}")
        if self.particle_radius < 0:
            raise ValueError(f"particle_radius must be non-negative, got {self.particle_radius}")
        if self.delta_time < 0:
            raise ValueError(f"delta_time must be non-negative, got {self.delta_time}")
        if self.pressure_iterations < 1:
            raise ValueError(f"pressure_iterations must be >= 1, got {self.pressure_iterations}")
        if not 0.0 <= self.flip_ratio <= 1.0:
            raise ValueError(f"flip_ratio must be in [0, 1], got {self.flip_ratio}")
        if self.interaction_input_radius < 0:
            raise ValueError("interaction_input_radius must be non-negative")
        # Raises ValueError for unknown codes
        InteractionType(self.interaction_input_type)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'SimulationConfig':
        """Build a config from plain values, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            warnings.warn(f"Ignoring unknown config keys: {', '.join(unknown)}")

        kwargs = {k: v for k, v in values.items() if k in known}
        for key in ("size", "cell_size", "interaction_input_point"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        if "interaction_input_type" in kwargs:
            kwargs["interaction_input_type"] = InteractionType(kwargs["interaction_input_type"])
        return cls(**kwargs)
