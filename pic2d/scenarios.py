"""
Initial conditions for PIC simulations.

Each scenario returns ``(config, grid, particles)`` ready for
``FluidSimulation``.
"""

import numpy as np
from typing import Tuple
from .core.config import SimulationConfig
from .core.grid import GridArrays, CellType
from .core.particles import ParticleArrays


def generate_block_positions(x0: float, y0: float, x1: float, y1: float,
                             spacing: float, jitter: float = 0.0,
                             seed: int = 0) -> np.ndarray:
    """Regular lattice of positions filling a rectangle.

    Odd rows are shifted by half a spacing (hexagonal-like packing).

    Args:
        x0, y0, x1, y1: Rectangle corners
        spacing: Distance between neighbouring particles
        jitter: Random displacement amplitude (fraction of spacing)
        seed: Random seed for the jitter

    Returns:
        Array of (x, y) positions
    """
    dy = spacing * np.sqrt(3) / 2
    positions = []
    for row, y in enumerate(np.arange(y0 + 0.5 * spacing, y1, dy)):
        offset = 0.5 * spacing if row % 2 else 0.0
        for x in np.arange(x0 + 0.5 * spacing + offset, x1, spacing):
            positions.append((x, y))

    positions = np.array(positions, dtype=np.float32).reshape(-1, 2)
    if jitter > 0.0 and len(positions):
        rng = np.random.default_rng(seed)
        positions += rng.uniform(-jitter, jitter, positions.shape).astype(np.float32) * spacing
    return positions


def create_dam_break(cols: int = 64, rows: int = 32, cell_size: float = 1.0,
                     particle_radius: float = 0.3, fill_width: float = 0.4,
                     fill_height: float = 0.8) -> Tuple[SimulationConfig, GridArrays, ParticleArrays]:
    """Water column in the left part of a stone-walled tank.

    Args:
        cols, rows: Grid size in cells
        cell_size: World size of one cell
        particle_radius: Particle radius
        fill_width: Fraction of the interior width filled with water
        fill_height: Fraction of the interior height filled with water
    """
    grid = GridArrays.allocate((cols, rows), (cell_size, cell_size))
    grid.fill_border(CellType.STONE)

    spacing = 2.2 * particle_radius
    inner = cell_size + particle_radius
    x1 = inner + fill_width * (cols - 2) * cell_size
    y1 = inner + fill_height * (rows - 2) * cell_size
    positions = generate_block_positions(inner, inner, x1, y1, spacing)

    particles = ParticleArrays.from_positions(positions)
    config = SimulationConfig(
        size=(cols, rows),
        cell_size=(cell_size, cell_size),
        num_particles=len(positions),
        particle_radius=particle_radius,
    )
    return config, grid, particles


def create_basin(cols: int = 64, rows: int = 32, cell_size: float = 1.0,
                 particle_radius: float = 0.3,
                 mound_height: float = 0.3) -> Tuple[SimulationConfig, GridArrays, ParticleArrays]:
    """Dam break against a terrain mound in the middle of the tank.

    The mound is Terrain, so a destroy-terrain interaction can erode it;
    the tank walls stay Stone.
    """
    config, grid, particles = create_dam_break(cols, rows, cell_size, particle_radius,
                                               fill_width=0.3, fill_height=0.7)

    mound_rows = max(1, int(mound_height * (rows - 2)))
    grid.fill_rect(cols // 2 - cols // 8, 1, cols // 2 + cols // 8, 1 + mound_rows,
                   CellType.TERRAIN)
    return config, grid, particles
