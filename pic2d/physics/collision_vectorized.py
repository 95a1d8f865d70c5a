"""
Vectorized particle separation using the counting-sort spatial hash.

Every particle looks at the 3x3 block of cells around its own cell
(restricted to the interior, the outer ring is skipped) and moves away
from each overlapping neighbour by half the overlap. Only the particle's
own output position is written; its partner gets the mirrored correction
from its own evaluation. Coincident particles have no separation
direction and are left alone.
"""

import numpy as np
from ..core.grid import GridArrays
from ..core.particles import ParticleArrays
from ..core.config import EMPTY_CELL
from ..core.spatial_hash_vectorized import SpatialHashIndex, containing_cells


def candidate_pairs(index: SpatialHashIndex, particles: ParticleArrays, n_active: int,
                    grid: GridArrays):
    """All (particle, candidate neighbour) pairs from the 3x3 cell blocks.

    Returns:
        (i, q) arrays of equal length; q may equal i
    """
    col, row = containing_cells(particles.position_x[:n_active],
                                particles.position_y[:n_active], grid)
    x0 = np.maximum(col - 1, 1)
    x1 = np.minimum(col + 1, grid.cols - 2)
    y0 = np.maximum(row - 1, 1)
    y1 = np.minimum(row + 1, grid.rows - 2)

    run_length = np.bincount(index.lookup_keys[:n_active], minlength=grid.total_cells)
    particle_ids = np.arange(n_active, dtype=np.int32)

    owners, starts, lengths = [], [], []
    for ky in range(3):
        for kx in range(3):
            cx = x0 + kx
            cy = y0 + ky
            valid = (cx <= x1) & (cy <= y1)
            cells = cy[valid] * grid.cols + cx[valid]
            start = index.start_indices[cells]
            occupied = start != EMPTY_CELL
            owners.append(particle_ids[valid][occupied])
            starts.append(start[occupied])
            lengths.append(run_length[cells[occupied]])

    owners = np.concatenate(owners)
    starts = np.concatenate(starts)
    lengths = np.concatenate(lengths)

    # Expand each run into one entry per stored particle
    total = int(lengths.sum())
    run_begin = np.repeat(np.cumsum(lengths) - lengths, lengths)
    slots = np.repeat(starts, lengths) + (np.arange(total) - run_begin)
    return np.repeat(owners, lengths), index.lookup_values[slots]


def push_particles_apart_vectorized(particles: ParticleArrays, n_active: int,
                                    index: SpatialHashIndex, grid: GridArrays,
                                    radius: float):
    """Write separated positions of all active particles into position_out.

    Args:
        particles: Particle arrays (reads position_*, writes position_out_*)
        n_active: Number of active particles
        index: Spatial hash built from the current positions
        grid: Grid arrays
        radius: Particle radius
    """
    px = particles.position_x[:n_active]
    py = particles.position_y[:n_active]
    out_x = particles.position_out_x[:n_active]
    out_y = particles.position_out_y[:n_active]
    out_x[:] = px
    out_y[:] = py
    if n_active == 0:
        return

    i, q = candidate_pairs(index, particles, n_active, grid)
    dx = px[i] - px[q]
    dy = py[i] - py[q]
    dist = np.sqrt(dx * dx + dy * dy)

    min_dist = 2.0 * radius
    overlap = (q != i) & (dist > 0.0) & (dist <= min_dist)
    i = i[overlap]
    dist = dist[overlap]
    scale = 0.5 * (min_dist - dist) / dist

    np.add.at(out_x, i, dx[overlap] * scale)
    np.add.at(out_y, i, dy[overlap] * scale)
