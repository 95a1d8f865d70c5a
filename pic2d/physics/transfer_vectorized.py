"""
Vectorized particle <-> grid velocity transfers on the staggered grid.

Sample layout for cell (col, row) with cell size (hx, hy):

- x component at (col * hx, (row + 0.5) * hy)   (left edge)
- y component at ((col + 0.5) * hx, row * hy)   (bottom edge)

Each particle touches the four samples surrounding it with bilinear
weights. The particle -> grid splat accumulates ``weight`` and
``weight * velocity``; ``normalize_velocities`` turns the sums into
averages and restores solid-boundary values.
"""

import numpy as np
from typing import Tuple, Optional
from ..core.grid import GridArrays, CellType
from ..core.particles import ParticleArrays


def splat_stencil(position_x: np.ndarray, position_y: np.ndarray, grid: GridArrays,
                  component: int) -> Tuple[np.ndarray, np.ndarray]:
    """Sample indices and bilinear weights of each particle for one component.

    Returns:
        (cells, weights), both of shape (4, N): cells are flat cell ids,
        weights sum to one per particle
    """
    hx, hy = grid.cell_size_x, grid.cell_size_y
    x = np.clip(position_x, hx, (grid.cols - 1) * hx)
    y = np.clip(position_y, hy, (grid.rows - 1) * hy)

    # Staggered offset of the sampled component
    offset_x = 0.0 if component == 0 else 0.5 * hx
    offset_y = 0.5 * hy if component == 0 else 0.0

    fx = (x - offset_x) / hx
    fy = (y - offset_y) / hy
    x0 = np.minimum(np.floor(fx), grid.cols - 2).astype(np.int32)
    y0 = np.minimum(np.floor(fy), grid.rows - 2).astype(np.int32)
    tx = (fx - x0).astype(np.float32)
    ty = (fy - y0).astype(np.float32)
    x1 = x0 + 1
    y1 = y0 + 1
    sx = 1.0 - tx
    sy = 1.0 - ty

    cols = grid.cols
    cells = np.stack([y0 * cols + x0, y0 * cols + x1, y1 * cols + x1, y1 * cols + x0])
    weights = np.stack([sx * sy, tx * sy, tx * ty, sx * ty])
    return cells, weights


def particles_to_grid_vectorized(grid: GridArrays, particles: ParticleArrays, n_active: int):
    """Accumulate particle velocities into velocity_out / weight.

    ``np.add.at`` is unbuffered, so particles sharing a sample all contribute.
    """
    px = particles.position_x[:n_active]
    py = particles.position_y[:n_active]
    components = (
        (particles.velocity_x[:n_active], grid.velocity_out_x, grid.weight_x),
        (particles.velocity_y[:n_active], grid.velocity_out_y, grid.weight_y),
    )
    for component, (velocity, target, weight) in enumerate(components):
        cells, w = splat_stencil(px, py, grid, component)
        np.add.at(weight, cells.ravel(), w.ravel())
        np.add.at(target, cells.ravel(), (w * velocity[np.newaxis, :]).ravel())


def normalize_velocities_vectorized(grid: GridArrays):
    """Average splatted velocities and restore components touching solids."""
    for velocity, weight in ((grid.velocity_out_x, grid.weight_x),
                             (grid.velocity_out_y, grid.weight_y)):
        filled = weight > 0.0
        velocity[filled] /= weight[filled]

    solid = grid.as_2d(grid.is_solid_mask())
    restore_x = solid.copy()
    restore_x[:, 1:] |= solid[:, :-1]
    restore_y = solid.copy()
    restore_y[1:, :] |= solid[:-1, :]

    restore_x = restore_x.ravel()
    restore_y = restore_y.ravel()
    grid.velocity_out_x[restore_x] = grid.velocity_in_x[restore_x]
    grid.velocity_out_y[restore_y] = grid.velocity_in_y[restore_y]


def grid_to_particles_vectorized(grid: GridArrays, particles: ParticleArrays, n_active: int,
                                 flip_ratio: float = 0.0,
                                 pre_x: Optional[np.ndarray] = None,
                                 pre_y: Optional[np.ndarray] = None):
    """Sample grid velocity (velocity_in) back onto particles.

    A sample is valid when the cell it belongs to, or the cell across the
    sampled edge, is not Air. The result blends PIC (``1 - flip_ratio``)
    with FLIP (``flip_ratio``), where FLIP adds the grid change since the
    ``pre_*`` snapshot to the particle's own velocity.

    Args:
        grid: Grid arrays with the projected field in velocity_in
        particles: Particle arrays
        n_active: Number of active particles
        flip_ratio: Fraction of FLIP in the blend
        pre_x, pre_y: Grid velocities before projection (needed for FLIP)
    """
    if n_active == 0:
        return
    if pre_x is None or pre_y is None:
        flip_ratio = 0.0

    px = particles.position_x[:n_active]
    py = particles.position_y[:n_active]
    not_air = grid.cell_type != CellType.AIR

    components = (
        (particles.velocity_x, grid.velocity_in_x, pre_x, 1),
        (particles.velocity_y, grid.velocity_in_y, pre_y, grid.cols),
    )
    for component, (velocity, field, pre, neighbor) in enumerate(components):
        cells, w = splat_stencil(px, py, grid, component)
        valid = (not_air[cells] | not_air[cells - neighbor]).astype(np.float32)
        w = w * valid
        total = w.sum(axis=0)
        has = total > 0.0
        if not np.any(has):
            continue

        pic = (w * field[cells]).sum(axis=0)
        v = velocity[:n_active]
        new_v = np.where(has, pic / np.where(has, total, 1.0), v)
        if flip_ratio > 0.0:
            corr = (w * (field[cells] - pre[cells])).sum(axis=0)
            flip = v + corr / np.where(has, total, 1.0)
            new_v = np.where(has, (1.0 - flip_ratio) * new_v + flip_ratio * flip, v)
        velocity[:n_active] = new_v
