"""
Numba-optimized particle <-> grid velocity transfers.

The particle -> grid splat scatters into shared per-cell sums. Numba's CPU
threads have no atomic float add, so the splat runs as a serial compiled
loop; normalization and the grid -> particle gather are parallel.
"""

import numpy as np
import numba as nb
from typing import Optional
from ..core.grid import GridArrays, CellType
from ..core.particles import ParticleArrays

AIR = int(CellType.AIR)
TERRAIN = int(CellType.TERRAIN)
STONE = int(CellType.STONE)


@nb.njit(cache=True)
def splat_stencil_numba(px: float, py: float, hx: float, hy: float,
                        cols: int, rows: int, component: int, cells: np.ndarray,
                        weights: np.ndarray):
    """Fill the four sample cells and bilinear weights of one particle."""
    x = min(max(px, hx), (cols - 1) * hx)
    y = min(max(py, hy), (rows - 1) * hy)
    if component == 0:
        fx = x / hx
        fy = (y - 0.5 * hy) / hy
    else:
        fx = (x - 0.5 * hx) / hx
        fy = y / hy

    x0 = min(int(np.floor(fx)), cols - 2)
    y0 = min(int(np.floor(fy)), rows - 2)
    tx = fx - x0
    ty = fy - y0
    sx = 1.0 - tx
    sy = 1.0 - ty

    cells[0] = y0 * cols + x0
    cells[1] = y0 * cols + x0 + 1
    cells[2] = (y0 + 1) * cols + x0 + 1
    cells[3] = (y0 + 1) * cols + x0
    weights[0] = sx * sy
    weights[1] = tx * sy
    weights[2] = tx * ty
    weights[3] = sx * ty


@nb.njit(cache=True)
def particles_to_grid_numba(position_x: np.ndarray, position_y: np.ndarray,
                            velocity_x: np.ndarray, velocity_y: np.ndarray, n_active: int,
                            hx: float, hy: float, cols: int, rows: int,
                            velocity_out_x: np.ndarray, velocity_out_y: np.ndarray,
                            weight_x: np.ndarray, weight_y: np.ndarray):
    cells = np.empty(4, dtype=np.int64)
    weights = np.empty(4, dtype=np.float64)
    for i in range(n_active):
        splat_stencil_numba(position_x[i], position_y[i], hx, hy, cols, rows, 0, cells, weights)
        for k in range(4):
            weight_x[cells[k]] += weights[k]
            velocity_out_x[cells[k]] += weights[k] * velocity_x[i]

        splat_stencil_numba(position_x[i], position_y[i], hx, hy, cols, rows, 1, cells, weights)
        for k in range(4):
            weight_y[cells[k]] += weights[k]
            velocity_out_y[cells[k]] += weights[k] * velocity_y[i]


@nb.njit(parallel=True, cache=True)
def normalize_velocities_numba(cell_type: np.ndarray, cols: int,
                               velocity_in_x: np.ndarray, velocity_in_y: np.ndarray,
                               velocity_out_x: np.ndarray, velocity_out_y: np.ndarray,
                               weight_x: np.ndarray, weight_y: np.ndarray):
    for c in nb.prange(cell_type.shape[0]):
        if weight_x[c] > 0.0:
            velocity_out_x[c] /= weight_x[c]
        if weight_y[c] > 0.0:
            velocity_out_y[c] /= weight_y[c]

        solid = cell_type[c] == TERRAIN or cell_type[c] == STONE
        col = c % cols
        left = c - 1
        below = c - cols
        if solid or (col > 0 and (cell_type[left] == TERRAIN or cell_type[left] == STONE)):
            velocity_out_x[c] = velocity_in_x[c]
        if solid or (below >= 0 and (cell_type[below] == TERRAIN or cell_type[below] == STONE)):
            velocity_out_y[c] = velocity_in_y[c]


@nb.njit(parallel=True, cache=True)
def grid_to_particles_numba(position_x: np.ndarray, position_y: np.ndarray,
                            velocity_x: np.ndarray, velocity_y: np.ndarray, n_active: int,
                            hx: float, hy: float, cols: int, rows: int,
                            cell_type: np.ndarray, field_x: np.ndarray, field_y: np.ndarray,
                            pre_x: np.ndarray, pre_y: np.ndarray, flip_ratio: float):
    for i in nb.prange(n_active):
        cells = np.empty(4, dtype=np.int64)
        weights = np.empty(4, dtype=np.float64)
        for component in range(2):
            if component == 0:
                field = field_x
                pre = pre_x
                velocity = velocity_x
                neighbor = 1
            else:
                field = field_y
                pre = pre_y
                velocity = velocity_y
                neighbor = cols

            splat_stencil_numba(position_x[i], position_y[i], hx, hy, cols, rows,
                                component, cells, weights)
            total = 0.0
            pic = 0.0
            corr = 0.0
            for k in range(4):
                c = cells[k]
                if cell_type[c] != AIR or cell_type[c - neighbor] != AIR:
                    total += weights[k]
                    pic += weights[k] * field[c]
                    corr += weights[k] * (field[c] - pre[c])

            if total > 0.0:
                v = velocity[i]
                flip = v + corr / total
                velocity[i] = (1.0 - flip_ratio) * (pic / total) + flip_ratio * flip


def particles_to_grid_numba_wrapper(grid: GridArrays, particles: ParticleArrays, n_active: int):
    particles_to_grid_numba(
        particles.position_x, particles.position_y,
        particles.velocity_x, particles.velocity_y, n_active,
        grid.cell_size_x, grid.cell_size_y, grid.cols, grid.rows,
        grid.velocity_out_x, grid.velocity_out_y, grid.weight_x, grid.weight_y
    )


def normalize_velocities_numba_wrapper(grid: GridArrays):
    normalize_velocities_numba(
        grid.cell_type, grid.cols,
        grid.velocity_in_x, grid.velocity_in_y,
        grid.velocity_out_x, grid.velocity_out_y,
        grid.weight_x, grid.weight_y
    )


def grid_to_particles_numba_wrapper(grid: GridArrays, particles: ParticleArrays, n_active: int,
                                    flip_ratio: float = 0.0,
                                    pre_x: Optional[np.ndarray] = None,
                                    pre_y: Optional[np.ndarray] = None):
    if pre_x is None or pre_y is None:
        # FLIP needs a snapshot; without one the blend is pure PIC
        pre_x, pre_y = grid.velocity_in_x, grid.velocity_in_y
        flip_ratio = 0.0
    grid_to_particles_numba(
        particles.position_x, particles.position_y,
        particles.velocity_x, particles.velocity_y, n_active,
        grid.cell_size_x, grid.cell_size_y, grid.cols, grid.rows,
        grid.cell_type, grid.velocity_in_x, grid.velocity_in_y,
        pre_x, pre_y, float(flip_ratio)
    )
