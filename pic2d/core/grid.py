"""
Staggered (MAC) grid data structure using the Structure-of-Arrays pattern.

Cells are stored flat and indexed by ``row * cols + col``. The x velocity
component of a cell lives on its left edge, the y component on its bottom
edge. Velocities come in two generations so a parallel pass can read one
while writing the other:

- ``velocity_in_*``:  previous, stable generation
- ``velocity_out_*``: generation being written by the current pass
"""

import numpy as np
from enum import IntEnum
from dataclasses import dataclass
from typing import Tuple


class CellType(IntEnum):
    """Cell classification. TERRAIN and STONE are solid."""
    AIR = 0
    TERRAIN = 1
    STONE = 2
    WATER = 3


SOLID_TYPES = (CellType.TERRAIN, CellType.STONE)


@dataclass
class GridArrays:
    """Per-cell buffers of the staggered grid.

    All float buffers are float32 and pre-allocated once; every stage
    updates them in place.
    """
    cols: int
    rows: int
    cell_size_x: float
    cell_size_y: float

    cell_type: np.ndarray       # shape: (C,) int32
    velocity_in_x: np.ndarray   # shape: (C,) float32
    velocity_in_y: np.ndarray   # shape: (C,) float32
    velocity_out_x: np.ndarray  # shape: (C,) float32
    velocity_out_y: np.ndarray  # shape: (C,) float32
    weight_x: np.ndarray        # shape: (C,) float32
    weight_y: np.ndarray        # shape: (C,) float32

    @staticmethod
    def allocate(size: Tuple[int, int], cell_size: Tuple[float, float] = (1.0, 1.0)) -> 'GridArrays':
        """Pre-allocate an all-Air grid of ``size = (cols, rows)`` cells."""
        cols, rows = int(size[0]), int(size[1])
        n = cols * rows

        def zeros():
            return np.zeros(n, dtype=np.float32)

        return GridArrays(
            cols=cols,
            rows=rows,
            cell_size_x=float(cell_size[0]),
            cell_size_y=float(cell_size[1]),
            cell_type=np.full(n, CellType.AIR, dtype=np.int32),
            velocity_in_x=zeros(),
            velocity_in_y=zeros(),
            velocity_out_x=zeros(),
            velocity_out_y=zeros(),
            weight_x=zeros(),
            weight_y=zeros(),
        )

    @property
    def total_cells(self) -> int:
        return self.cols * self.rows

    @property
    def size(self) -> Tuple[int, int]:
        return self.cols, self.rows

    @property
    def cell_size(self) -> Tuple[float, float]:
        return self.cell_size_x, self.cell_size_y

    @property
    def bounds_size(self) -> Tuple[float, float]:
        """World extent of the grid."""
        return self.cols * self.cell_size_x, self.rows * self.cell_size_y

    def cell_index(self, col: int, row: int) -> int:
        return row * self.cols + col

    def as_2d(self, array: np.ndarray) -> np.ndarray:
        """View a flat per-cell buffer as ``(rows, cols)``."""
        return array.reshape(self.rows, self.cols)

    def is_solid_mask(self) -> np.ndarray:
        """Boolean mask of solid cells (flat)."""
        return np.isin(self.cell_type, SOLID_TYPES)

    def count(self, cell_type: CellType) -> int:
        return int(np.count_nonzero(self.cell_type == cell_type))

    def swap_velocities(self):
        """Exchange the in/out velocity generations."""
        self.velocity_in_x, self.velocity_out_x = self.velocity_out_x, self.velocity_in_x
        self.velocity_in_y, self.velocity_out_y = self.velocity_out_y, self.velocity_in_y

    def fill_border(self, cell_type: CellType = CellType.STONE):
        """Surround the domain with a one-cell ring of ``cell_type``."""
        types = self.as_2d(self.cell_type)
        types[0, :] = cell_type
        types[-1, :] = cell_type
        types[:, 0] = cell_type
        types[:, -1] = cell_type

    def fill_rect(self, col0: int, row0: int, col1: int, row1: int, cell_type: CellType):
        """Set an inclusive-exclusive rectangle of cells to ``cell_type``."""
        self.as_2d(self.cell_type)[row0:row1, col0:col1] = cell_type
