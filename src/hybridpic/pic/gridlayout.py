"""
Staggered Grid Layout for the Hybrid PIC Solver

Yee-type staggering in 1D with two interleaved grids:
- primal: grid nodes, x = i*dx
- dual:   cell centres, x = (i + 1/2)*dx

Grid layout (n_cells = 4, nbr_ghosts = 1 example):

    primal idx:  0     1     2     3     4     5     6
                 g     |     |     |     |     |     g
    dual idx:       0     1     2     3     4     5
                    g                             g
    x:                 0    dx   2dx   3dx   4dx

Layout indices include the ghost padding: the first owned primal node
and the first owned dual cell both sit at index nbr_ghosts.

Centering table:
    Bx                  primal
    By, Bz              dual
    Ex, Jx              dual
    Ey, Ez, Jy, Jz      primal
    N, Vx, Vy, Vz       primal
"""

from enum import Enum, IntEnum

import numpy as np

from ..errors import ConfigurationError


class Direction(IntEnum):
    X = 0
    Y = 1
    Z = 2


class Centering(IntEnum):
    PRIMAL = 0
    DUAL = 1


class Quantity(Enum):
    Bx = "Bx"
    By = "By"
    Bz = "Bz"
    Ex = "Ex"
    Ey = "Ey"
    Ez = "Ez"
    Jx = "Jx"
    Jy = "Jy"
    Jz = "Jz"
    N = "N"
    Vx = "Vx"
    Vy = "Vy"
    Vz = "Vz"


_P = Centering.PRIMAL
_D = Centering.DUAL

# Centering per direction (x, y, z). Only x is used by the 1D operators.
CENTERINGS = {
    Quantity.Bx: (_P, _D, _D),
    Quantity.By: (_D, _P, _D),
    Quantity.Bz: (_D, _D, _P),
    Quantity.Ex: (_D, _P, _P),
    Quantity.Ey: (_P, _D, _P),
    Quantity.Ez: (_P, _P, _D),
    Quantity.Jx: (_D, _P, _P),
    Quantity.Jy: (_P, _D, _P),
    Quantity.Jz: (_P, _P, _D),
    Quantity.N: (_P, _P, _P),
    Quantity.Vx: (_P, _P, _P),
    Quantity.Vy: (_P, _P, _P),
    Quantity.Vz: (_P, _P, _P),
}


def _as_tuple(value):
    if np.ndim(value) == 0:
        return (value,)
    return tuple(value)


class GridLayout:
    """
    Uniform staggered mesh shared read-only by every solver component.

    Attributes are exposed as read-only properties; a layout never changes
    after construction.

    Args:
        grid_size: Number of cells per axis (int or sequence)
        cell_size: Cell size per axis (float or sequence)
        nbr_ghosts: Number of ghost nodes on each side (default: 1)
    """

    def __init__(self, grid_size, cell_size, nbr_ghosts=1):
        grid_size = _as_tuple(grid_size)
        cell_size = _as_tuple(cell_size)

        if len(grid_size) != len(cell_size) or not 1 <= len(grid_size) <= 3:
            raise ConfigurationError(
                f"grid_size {grid_size} and cell_size {cell_size} must have "
                f"the same length, between 1 and 3"
            )
        for n in grid_size:
            if int(n) != n or n <= 0:
                raise ConfigurationError(f"grid_size entries must be positive integers, got {n}")
        for dx in cell_size:
            if not dx > 0:
                raise ConfigurationError(f"cell_size entries must be positive, got {dx}")
        if int(nbr_ghosts) != nbr_ghosts or nbr_ghosts < 1:
            raise ConfigurationError(f"nbr_ghosts must be a positive integer, got {nbr_ghosts}")
        if min(grid_size) < nbr_ghosts:
            raise ConfigurationError(
                f"grid_size {grid_size} must hold at least nbr_ghosts={nbr_ghosts} cells"
            )

        self._grid_size = tuple(int(n) for n in grid_size)
        self._cell_size = tuple(float(dx) for dx in cell_size)
        self._nbr_ghosts = int(nbr_ghosts)

    # ---------------------------------------------------------------- geometry

    @property
    def dimension(self):
        return len(self._grid_size)

    @property
    def nbr_ghosts(self):
        return self._nbr_ghosts

    @property
    def grid_size(self):
        return self._grid_size

    def nbr_cells(self, direction=Direction.X):
        return self._grid_size[direction]

    def cell_size(self, direction=Direction.X):
        return self._cell_size[direction]

    def domain_length(self, direction=Direction.X):
        """Physical length of the owned domain along one axis."""
        return self._grid_size[direction] * self._cell_size[direction]

    @staticmethod
    def centerings(quantity):
        return CENTERINGS[quantity]

    def centering(self, quantity, direction=Direction.X):
        return CENTERINGS[quantity][direction]

    # ----------------------------------------------------------------- indices

    def primal_dom_start(self, direction=Direction.X):
        return self._nbr_ghosts

    def primal_dom_end(self, direction=Direction.X):
        return self._nbr_ghosts + self._grid_size[direction]

    def dual_dom_start(self, direction=Direction.X):
        return self._nbr_ghosts

    def dual_dom_end(self, direction=Direction.X):
        return self._nbr_ghosts + self._grid_size[direction] - 1

    def dom_start(self, quantity, direction=Direction.X):
        if self.centering(quantity, direction) == Centering.PRIMAL:
            return self.primal_dom_start(direction)
        return self.dual_dom_start(direction)

    def dom_end(self, quantity, direction=Direction.X):
        if self.centering(quantity, direction) == Centering.PRIMAL:
            return self.primal_dom_end(direction)
        return self.dual_dom_end(direction)

    def ghost_start(self, quantity, direction=Direction.X):
        return 0

    def ghost_end(self, quantity, direction=Direction.X):
        return self.dom_end(quantity, direction) + self._nbr_ghosts

    def nbr_points(self, quantity, direction=Direction.X):
        """Allocated points (domain plus ghosts) along one axis."""
        return self.ghost_end(quantity, direction) + 1

    def shape(self, quantity):
        return tuple(self.nbr_points(quantity, d) for d in range(self.dimension))

    def allocate(self, quantity):
        return np.zeros(self.shape(quantity), dtype=np.float64)

    # ------------------------------------------------------------- coordinates

    def coordinate(self, direction, quantity, index):
        """
        Physical position of a layout index under the quantity's centering.

        Works on scalars and integer arrays alike.
        """
        dx = self._cell_size[direction]
        x = (index - self.dom_start(quantity, direction)) * dx
        if self.centering(quantity, direction) == Centering.DUAL:
            x = x + 0.5 * dx
        return x

    def coordinates(self, quantity, direction=Direction.X, with_ghosts=False):
        """Positions of every domain index (or every allocated index)."""
        if with_ghosts:
            indices = np.arange(self.ghost_start(quantity, direction),
                                self.ghost_end(quantity, direction) + 1)
        else:
            indices = np.arange(self.dom_start(quantity, direction),
                                self.dom_end(quantity, direction) + 1)
        return self.coordinate(direction, quantity, indices)

    def __repr__(self):
        return (
            f"GridLayout(grid_size={self._grid_size}, "
            f"cell_size={self._cell_size}, nbr_ghosts={self._nbr_ghosts})"
        )
