"""
Boundary Conditions for Fields and Particles

A boundary condition owns three operations:
- fill(field): set ghost (and duplicated) nodes from the interior
- fold(field): move deposits that landed on ghost or duplicated nodes back
  onto the node that owns them (called after deposition, before fill)
- particles(particle_array): bring particles back into [0, L)

Available policies:
- "periodic": index i is equivalent to i +/- n_cells. For a primal
  quantity the last domain node is the image of the first one.
- "fixed": reflecting walls. Ghosts copy the wall value (or hold a
  configured constant), deposits fold onto mirror images and particles
  reflect specularly.
"""

from abc import ABC, abstractmethod

import numba

from ..errors import ConfigurationError
from .field import VectorField
from .gridlayout import Centering, Direction, Quantity


# ==================== PARTICLE KERNELS ====================


@numba.njit
def apply_periodic_bc_1d(x, n_particles, x_min, x_max):
    """
    Wrap particles back into [x_min, x_max).

    Args:
        x: Particle positions [n] (modified in-place)
        n_particles: Number of particles
        x_min: Domain minimum
        x_max: Domain maximum

    Returns:
        n_wrapped: Number of particles moved
    """
    L = x_max - x_min
    n_wrapped = 0

    for i in range(n_particles):
        if x[i] < x_min or x[i] >= x_max:
            n_wrapped += 1
        while x[i] < x_min:
            x[i] += L
        while x[i] >= x_max:
            x[i] -= L

    return n_wrapped


@numba.njit
def apply_reflecting_bc_1d(x, v, n_particles, x_min, x_max):
    """
    Specular reflection at both walls.

    Physics:
        - Position mirrored: x_new = 2*x_wall - x_old
        - Velocity reversed: vx_new = -vx_old
        - Energy conserved: |v_new| = |v_old|

    Args:
        x: Particle positions [n] (modified in-place)
        v: Particle velocities [n, 3] (modified in-place)
        n_particles: Number of particles
        x_min: Domain minimum
        x_max: Domain maximum

    Returns:
        n_reflected: Number of reflections
    """
    n_reflected = 0

    for i in range(n_particles):
        if x[i] < x_min:
            x[i] = 2.0 * x_min - x[i]
            v[i, 0] = -v[i, 0]
            n_reflected += 1
        elif x[i] >= x_max:
            # A particle exactly on the right wall is pushed just inside
            x[i] = 2.0 * x_max - x[i]
            if x[i] >= x_max:
                x[i] = x_max - 1e-12 * (x_max - x_min)
            v[i, 0] = -v[i, 0]
            n_reflected += 1

    return n_reflected


# ==================== BOUNDARY CONDITIONS ====================


class BoundaryCondition(ABC):
    """
    Boundary policy bound to one layout.

    Args:
        layout: GridLayout
    """

    def __init__(self, layout):
        if layout is None:
            raise ConfigurationError("GridLayout is null")
        self.layout = layout

    def fill(self, field):
        """Fill ghost nodes of a Field or of every component of a VectorField."""
        if isinstance(field, VectorField):
            for component in field.components:
                self._fill_scalar(component)
        else:
            self._fill_scalar(field)
        return field

    def fold(self, field):
        """Fold boundary deposits of a Field or VectorField back onto the domain."""
        if isinstance(field, VectorField):
            for component in field.components:
                self._fold_scalar(component)
        else:
            self._fold_scalar(field)
        return field

    @abstractmethod
    def _fill_scalar(self, field):
        pass

    def _fold_scalar(self, field):
        pass

    @abstractmethod
    def particles(self, particles):
        """Apply the particle boundary to a ParticleArray."""

    def apply_to_particles(self, particles):
        return self.particles(particles)


class PeriodicBoundary(BoundaryCondition):
    """
    Periodic fields and particles.

    Canonical indices are [dom_start, dom_start + n_cells - 1] for both
    centerings; every other allocated index copies its periodic image.
    """

    def _canonical(self, field):
        start = field.dom_start
        n_cells = self.layout.nbr_cells(Direction.X)
        return start, n_cells

    def _fill_scalar(self, field):
        data = field.data
        start, n_cells = self._canonical(field)
        size = len(data)

        data[:start] = data[n_cells:n_cells + start]
        n_right = size - (start + n_cells)
        data[start + n_cells:] = data[start:start + n_right]

    def _fold_scalar(self, field):
        data = field.data
        start, n_cells = self._canonical(field)
        size = len(data)

        data[n_cells:n_cells + start] += data[:start]
        n_right = size - (start + n_cells)
        data[start:start + n_right] += data[start + n_cells:]
        data[:start] = 0.0
        data[start + n_cells:] = 0.0

    def particles(self, particles):
        return apply_periodic_bc_1d(
            particles.x, particles.n_particles, 0.0, self.layout.domain_length(Direction.X)
        )


class FixedBoundary(BoundaryCondition):
    """
    Reflecting walls at x = 0 and x = L.

    Ghosts copy the nearest domain node (zero normal gradient) unless a
    constant is configured for the quantity. Constants are looked up by
    quantity name ("N", "By", ...) first, then by family letter
    ("E", "B", "J", "V").

    Deposits are folded as if every particle had a mirror image behind the
    wall: ghost deposits are added back to the interior node they mirror,
    and the wall nodes, which only see the inside half of their stencil,
    are doubled. The normal flux Vx is odd under the mirror, so it vanishes
    on the walls.

    Args:
        layout: GridLayout
        values: Optional dict of constant ghost values
    """

    ODD_QUANTITIES = (Quantity.Vx,)

    def __init__(self, layout, values=None):
        super().__init__(layout)
        self.values = dict(values or {})

    def ghost_value(self, quantity):
        """Configured constant for a quantity, or None for zero gradient."""
        name = quantity.value
        if name in self.values:
            return self.values[name]
        return self.values.get(name[0]) if len(name) > 1 else None

    def _fill_scalar(self, field):
        data = field.data
        start, end = field.dom_start, field.dom_end
        value = self.ghost_value(field.quantity)

        if value is None:
            data[:start] = data[start]
            data[end + 1:] = data[end]
        else:
            data[:start] = value
            data[end + 1:] = value

    def _fold_scalar(self, field):
        # Dual nodes sit inside the walls and never see image particles
        if field.centering != Centering.PRIMAL:
            return

        data = field.data
        start, end = field.dom_start, field.dom_end
        parity = -1.0 if field.quantity in self.ODD_QUANTITIES else 1.0

        for k in range(1, start + 1):
            data[start + k] += parity * data[start - k]
            data[end - k] += parity * data[end + k]
        data[start] *= 1.0 + parity
        data[end] *= 1.0 + parity

        data[:start] = 0.0
        data[end + 1:] = 0.0

    def particles(self, particles):
        return apply_reflecting_bc_1d(
            particles.x, particles.v, particles.n_particles,
            0.0, self.layout.domain_length(Direction.X),
        )


BOUNDARY_CONDITIONS = {
    "periodic": PeriodicBoundary,
    "fixed": FixedBoundary,
}


def create_boundary_condition(name, layout, **kwargs):
    """
    Build a boundary condition by name.

    Args:
        name: "periodic" or "fixed"
        layout: GridLayout
        **kwargs: Extra arguments for the policy (e.g. values for "fixed")

    Raises:
        ConfigurationError: Unknown name
    """
    try:
        cls = BOUNDARY_CONDITIONS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown boundary condition: {name}") from None
    return cls(layout, **kwargs)
