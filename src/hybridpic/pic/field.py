"""
Field containers bound to a GridLayout.

A Field owns one contiguous float64 array covering the domain plus the
ghost padding of its quantity's centering. Indexing uses layout indices,
so field[layout.primal_dom_start()] is the first owned primal node.
"""

import numpy as np

from ..errors import ConfigurationError
from .gridlayout import Direction, Quantity


FAMILIES = {
    "E": (Quantity.Ex, Quantity.Ey, Quantity.Ez),
    "B": (Quantity.Bx, Quantity.By, Quantity.Bz),
    "J": (Quantity.Jx, Quantity.Jy, Quantity.Jz),
    "V": (Quantity.Vx, Quantity.Vy, Quantity.Vz),
}


class Field:
    """
    Scalar grid quantity.

    Attributes:
        data: Values at every allocated index (ghosts included)
        quantity: Quantity tag, used for the centering lookup
        layout: Owning GridLayout
    """

    def __init__(self, layout, quantity):
        if layout is None:
            raise ConfigurationError("GridLayout is null")
        self._layout = layout
        self._quantity = quantity
        self.data = layout.allocate(quantity)

    @property
    def layout(self):
        return self._layout

    @property
    def quantity(self):
        return self._quantity

    @property
    def centering(self):
        return self._layout.centering(self._quantity, Direction.X)

    @property
    def dom_start(self):
        return self._layout.dom_start(self._quantity, Direction.X)

    @property
    def dom_end(self):
        return self._layout.dom_end(self._quantity, Direction.X)

    @property
    def domain(self):
        """View on the owned (non-ghost) values."""
        return self.data[self.dom_start:self.dom_end + 1]

    def coordinates(self, with_ghosts=False):
        return self._layout.coordinates(self._quantity, Direction.X, with_ghosts=with_ghosts)

    def set_from(self, profile, with_ghosts=False):
        """
        Evaluate a profile function x -> value on the field's nodes.

        Args:
            profile: Callable taking a coordinate array (or a scalar)
            with_ghosts: Also evaluate at ghost positions
        """
        x = self.coordinates(with_ghosts=with_ghosts)
        values = np.asarray(np.vectorize(profile, otypes=[np.float64])(x))
        if with_ghosts:
            self.data[:] = values
        else:
            self.domain[:] = values

    def zero(self):
        self.data[:] = 0.0

    def copy_from(self, other):
        np.copyto(self.data, other.data)

    def copy(self):
        out = Field(self._layout, self._quantity)
        out.copy_from(self)
        return out

    def __getitem__(self, index):
        return self.data[index]

    def __setitem__(self, index, value):
        self.data[index] = value

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return f"Field({self._quantity.value}, size={len(self.data)})"


class VectorField:
    """
    Three Fields (x, y, z) of one quantity family: "E", "B", "J" or "V".
    """

    def __init__(self, layout, family):
        if layout is None:
            raise ConfigurationError("GridLayout is null")
        if family not in FAMILIES:
            raise ConfigurationError(f"Unknown vector field family: {family}")
        self._layout = layout
        self.family = family
        qx, qy, qz = FAMILIES[family]
        self.x = Field(layout, qx)
        self.y = Field(layout, qy)
        self.z = Field(layout, qz)

    @property
    def layout(self):
        return self._layout

    @property
    def components(self):
        return (self.x, self.y, self.z)

    def __iter__(self):
        return iter(self.components)

    def zero(self):
        for component in self.components:
            component.zero()

    def copy_from(self, other):
        for mine, theirs in zip(self.components, other.components):
            mine.copy_from(theirs)

    def copy(self):
        out = VectorField(self._layout, self.family)
        out.copy_from(self)
        return out

    def __repr__(self):
        return f"VectorField({self.family})"


def average(first, second, out):
    """
    Elementwise out = 0.5 * (first + second) for Fields or VectorFields.

    out may alias first or second.
    """
    if isinstance(out, VectorField):
        for a, b, o in zip(first.components, second.components, out.components):
            average(a, b, o)
        return out

    np.add(first.data, second.data, out=out.data)
    out.data *= 0.5
    return out
