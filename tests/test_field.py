"""
Tests for Field and VectorField containers
"""

import numpy as np
import pytest

from hybridpic.errors import ConfigurationError
from hybridpic.pic.field import Field, VectorField, average
from hybridpic.pic.gridlayout import GridLayout, Quantity


@pytest.fixture
def layout():
    return GridLayout(8, 0.25)


class TestField:
    """Scalar field behaviour"""

    def test_allocation(self, layout):
        """Field is zero-initialised with ghosts"""
        field = Field(layout, Quantity.N)
        assert len(field) == 11
        assert np.all(field.data == 0.0)

    def test_null_layout(self):
        """A field needs a layout"""
        with pytest.raises(ConfigurationError):
            Field(None, Quantity.N)

    def test_domain_view(self, layout):
        """domain is a view on the owned nodes"""
        field = Field(layout, Quantity.Ex)
        field.domain[:] = 3.0
        assert field[field.dom_start] == 3.0
        assert field[0] == 0.0
        assert field[field.dom_end + 1] == 0.0

    def test_set_from_profile(self, layout):
        """Profiles are evaluated at the centering's coordinates"""
        field = Field(layout, Quantity.By)
        field.set_from(lambda x: 2.0 * x)
        np.testing.assert_allclose(field.domain, 2.0 * layout.coordinates(Quantity.By))
        assert field[0] == 0.0

    def test_set_from_with_ghosts(self, layout):
        """Ghost nodes are set when requested"""
        field = Field(layout, Quantity.N)
        field.set_from(lambda x: x, with_ghosts=True)
        np.testing.assert_allclose(field[0], -0.25)

    def test_copy_is_independent(self, layout):
        """copy() does not share storage"""
        field = Field(layout, Quantity.N)
        field.data[:] = 1.0
        clone = field.copy()
        clone.data[:] = 2.0
        assert np.all(field.data == 1.0)


class TestVectorField:
    """Vector field behaviour"""

    def test_component_centerings(self, layout):
        """B components follow the Yee table"""
        B = VectorField(layout, "B")
        assert B.x.quantity == Quantity.Bx
        assert len(B.x) == 11
        assert len(B.y) == 10

    def test_unknown_family(self, layout):
        """Only E, B, J and V families exist"""
        with pytest.raises(ConfigurationError):
            VectorField(layout, "Q")

    def test_iteration(self, layout):
        """Iteration yields x, y, z"""
        E = VectorField(layout, "E")
        assert [c.quantity for c in E] == [Quantity.Ex, Quantity.Ey, Quantity.Ez]

    def test_zero_and_copy_from(self, layout):
        """copy_from copies every component"""
        a = VectorField(layout, "E")
        b = VectorField(layout, "E")
        for c in b:
            c.data[:] = 5.0
        a.copy_from(b)
        assert all(np.all(c.data == 5.0) for c in a)
        a.zero()
        assert all(np.all(c.data == 0.0) for c in a)


class TestAverage:
    """Elementwise average"""

    def test_scalar_average(self, layout):
        """0.5 * (a + b)"""
        a, b, out = (Field(layout, Quantity.N) for _ in range(3))
        a.data[:] = 1.0
        b.data[:] = 3.0
        average(a, b, out)
        np.testing.assert_allclose(out.data, 2.0)

    def test_vector_average_aliasing(self, layout):
        """The output may alias an input"""
        a = VectorField(layout, "B")
        b = VectorField(layout, "B")
        for c in a:
            c.data[:] = 1.0
        for c in b:
            c.data[:] = -1.0
        average(a, b, a)
        for c in a:
            np.testing.assert_allclose(c.data, 0.0)
