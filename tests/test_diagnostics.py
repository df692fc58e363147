"""
Tests for HDF5 output and energy diagnostics
"""

import h5py
import numpy as np
import pytest

from hybridpic.diagnostics import (
    DiagnosticsWriter,
    electric_energy,
    kinetic_energy,
    magnetic_energy,
    plot_snapshot,
    read_times,
)
from hybridpic.errors import ConfigurationError
from hybridpic.pic.field import Field, VectorField
from hybridpic.pic.gridlayout import GridLayout, Quantity
from hybridpic.pic.population import Population


@pytest.fixture
def fields():
    layout = GridLayout(8, 0.5)
    B = VectorField(layout, "B")
    E = VectorField(layout, "E")
    V = VectorField(layout, "V")
    N = Field(layout, Quantity.N)
    B.y.set_from(np.sin, with_ghosts=True)
    E.x.data[:] = 2.0
    N.data[:] = 1.0
    return B, E, V, N


class TestWriter:
    """h5py snapshots"""

    def test_field_round_trip(self, tmp_path, fields):
        """Datasets hold the full arrays with domain attributes"""
        B, E, V, N = fields
        writer = DiagnosticsWriter(tmp_path / "fields.h5", tmp_path / "particles.h5")
        writer.write_fields(B, E, V, N, 0.0, mode="truncate")

        with h5py.File(tmp_path / "fields.h5", "r") as h5f:
            group = h5f["t=0.00000000"]
            np.testing.assert_array_equal(group["By"][:], B.y.data)
            np.testing.assert_array_equal(group["Ex"][:], E.x.data)
            assert group["By"].attrs["dom_start"] == B.y.dom_start
            assert group["By"].attrs["centering"] == "dual"
            assert set(group.keys()) == {
                "Bx", "By", "Bz", "Ex", "Ey", "Ez", "Vx", "Vy", "Vz", "N",
            }

    def test_append_and_truncate(self, tmp_path, fields):
        """append adds groups, truncate starts over"""
        B, E, V, N = fields
        writer = DiagnosticsWriter(tmp_path / "fields.h5")
        writer.write_fields(B, E, V, N, 0.0, mode="truncate")
        writer.write_fields(B, E, V, N, 0.5, mode="append")
        assert read_times(tmp_path / "fields.h5") == [0.0, 0.5]

        writer.write_fields(B, E, V, N, 1.0, mode="truncate")
        assert read_times(tmp_path / "fields.h5") == [1.0]

    def test_rewrite_same_time(self, tmp_path, fields):
        """Writing the same time twice replaces the datasets"""
        B, E, V, N = fields
        writer = DiagnosticsWriter(tmp_path / "fields.h5")
        writer.write_fields(B, E, V, N, 0.0, mode="truncate")
        N.data[:] = 3.0
        writer.write_fields(B, E, V, N, 0.0, mode="append")
        with h5py.File(tmp_path / "fields.h5", "r") as h5f:
            np.testing.assert_array_equal(h5f["t=0.00000000"]["N"][:], 3.0)

    def test_particles(self, tmp_path):
        """Particle groups hold x, v and weight per population"""
        layout = GridLayout(4, 1.0)
        pop = Population("protons", layout)
        pop.particles.add_particles([0.5, 1.5], [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], weight=0.25)
        writer = DiagnosticsWriter(particles_path=tmp_path / "particles.h5")
        writer.write_particles([pop], 0.0, mode="truncate")

        with h5py.File(tmp_path / "particles.h5", "r") as h5f:
            group = h5f["t=0.00000000/protons"]
            np.testing.assert_array_equal(group["x"][:], [0.5, 1.5])
            assert group["v"].shape == (2, 3)
            np.testing.assert_array_equal(group["weight"][:], 0.25)
            assert group.attrs["charge"] == 1.0

    def test_unknown_mode(self, tmp_path, fields):
        """Only truncate and append are valid"""
        B, E, V, N = fields
        with pytest.raises(ConfigurationError):
            DiagnosticsWriter(tmp_path / "fields.h5").write_fields(B, E, V, N, 0.0, mode="overwrite")


class TestEnergies:
    """Energy diagnostics"""

    def test_magnetic_energy_uniform(self):
        """Uniform By over n_cells cells"""
        layout = GridLayout(10, 0.5)
        B = VectorField(layout, "B")
        B.y.data[:] = 2.0
        np.testing.assert_allclose(magnetic_energy(B), 0.5 * 0.5 * 10 * 4.0)

    def test_primal_duplicate_not_counted(self):
        """Bx counts n_cells nodes, not n_cells + 1"""
        layout = GridLayout(10, 0.5)
        B = VectorField(layout, "B")
        B.x.data[:] = 1.0
        np.testing.assert_allclose(magnetic_energy(B), 0.5 * 0.5 * 10)

    def test_primal_wall_nodes_weighted_half(self):
        """Both end nodes count half when they differ, as with fixed walls"""
        layout = GridLayout(4, 1.0)
        B = VectorField(layout, "B")
        B.x.domain[:] = [1.0, 0.0, 0.0, 0.0, 3.0]
        np.testing.assert_allclose(magnetic_energy(B), 0.5 * (0.5 * 1.0 + 0.5 * 9.0))

        E = VectorField(layout, "E")
        E.z.domain[:] = [3.0, 0.0, 0.0, 0.0, 1.0]
        np.testing.assert_allclose(electric_energy(E), magnetic_energy(B))

    def test_electric_energy(self):
        """Every component contributes n_cells values"""
        layout = GridLayout(10, 1.0)
        E = VectorField(layout, "E")
        for component in E:
            component.data[:] = 1.0
        np.testing.assert_allclose(electric_energy(E), 0.5 * 30)

    def test_kinetic_energy(self):
        """Sum of 0.5 w m v^2 times dx"""
        layout = GridLayout(4, 1.0)
        pop = Population("p", layout)
        pop.particles.add_particles([0.5], [[2.0, 0.0, 0.0]], weight=0.5)
        np.testing.assert_allclose(kinetic_energy([pop], dx=0.1), 0.1 * 0.5 * 0.5 * 4.0)


class TestPlot:
    """Snapshot plot"""

    def test_plot_to_file(self, tmp_path, fields):
        """The plot is saved when a filename is given"""
        B, E, V, N = fields
        plot_snapshot(B, E, N, V, time=0.0, filename=tmp_path / "snapshot.png")
        assert (tmp_path / "snapshot.png").exists()
