"""
Tests for particle loading and cloud-in-cell deposition
"""

import logging

import numpy as np
import pytest

from hybridpic.errors import ConfigurationError, IndexRangeViolation
from hybridpic.pic.boundary import PeriodicBoundary
from hybridpic.pic.field import Field, VectorField
from hybridpic.pic.gridlayout import GridLayout, Quantity
from hybridpic.pic.moments import bulk_velocity, total_density
from hybridpic.pic.population import Population, deposit_cic_1d


class TestDeposition:
    """Linear weighting onto the primal grid"""

    def test_single_particle_split(self):
        """A particle at 5.3 dx splits 0.7 / 0.3 between nodes 5 and 6"""
        layout = GridLayout(10, 1.0)
        pop = Population("p", layout)
        pop.particles.add_particles([5.3], [[0.5, -1.0, 2.0]], weight=2.0)

        pop.deposit()

        start = layout.primal_dom_start()
        density = pop.density.data
        np.testing.assert_allclose(density[start + 5], 1.4)
        np.testing.assert_allclose(density[start + 6], 0.6)
        assert np.count_nonzero(density) == 2

        np.testing.assert_allclose(pop.flux.x.data[start + 5], 0.7)
        np.testing.assert_allclose(pop.flux.x.data[start + 6], 0.3)
        np.testing.assert_allclose(pop.flux.y.data[start + 6], -0.6)
        np.testing.assert_allclose(pop.flux.z.data[start + 5], 2.8)

    def test_particle_on_node(self):
        """A particle exactly on a node deposits all of its weight there"""
        layout = GridLayout(10, 0.5)
        pop = Population("p", layout)
        pop.particles.add_particles([1.5], [[0.0, 0.0, 0.0]], weight=1.0)
        pop.deposit()
        np.testing.assert_allclose(pop.density.data[layout.primal_dom_start() + 3], 1.0)

    def test_conservation(self):
        """Sum of deposited density equals sum of weights"""
        layout = GridLayout(20, 0.3)
        pop = Population("p", layout)
        pop.load_particles(37, lambda x: 1.0 + 0.5 * np.sin(x), vth=1.0,
                           rng=np.random.default_rng(11))

        pop.deposit()

        np.testing.assert_allclose(np.sum(pop.density.data), pop.total_weight())

    def test_fold_preserves_total(self):
        """Periodic folding moves deposits without losing any"""
        layout = GridLayout(20, 0.3)
        pop = Population("p", layout)
        pop.load_particles(10, lambda x: 1.0, rng=np.random.default_rng(2))
        pop.deposit()

        PeriodicBoundary(layout).fold(pop.density)

        np.testing.assert_allclose(np.sum(pop.density.data), pop.total_weight())
        assert pop.density.data[0] == 0.0
        assert pop.density.data[pop.density.dom_end] == 0.0

    def test_buffers_zeroed(self):
        """Repeated deposits do not accumulate"""
        layout = GridLayout(10, 1.0)
        pop = Population("p", layout)
        pop.particles.add_particles([2.5], [[1.0, 0.0, 0.0]])
        pop.deposit()
        first = pop.density.data.copy()
        pop.deposit()
        np.testing.assert_array_equal(pop.density.data, first)

    def test_parallel_matches_serial(self):
        """Partial-grid reduction gives the serial result"""
        layout = GridLayout(32, 0.25)
        pop = Population("p", layout)
        pop.load_particles(50, lambda x: 2.0, vth=0.5, drift=(0.1, 0.2, 0.3),
                           rng=np.random.default_rng(7))

        pop.deposit(parallel=False)
        serial = [pop.density.data.copy()] + [c.data.copy() for c in pop.flux]
        pop.deposit(parallel=True)
        parallel = [pop.density.data] + [c.data for c in pop.flux]

        for expected, actual in zip(serial, parallel):
            np.testing.assert_allclose(actual, expected, rtol=1e-12, atol=1e-12)

    def test_out_of_range_raises(self):
        """Deposits outside the buffer raise by default"""
        layout = GridLayout(10, 1.0)
        pop = Population("p", layout)
        pop.particles.add_particles([-5.0], [[0.0, 0.0, 0.0]])
        with pytest.raises(IndexRangeViolation):
            pop.deposit()

    def test_out_of_range_clamped(self, caplog):
        """index_policy='clamp' keeps going and logs"""
        layout = GridLayout(10, 1.0)
        pop = Population("p", layout, index_policy="clamp")
        pop.particles.add_particles([50.0], [[0.0, 0.0, 0.0]])
        with caplog.at_level(logging.WARNING, logger="hybridpic"):
            pop.deposit()
        assert "outside" in caplog.text
        np.testing.assert_allclose(np.sum(pop.density.data), 1.0)

    def test_kernel_returns_violations(self):
        """The kernel counts rather than raises"""
        density = np.zeros(6)
        flux = [np.zeros(6) for _ in range(3)]
        count = deposit_cic_1d(np.array([1.5, 100.0]), np.zeros((2, 3)), np.ones(2), 2,
                               1.0, 1, density, *flux)
        assert count == 1


class TestLoading:
    """Population initialisation"""

    def test_particle_count_and_weight(self):
        """nppc particles per cell with weight density / nppc"""
        layout = GridLayout(8, 0.5)
        pop = Population("p", layout)
        n = pop.load_particles(25, lambda x: 3.0, rng=np.random.default_rng(0))
        assert n == 200
        np.testing.assert_allclose(pop.particles.weight, 3.0 / 25)
        assert np.all((pop.particles.x >= 0.0) & (pop.particles.x < 4.0))

    def test_species_properties(self):
        """Charge and mass come from the species table"""
        layout = GridLayout(4, 1.0)
        pop = Population("alpha", layout, species="He++")
        pop.load_particles(2, lambda x: 1.0, rng=np.random.default_rng(0))
        np.testing.assert_allclose(pop.particles.charge, 2.0)
        assert pop.particles.mass[0] > 3.9

    def test_quiet_start_uniform_density(self):
        """Evenly spaced particles deposit an exactly uniform density"""
        layout = GridLayout(16, 0.5)
        pop = Population("p", layout)
        bc = PeriodicBoundary(layout)
        pop.load_particles(40, lambda x: 2.0, vth=1.0, rng=np.random.default_rng(0),
                           quiet_start=True)

        pop.deposit()
        bc.fold(pop.density)
        bc.fold(pop.flux)
        bc.fill(pop.density)

        np.testing.assert_allclose(pop.density.domain, 2.0, rtol=1e-12)
        np.testing.assert_allclose(np.sum(pop.flux.x.data), 0.0, atol=1e-10)

    def test_symmetric_bulk_velocity(self):
        """Zero-mean random loading gives a zero mean bulk velocity"""
        layout = GridLayout(10, 1.0)
        pop = Population("p", layout)
        bc = PeriodicBoundary(layout)
        pop.load_particles(100, lambda x: 1.0, vth=1.0, rng=np.random.default_rng(9))

        pop.deposit()
        bc.fold(pop.density)
        bc.fold(pop.flux)
        bc.fill(pop.density)
        bc.fill(pop.flux)
        N = total_density([pop], Field(layout, Quantity.N))
        V = bulk_velocity([pop], N, VectorField(layout, "V"))

        assert abs(V.x.domain.mean()) < 0.02
        np.testing.assert_allclose(N.domain.mean(), 1.0, rtol=0.05)

    def test_invalid_arguments(self):
        """Bad species, nppc and density are configuration errors"""
        layout = GridLayout(4, 1.0)
        with pytest.raises(ConfigurationError):
            Population("p", layout, species="Xe+")
        with pytest.raises(ConfigurationError):
            Population("p", None)
        pop = Population("p", layout)
        with pytest.raises(ConfigurationError):
            pop.load_particles(0, lambda x: 1.0)
        with pytest.raises(ConfigurationError):
            pop.load_particles(4, lambda x: -1.0)
