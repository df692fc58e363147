"""
Tests for particle storage and velocity sampling
"""

import numpy as np
import pytest

from hybridpic.particles import (
    Particle,
    ParticleArray,
    quiet_maxwellian_velocity,
    sample_maxwellian_velocity,
    sample_shifted_maxwellian,
)


class TestParticleArray:
    """Structure-of-arrays container"""

    def test_empty(self):
        """New arrays hold no particles"""
        particles = ParticleArray()
        assert particles.n_particles == 0
        assert particles.v.shape == (0, 3)

    def test_add_particles(self):
        """Scalars broadcast over the added particles"""
        particles = ParticleArray()
        idx = particles.add_particles([0.1, 0.2], [[1, 0, 0], [0, 1, 0]], weight=0.5, charge=2.0)
        np.testing.assert_array_equal(idx, [0, 1])
        np.testing.assert_allclose(particles.weight, [0.5, 0.5])
        np.testing.assert_allclose(particles.charge, [2.0, 2.0])
        np.testing.assert_allclose(particles.mass, [1.0, 1.0])

    def test_add_particles_shape_mismatch(self):
        """x and v must describe the same particles"""
        particles = ParticleArray()
        with pytest.raises(ValueError):
            particles.add_particles([0.1, 0.2], [[1, 0, 0]])

    def test_append_and_getitem(self):
        """Single records round-trip through the arrays"""
        particles = ParticleArray()
        particles.append(Particle(position=0.3, v=(1.0, 2.0, 3.0), weight=4.0))
        record = particles[0]
        assert record.position == 0.3
        assert record.v == (1.0, 2.0, 3.0)
        assert record.weight == 4.0
        assert len(particles) == 1

    def test_from_particles(self):
        """Build an array from records"""
        particles = ParticleArray.from_particles([Particle(0.1), Particle(0.2), Particle(0.3)])
        np.testing.assert_allclose([p.position for p in particles], [0.1, 0.2, 0.3])

    def test_snapshot_restore(self):
        """restore() brings back positions and velocities"""
        particles = ParticleArray()
        particles.add_particles([0.5], [[1.0, 0.0, 0.0]])
        saved = particles.snapshot()
        particles.x[0] = 9.0
        particles.v[0, 0] = -1.0
        particles.restore(saved)
        assert particles.x[0] == 0.5
        assert particles.v[0, 0] == 1.0

    def test_clear(self):
        """clear() empties every array"""
        particles = ParticleArray()
        particles.add_particles([0.5, 0.6], np.zeros((2, 3)))
        particles.clear()
        assert particles.n_particles == 0
        assert len(particles.weight) == 0

    def test_energy_and_momentum(self):
        """Weighted kinetic energy and momentum"""
        particles = ParticleArray()
        particles.add_particles([0.0, 1.0], [[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]],
                                weight=[1.0, 2.0], mass=[1.0, 4.0])
        np.testing.assert_allclose(particles.kinetic_energy(), 0.5 * 1.0 + 0.5 * 8.0 * 4.0)
        np.testing.assert_allclose(particles.momentum(), [1.0, 16.0, 0.0])


class TestVelocitySampling:
    """Maxwellian samplers"""

    def test_maxwellian_statistics(self):
        """Sample standard deviation matches vth"""
        rng = np.random.default_rng(42)
        v = sample_maxwellian_velocity(2.0, 100000, rng=rng, symmetric=False)
        np.testing.assert_allclose(np.std(v, axis=0), 2.0, rtol=0.02)

    def test_symmetric_mean_is_zero(self):
        """Mirrored pairs cancel exactly"""
        rng = np.random.default_rng(0)
        v = sample_maxwellian_velocity(1.0, 1000, rng=rng)
        np.testing.assert_allclose(np.sum(v, axis=0), 0.0, atol=1e-10)

    def test_symmetric_odd_count(self):
        """Odd counts still return the requested number of samples"""
        v = sample_maxwellian_velocity(1.0, 7, rng=np.random.default_rng(1))
        assert v.shape == (7, 3)

    def test_shifted_mean(self):
        """Drift shifts the mean"""
        rng = np.random.default_rng(3)
        v = sample_shifted_maxwellian(1.0, [0.5, 0.0, -1.0], 2000, rng=rng)
        np.testing.assert_allclose(np.mean(v, axis=0), [0.5, 0.0, -1.0], atol=1e-10)

    def test_quiet_start(self):
        """Stratified inverse-CDF sampling has zero mean and near-exact spread"""
        v = quiet_maxwellian_velocity(1.5, 10000, rng=np.random.default_rng(5))
        np.testing.assert_allclose(np.mean(v, axis=0), 0.0, atol=1e-10)
        np.testing.assert_allclose(np.std(v, axis=0), 1.5, rtol=0.01)

    def test_quiet_start_components_shuffled(self):
        """Components are permuted independently"""
        v = quiet_maxwellian_velocity(1.0, 100, rng=np.random.default_rng(5))
        assert not np.array_equal(v[:, 0], v[:, 1])
        np.testing.assert_allclose(np.sort(v[:, 0]), np.sort(v[:, 1]))
