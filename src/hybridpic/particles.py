"""
Particle Data Structures for the Hybrid PIC Ions

Uses Structure-of-Arrays (SoA) layout so the Numba kernels (push,
deposition, boundaries) can work on plain contiguous float64 arrays.
"""

from dataclasses import dataclass, field

import numpy as np
from scipy.special import ndtri


@dataclass
class Particle:
    """
    Single macro-particle record.

    Used to append or inspect one particle; bulk storage lives in
    ParticleArray.

    Attributes:
        position: x position
        v: Velocity (vx, vy, vz)
        weight: Statistical weight (real particles represented)
        charge: Charge [e]
        mass: Mass [m_p]
    """

    position: float
    v: tuple = field(default=(0.0, 0.0, 0.0))
    weight: float = 1.0
    charge: float = 1.0
    mass: float = 1.0


class ParticleArray:
    """
    Particle container for one population.

    Attributes:
        x: Positions [n]
        v: Velocities [n, 3]
        weight: Statistical weights [n]
        charge: Charges [n]
        mass: Masses [n]
    """

    def __init__(self):
        self.x = np.zeros(0, dtype=np.float64)
        self.v = np.zeros((0, 3), dtype=np.float64)
        self.weight = np.zeros(0, dtype=np.float64)
        self.charge = np.zeros(0, dtype=np.float64)
        self.mass = np.zeros(0, dtype=np.float64)

    @classmethod
    def from_particles(cls, particles):
        array = cls()
        for particle in particles:
            array.append(particle)
        return array

    @property
    def n_particles(self):
        return len(self.x)

    def add_particles(self, x, v, weight=1.0, charge=1.0, mass=1.0):
        """
        Append particles.

        Args:
            x: Positions, shape (n,) or scalar
            v: Velocities, shape (n, 3) or (3,)
            weight: Weight per particle (scalar or shape (n,))
            charge: Charge per particle (scalar or shape (n,))
            mass: Mass per particle (scalar or shape (n,))

        Returns:
            indices: Array indices of the added particles

        Raises:
            ValueError: If x and v disagree on the particle count
        """
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        v = np.atleast_2d(np.asarray(v, dtype=np.float64))
        n_add = x.shape[0]

        if v.shape != (n_add, 3):
            raise ValueError(
                f"Velocity shape {v.shape} does not match {n_add} particles"
            )

        start_idx = self.n_particles

        self.x = np.concatenate([self.x, x])
        self.v = np.concatenate([self.v, v])
        self.weight = np.concatenate([self.weight, np.broadcast_to(np.asarray(weight, dtype=np.float64), (n_add,))])
        self.charge = np.concatenate([self.charge, np.broadcast_to(np.asarray(charge, dtype=np.float64), (n_add,))])
        self.mass = np.concatenate([self.mass, np.broadcast_to(np.asarray(mass, dtype=np.float64), (n_add,))])

        return np.arange(start_idx, start_idx + n_add)

    def append(self, particle):
        return self.add_particles(
            [particle.position], [particle.v], particle.weight, particle.charge, particle.mass
        )[0]

    def clear(self):
        self.x = self.x[:0]
        self.v = self.v[:0]
        self.weight = self.weight[:0]
        self.charge = self.charge[:0]
        self.mass = self.mass[:0]

    def snapshot(self):
        """Copy of the kinetic state (positions and velocities)."""
        return self.x.copy(), self.v.copy()

    def restore(self, snapshot):
        """Restore positions and velocities saved by snapshot()."""
        x, v = snapshot
        np.copyto(self.x, x)
        np.copyto(self.v, v)

    def kinetic_energy(self):
        """
        Total kinetic energy, sum of 0.5 * w * m * |v|^2.
        """
        v_squared = np.sum(self.v**2, axis=1)
        return 0.5 * np.sum(self.weight * self.mass * v_squared)

    def momentum(self):
        """
        Total momentum vector [px, py, pz].
        """
        return np.sum((self.weight * self.mass)[:, None] * self.v, axis=0)

    def __getitem__(self, i):
        return Particle(
            position=float(self.x[i]),
            v=tuple(float(c) for c in self.v[i]),
            weight=float(self.weight[i]),
            charge=float(self.charge[i]),
            mass=float(self.mass[i]),
        )

    def __iter__(self):
        for i in range(self.n_particles):
            yield self[i]

    def __len__(self):
        return self.n_particles

    def __repr__(self):
        return f"ParticleArray(n_particles={self.n_particles})"


# ==================== VELOCITY SAMPLING ====================

def sample_maxwellian_velocity(vth, n_samples, rng=None, symmetric=True):
    """
    Sample velocities from an isotropic 3D Maxwellian.

    Args:
        vth: Thermal speed, standard deviation per component
        n_samples: Number of samples
        rng: numpy Generator (default: fresh default_rng())
        symmetric: Mirror the second half of the samples (v -> -v) so the
            sample mean is zero up to rounding when n_samples is even

    Returns:
        v: Velocity array of shape (n_samples, 3)
    """
    rng = np.random.default_rng() if rng is None else rng

    if not symmetric:
        return rng.normal(0.0, vth, size=(n_samples, 3))

    half = n_samples // 2
    v = np.empty((n_samples, 3), dtype=np.float64)
    v[:half] = rng.normal(0.0, vth, size=(half, 3))
    v[half:2 * half] = -v[:half]
    if n_samples % 2:
        v[-1] = rng.normal(0.0, vth, size=3)
    return v


def sample_shifted_maxwellian(vth, v_drift, n_samples, rng=None, symmetric=True):
    """
    Sample from a drifting Maxwellian.

    Args:
        vth: Thermal speed per component
        v_drift: Drift velocity vector [vx, vy, vz]
        n_samples: Number of samples

    Returns:
        v: Velocity array of shape (n_samples, 3)
    """
    v_thermal = sample_maxwellian_velocity(vth, n_samples, rng=rng, symmetric=symmetric)
    return v_thermal + np.atleast_2d(v_drift)


def quiet_maxwellian_velocity(vth, n_samples, rng=None):
    """
    Quiet-start Maxwellian: inverse-CDF sampling on a stratified grid.

    Each component takes the values vth * ndtri((k + 1/2) / n) for
    k = 0..n-1, independently shuffled, so every component has an exact
    symmetric set of values and a zero mean without drift.

    Args:
        vth: Thermal speed per component
        n_samples: Number of samples
        rng: numpy Generator used for the shuffles

    Returns:
        v: Velocity array of shape (n_samples, 3)
    """
    rng = np.random.default_rng() if rng is None else rng
    quantiles = (np.arange(n_samples) + 0.5) / n_samples
    base = vth * ndtri(quantiles)
    return np.column_stack([rng.permutation(base) for _ in range(3)])
