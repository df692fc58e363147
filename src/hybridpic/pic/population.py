"""
Ion Population: Particle Loading and Cloud-in-Cell Deposition

Each population owns its particles plus the density and flux moments it
deposits on the primal grid. Deposition is linear (cloud-in-cell): a
particle at x with iCell = floor(x/dx), r = x/dx - iCell adds

    density[iCell]   += w * (1 - r)
    density[iCell+1] += w * r

and the same split of w*v to each flux component, with iCell offset by
the first primal domain index. Buffers are zeroed before each pass.

Reference:
    Birdsall & Langdon (2004), Section 2.6 and Chapter 8
"""

import logging

import numba
import numpy as np
from numba import prange

from ..constants import SPECIES
from ..errors import ConfigurationError, IndexRangeViolation, UnsupportedDimensionError
from ..particles import ParticleArray, quiet_maxwellian_velocity, sample_shifted_maxwellian
from .field import Field, VectorField
from .gridlayout import Direction, Quantity

logger = logging.getLogger(__name__)


# ==================== DEPOSITION KERNELS ====================


@numba.njit
def deposit_cic_1d(x, v, weight, n_particles, dx, start, density, fx, fy, fz):
    """
    Serial cloud-in-cell deposition of density and flux.

    Out-of-range nodes are clamped to the nearest valid pair and counted.

    Args:
        x: Particle positions [n]
        v: Particle velocities [n, 3]
        weight: Particle weights [n]
        n_particles: Number of particles to process
        dx: Cell size
        start: First primal domain index
        density, fx, fy, fz: Output moments (accumulated in-place)

    Returns:
        n_violations: Number of particles whose nodes fell outside the buffer
    """
    size = density.shape[0]
    n_violations = 0

    for i in range(n_particles):
        pos = x[i] / dx
        icell = int(np.floor(pos))
        r = pos - icell
        ix = start + icell

        if ix < 0 or ix + 1 > size - 1:
            n_violations += 1
            ix = min(max(ix, 0), size - 2)

        w_left = weight[i] * (1.0 - r)
        w_right = weight[i] * r

        density[ix] += w_left
        density[ix + 1] += w_right
        fx[ix] += w_left * v[i, 0]
        fx[ix + 1] += w_right * v[i, 0]
        fy[ix] += w_left * v[i, 1]
        fy[ix + 1] += w_right * v[i, 1]
        fz[ix] += w_left * v[i, 2]
        fz[ix + 1] += w_right * v[i, 2]

    return n_violations


@numba.njit(parallel=True)
def deposit_cic_1d_parallel(x, v, weight, n_particles, dx, start,
                            density, fx, fy, fz, n_chunks):
    """
    Parallel cloud-in-cell deposition with per-chunk partial grids.

    Particles are split in n_chunks contiguous blocks, each block scatters
    into its own partial grid, and the partial grids are summed at the end.

    Returns:
        n_violations: Number of particles whose nodes fell outside the buffer
    """
    size = density.shape[0]
    partial = np.zeros((n_chunks, 4, size))
    violations = np.zeros(n_chunks, dtype=np.int64)
    chunk = (n_particles + n_chunks - 1) // n_chunks

    for c in prange(n_chunks):
        lo = c * chunk
        hi = min(lo + chunk, n_particles)
        for i in range(lo, hi):
            pos = x[i] / dx
            icell = int(np.floor(pos))
            r = pos - icell
            ix = start + icell

            if ix < 0 or ix + 1 > size - 1:
                violations[c] += 1
                ix = min(max(ix, 0), size - 2)

            w_left = weight[i] * (1.0 - r)
            w_right = weight[i] * r

            partial[c, 0, ix] += w_left
            partial[c, 0, ix + 1] += w_right
            partial[c, 1, ix] += w_left * v[i, 0]
            partial[c, 1, ix + 1] += w_right * v[i, 0]
            partial[c, 2, ix] += w_left * v[i, 1]
            partial[c, 2, ix + 1] += w_right * v[i, 1]
            partial[c, 3, ix] += w_left * v[i, 2]
            partial[c, 3, ix + 1] += w_right * v[i, 2]

    for c in range(n_chunks):
        for k in range(size):
            density[k] += partial[c, 0, k]
            fx[k] += partial[c, 1, k]
            fy[k] += partial[c, 2, k]
            fz[k] += partial[c, 3, k]

    return violations.sum()


# ==================== POPULATION ====================


class Population:
    """
    One kinetic ion species.

    Attributes:
        name: Population name (used in diagnostics)
        layout: Shared GridLayout
        charge: Species charge [e]
        mass: Species mass [m_p]
        particles: ParticleArray
        density: Deposited density (Field, primal)
        flux: Deposited flux n*v (VectorField, primal)

    Args:
        name: Population name
        layout: GridLayout
        species: Species name from constants.SPECIES (default: 'H+')
        charge, mass: Override the species values
        index_policy: "raise" or "clamp" for out-of-buffer deposits
    """

    def __init__(self, name, layout, species='H+', charge=None, mass=None,
                 index_policy="raise"):
        if layout is None:
            raise ConfigurationError("GridLayout is null")
        if species not in SPECIES:
            raise ConfigurationError(f"Unknown species: {species}")
        if index_policy not in ("raise", "clamp"):
            raise ConfigurationError(f"Unknown index policy: {index_policy}")

        self.name = name
        self.layout = layout
        self.species = species
        self.charge = SPECIES[species].charge if charge is None else charge
        self.mass = SPECIES[species].mass if mass is None else mass
        self.index_policy = index_policy

        self.particles = ParticleArray()
        self.density = Field(layout, Quantity.N)
        self.flux = VectorField(layout, "V")

    def load_particles(self, nppc, density, vth=0.0, drift=(0.0, 0.0, 0.0),
                       rng=None, quiet_start=False):
        """
        Load nppc particles per cell reproducing a density profile.

        Particle weight is density(x_centre) / nppc, so the deposited
        density at a node approximates density(x) there.

        Args:
            nppc: Particles per cell
            density: Profile function x -> density
            vth: Thermal speed per velocity component
            drift: Drift velocity [vx, vy, vz]
            rng: numpy Generator (default: fresh default_rng())
            quiet_start: Evenly spaced positions and stratified velocities

        Returns:
            Number of particles added
        """
        layout = self.layout
        if layout.dimension != 1:
            raise UnsupportedDimensionError(
                f"Particle loading not implemented for dimension {layout.dimension}"
            )
        if nppc <= 0:
            raise ConfigurationError(f"nppc must be positive, got {nppc}")

        rng = np.random.default_rng() if rng is None else rng
        dx = layout.cell_size(Direction.X)
        n_cells = layout.nbr_cells(Direction.X)

        # Cell centres are the dual nodes
        x_centres = layout.coordinates(Quantity.Ex)
        cell_density = np.array([density(xc) for xc in x_centres], dtype=np.float64)

        if np.any(cell_density < 0.0):
            raise ConfigurationError("Density profile must be non-negative")

        cell_left = np.repeat(x_centres - 0.5 * dx, nppc)
        if quiet_start:
            offsets = np.tile((np.arange(nppc) + 0.5) / nppc, n_cells)
            v = quiet_maxwellian_velocity(vth, n_cells * nppc, rng=rng) + np.atleast_2d(drift)
        else:
            offsets = rng.uniform(0.0, 1.0, n_cells * nppc)
            v = sample_shifted_maxwellian(vth, drift, n_cells * nppc, rng=rng)

        x = cell_left + offsets * dx
        weight = np.repeat(cell_density / nppc, nppc)

        self.particles.add_particles(x, v, weight=weight, charge=self.charge, mass=self.mass)

        logger.info(
            "Population '%s': loaded %d particles (%d per cell, vth=%g)",
            self.name, n_cells * nppc, nppc, vth,
        )
        return n_cells * nppc

    def deposit(self, parallel=False):
        """
        Recompute density and flux from the current particles.

        Args:
            parallel: Use the partial-grid parallel kernel
        """
        layout = self.layout
        if layout.dimension != 1:
            raise UnsupportedDimensionError(
                f"Deposition not implemented for dimension {layout.dimension}"
            )

        self.density.zero()
        self.flux.zero()

        particles = self.particles
        args = (
            particles.x, particles.v, particles.weight, particles.n_particles,
            layout.cell_size(Direction.X), layout.primal_dom_start(),
            self.density.data, self.flux.x.data, self.flux.y.data, self.flux.z.data,
        )
        if parallel:
            n_violations = deposit_cic_1d_parallel(*args, numba.get_num_threads())
        else:
            n_violations = deposit_cic_1d(*args)

        if n_violations:
            message = (
                f"Population '{self.name}': {n_violations} particles deposited "
                f"outside the ghost-padded buffer"
            )
            if self.index_policy == "raise":
                raise IndexRangeViolation(message)
            logger.warning("%s (clamped)", message)

    def total_weight(self):
        return float(np.sum(self.particles.weight))

    def __repr__(self):
        return f"Population({self.name!r}, {self.species}, n_particles={self.particles.n_particles})"
