"""
Diagnostics for Hybrid PIC Runs

Provides:
    - HDF5 snapshots of fields and particles (h5py)
    - Energy diagnostics (magnetic, electric, ion kinetic)
    - A matplotlib snapshot plot

HDF5 layout (one group per output time):
    fields.h5
        /t=0.00000000/{Bx,By,Bz,Ex,Ey,Ez,Vx,Vy,Vz,N}    attrs: time
    particles.h5
        /t=0.00000000/<population>/{x,v,weight}         attrs: time

Mode "truncate" starts a new file, "append" adds a group to an existing one.
Arrays are stored with their ghost nodes; the domain slice is in the
dataset attributes dom_start / dom_end.
"""

import logging

import h5py
import numpy as np

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_MODES = {"truncate": "w", "append": "a"}


def _file_mode(mode):
    try:
        return _MODES[mode]
    except KeyError:
        raise ConfigurationError(f"Unknown diagnostics mode: {mode}") from None


def time_group_name(time):
    return f"t={time:.8f}"


class DiagnosticsWriter:
    """
    HDF5 writer for field and particle snapshots.

    Args:
        fields_path: Output file for fields
        particles_path: Output file for particles
    """

    def __init__(self, fields_path="fields.h5", particles_path="particles.h5"):
        self.fields_path = fields_path
        self.particles_path = particles_path

    def write_fields(self, B, E, V, N, time, mode="append"):
        """
        Write one snapshot of B, E, V and N.

        Args:
            B, E, V: VectorFields
            N: Field
            time: Simulation time
            mode: "truncate" or "append"
        """
        with h5py.File(self.fields_path, _file_mode(mode)) as h5f:
            group = h5f.require_group(time_group_name(time))
            group.attrs["time"] = time
            for vector in (B, E, V):
                for component in vector.components:
                    self._write_field(group, component)
            self._write_field(group, N)

        logger.debug("Wrote fields at t=%g to %s", time, self.fields_path)

    def write_particles(self, populations, time, mode="append"):
        """
        Write positions, velocities and weights of every population.

        Args:
            populations: Iterable of Population
            time: Simulation time
            mode: "truncate" or "append"
        """
        with h5py.File(self.particles_path, _file_mode(mode)) as h5f:
            group = h5f.require_group(time_group_name(time))
            group.attrs["time"] = time
            for pop in populations:
                pop_group = group.require_group(pop.name)
                pop_group.attrs["charge"] = pop.charge
                pop_group.attrs["mass"] = pop.mass
                particles = pop.particles
                for name, values in (("x", particles.x), ("v", particles.v),
                                     ("weight", particles.weight)):
                    if name in pop_group:
                        del pop_group[name]
                    pop_group.create_dataset(name, data=values)

        logger.debug("Wrote particles at t=%g to %s", time, self.particles_path)

    @staticmethod
    def _write_field(group, field):
        name = field.quantity.value
        if name in group:
            del group[name]
        dataset = group.create_dataset(name, data=field.data)
        dataset.attrs["dom_start"] = field.dom_start
        dataset.attrs["dom_end"] = field.dom_end
        dataset.attrs["centering"] = field.centering.name.lower()


def read_times(path):
    """Sorted output times stored in a diagnostics file."""
    with h5py.File(path, "r") as h5f:
        return sorted(float(h5f[name].attrs["time"]) for name in h5f)


# ==================== ENERGY DIAGNOSTICS ====================

def _squared_sum(field):
    """
    Integral of field^2 / dx over the domain.

    Dual values are cell averages. Primal values use trapezoid weights, so
    each wall node counts half. With periodic fields the two half nodes are
    the same value and the sum covers n_cells values either way.
    """
    values = field.domain
    total = float(np.sum(values**2))
    if field.centering.name == "PRIMAL":
        total -= 0.5 * float(values[0]**2 + values[-1]**2)
    return total


def magnetic_energy(B):
    """0.5 * integral of |B|^2 over the domain."""
    dx = B.layout.cell_size()
    return 0.5 * dx * sum(_squared_sum(component) for component in B)


def electric_energy(E):
    dx = E.layout.cell_size()
    return 0.5 * dx * sum(_squared_sum(component) for component in E)


def kinetic_energy(populations, dx=1.0):
    """
    Ion kinetic energy, sum over populations of 0.5 * w * m * |v|^2.

    Weights are per-node densities, so multiplying by dx gives the same
    normalisation as the field energies.
    """
    return dx * sum(pop.particles.kinetic_energy() for pop in populations)


# ==================== PLOTTING ====================

def plot_snapshot(B, E, N, V, time=None, filename=None):
    """
    Plot B, E, N and Vx over the domain.

    Args:
        B, E, V: VectorFields
        N: Field
        time: Optional time for the title
        filename: Save to file instead of returning an open figure

    Returns:
        fig: The matplotlib Figure (closed if filename is given)
    """
    import matplotlib
    if filename is not None:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(4, 1, figsize=(8, 10), sharex=True)

    for component in B.components:
        axes[0].plot(component.coordinates(), component.domain, label=component.quantity.value)
    for component in E.components:
        axes[1].plot(component.coordinates(), component.domain, label=component.quantity.value)
    axes[2].plot(N.coordinates(), N.domain, label="N")
    for component in V.components:
        axes[3].plot(component.coordinates(), component.domain, label=component.quantity.value)

    for ax, ylabel in zip(axes, ("B", "E", "N", "V")):
        ax.set_ylabel(ylabel)
        ax.legend(loc="upper right")
        ax.grid(True, alpha=0.3)
    axes[-1].set_xlabel("x")

    if time is not None:
        axes[0].set_title(f"t = {time:.4f}")

    fig.tight_layout()
    if filename is not None:
        fig.savefig(filename, dpi=120)
        plt.close(fig)
    return fig
