"""
Physical Constants, Ion Species and Hybrid Normalisation

The solver works in normalised hybrid units:
    - magnetic field in units of B0
    - density in units of n0
    - time in units of the inverse proton cyclotron frequency 1/Omega_p
    - length in units of the proton inertial length d_p = c / omega_pp
    - velocity in units of the Alfven speed v_A = B0 / sqrt(mu0 n0 m_p)

In these units the proton has charge 1 and mass 1, which is what the
SPECIES table stores. The SI helpers below convert reference values.
"""

import numpy as np

# ==================== FUNDAMENTAL CONSTANTS ====================

e = 1.602176634e-19  # Elementary charge [C]
m_p = 1.67262192369e-27  # Proton mass [kg]
eps0 = 8.8541878128e-12  # Vacuum permittivity [F/m]
mu0 = 1.25663706212e-6  # Vacuum permeability [H/m]
c = 299792458.0  # Speed of light [m/s]
AMU = 1.66053906660e-27  # Atomic mass unit [kg]
eV = e  # 1 eV in Joules [J]

# ==================== ION SPECIES DATABASE ====================


class SpeciesData:
    """
    Ion species properties in normalised units.

    Attributes:
        mass: Ion mass [m_p]
        charge: Ion charge [e]
    """

    def __init__(self, mass, charge):
        self.mass = mass
        self.charge = charge

    @property
    def q_over_m(self):
        return self.charge / self.mass

    def __repr__(self):
        return f"SpeciesData(mass={self.mass}, charge={self.charge})"


SPECIES = {
    # Protons
    'H+': SpeciesData(mass=1.0, charge=1.0),

    # Alpha particles
    'He++': SpeciesData(mass=4.0026 * AMU / m_p, charge=2.0),

    # Singly ionised helium
    'He+': SpeciesData(mass=4.0026 * AMU / m_p, charge=1.0),

    # Singly ionised oxygen (ionospheric / magnetospheric heavy ion)
    'O+': SpeciesData(mass=16.0 * AMU / m_p, charge=1.0),
}

# ==================== NORMALISATION HELPERS ====================


def ion_cyclotron_frequency(B0, species='H+'):
    """
    Ion cyclotron frequency.

    Args:
        B0: Magnetic field strength [T]
        species: Ion species name

    Returns:
        omega_c: Cyclotron frequency [rad/s]
    """
    data = SPECIES[species]
    return data.charge * e * B0 / (data.mass * m_p)


def ion_plasma_frequency(n0, species='H+'):
    """
    Ion plasma frequency.

    Args:
        n0: Ion density [m^-3]
        species: Ion species name

    Returns:
        omega_p: Plasma frequency [rad/s]
    """
    data = SPECIES[species]
    return np.sqrt(n0 * (data.charge * e)**2 / (data.mass * m_p * eps0))


def ion_inertial_length(n0, species='H+'):
    """
    Ion inertial length d_i = c / omega_pi.

    Args:
        n0: Ion density [m^-3]

    Returns:
        d_i: Inertial length [m]
    """
    return c / ion_plasma_frequency(n0, species)


def alfven_speed(B0, n0, species='H+'):
    """
    Alfven speed v_A = B0 / sqrt(mu0 * n0 * m_i).

    Args:
        B0: Magnetic field strength [T]
        n0: Ion density [m^-3]

    Returns:
        v_A: Alfven speed [m/s]
    """
    return B0 / np.sqrt(mu0 * n0 * SPECIES[species].mass * m_p)


def normalised_thermal_velocity(T_i, B0, n0, species='H+'):
    """
    Ion thermal velocity sqrt(kT/m) in units of the Alfven speed.

    Args:
        T_i: Ion temperature [eV]
        B0: Magnetic field strength [T]
        n0: Ion density [m^-3]

    Returns:
        vth: Thermal velocity [v_A]
    """
    v_th = np.sqrt(T_i * eV / (SPECIES[species].mass * m_p))
    return v_th / alfven_speed(B0, n0, species)
