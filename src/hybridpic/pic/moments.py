"""
Ion moments summed over all populations.
"""

import numpy as np


def total_density(populations, N):
    """
    N = sum of the population densities, at every allocated node.

    Args:
        populations: Iterable of Population
        N: Output Field (modified in-place)

    Returns:
        N
    """
    N.zero()
    for pop in populations:
        N.data += pop.density.data
    return N


def bulk_velocity(populations, N, V):
    """
    V = (sum of the population fluxes) / N, zero where N is zero.

    Args:
        populations: Iterable of Population
        N: Total density Field (see total_density)
        V: Output VectorField (modified in-place)

    Returns:
        V
    """
    V.zero()
    for pop in populations:
        for v_c, f_c in zip(V.components, pop.flux.components):
            v_c.data += f_c.data

    occupied = N.data > 0.0
    for v_c in V.components:
        np.divide(v_c.data, N.data, out=v_c.data, where=occupied)
        v_c.data[~occupied] = 0.0
    return V
