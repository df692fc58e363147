"""
hybridpic: One-Dimensional Hybrid Particle-in-Cell Plasma Solver

Kinetic ions (macro-particles, Boris push, cloud-in-cell moments) coupled
to a massless electron fluid through a generalised Ohm's law, with
electromagnetic fields on a Yee-staggered mesh and a predictor-corrector
time advance.

Logging is not configured on import; call
hybridpic.logging_config.setup_logging() from scripts.
"""

__version__ = "0.1.0"

from .constants import SPECIES
from .config import SimulationConfig, load_config, make_profile
from .errors import (
    ConfigurationError,
    HybridPICError,
    IndexRangeViolation,
    NumericalDegeneracy,
    UnsupportedDimensionError,
)
from .particles import Particle, ParticleArray

__all__ = [
    "SPECIES",
    "SimulationConfig",
    "load_config",
    "make_profile",
    "HybridPICError",
    "ConfigurationError",
    "UnsupportedDimensionError",
    "NumericalDegeneracy",
    "IndexRangeViolation",
    "Particle",
    "ParticleArray",
]
