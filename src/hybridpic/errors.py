"""
Exception types raised by the hybrid solver.

None of these are retried: a raised error aborts the run.
"""


class HybridPICError(Exception):
    """Base class for all solver errors."""


class ConfigurationError(HybridPICError, ValueError):
    """Invalid or missing setup: null layout, bad grid, unknown boundary name, bad config file."""


class UnsupportedDimensionError(HybridPICError, NotImplementedError):
    """An operator was used on a layout whose dimension is not 1."""


class NumericalDegeneracy(HybridPICError, FloatingPointError):
    """Density below the floor in Ohm's law when clamping is disabled, or a non-finite energy."""


class IndexRangeViolation(HybridPICError, IndexError):
    """Interpolation or deposition addressed a node outside the ghost-padded buffer."""
