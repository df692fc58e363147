"""
Hybrid Particle-in-Cell (PIC) Module

Components:
- gridlayout: staggered 1D layout (primal/dual centering, ghost indexing)
- field: Field / VectorField containers
- field_solver: Ampere, Faraday and Ohm operators
- population: particle loading and cloud-in-cell deposition
- moments: total density and bulk velocity
- mover: Boris pusher with centering-aware interpolation
- boundary: periodic and fixed boundary conditions
- simulation: predictor-corrector time advance
"""

from .gridlayout import Centering, Direction, GridLayout, Quantity
from .field import Field, VectorField, average
from .field_solver import Ampere, Faraday, Ohm
from .population import Population, deposit_cic_1d, deposit_cic_1d_parallel
from .moments import bulk_velocity, total_density
from .mover import BorisPusher, Pusher, boris_push_1d, interpolate_1d
from .boundary import (
    BoundaryCondition,
    FixedBoundary,
    PeriodicBoundary,
    create_boundary_condition,
)
from .simulation import HybridSimulation, build_simulation, run_simulation

__all__ = [
    # Layout and fields
    "Centering",
    "Direction",
    "GridLayout",
    "Quantity",
    "Field",
    "VectorField",
    "average",
    # Field solver
    "Ampere",
    "Faraday",
    "Ohm",
    # Particles
    "Population",
    "deposit_cic_1d",
    "deposit_cic_1d_parallel",
    "total_density",
    "bulk_velocity",
    # Mover
    "Pusher",
    "BorisPusher",
    "boris_push_1d",
    "interpolate_1d",
    # Boundaries
    "BoundaryCondition",
    "PeriodicBoundary",
    "FixedBoundary",
    "create_boundary_condition",
    # Time advance
    "HybridSimulation",
    "build_simulation",
    "run_simulation",
]
