"""
hybridpic Test Suite

Tests organized by:
- test_gridlayout.py, test_field.py: staggered layout and containers
- test_field_solver.py: Ampere, Faraday and Ohm operators
- test_particles.py, test_population.py, test_moments.py: particles and moments
- test_mover.py: Boris pusher and interpolation
- test_boundary.py: periodic and fixed boundaries
- test_simulation.py: predictor-corrector time advance
- test_diagnostics.py, test_config.py: HDF5 output and configuration
"""
