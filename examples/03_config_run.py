"""
Hybrid PIC from a TOML Configuration

Usage:
    python 03_config_run.py [config.toml]

Builds the layout, populations, boundary condition and operators from
the configuration file, runs to final_time, and writes HDF5 snapshots
when [diagnostics] enabled = true.
"""

import logging
import sys
from pathlib import Path

from hybridpic.config import load_config
from hybridpic.diagnostics import read_times
from hybridpic.logging_config import setup_logging
from hybridpic.pic import run_simulation

config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).with_name("alfven_wave.toml")

setup_logging(logging.INFO)

config = load_config(config_path)
simulation = run_simulation(config)

print(f"Finished {simulation.n_steps} steps, t = {simulation.time:.3f}")
if config.diagnostics.enabled:
    times = read_times(config.diagnostics.fields_path)
    print(f"{len(times)} field snapshots in {config.diagnostics.fields_path}")
