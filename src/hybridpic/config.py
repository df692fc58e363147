"""
Simulation Configuration

Dataclass sections mirror the solver components:
- grid: layout (cells, cell size, ghosts)
- time: dt, final time
- ohm: Ohm's law closure parameters
- populations: one entry per ion population
- magnetic_field: initial B profiles
- diagnostics: HDF5 output

Profiles are closures built by make_profile() from small tables:
    {type = "uniform", value = 1.0}
    {type = "sine", mean = 1.0, amplitude = 0.1, wavenumber = 0.5, phase = 0.0}
    {type = "cosine", ...}
Plain callables are accepted wherever a profile is expected.

Example TOML:
    boundary = "periodic"

    [grid]
    grid_size = 100
    cell_size = 0.2

    [time]
    dt = 0.001
    final_time = 1.0

    [[populations]]
    name = "protons"
    nppc = 100
    vth = 0.1
    density = {type = "uniform", value = 1.0}

    [magnetic_field]
    by = {type = "uniform", value = 1.0}
"""

import logging
import math
import tomllib
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

Profile = Callable[[float], float]


# ==================== PROFILES ====================

def make_profile(definition) -> Profile:
    """
    Build a profile closure x -> value.

    Args:
        definition: A number (uniform), a callable (returned as-is), or a dict
            with a "type" key: "uniform", "sine" or "cosine"

    Raises:
        ConfigurationError: Unknown profile type or missing parameters
    """
    if callable(definition):
        return definition
    if isinstance(definition, (int, float)):
        value = float(definition)
        return lambda x: value
    if not isinstance(definition, dict) or "type" not in definition:
        raise ConfigurationError(f"Invalid profile definition: {definition!r}")

    kind = definition["type"]
    if kind == "uniform":
        value = float(definition.get("value", 0.0))
        return lambda x: value

    if kind in ("sine", "cosine"):
        mean = float(definition.get("mean", 0.0))
        amplitude = float(definition.get("amplitude", 1.0))
        wavenumber = float(definition.get("wavenumber", 1.0))
        phase = float(definition.get("phase", 0.0))
        func = math.sin if kind == "sine" else math.cos
        return lambda x: mean + amplitude * func(wavenumber * x + phase)

    raise ConfigurationError(f"Unknown profile type: {kind}")


# ==================== SECTIONS ====================

@dataclass
class GridConfig:
    grid_size: int = 100
    cell_size: float = 0.2
    nbr_ghosts: int = 1


@dataclass
class TimeConfig:
    dt: float = 0.001
    final_time: float = 1.0


@dataclass
class OhmConfig:
    eta: float = 0.0
    nu: float = 0.0
    electron_temperature: float = 0.0
    density_floor: float = 1e-6
    on_degenerate: str = "clamp"


@dataclass
class PopulationConfig:
    name: str = "main"
    species: str = "H+"
    nppc: int = 100
    vth: float = 0.0
    drift: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    density: Any = 1.0
    quiet_start: bool = False


@dataclass
class DiagnosticsConfig:
    enabled: bool = False
    fields_path: str = "fields.h5"
    particles_path: str = "particles.h5"
    every: int = 1
    write_particles: bool = True


@dataclass
class SimulationConfig:
    """
    Top-level configuration.

    Attributes:
        grid, time, ohm, diagnostics: Section dataclasses
        populations: One PopulationConfig per ion population
        magnetic_field: Initial B profiles keyed "bx", "by", "bz"
        boundary: Boundary condition name
        index_policy: "raise" or "clamp" for out-of-buffer particle accesses
        seed: Random seed for particle loading (None: nondeterministic)
        parallel_deposit: Use the parallel deposition kernel
    """

    grid: GridConfig = field(default_factory=GridConfig)
    time: TimeConfig = field(default_factory=TimeConfig)
    ohm: OhmConfig = field(default_factory=OhmConfig)
    populations: List[PopulationConfig] = field(default_factory=lambda: [PopulationConfig()])
    magnetic_field: Dict[str, Any] = field(default_factory=lambda: {"bx": 0.0, "by": 1.0, "bz": 0.0})
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    boundary: str = "periodic"
    index_policy: str = "raise"
    seed: Optional[int] = None
    parallel_deposit: bool = False

    @classmethod
    def from_dict(cls, raw):
        """
        Build a configuration from a nested dict (e.g. parsed TOML).

        Unknown keys raise ConfigurationError so typos do not go unnoticed.
        """
        raw = dict(raw)
        sections = {
            "grid": GridConfig,
            "time": TimeConfig,
            "ohm": OhmConfig,
            "diagnostics": DiagnosticsConfig,
        }

        kwargs = {}
        for key, section_cls in sections.items():
            if key in raw:
                kwargs[key] = _build(section_cls, raw.pop(key), key)

        if "populations" in raw:
            kwargs["populations"] = [
                _build(PopulationConfig, entry, "populations")
                for entry in raw.pop("populations")
            ]
        if "magnetic_field" in raw:
            magnetic = dict(raw.pop("magnetic_field"))
            unknown = set(magnetic) - {"bx", "by", "bz"}
            if unknown:
                raise ConfigurationError(f"Unknown magnetic_field keys: {sorted(unknown)}")
            kwargs["magnetic_field"] = {"bx": 0.0, "by": 0.0, "bz": 0.0, **magnetic}

        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        kwargs.update(raw)

        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self):
        if self.time.dt <= 0.0:
            raise ConfigurationError(f"dt must be positive, got {self.time.dt}")
        if self.time.final_time < 0.0:
            raise ConfigurationError(f"final_time must be non-negative, got {self.time.final_time}")
        if not self.populations:
            raise ConfigurationError("At least one population is required")
        names = [pop.name for pop in self.populations]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Population names must be unique, got {names}")
        if self.index_policy not in ("raise", "clamp"):
            raise ConfigurationError(f"Unknown index policy: {self.index_policy}")
        if self.diagnostics.every < 1:
            raise ConfigurationError(f"diagnostics.every must be >= 1, got {self.diagnostics.every}")

    def profiles(self):
        """Initial magnetic field closures (bx, by, bz)."""
        return tuple(make_profile(self.magnetic_field[key]) for key in ("bx", "by", "bz"))


def _build(section_cls, values, name):
    if not isinstance(values, dict):
        raise ConfigurationError(f"Section [{name}] must be a table")
    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(f"Unknown keys in [{name}]: {sorted(unknown)}")
    values = dict(values)
    if "drift" in values:
        values["drift"] = tuple(float(c) for c in values["drift"])
        if len(values["drift"]) != 3:
            raise ConfigurationError(f"drift must have 3 components, got {values['drift']}")
    return section_cls(**values)


def load_config(path):
    """
    Load a SimulationConfig from a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        SimulationConfig
    """
    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc

    logger.info("Loaded configuration from %s", path)
    return SimulationConfig.from_dict(raw)
