"""
graph_ising/config.py

Validated configuration for the simulator.

Every numeric field is range-checked on construction, so a config object that
exists is a config object that can be run. Loaded from YAML with the same
layout as configs/simulation.yaml:

    simulation:
      seed: 42
      coupling: -1.0
      lattice:  {kind: square, size: 5}
      realtime: {temperature: 1.5, steps_per_tick: 100, ...}
      sweep:    {t_min: 0.5, t_max: 4.0, n_points: 20, ...}

Usage:
    cfg = SimulationConfig.from_yaml("configs/simulation.yaml")
    cfg.sweep.n_trials
"""

import math
from dataclasses import dataclass, field, fields
from typing import Optional

import yaml

from graph_ising.errors import ConfigurationError


LATTICE_KINDS = ("square", "triangular", "hexagonal")


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------

def _require_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive number, got {value!r}")


def _require_int(name: str, value: int, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _from_section(cls, section: Optional[dict]):
    """Build a dataclass from a dict, rejecting unknown keys."""
    section = dict(section or {})
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ConfigurationError(
            f"unknown {cls.__name__} keys: {', '.join(sorted(unknown))}"
        )
    return cls(**section)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LatticeConfig:
    """Built-in lattice selection."""

    kind: str = "square"
    size: int = 5

    def __post_init__(self) -> None:
        if self.kind not in LATTICE_KINDS:
            raise ConfigurationError(
                f"lattice kind must be one of {LATTICE_KINDS}, got {self.kind!r}"
            )
        _require_int("lattice.size", self.size, 2)


@dataclass(frozen=True)
class RealtimeConfig:
    """
    Parameters of the real-time animation loop.

    temperature    : simulation temperature (k_B = 1)
    steps_per_tick : sweeps run per tick
    settle_sweeps  : sweeps run once when the loop starts
    interval       : seconds slept between ticks by SimulationDriver.run
    """

    temperature: float = 1.5
    steps_per_tick: int = 100
    settle_sweeps: int = 200
    interval: float = 0.0

    def __post_init__(self) -> None:
        _require_positive("realtime.temperature", self.temperature)
        _require_int("realtime.steps_per_tick", self.steps_per_tick, 1)
        _require_int("realtime.settle_sweeps", self.settle_sweeps, 0)
        if not math.isfinite(self.interval) or self.interval < 0:
            raise ConfigurationError(
                f"realtime.interval must be >= 0, got {self.interval!r}"
            )


@dataclass(frozen=True)
class SweepConfig:
    """
    Parameters of a temperature sweep.

    t_min, t_max         : temperature range, 0 < t_min < t_max
    n_points             : temperatures in the schedule (>= 2)
    equilibration_sweeps : burn-in sweeps per temperature
    measurement_sweeps   : sweeps between two recorded trials
    n_trials             : recorded trials per temperature (>= 1)
    chunk_sweeps         : equilibration sweeps between cancellation checks
    two_stage            : refine with an adaptive second schedule
    margin               : half width of the refined window around Tc
    """

    t_min: float = 0.5
    t_max: float = 4.0
    n_points: int = 20
    equilibration_sweeps: int = 5000
    measurement_sweeps: int = 500
    n_trials: int = 50
    chunk_sweeps: int = 2000
    two_stage: bool = True
    margin: float = 0.5

    def __post_init__(self) -> None:
        _require_positive("sweep.t_min", self.t_min)
        _require_positive("sweep.t_max", self.t_max)
        if self.t_min >= self.t_max:
            raise ConfigurationError(
                f"sweep.t_min ({self.t_min}) must be below sweep.t_max ({self.t_max})"
            )
        _require_int("sweep.n_points", self.n_points, 2)
        _require_int("sweep.equilibration_sweeps", self.equilibration_sweeps, 0)
        _require_int("sweep.measurement_sweeps", self.measurement_sweeps, 1)
        _require_int("sweep.n_trials", self.n_trials, 1)
        _require_int("sweep.chunk_sweeps", self.chunk_sweeps, 1)
        _require_positive("sweep.margin", self.margin)


@dataclass(frozen=True)
class SimulationConfig:
    """Root configuration object."""

    coupling: float = -1.0
    seed: Optional[int] = None
    lattice: LatticeConfig = field(default_factory=LatticeConfig)
    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)
    sweep: SweepConfig = field(default_factory=SweepConfig)

    def __post_init__(self) -> None:
        if not math.isfinite(self.coupling) or self.coupling == 0:
            raise ConfigurationError(
                f"coupling must be a nonzero number, got {self.coupling!r}"
            )
        if self.seed is not None:
            _require_int("seed", self.seed, 0)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, cfg: dict) -> "SimulationConfig":
        """Instantiate from the parsed `simulation:` mapping."""
        sim = dict(cfg.get("simulation", cfg))
        known = {f.name for f in fields(cls)}
        unknown = set(sim) - known
        if unknown:
            raise ConfigurationError(
                f"unknown simulation keys: {', '.join(sorted(unknown))}"
            )

        return cls(
            coupling = float(sim.get("coupling", -1.0)),
            seed     = sim.get("seed"),
            lattice  = _from_section(LatticeConfig,  sim.get("lattice")),
            realtime = _from_section(RealtimeConfig, sim.get("realtime")),
            sweep    = _from_section(SweepConfig,    sim.get("sweep")),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "SimulationConfig":
        """Instantiate from a simulation.yaml config file."""
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}
        return cls.from_dict(cfg)
