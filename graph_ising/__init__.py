"""
graph_ising: Metropolis Monte Carlo for the Ising model on arbitrary graphs.

Main Components
---------------
graph      : GraphModel (edge-list parsing, validation) and built-in lattices
simulation : SpinSystem dynamics, observables, real-time SimulationDriver
sweep      : temperature schedules and the TemperatureSweepEngine
analysis   : critical temperature estimation and two-stage sampling

Quick Start
-----------
>>> from graph_ising import SpinSystem, TemperatureSweepEngine, generate_lattice
>>> from graph_ising import generate_schedule, estimate_critical_temperature
>>> system = SpinSystem(generate_lattice("square", 8), seed=42)
>>> engine = TemperatureSweepEngine(system, 2000, 100, 20)
>>> result = engine.run(generate_schedule(1.0, 4.0, 16))
>>> estimate_critical_temperature(result.measurements)
"""

__version__ = "0.1.0"

from .errors import (
    Cancelled,
    ConfigurationError,
    ExclusiveAccessError,
    IsingError,
    ParseError,
    ValidationError,
)
from .config import LatticeConfig, RealtimeConfig, SimulationConfig, SweepConfig
from .graph import (
    KNOWN_CRITICAL_TEMPERATURES,
    GraphModel,
    GraphStats,
    generate_lattice,
    known_critical_temperature,
)
from .simulation import (
    DriverState,
    SimulationDriver,
    SpinInit,
    SpinSnapshot,
    SpinSystem,
)
from .sweep import (
    CancellationToken,
    SweepProgress,
    SweepResult,
    SweepStatus,
    TemperatureMeasurement,
    TemperatureSweepEngine,
    generate_adaptive_schedule,
    generate_schedule,
)
from .analysis import (
    CriticalPointEstimate,
    CriticalPointEstimator,
    estimate_critical_temperature,
    two_stage_sweep,
)

__all__ = [
    '__version__',

    # Errors
    'IsingError',
    'ParseError',
    'ValidationError',
    'ConfigurationError',
    'Cancelled',
    'ExclusiveAccessError',

    # Configuration
    'SimulationConfig',
    'LatticeConfig',
    'RealtimeConfig',
    'SweepConfig',

    # Graph
    'GraphModel',
    'GraphStats',
    'generate_lattice',
    'known_critical_temperature',
    'KNOWN_CRITICAL_TEMPERATURES',

    # Simulation
    'SpinSystem',
    'SpinInit',
    'SimulationDriver',
    'DriverState',
    'SpinSnapshot',

    # Sweep
    'TemperatureSweepEngine',
    'TemperatureMeasurement',
    'CancellationToken',
    'SweepProgress',
    'SweepResult',
    'SweepStatus',
    'generate_schedule',
    'generate_adaptive_schedule',

    # Analysis
    'CriticalPointEstimate',
    'CriticalPointEstimator',
    'estimate_critical_temperature',
    'two_stage_sweep',
]
