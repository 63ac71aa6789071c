"""Temperature schedules and the sweep engine."""

from .schedule import generate_adaptive_schedule, generate_schedule, is_measured
from .engine import (
    CancellationToken,
    SweepProgress,
    SweepResult,
    SweepStatus,
    TemperatureMeasurement,
    TemperatureSweepEngine,
)

__all__ = [
    'generate_schedule',
    'generate_adaptive_schedule',
    'is_measured',
    'CancellationToken',
    'SweepProgress',
    'SweepResult',
    'SweepStatus',
    'TemperatureMeasurement',
    'TemperatureSweepEngine',
]
