"""Critical temperature estimation."""

from .critical_point import (
    CriticalPointEstimate,
    CriticalPointEstimator,
    estimate_critical_temperature,
    two_stage_sweep,
)

__all__ = [
    'CriticalPointEstimate',
    'CriticalPointEstimator',
    'estimate_critical_temperature',
    'two_stage_sweep',
]
