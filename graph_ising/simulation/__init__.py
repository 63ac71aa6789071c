"""Spin dynamics, observables and the real-time driver."""

from .spin_system import SpinInit, SpinSystem
from .driver import DriverState, SimulationDriver, SpinSnapshot

__all__ = [
    'SpinSystem',
    'SpinInit',
    'SimulationDriver',
    'DriverState',
    'SpinSnapshot',
]
