"""Coupling graphs: edge-list parsing and built-in lattices."""

from .model import GraphModel, GraphStats
from .lattices import (
    KNOWN_CRITICAL_TEMPERATURES,
    generate_lattice,
    known_critical_temperature,
)

__all__ = [
    'GraphModel',
    'GraphStats',
    'KNOWN_CRITICAL_TEMPERATURES',
    'generate_lattice',
    'known_critical_temperature',
]
