"""
graph_ising/graph/lattices.py

Deterministic built-in lattices with open (non-periodic) boundaries.

    square     : size x size grid, right + down bonds
    triangular : square grid plus the down-right diagonal
    hexagonal  : size x size unit cells of two nodes (honeycomb brick-wall)

Each kind carries the infinite-lattice critical temperature for J = 1,
rounded, for comparison against sweep estimates.
"""

from typing import List

from graph_ising.errors import ConfigurationError
from graph_ising.graph.model import Edge, GraphModel


KNOWN_CRITICAL_TEMPERATURES = {
    "square":     2.27,
    "triangular": 3.64,
    "hexagonal":  1.52,
}


def known_critical_temperature(kind: str) -> float:
    """Theoretical Tc of the infinite lattice of this kind."""
    try:
        return KNOWN_CRITICAL_TEMPERATURES[kind]
    except KeyError:
        raise ConfigurationError(f"unknown lattice kind {kind!r}") from None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _grid_edges(size: int, diagonal: bool) -> List[Edge]:
    edges = []
    for i in range(size):
        for j in range(size):
            index = i * size + j
            if j < size - 1:
                edges.append((index, index + 1, 1.0))
            if i < size - 1:
                edges.append((index, index + size, 1.0))
            if diagonal and i < size - 1 and j < size - 1:
                edges.append((index, index + size + 1, 1.0))
    return edges


def _hexagonal_edges(size: int) -> List[Edge]:
    edges = []
    for i in range(size):
        for j in range(size):
            a = (i * size + j) * 2
            b = a + 1
            edges.append((a, b, 1.0))
            if j < size - 1:
                edges.append((b, (i * size + j + 1) * 2, 1.0))
            if i < size - 1:
                edges.append((a, ((i + 1) * size + j) * 2 + 1, 1.0))
    return edges


def generate_lattice(kind: str, size: int) -> GraphModel:
    """
    Build a unit-coupling lattice.

    Parameters
    ----------
    kind : "square", "triangular" or "hexagonal"
    size : linear size (cells per side), >= 2

    Returns
    -------
    GraphModel with size**2 nodes (square, triangular) or 2*size**2 nodes
    (hexagonal)
    """
    if isinstance(size, bool) or not isinstance(size, int) or size < 2:
        raise ConfigurationError(f"lattice size must be an integer >= 2, got {size!r}")

    if kind == "square":
        return GraphModel.from_edges(size * size, _grid_edges(size, diagonal=False))
    if kind == "triangular":
        return GraphModel.from_edges(size * size, _grid_edges(size, diagonal=True))
    if kind == "hexagonal":
        return GraphModel.from_edges(2 * size * size, _hexagonal_edges(size))
    raise ConfigurationError(
        f"lattice kind must be one of {tuple(KNOWN_CRITICAL_TEMPERATURES)}, got {kind!r}"
    )
