"""Shared fixtures."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from graph_ising.graph.lattices import generate_lattice


@pytest.fixture
def square5():
    """5x5 open square lattice: 25 nodes, 40 unit bonds."""
    return generate_lattice("square", 5)


@pytest.fixture
def weighted_graph():
    """Small irregular graph with mixed-sign couplings."""
    from graph_ising.graph.model import GraphModel
    text = "\n".join([
        "1,2,1.0",
        "1,3,0.5",
        "2,3,-0.75",
        "3,4,2.0",
        "4,5,1.25",
        "5,1,-1.5",
        "2,5,0.3",
        "6,4,1.0",
    ])
    return GraphModel.parse(text)
