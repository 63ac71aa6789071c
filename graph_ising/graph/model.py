"""
graph_ising/graph/model.py

Immutable weighted coupling graph for the Ising model.

The adjacency is stored as a symmetric scipy CSR matrix with no diagonal and
no explicit zeros. Its (indptr, indices, data) triple doubles as the
per-node neighbour lists, so neighbour queries are O(degree) slices and the
same read-only arrays are handed to the numba Metropolis kernel.

Input format (GraphModel.parse):

    # comment
    1,2,1.0
    2,3,-0.5

One `row,col,weight` edge per line, 1-based indices, no header. Each entry is
symmetrised; conflicting duplicates resolve last-write-wins with a warning.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Tuple, Union

import numpy as np
import scipy.sparse as sp

from graph_ising.errors import ParseError, ValidationError


_logger = logging.getLogger(__name__)

Edge = Tuple[int, int, float]


@dataclass(frozen=True)
class GraphStats:
    """Summary reported when a graph is loaded."""

    nodes: int
    edges: int
    total_connections: int
    average_degree: float
    isolated_nodes: int
    total_weight: float


# ---------------------------------------------------------------------------
# Edge-list helpers
# ---------------------------------------------------------------------------

def _parse_line(line: str, line_number: int) -> Edge:
    """Parse one `row,col,weight` line into a 1-based triple."""
    parts = [part.strip() for part in line.split(",")]
    if len(parts) < 3:
        raise ParseError(
            f"expected 3 fields (row,col,weight), got {len(parts)}",
            line_number, line,
        )

    try:
        row = int(parts[0])
        col = int(parts[1])
    except ValueError:
        raise ParseError("row and col must be integers", line_number, line) from None

    try:
        weight = float(parts[2])
    except ValueError:
        raise ParseError("weight must be a real number", line_number, line) from None
    if not math.isfinite(weight):
        raise ParseError("weight must be finite", line_number, line)

    if row <= 0 or col <= 0:
        raise ParseError("row and col must be positive (1-based)", line_number, line)

    return row, col, weight


def _symmetrise(edges: Iterable[Edge]) -> Dict[Tuple[int, int], float]:
    """
    Collapse directed 0-based entries into unordered pairs.

    Later entries overwrite earlier ones; a conflict is logged once per pair.
    Self-loops are dropped.
    """
    pairs: Dict[Tuple[int, int], float] = {}
    conflicts: List[Tuple[int, int]] = []
    self_loops = 0

    for i, j, w in edges:
        if i == j:
            self_loops += 1
            continue
        key = (i, j) if i < j else (j, i)
        previous = pairs.get(key)
        if previous is not None and previous != w:
            conflicts.append(key)
        pairs[key] = float(w)

    if self_loops:
        _logger.warning("dropped %d self-loop entr%s", self_loops,
                        "y" if self_loops == 1 else "ies")
    if conflicts:
        shown = ", ".join(f"({i + 1},{j + 1})" for i, j in sorted(set(conflicts))[:5])
        _logger.warning(
            "%d conflicting duplicate coupling(s), last value kept: %s%s",
            len(set(conflicts)), shown, " ..." if len(set(conflicts)) > 5 else "",
        )

    return {key: w for key, w in pairs.items() if w != 0.0}


# ---------------------------------------------------------------------------
# GraphModel
# ---------------------------------------------------------------------------

class GraphModel:
    """
    Symmetric weighted adjacency over n nodes.

    Parameters
    ----------
    n     : number of nodes
    pairs : {(i, j): w} with 0 <= i < j < n and w != 0

    Use the factories (parse, from_file, from_edges, from_dense) rather than
    the constructor.
    """

    def __init__(self, n: int, pairs: Dict[Tuple[int, int], float]) -> None:
        if n <= 0:
            raise ValidationError(f"graph must have at least one node, got n={n}")
        for i, j in pairs:
            if not (0 <= i < n and 0 <= j < n):
                raise ValidationError(f"edge ({i}, {j}) outside [0, {n})")

        rows = np.fromiter((i for i, _ in pairs), dtype=np.int64, count=len(pairs))
        cols = np.fromiter((j for _, j in pairs), dtype=np.int64, count=len(pairs))
        vals = np.fromiter(pairs.values(), dtype=np.float64, count=len(pairs))

        upper = sp.coo_matrix((vals, (rows, cols)), shape=(n, n))
        adjacency = (upper + upper.T).tocsr()
        adjacency.sort_indices()

        self.n = n
        self._adjacency = adjacency
        self.indptr  = adjacency.indptr.astype(np.int64)
        self.indices = adjacency.indices.astype(np.int64)
        self.weights = adjacency.data.astype(np.float64)
        for arr in (self.indptr, self.indices, self.weights):
            arr.setflags(write=False)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str, allow_isolated: bool = True) -> "GraphModel":
        """
        Parse a sparse `row,col,weight` edge list.

        Raises
        ------
        ParseError      : short line, non-numeric field, non-positive index,
                          or no entries at all
        ValidationError : isolated nodes when allow_isolated is False
        """
        entries: List[Edge] = []
        max_index = 0

        for line_number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            row, col, weight = _parse_line(line, line_number)
            max_index = max(max_index, row, col)
            entries.append((row - 1, col - 1, weight))

        if not entries:
            raise ParseError("no valid entries found")

        _logger.debug("parsed %d entries, max index %d", len(entries), max_index)
        graph = cls(max_index, _symmetrise(entries))
        graph._check_isolated(allow_isolated)
        return graph

    @classmethod
    def from_file(cls, path: Union[str, Path], allow_isolated: bool = True) -> "GraphModel":
        """Read a UTF-8 edge-list file and parse it."""
        text = Path(path).read_text(encoding="utf-8")
        return cls.parse(text, allow_isolated=allow_isolated)

    @classmethod
    def from_edges(
        cls,
        n: int,
        edges: Iterable[Edge],
        allow_isolated: bool = True,
    ) -> "GraphModel":
        """Build from 0-based (i, j, w) triples, symmetrising each one."""
        graph = cls(n, _symmetrise(edges))
        graph._check_isolated(allow_isolated)
        return graph

    @classmethod
    def from_dense(cls, matrix, allow_isolated: bool = True) -> "GraphModel":
        """
        Build from a dense adjacency matrix.

        The upper triangle is authoritative; mismatching lower-triangle
        entries are reported and ignored. The diagonal is ignored.
        """
        A = np.asarray(matrix, dtype=np.float64)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValidationError(f"adjacency matrix must be square, got shape {A.shape}")
        if A.shape[0] == 0:
            raise ValidationError("adjacency matrix is empty")

        n = A.shape[0]
        mismatch = int(np.count_nonzero(np.triu(A, 1) != np.triu(A.T, 1)))
        if mismatch:
            _logger.warning(
                "adjacency matrix is asymmetric in %d pair(s), upper triangle kept",
                mismatch,
            )
        if np.any(np.diag(A) != 0):
            _logger.warning("ignoring nonzero diagonal entries")

        rows, cols = np.nonzero(np.triu(A, 1))
        pairs = {(int(i), int(j)): float(A[i, j]) for i, j in zip(rows, cols)}
        graph = cls(n, pairs)
        graph._check_isolated(allow_isolated)
        return graph

    def _check_isolated(self, allow_isolated: bool) -> None:
        isolated = int(np.count_nonzero(np.diff(self.indptr) == 0))
        if not isolated:
            return
        if not allow_isolated:
            raise ValidationError(f"{isolated} node(s) have no neighbours")
        _logger.warning("%d node(s) have no neighbours", isolated)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _check_node(self, i: int) -> None:
        if not 0 <= i < self.n:
            raise IndexError(f"node index {i} out of range for {self.n} nodes")

    def neighbors_of(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return (neighbour indices, coupling weights) of node i."""
        self._check_node(i)
        start, stop = self.indptr[i], self.indptr[i + 1]
        return self.indices[start:stop], self.weights[start:stop]

    def degree(self, i: int) -> int:
        self._check_node(i)
        return int(self.indptr[i + 1] - self.indptr[i])

    def weight(self, i: int, j: int) -> float:
        """Coupling between i and j (0.0 when not connected)."""
        self._check_node(i)
        self._check_node(j)
        return float(self._adjacency[i, j])

    def edges(self) -> Iterator[Edge]:
        """Undirected edges as (i, j, w) with i < j."""
        upper = sp.triu(self._adjacency, k=1).tocoo()
        order = np.lexsort((upper.col, upper.row))
        for k in order:
            yield int(upper.row[k]), int(upper.col[k]), float(upper.data[k])

    @property
    def adjacency(self) -> sp.csr_matrix:
        """A copy of the symmetric CSR adjacency matrix."""
        return self._adjacency.copy()

    @property
    def edge_count(self) -> int:
        return len(self.indices) // 2

    @property
    def total_weight(self) -> float:
        """Sum of couplings over undirected edges."""
        return float(self.weights.sum()) / 2.0

    def stats(self) -> GraphStats:
        degrees = np.diff(self.indptr)
        return GraphStats(
            nodes             = self.n,
            edges             = self.edge_count,
            total_connections = int(degrees.sum()),
            average_degree    = float(degrees.mean()),
            isolated_nodes    = int(np.count_nonzero(degrees == 0)),
            total_weight      = self.total_weight,
        )

    def __repr__(self) -> str:
        return f"GraphModel(n={self.n}, edges={self.edge_count})"
