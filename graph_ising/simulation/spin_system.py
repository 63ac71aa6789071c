"""
graph_ising/simulation/spin_system.py

Single-spin-flip Metropolis dynamics for the Ising model on a GraphModel.

Hamiltonian (k_B = 1):

    E = 0.5 * J * sum_i sum_{j in N(i)} w_ij s_i s_j  =  J * sum_<ij> w_ij s_i s_j

so the energy change of flipping spin i is

    dE = -2 * J * s_i * sum_{j in N(i)} w_ij s_j

and J < 0 favours parallel alignment (ferromagnet). The cached total energy
is advanced by dE on every accepted flip and recomputed from scratch on every
reset.

Reference:
    Metropolis et al. (1953), J. Chem. Phys. 21, 1087
    Newman & Barkema (1999), Monte Carlo Methods in Statistical Physics, ch. 3
"""

import enum
import math
from typing import Hashable, Optional, Union

import numpy as np
from numba import njit

from graph_ising.errors import ConfigurationError, ExclusiveAccessError
from graph_ising.graph.model import GraphModel


# Steps drawn per block of pre-generated random numbers in run_steps
_BLOCK_STEPS = 1 << 16


# ---------------------------------------------------------------------------
# Low-level JIT-compiled kernels
# ---------------------------------------------------------------------------

@njit(cache=True)
def _metropolis_steps(
    spins: np.ndarray,
    indptr: np.ndarray,
    indices: np.ndarray,
    weights: np.ndarray,
    J: float,
    temperature: float,
    sites: np.ndarray,
    rng_accept: np.ndarray,
):
    """
    Attempt one flip per entry of `sites`.

    Parameters
    ----------
    spins       : (n,) int8 array of spin values in {-1, +1}, updated in place
    indptr      : CSR row pointer of the adjacency
    indices     : CSR neighbour indices
    weights     : CSR coupling weights
    J           : coupling constant
    temperature : T >= 0; at T == 0 energy-raising flips are always rejected
    sites       : pre-drawn node indices, one per attempt
    rng_accept  : pre-drawn uniform [0,1) floats, one per attempt

    Returns
    -------
    (delta_energy, n_accepted)
    """
    delta_total = 0.0
    n_accepted = 0

    for k in range(sites.shape[0]):
        i = sites[k]
        field = 0.0
        for p in range(indptr[i], indptr[i + 1]):
            field += weights[p] * spins[indices[p]]

        s_i = spins[i]
        delta_E = -2.0 * J * s_i * field

        # Metropolis acceptance criterion
        if delta_E <= 0.0 or (
            temperature > 0.0 and rng_accept[k] < np.exp(-delta_E / temperature)
        ):
            spins[i] = -s_i
            delta_total += delta_E
            n_accepted += 1

    return delta_total, n_accepted


@njit(cache=True)
def _compute_energy(
    spins: np.ndarray,
    indptr: np.ndarray,
    indices: np.ndarray,
    weights: np.ndarray,
    J: float,
) -> float:
    """Total energy; the 0.5 undoes double counting over both directions."""
    energy = 0.0
    for i in range(spins.shape[0]):
        for p in range(indptr[i], indptr[i + 1]):
            energy += weights[p] * spins[i] * spins[indices[p]]
    return 0.5 * J * energy


# ---------------------------------------------------------------------------
# Public simulation class
# ---------------------------------------------------------------------------

class SpinInit(str, enum.Enum):
    """Initial spin assignment policies."""

    RANDOM   = "random"     # i.i.d. +/-1 with probability 1/2
    UP       = "up"         # all +1
    DOWN     = "down"       # all -1
    BALANCED = "balanced"   # exactly half +1, shuffled


def _check_temperature(temperature: float) -> float:
    temperature = float(temperature)
    if not math.isfinite(temperature) or temperature < 0.0:
        raise ConfigurationError(
            f"temperature must be finite and >= 0, got {temperature!r}"
        )
    return temperature


class SpinSystem:
    """
    Mutable spin configuration over a GraphModel.

    Parameters
    ----------
    graph : GraphModel (shared read-only)
    J     : coupling constant; J < 0 is ferromagnetic
    init  : SpinInit policy or its string value
    seed  : seed for the numpy Generator used for every random draw

    Examples
    --------
    >>> from graph_ising.graph.lattices import generate_lattice
    >>> system = SpinSystem(generate_lattice("square", 8), seed=42)
    >>> system.run_steps(temperature=2.0, sweep_count=1000)
    >>> system.absolute_magnetization()
    """

    def __init__(
        self,
        graph: GraphModel,
        J: float = -1.0,
        init: Union[SpinInit, str] = SpinInit.RANDOM,
        seed: Optional[int] = None,
    ) -> None:
        if not math.isfinite(J) or J == 0:
            raise ConfigurationError(f"coupling J must be a nonzero number, got {J!r}")

        self.graph = graph
        self.n     = graph.n
        self.J     = float(J)
        self.rng   = np.random.default_rng(seed)
        self._spins  = np.ones(self.n, dtype=np.int8)
        self._energy = 0.0
        self._owner: Optional[Hashable] = None

        self.reset(init)

    @classmethod
    def initialize(
        cls,
        graph: GraphModel,
        policy: Union[SpinInit, str] = SpinInit.RANDOM,
        J: float = -1.0,
        seed: Optional[int] = None,
    ) -> "SpinSystem":
        return cls(graph, J=J, init=policy, seed=seed)

    # ------------------------------------------------------------------
    # Initialisation / resets (energy recomputed from scratch)
    # ------------------------------------------------------------------

    def reset(self, policy: Union[SpinInit, str]) -> None:
        """Reassign every spin according to an initialisation policy."""
        try:
            policy = SpinInit(policy)
        except ValueError:
            raise ConfigurationError(f"unknown spin initialisation {policy!r}") from None

        if policy is SpinInit.RANDOM:
            self.reset_random()
        elif policy is SpinInit.UP:
            self.reset_all(1)
        elif policy is SpinInit.DOWN:
            self.reset_all(-1)
        else:
            pattern = np.where(np.arange(self.n) % 2 == 0, 1, -1).astype(np.int8)
            self._assign(self.rng.permutation(pattern))

    def reset_random(self) -> None:
        """Hot start: i.i.d. random spins (T -> infinity)."""
        self._assign(self.rng.choice(np.array([-1, 1], dtype=np.int8), size=self.n))

    def reset_all(self, value: int) -> None:
        """Cold start: all spins aligned to `value` (+1 or -1)."""
        if value not in (1, -1):
            raise ConfigurationError(f"spin value must be +1 or -1, got {value!r}")
        self._assign(np.full(self.n, value, dtype=np.int8))

    def set_spins(self, spins) -> None:
        """Load an explicit configuration of length n with values in {-1, +1}."""
        arr = np.asarray(spins)
        if arr.shape != (self.n,):
            raise ConfigurationError(f"expected {self.n} spins, got shape {arr.shape}")
        if not np.all((arr == 1) | (arr == -1)):
            raise ConfigurationError("spin values must be +1 or -1")
        self._assign(arr.astype(np.int8))

    def _assign(self, spins: np.ndarray) -> None:
        self._spins = np.ascontiguousarray(spins, dtype=np.int8)
        self._energy = self.calculate_total_energy()

    # ------------------------------------------------------------------
    # Core update
    # ------------------------------------------------------------------

    def proposed_flip_delta(self, i: int) -> float:
        """Energy change if spin i were flipped. Does not mutate state."""
        neighbors, weights = self.graph.neighbors_of(i)
        field = float(np.dot(weights, self._spins[neighbors]))
        return -2.0 * self.J * int(self._spins[i]) * field

    def metropolis_step(self, temperature: float) -> bool:
        """
        One Metropolis update of a uniformly chosen node.

        Returns True when the flip was accepted.
        """
        temperature = _check_temperature(temperature)
        i = int(self.rng.integers(self.n))
        delta_E = self.proposed_flip_delta(i)

        if delta_E <= 0.0:
            accept = True
        elif temperature == 0.0:
            accept = False
        else:
            accept = self.rng.random() < math.exp(-delta_E / temperature)

        if accept:
            self._spins[i] = -self._spins[i]
            self._energy += delta_E
        return accept

    def run_steps(self, temperature: float, sweep_count: int) -> int:
        """
        Run sweep_count * n Metropolis steps at `temperature`.

        One sweep is, on average, one attempted update per node. Random
        numbers are drawn in blocks so memory stays bounded for long runs.

        Returns
        -------
        n_accepted : accepted flips
        """
        temperature = _check_temperature(temperature)
        if isinstance(sweep_count, bool) or int(sweep_count) != sweep_count or sweep_count < 0:
            raise ConfigurationError(f"sweep_count must be an integer >= 0, got {sweep_count!r}")

        remaining = int(sweep_count) * self.n
        n_accepted = 0
        g = self.graph

        while remaining > 0:
            block = min(remaining, _BLOCK_STEPS)
            sites      = self.rng.integers(0, self.n, size=block)
            rng_accept = self.rng.random(block)
            delta, accepted = _metropolis_steps(
                self._spins, g.indptr, g.indices, g.weights,
                self.J, temperature, sites, rng_accept,
            )
            self._energy += delta
            n_accepted += accepted
            remaining -= block

        return n_accepted

    # ------------------------------------------------------------------
    # Observables
    # ------------------------------------------------------------------

    @property
    def spins(self) -> np.ndarray:
        """Read-only view of the current spins."""
        view = self._spins.view()
        view.setflags(write=False)
        return view

    @property
    def energy(self) -> float:
        """Incrementally maintained total energy."""
        return self._energy

    def energy_per_node(self) -> float:
        return self._energy / self.n

    def calculate_total_energy(self) -> float:
        """Total energy recomputed from the spin configuration."""
        g = self.graph
        return float(_compute_energy(self._spins, g.indptr, g.indices, g.weights, self.J))

    def magnetization(self) -> float:
        """Mean spin, in [-1, 1]."""
        return float(self._spins.sum(dtype=np.int64)) / self.n

    def absolute_magnetization(self) -> float:
        """|mean spin|, in [0, 1]."""
        return abs(self.magnetization())

    def snapshot(self) -> np.ndarray:
        """Return a copy of the current spin configuration."""
        return self._spins.copy()

    # ------------------------------------------------------------------
    # Exclusive ownership
    # ------------------------------------------------------------------

    @property
    def owner(self) -> Optional[Hashable]:
        return self._owner

    def acquire(self, owner: Hashable) -> None:
        """Take exclusive mutation rights; re-acquiring by the same owner is a no-op."""
        if self._owner is not None and self._owner is not owner:
            raise ExclusiveAccessError(
                f"SpinSystem is owned by {self._owner!r}; release it before handing over"
            )
        self._owner = owner

    def release(self, owner: Hashable) -> None:
        if self._owner is owner:
            self._owner = None

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"SpinSystem(n={self.n}, J={self.J}, "
            f"m={self.magnetization():+.3f}, E={self._energy:.3f})"
        )
