"""
graph_ising/simulation/observables.py

Thermodynamic observables for spin configurations on arbitrary graphs.

Single-configuration helpers operate on a spin vector; `aggregate_trials`
turns the per-trial magnetization / energy series recorded at one
temperature into the statistics stored in a TemperatureMeasurement.
"""

from typing import Optional, Sequence

import numpy as np

from graph_ising.graph.model import GraphModel


# ---------------------------------------------------------------------------
# Single-configuration observables
# ---------------------------------------------------------------------------

def magnetization_signed(spins: np.ndarray) -> float:
    """Signed magnetization per spin: m = sum(s_i) / N."""
    return float(spins.sum(dtype=np.int64) / spins.size)


def magnetization(spins: np.ndarray) -> float:
    """Absolute magnetization per spin: |m| = |sum(s_i)| / N."""
    return abs(magnetization_signed(spins))


def energy_per_node(spins: np.ndarray, graph: GraphModel, J: float = -1.0) -> float:
    """
    Energy per node, E/N = (J/N) * sum_<ij> w_ij s_i s_j.

    Vectorised over the CSR arrays; each undirected edge appears twice.
    """
    s = spins.astype(np.float64)
    rows = np.repeat(np.arange(graph.n), np.diff(graph.indptr))
    bonds = graph.weights * s[rows] * s[graph.indices]
    return float(0.5 * J * bonds.sum() / graph.n)


# ---------------------------------------------------------------------------
# Per-temperature aggregation
# ---------------------------------------------------------------------------

def aggregate_trials(
    m_trials: Sequence[float],
    E_trials: Optional[Sequence[float]] = None,
) -> dict:
    """
    Summarise the trials recorded at one temperature.

    Parameters
    ----------
    m_trials : |m| per trial
    E_trials : energy per node per trial (optional)

    Returns
    -------
    dict with keys:
        m_mean     : mean |m|
        m_std      : standard deviation of |m| over trials (ddof=0)
        error_low  : max(0, m_mean - m_std)
        error_high : m_mean + m_std
        E_mean     : mean energy per node, or None
        n_trials   : number of trials
    """
    m_arr = np.asarray(m_trials, dtype=np.float64)
    if m_arr.size == 0:
        raise ValueError("aggregate_trials needs at least one trial")

    m_mean = float(m_arr.mean())
    m_std  = float(m_arr.std())

    E_mean = None
    if E_trials is not None and len(E_trials) > 0:
        E_mean = float(np.mean(E_trials))

    return {
        "m_mean":     m_mean,
        "m_std":      m_std,
        "error_low":  max(0.0, m_mean - m_std),
        "error_high": m_mean + m_std,
        "E_mean":     E_mean,
        "n_trials":   int(m_arr.size),
    }
