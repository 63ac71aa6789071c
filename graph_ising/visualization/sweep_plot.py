"""
graph_ising/visualization/sweep_plot.py

Static plots of a temperature sweep.

Generates:
  - |m|(T) with the +/- 1 sd error band and the Tc estimate
  - -d|m|/dT at interval midpoints, peak marking Tc
  - energy per node E/n(T)
  - Combined 3-panel summary figure

The simulation core never renders; these helpers only consume its
TemperatureMeasurement tables.
"""

from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt

from graph_ising.analysis.critical_point import (
    CriticalPointEstimate,
    magnetization_slopes,
    smooth_magnetization,
)
from graph_ising.sweep.engine import TemperatureMeasurement


COLORS = ["#2166ac", "#d6604d", "#4dac26", "#8073ac", "#f1a340"]


def _table(measurements: Sequence[TemperatureMeasurement]) -> dict:
    rows = sorted(measurements, key=lambda rec: rec.temperature)
    return {
        "T":    np.array([r.temperature for r in rows]),
        "m":    np.array([r.magnetization for r in rows]),
        "low":  np.array([r.error_low for r in rows]),
        "high": np.array([r.error_high for r in rows]),
        "E":    np.array([np.nan if r.energy is None else r.energy for r in rows]),
    }


def _mark_tc(ax, estimate: Optional[CriticalPointEstimate], known_tc: Optional[float]) -> None:
    if estimate is not None:
        ax.axvline(estimate.temperature, color=COLORS[1], linestyle="--", linewidth=1.2,
                   label=f"$T_c$ = {estimate.temperature:.3f} $\\pm$ {estimate.uncertainty:.3f}")
        ax.axvspan(estimate.temperature - estimate.uncertainty,
                   estimate.temperature + estimate.uncertainty,
                   color=COLORS[1], alpha=0.12)
    if known_tc is not None:
        ax.axvline(known_tc, color="gray", linestyle=":", linewidth=1.2,
                   label=f"theory {known_tc:.2f}")


def plot_magnetization(
    measurements: Sequence[TemperatureMeasurement],
    estimate:     Optional[CriticalPointEstimate] = None,
    known_tc:     Optional[float] = None,
    ax=None,
    save_path:    Optional[str] = None,
) -> plt.Figure:
    """Plot mean |m| against T with its error band."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4.5))
    else:
        fig = ax.figure

    d = _table(measurements)
    ax.fill_between(d["T"], d["low"], d["high"], color=COLORS[0], alpha=0.2, linewidth=0)
    ax.plot(d["T"], d["m"], "o-", color=COLORS[0], markersize=4, linewidth=1.5,
            label=r"$|\langle m \rangle|$")
    _mark_tc(ax, estimate, known_tc)

    ax.set_xlabel("Temperature $T$", fontsize=12)
    ax.set_ylabel(r"Magnetization $|\langle m \rangle|$", fontsize=12)
    ax.set_title("Order Parameter vs Temperature", fontsize=13)
    ax.legend(fontsize=9)
    ax.set_ylim(-0.05, 1.05)
    ax.grid(alpha=0.25)

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_slope(
    measurements: Sequence[TemperatureMeasurement],
    estimate:     Optional[CriticalPointEstimate] = None,
    ax=None,
) -> plt.Figure:
    """Plot the smoothed -d|m|/dT used to locate Tc."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4.5))
    else:
        fig = ax.figure

    d = _table(measurements)
    if len(d["T"]) >= 2:
        mids, slopes = magnetization_slopes(d["T"], smooth_magnetization(d["m"]))
        ax.plot(mids, slopes, "s-", color=COLORS[2], markersize=4, linewidth=1.5,
                label=r"$-d|m|/dT$")
    _mark_tc(ax, estimate, None)

    ax.set_xlabel("Temperature $T$", fontsize=12)
    ax.set_ylabel(r"$-d|m|/dT$", fontsize=12)
    ax.legend(fontsize=9)
    ax.grid(alpha=0.25)
    return fig


def plot_summary(
    measurements: Sequence[TemperatureMeasurement],
    estimate:     Optional[CriticalPointEstimate] = None,
    known_tc:     Optional[float] = None,
    save_path:    Optional[str] = None,
) -> plt.Figure:
    """3-panel summary: |m|, -d|m|/dT, E/n."""
    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))

    plot_magnetization(measurements, estimate, known_tc, ax=axes[0])
    plot_slope(measurements, estimate, ax=axes[1])

    d = _table(measurements)
    axes[2].plot(d["T"], d["E"], "o-", color=COLORS[3], markersize=4, linewidth=1.5)
    axes[2].set_xlabel("Temperature $T$", fontsize=12)
    axes[2].set_ylabel("Energy per node $E/n$", fontsize=12)
    axes[2].grid(alpha=0.25)

    fig.suptitle("Ising Model on a Graph: Temperature Sweep", fontsize=14)
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
