"""
Smoke tests for the sweep plots (non-interactive backend).
"""

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from graph_ising.analysis.critical_point import estimate_critical_temperature
from graph_ising.sweep.engine import TemperatureMeasurement
from graph_ising.visualization.sweep_plot import plot_magnetization, plot_summary


@pytest.fixture
def measurements():
    T = np.linspace(1.0, 4.0, 10)
    m = 0.5 * (1.0 - np.tanh((T - 2.3) / 0.3))
    return [TemperatureMeasurement.from_trials(t, [v, v], [-v, -v]) for t, v in zip(T, m)]


class TestPlots:

    def test_summary_saved(self, measurements, tmp_path):
        est = estimate_critical_temperature(measurements)
        path = tmp_path / "sweep.png"
        fig = plot_summary(measurements, est, known_tc=2.27, save_path=str(path))
        assert path.exists()
        assert len(fig.axes) == 3
        plt.close(fig)

    def test_magnetization_on_given_axes(self, measurements):
        fig, ax = plt.subplots()
        assert plot_magnetization(measurements, ax=ax) is fig
        plt.close(fig)
