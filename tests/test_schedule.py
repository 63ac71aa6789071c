"""
Unit tests for temperature schedules.
"""

import numpy as np
import pytest

from graph_ising.errors import ConfigurationError
from graph_ising.sweep.schedule import (
    generate_adaptive_schedule,
    generate_schedule,
    is_measured,
)


class TestUniformSchedule:

    @pytest.mark.parametrize("t_min, t_max, count", [
        (0.5, 4.0, 20), (1.0, 3.0, 2), (1.5, 3.0, 7),
    ])
    def test_descending_endpoints(self, t_min, t_max, count):
        temps = generate_schedule(t_min, t_max, count)
        assert len(temps) == count
        assert np.all(np.diff(temps) < 0)
        assert temps[0] == pytest.approx(t_max, abs=1e-3)
        assert temps[-1] == pytest.approx(t_min, abs=1e-3)

    def test_even_spacing(self):
        temps = generate_schedule(1.0, 4.0, 7)
        assert np.allclose(temps, [4.0, 3.5, 3.0, 2.5, 2.0, 1.5, 1.0])

    @pytest.mark.parametrize("args", [
        (0.0, 4.0, 10), (3.0, 2.0, 10), (1.0, 1.0, 10), (1.0, 4.0, 1),
    ])
    def test_invalid(self, args):
        with pytest.raises(ConfigurationError):
            generate_schedule(*args)

    def test_spacing_below_rounding_rejected(self):
        with pytest.raises(ConfigurationError, match="0.001"):
            generate_schedule(2.0, 2.003, 10)

    def test_millikelvin_spacing_allowed(self):
        temps = generate_schedule(2.0, 2.009, 10)
        assert np.allclose(temps, np.arange(2.009, 1.9995, -0.001))
        assert len(np.unique(temps)) == 10


class TestAdaptiveSchedule:

    def test_clustered_around_center(self):
        center, margin = 2.3, 0.5
        temps = generate_adaptive_schedule(0.5, 4.0, 20, center, margin)
        inside = np.count_nonzero(
            (temps >= center - margin - 1e-9) & (temps <= center + margin + 1e-9)
        )
        assert inside / len(temps) >= 0.6

    def test_bounds_order_and_uniqueness(self):
        temps = generate_adaptive_schedule(0.5, 4.0, 20, 2.3)
        assert len(temps) <= 20
        assert len(temps) >= 18
        assert np.all(np.diff(temps) < 0)
        assert temps.min() >= 0.5 and temps.max() <= 4.0

    def test_covers_both_sides(self):
        temps = generate_adaptive_schedule(0.5, 4.0, 20, 2.3)
        assert temps.min() < 1.8
        assert temps.max() > 2.8

    def test_window_clipped_at_range_edge(self):
        temps = generate_adaptive_schedule(1.0, 4.0, 20, 1.1, margin=0.5)
        assert temps.min() >= 1.0
        inside = np.count_nonzero(temps <= 1.6 + 1e-9)
        assert inside / len(temps) >= 0.6

    def test_center_outside_range_falls_back(self):
        temps = generate_adaptive_schedule(1.0, 2.0, 5, 9.0)
        assert np.allclose(temps, generate_schedule(1.0, 2.0, 5))

    def test_invalid_margin(self):
        with pytest.raises(ConfigurationError):
            generate_adaptive_schedule(1.0, 4.0, 10, 2.0, margin=0.0)


class TestIsMeasured:

    def test_tolerance(self):
        assert is_measured(2.005, [1.0, 2.0])
        assert not is_measured(2.02, [1.0, 2.0])
        assert not is_measured(2.0, [])
