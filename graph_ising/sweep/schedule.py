"""
graph_ising/sweep/schedule.py

Temperature schedules for sweeps.

Sweeps run hot to cold, so every schedule is returned in descending order,
rounded to 3 decimals. The adaptive schedule concentrates points around a
previous Tc estimate for the second stage of a two-stage sweep.
"""

import logging
import math
from typing import Iterable

import numpy as np

from graph_ising.errors import ConfigurationError


_logger = logging.getLogger(__name__)

MEASURED_TOLERANCE = 0.01
CRITICAL_FRACTION  = 0.7


def _check_range(t_min: float, t_max: float, count: int) -> None:
    if not (math.isfinite(t_min) and math.isfinite(t_max)) or t_min <= 0:
        raise ConfigurationError(f"t_min must be positive, got {t_min!r}")
    if t_min >= t_max:
        raise ConfigurationError(f"t_min ({t_min}) must be below t_max ({t_max})")
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count < 2:
        raise ConfigurationError(f"count must be an integer >= 2, got {count!r}")


def _descending(points: np.ndarray) -> np.ndarray:
    return np.unique(np.round(points, decimals=3))[::-1].copy()


def generate_schedule(t_min: float, t_max: float, count: int) -> np.ndarray:
    """`count` evenly spaced temperatures from t_max down to t_min."""
    _check_range(t_min, t_max, count)
    temps = np.round(np.linspace(t_max, t_min, count), decimals=3)
    if np.any(np.diff(temps) >= 0):
        raise ConfigurationError(
            f"{count} points in [{t_min}, {t_max}] are closer than 0.001 after rounding"
        )
    return temps


def generate_adaptive_schedule(
    t_min: float,
    t_max: float,
    count: int,
    center: float,
    margin: float = 0.5,
) -> np.ndarray:
    """
    Schedule dense around `center`.

    About 70% of the points (at least min(10, count)) are spread evenly over
    [center - margin, center + margin] clipped to [t_min, t_max]; the rest are
    split between the regions below and above the window. A region with no
    room passes its share on. Duplicates after rounding are dropped, so at
    most `count` temperatures are returned.
    """
    _check_range(t_min, t_max, count)
    if not math.isfinite(margin) or margin <= 0:
        raise ConfigurationError(f"margin must be positive, got {margin!r}")

    lo = max(t_min, center - margin)
    hi = min(t_max, center + margin)
    if lo >= hi:
        _logger.warning(
            "Tc estimate %.3f is outside [%.3f, %.3f]; using a uniform schedule",
            center, t_min, t_max,
        )
        return generate_schedule(t_min, t_max, count)

    n_crit  = min(count, max(int(count * CRITICAL_FRACTION), min(10, count)))
    n_rest  = count - n_crit
    n_lower = n_rest // 2
    n_upper = n_rest - n_lower

    has_lower = lo > t_min
    has_upper = hi < t_max
    if not has_lower and not has_upper:
        n_crit += n_lower + n_upper
        n_lower = n_upper = 0
    elif not has_lower:
        n_upper += n_lower
        n_lower = 0
    elif not has_upper:
        n_lower += n_upper
        n_upper = 0

    crit  = np.linspace(lo, hi, n_crit)
    lower = t_min + (lo - t_min) * np.arange(n_lower) / max(n_lower, 1)
    upper = hi + (t_max - hi) * np.arange(1, n_upper + 1) / max(n_upper, 1)

    _logger.debug(
        "adaptive schedule: %d below, %d in [%.3f, %.3f], %d above",
        n_lower, n_crit, lo, hi, n_upper,
    )
    return _descending(np.concatenate([lower, crit, upper]))


def is_measured(
    temperature: float,
    measured: Iterable[float],
    tol: float = MEASURED_TOLERANCE,
) -> bool:
    """True when `temperature` is within `tol` of an already measured one."""
    return any(abs(temperature - t) < tol for t in measured)
