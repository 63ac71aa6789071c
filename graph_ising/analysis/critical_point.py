"""
graph_ising/analysis/critical_point.py

Critical temperature estimate from a magnetization-vs-temperature table.

|m|(T) falls fastest at the transition, so Tc is located at the peak of
-d|m|/dT:

    1. smooth |m| with a centred 3-point moving average (end points raw)
    2. negated finite-difference slopes at the interval midpoints
    3. discrete peak = midpoint of the steepest drop
    4. exact quadratic through the three slopes around the peak; its vertex
       replaces the discrete peak when the parabola opens downward and the
       vertex lies inside the temperature range
    5. uncertainty = half width at half maximum of the slope peak, or
       (t_max - t_min) / n_points when the peak sits at either end of the
       slope table, clamped to [0.02, 0.2]

`two_stage_sweep` runs a uniform sweep, estimates Tc, then re-samples densely
around the estimate and estimates again.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from scipy.ndimage import uniform_filter1d

from graph_ising.config import SweepConfig
from graph_ising.sweep.engine import (
    CancellationToken,
    SweepProgress,
    SweepResult,
    TemperatureMeasurement,
    TemperatureSweepEngine,
)
from graph_ising.sweep.schedule import generate_adaptive_schedule, generate_schedule


_logger = logging.getLogger(__name__)

MIN_POINTS        = 6
SMOOTHING_WINDOW  = 3
UNCERTAINTY_MIN   = 0.02
UNCERTAINTY_MAX   = 0.2
NO_PEAK_FRACTION  = 0.05


@dataclass(frozen=True)
class CriticalPointEstimate:
    """
    temperature : estimated Tc
    uncertainty : half width at half maximum of the slope peak (or fallback)
    peak_slope  : maximal -d|m|/dT
    has_peak    : False when |m| never decreases with T
    refined     : True when the quadratic vertex was used
    """

    temperature: float
    uncertainty: float
    peak_slope: float
    has_peak: bool = True
    refined: bool = False


# ---------------------------------------------------------------------------
# Numerical steps
# ---------------------------------------------------------------------------

def smooth_magnetization(m: np.ndarray) -> np.ndarray:
    """Centred moving average of width 3, first and last points unchanged."""
    m = np.asarray(m, dtype=np.float64)
    if m.size < SMOOTHING_WINDOW:
        return m.copy()
    smoothed = uniform_filter1d(m, size=SMOOTHING_WINDOW, mode="nearest")
    smoothed[0], smoothed[-1] = m[0], m[-1]
    return smoothed


def magnetization_slopes(T: np.ndarray, m: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """(midpoint temperatures, -dm/dT) for ascending T."""
    return 0.5 * (T[1:] + T[:-1]), -np.diff(m) / np.diff(T)


def quadratic_vertex(x: Sequence[float], y: Sequence[float]) -> Optional[float]:
    """
    Vertex of the parabola through three points, if it is a maximum.

    Returns None when the points are degenerate or the parabola opens upward.
    """
    x = np.asarray(x, dtype=np.float64)
    if len(np.unique(x)) != 3:
        return None
    a, b, _ = np.polyfit(x, np.asarray(y, dtype=np.float64), deg=2)
    if not a < 0:
        return None
    return float(-b / (2.0 * a))


def _half_width(slopes: np.ndarray, mids: np.ndarray, peak: int) -> Optional[float]:
    """Half width at half maximum around `peak`; None if the walk cannot widen."""
    half = slopes[peak] / 2.0

    left = peak
    while left > 0 and slopes[left] > half:
        left -= 1
    right = peak
    while right < len(slopes) - 1 and slopes[right] > half:
        right += 1

    if right > left:
        return float(mids[right] - mids[left]) / 2.0
    return None


# ---------------------------------------------------------------------------
# Estimator
# ---------------------------------------------------------------------------

def estimate_critical_temperature(
    measurements: Sequence[TemperatureMeasurement],
    t_range: Optional[Tuple[float, float]] = None,
    n_points: Optional[int] = None,
) -> Optional[CriticalPointEstimate]:
    """
    Estimate Tc from a measurement table (any order).

    Parameters
    ----------
    measurements : TemperatureMeasurement records
    t_range      : (t_min, t_max) accepted for the refined vertex and used by
                   the spacing fallback; defaults to the measured range
    n_points     : point count for the spacing fallback; defaults to the
                   number of distinct measured temperatures

    Returns
    -------
    CriticalPointEstimate, or None with fewer than 6 distinct temperatures
    """
    by_T = sorted(measurements, key=lambda rec: rec.temperature)
    T_all = np.array([rec.temperature for rec in by_T], dtype=np.float64)
    T, first = np.unique(T_all, return_index=True)
    if T.size < MIN_POINTS:
        return None
    m = np.array([by_T[k].magnetization for k in first], dtype=np.float64)

    t_min, t_max = t_range if t_range is not None else (float(T[0]), float(T[-1]))
    n_points = n_points or int(T.size)

    mids, slopes = magnetization_slopes(T, smooth_magnetization(m))
    peak = int(np.argmax(slopes))
    peak_slope = float(slopes[peak])
    Tc = float(mids[peak])

    if peak_slope <= 0:
        _logger.warning("magnetization never decreases with temperature; no peak")
        return CriticalPointEstimate(
            temperature = Tc,
            uncertainty = float(np.clip(Tc * NO_PEAK_FRACTION, UNCERTAINTY_MIN, UNCERTAINTY_MAX)),
            peak_slope  = peak_slope,
            has_peak    = False,
        )

    interior = 0 < peak < len(slopes) - 1
    refined = False
    if interior:
        vertex = quadratic_vertex(mids[peak - 1:peak + 2], slopes[peak - 1:peak + 2])
        if vertex is not None and t_min <= vertex <= t_max:
            Tc, refined = vertex, True

    width = _half_width(slopes, mids, peak) if interior else None
    if width is None:
        width = (t_max - t_min) / n_points
    uncertainty = float(np.clip(width, UNCERTAINTY_MIN, UNCERTAINTY_MAX))

    _logger.info("Tc estimate %.4f +/- %.4f (refined=%s)", Tc, uncertainty, refined)
    return CriticalPointEstimate(
        temperature = Tc,
        uncertainty = uncertainty,
        peak_slope  = peak_slope,
        has_peak    = True,
        refined     = refined,
    )


class CriticalPointEstimator:
    """Estimator bound to the sweep's configured range and point count."""

    def __init__(self, t_min: float, t_max: float, n_points: int) -> None:
        self.t_min = t_min
        self.t_max = t_max
        self.n_points = n_points

    @classmethod
    def from_config(cls, cfg: SweepConfig) -> "CriticalPointEstimator":
        return cls(cfg.t_min, cfg.t_max, cfg.n_points)

    def estimate(
        self, measurements: Sequence[TemperatureMeasurement]
    ) -> Optional[CriticalPointEstimate]:
        return estimate_critical_temperature(
            measurements, t_range=(self.t_min, self.t_max), n_points=self.n_points,
        )


# ---------------------------------------------------------------------------
# Two-stage sampling
# ---------------------------------------------------------------------------

def two_stage_sweep(
    engine: TemperatureSweepEngine,
    cfg: SweepConfig,
    token: Optional[CancellationToken] = None,
    on_progress: Optional[Callable[[SweepProgress], None]] = None,
    driver=None,
) -> Tuple[SweepResult, Optional[CriticalPointEstimate]]:
    """
    Uniform sweep, Tc estimate, then a continuation sweep dense around it.

    The second stage runs only when cfg.two_stage is set, the first stage
    completed, and it produced an estimate. Temperatures already measured
    are skipped by the engine.
    """
    estimator = CriticalPointEstimator.from_config(cfg)

    result = engine.run(
        generate_schedule(cfg.t_min, cfg.t_max, cfg.n_points),
        token=token, on_progress=on_progress, driver=driver,
    )
    estimate = estimator.estimate(result.measurements)
    if result.cancelled or estimate is None or not cfg.two_stage:
        return result, estimate

    _logger.info("second stage around Tc=%.3f (margin %.2f)", estimate.temperature, cfg.margin)
    schedule = generate_adaptive_schedule(
        cfg.t_min, cfg.t_max, cfg.n_points, estimate.temperature, cfg.margin,
    )
    result = engine.run(
        schedule, continuation=True, token=token, on_progress=on_progress,
    )
    refined = estimator.estimate(result.measurements)
    return result, refined if refined is not None else estimate
