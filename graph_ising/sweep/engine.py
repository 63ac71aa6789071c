"""
graph_ising/sweep/engine.py

Temperature sweep: equilibrate, measure, aggregate, one temperature at a time.

Protocol per temperature T (Eq, Ms, K from the engine settings):
    1. Equilibration : Eq sweeps at T, in chunks of at most `chunk_sweeps`
    2. Measurement   : K trials of Ms sweeps, recording |m| and E/n after each
    3. Aggregation   : mean / std of |m|, mean E/n -> TemperatureMeasurement

The spin configuration is carried over from one temperature to the next
(hot start on a fresh sweep, schedules run hot to cold). Work is chunked and
every chunk / trial boundary is a checkpoint: the cancellation token is
checked and a SweepProgress is yielded, which is where a host event loop gets
control back. A cancelled temperature is never recorded.

Usage:
    engine = TemperatureSweepEngine(system, equilibration_sweeps=5000,
                                    measurement_sweeps=500, n_trials=50)
    result = engine.run(generate_schedule(1.0, 4.0, 20))
"""

import bisect
import enum
import logging
import math
import time
from contextlib import closing
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from graph_ising.config import SweepConfig
from graph_ising.errors import Cancelled, ConfigurationError
from graph_ising.simulation.driver import SimulationDriver
from graph_ising.simulation.observables import aggregate_trials
from graph_ising.simulation.spin_system import SpinSystem
from graph_ising.sweep.schedule import is_measured


_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TemperatureMeasurement:
    """Aggregated result at one temperature."""

    temperature: float
    magnetization: float
    std_dev: float
    error_low: float
    error_high: float
    energy: Optional[float] = None
    n_trials: int = 0

    @classmethod
    def from_trials(
        cls,
        temperature: float,
        m_trials: Sequence[float],
        E_trials: Optional[Sequence[float]] = None,
    ) -> "TemperatureMeasurement":
        stats = aggregate_trials(m_trials, E_trials)
        return cls(
            temperature   = float(temperature),
            magnetization = stats["m_mean"],
            std_dev       = stats["m_std"],
            error_low     = stats["error_low"],
            error_high    = stats["error_high"],
            energy        = stats["E_mean"],
            n_trials      = stats["n_trials"],
        )


class SweepStatus(enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SweepProgress:
    """
    Checkpoint report.

    fraction     : overall progress in [0, 1]
    temperature  : temperature being processed (None once done)
    phase        : "equilibration", "measurement", "recorded" or "done"
    measurements : recorded measurements so far, ascending in temperature
    """

    fraction: float
    temperature: Optional[float]
    phase: str
    measurements: Tuple[TemperatureMeasurement, ...]


@dataclass(frozen=True)
class SweepResult:
    status: SweepStatus
    measurements: Tuple[TemperatureMeasurement, ...]
    elapsed: float

    @property
    def cancelled(self) -> bool:
        return self.status is SweepStatus.CANCELLED


class CancellationToken:
    """Cooperative cancellation flag shared between a host and the engine."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise Cancelled("sweep cancelled")


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TemperatureSweepEngine:
    """
    Equilibration-and-measurement sweep over a temperature schedule.

    Parameters
    ----------
    system               : SpinSystem to drive (taken exclusively while running)
    equilibration_sweeps : burn-in sweeps per temperature (Eq)
    measurement_sweeps   : sweeps before each recorded trial (Ms)
    n_trials             : recorded trials per temperature (K)
    chunk_sweeps         : max equilibration sweeps between checkpoints
    """

    def __init__(
        self,
        system: SpinSystem,
        equilibration_sweeps: int = 5000,
        measurement_sweeps: int = 500,
        n_trials: int = 50,
        chunk_sweeps: int = 2000,
    ) -> None:
        for name, value, minimum in (
            ("equilibration_sweeps", equilibration_sweeps, 0),
            ("measurement_sweeps",   measurement_sweeps,   1),
            ("n_trials",             n_trials,             1),
            ("chunk_sweeps",         chunk_sweeps,         1),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")

        self.system               = system
        self.equilibration_sweeps = equilibration_sweeps
        self.measurement_sweeps   = measurement_sweeps
        self.n_trials             = n_trials
        self.chunk_sweeps         = chunk_sweeps
        self._measurements: List[TemperatureMeasurement] = []

    @classmethod
    def from_config(cls, system: SpinSystem, cfg: SweepConfig) -> "TemperatureSweepEngine":
        return cls(
            system,
            equilibration_sweeps = cfg.equilibration_sweeps,
            measurement_sweeps   = cfg.measurement_sweeps,
            n_trials             = cfg.n_trials,
            chunk_sweeps         = cfg.chunk_sweeps,
        )

    # ------------------------------------------------------------------
    # Recorded measurements
    # ------------------------------------------------------------------

    @property
    def measurements(self) -> Tuple[TemperatureMeasurement, ...]:
        return tuple(self._measurements)

    def clear(self) -> None:
        self._measurements.clear()

    def _record(self, measurement: TemperatureMeasurement) -> None:
        keys = [m.temperature for m in self._measurements]
        self._measurements.insert(bisect.bisect(keys, measurement.temperature), measurement)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(
        self,
        temperatures: Iterable[float],
        continuation: bool = False,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[Callable[[SweepProgress], None]] = None,
        driver: Optional[SimulationDriver] = None,
    ) -> SweepResult:
        """
        Run the whole schedule, blocking.

        Cancellation is reported through the result status, not raised.
        Measurements recorded before the cancellation are kept.
        """
        t_start = time.time()
        status = SweepStatus.COMPLETED
        try:
            with closing(self.iter_run(temperatures, continuation, token, driver)) as steps:
                for progress in steps:
                    if on_progress is not None:
                        on_progress(progress)
        except Cancelled:
            status = SweepStatus.CANCELLED
            _logger.info("sweep cancelled with %d measurement(s) recorded",
                         len(self._measurements))

        return SweepResult(
            status       = status,
            measurements = self.measurements,
            elapsed      = time.time() - t_start,
        )

    def iter_run(
        self,
        temperatures: Iterable[float],
        continuation: bool = False,
        token: Optional[CancellationToken] = None,
        driver: Optional[SimulationDriver] = None,
    ) -> Iterator[SweepProgress]:
        """
        Generator form of `run`, yielding a SweepProgress at every checkpoint.

        Raises Cancelled out of the generator when the token is set. The
        system stays acquired until the generator finishes or is closed, so
        a host that stops iterating early must call `close()` on it (or use
        `contextlib.closing`).
        """
        schedule = [float(T) for T in temperatures]
        for T in schedule:
            if not math.isfinite(T) or T <= 0:
                raise ConfigurationError(f"sweep temperatures must be positive, got {T!r}")
        token = token or CancellationToken()

        # Hand-off: the animation loop must not touch the system during a sweep
        if driver is not None and driver.is_running:
            driver.stop()
        self.system.acquire(self)

        try:
            if not continuation:
                self.clear()
                self.system.reset_random()

            n_T = len(schedule)
            _logger.info(
                "sweep over %d temperatures (Eq=%d, Ms=%d, K=%d, continuation=%s)",
                n_T, self.equilibration_sweeps, self.measurement_sweeps,
                self.n_trials, continuation,
            )

            for t_idx, T in enumerate(schedule):
                token.raise_if_cancelled()
                if is_measured(T, (m.temperature for m in self._measurements)):
                    _logger.debug("skipping already measured T=%.3f", T)
                    continue
                yield from self._measure_point(T, t_idx, n_T, token)

            yield SweepProgress(1.0, None, "done", self.measurements)
        finally:
            self.system.release(self)

    def _measure_point(
        self,
        T: float,
        t_idx: int,
        n_T: int,
        token: CancellationToken,
    ) -> Iterator[SweepProgress]:
        work = self.equilibration_sweeps + self.n_trials * self.measurement_sweeps
        done = 0

        def progress(phase: str) -> SweepProgress:
            fraction = (t_idx + done / work) / n_T if work else t_idx / n_T
            return SweepProgress(min(fraction, 1.0), T, phase, self.measurements)

        # 1. Equilibration, chunked
        for start in range(0, self.equilibration_sweeps, self.chunk_sweeps):
            token.raise_if_cancelled()
            n_sweeps = min(self.chunk_sweeps, self.equilibration_sweeps - start)
            self.system.run_steps(T, n_sweeps)
            done += n_sweeps
            yield progress("equilibration")

        # 2. Measurement trials
        m_trials: List[float] = []
        E_trials: List[float] = []
        for _ in range(self.n_trials):
            token.raise_if_cancelled()
            self.system.run_steps(T, self.measurement_sweeps)
            m_trials.append(self.system.absolute_magnetization())
            E_trials.append(self.system.energy_per_node())
            done += self.measurement_sweeps
            yield progress("measurement")

        # 3. Aggregate; only a complete point is ever recorded
        token.raise_if_cancelled()
        measurement = TemperatureMeasurement.from_trials(T, m_trials, E_trials)
        self._record(measurement)
        _logger.info(
            "T=%.3f  |m|=%.4f +/- %.4f  E/n=%.4f",
            T, measurement.magnetization, measurement.std_dev, measurement.energy,
        )
        yield progress("recorded")
