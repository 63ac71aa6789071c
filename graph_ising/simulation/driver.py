"""
graph_ising/simulation/driver.py

Real-time animation loop for a SpinSystem.

The driver is a small state machine (IDLE -> RUNNING -> STOPPED) advanced by
an external tick source: a GUI timer or frame callback calls `tick()`, or a
script calls the blocking `run()` loop. Every tick runs `steps_per_tick`
sweeps and publishes a SpinSnapshot to the subscribed observers. Temperature
and steps per tick can be changed live; stopping never resets the spins.
"""

import enum
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from graph_ising.errors import ConfigurationError, ExclusiveAccessError
from graph_ising.simulation.observables import magnetization_signed
from graph_ising.simulation.spin_system import SpinSystem


_logger = logging.getLogger(__name__)


class DriverState(enum.Enum):
    IDLE    = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SpinSnapshot:
    """What one tick publishes to the presentation layer."""

    spins: np.ndarray
    magnetization: float
    absolute_magnetization: float
    energy: float
    temperature: float
    tick: int


Observer = Callable[[SpinSnapshot], None]


def _check_temperature(temperature: float) -> float:
    temperature = float(temperature)
    if not math.isfinite(temperature) or temperature <= 0:
        raise ConfigurationError(f"temperature must be positive, got {temperature!r}")
    return temperature


def _check_steps(steps_per_tick: int) -> int:
    if isinstance(steps_per_tick, bool) or int(steps_per_tick) != steps_per_tick or steps_per_tick < 1:
        raise ConfigurationError(f"steps_per_tick must be an integer >= 1, got {steps_per_tick!r}")
    return int(steps_per_tick)


class SimulationDriver:
    """
    Tick-driven Metropolis animation.

    Examples
    --------
    >>> driver = SimulationDriver()
    >>> driver.subscribe(lambda snap: print(snap.tick, snap.magnetization))
    >>> driver.start(system, temperature=1.5, steps_per_tick=100)
    >>> driver.run(ticks=10)
    >>> driver.stop()
    """

    def __init__(self) -> None:
        self.state: DriverState = DriverState.IDLE
        self.system: Optional[SpinSystem] = None
        self.temperature: float = 0.0
        self.steps_per_tick: int = 0
        self.ticks: int = 0
        self._observers: List[Observer] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.state is DriverState.RUNNING

    def start(
        self,
        system: SpinSystem,
        temperature: float,
        steps_per_tick: int,
        settle_sweeps: int = 0,
    ) -> None:
        """
        Take ownership of `system` and enter RUNNING.

        settle_sweeps are run once before the first tick so the first frame
        is already near the requested temperature.
        """
        if self.is_running:
            raise ExclusiveAccessError("driver is already running; stop it first")

        temperature    = _check_temperature(temperature)
        steps_per_tick = _check_steps(steps_per_tick)
        if settle_sweeps < 0:
            raise ConfigurationError(f"settle_sweeps must be >= 0, got {settle_sweeps}")

        system.acquire(self)
        self.system         = system
        self.temperature    = temperature
        self.steps_per_tick = steps_per_tick
        self.ticks          = 0
        self.state          = DriverState.RUNNING

        _logger.info("driver started: T=%.3f, %d sweeps/tick", temperature, steps_per_tick)
        if settle_sweeps:
            self._guarded(lambda: system.run_steps(temperature, settle_sweeps))

    def update(
        self,
        temperature: Optional[float] = None,
        steps_per_tick: Optional[int] = None,
    ) -> None:
        """Change parameters live; they apply from the next tick."""
        if temperature is not None:
            self.temperature = _check_temperature(temperature)
        if steps_per_tick is not None:
            self.steps_per_tick = _check_steps(steps_per_tick)

    def stop(self) -> None:
        """RUNNING -> STOPPED. Idempotent; spins are left as they are."""
        if not self.is_running:
            return
        self.state = DriverState.STOPPED
        if self.system is not None:
            self.system.release(self)
        _logger.info("driver stopped after %d ticks", self.ticks)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self) -> Optional[SpinSnapshot]:
        """Advance one frame. Returns None when not running."""
        if not self.is_running:
            return None

        system = self.system
        self._guarded(lambda: system.run_steps(self.temperature, self.steps_per_tick))
        self.ticks += 1

        spins = system.snapshot()
        m = magnetization_signed(spins)
        snapshot = SpinSnapshot(
            spins                  = spins,
            magnetization          = m,
            absolute_magnetization = abs(m),
            energy                 = system.energy,
            temperature            = self.temperature,
            tick                   = self.ticks,
        )
        for observer in list(self._observers):
            observer(snapshot)
        return snapshot

    def run(
        self,
        ticks: Optional[int] = None,
        interval: float = 0.0,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> int:
        """
        Blocking tick loop for hosts without their own scheduler.

        Stops ticking (without stopping the driver) after `ticks` frames or
        when should_continue() returns False; ends early if an observer calls
        stop(). Returns the number of ticks run.
        """
        done = 0
        while self.is_running and (ticks is None or done < ticks):
            if should_continue is not None and not should_continue():
                break
            self.tick()
            done += 1
            if interval > 0:
                time.sleep(interval)
        return done

    def _guarded(self, work: Callable[[], object]) -> None:
        """Run simulation work; any error stops the driver and propagates."""
        try:
            work()
        except Exception:
            _logger.exception("error in simulation tick, stopping driver")
            self.stop()
            raise
