"""
Unit tests for the real-time SimulationDriver state machine.
"""

import numpy as np
import pytest

from graph_ising.errors import ConfigurationError, ExclusiveAccessError
from graph_ising.simulation.driver import DriverState, SimulationDriver
from graph_ising.simulation.spin_system import SpinSystem


@pytest.fixture
def system(square5):
    return SpinSystem(square5, seed=21)


class TestStateMachine:

    def test_initially_idle(self):
        driver = SimulationDriver()
        assert driver.state is DriverState.IDLE
        assert driver.tick() is None

    def test_start_tick_stop(self, system):
        driver = SimulationDriver()
        driver.start(system, temperature=2.0, steps_per_tick=5)
        assert driver.state is DriverState.RUNNING
        assert system.owner is driver

        snap = driver.tick()
        assert snap.tick == 1
        assert snap.temperature == 2.0
        assert snap.spins.shape == (25,)
        assert snap.absolute_magnetization == abs(snap.magnetization)
        assert snap.energy == pytest.approx(system.calculate_total_energy())

        driver.stop()
        assert driver.state is DriverState.STOPPED
        assert system.owner is None
        assert driver.tick() is None

    def test_stop_idempotent_and_keeps_spins(self, system):
        driver = SimulationDriver()
        driver.start(system, 2.0, 5)
        driver.tick()
        spins = system.snapshot()
        driver.stop()
        driver.stop()
        assert driver.state is DriverState.STOPPED
        assert np.array_equal(system.spins, spins)

    def test_restart_after_stop(self, system):
        driver = SimulationDriver()
        driver.start(system, 2.0, 5)
        driver.stop()
        driver.start(system, 1.0, 3)
        assert driver.is_running
        assert driver.tick().tick == 1
        driver.stop()

    def test_start_twice_rejected(self, system):
        driver = SimulationDriver()
        driver.start(system, 2.0, 5)
        with pytest.raises(ExclusiveAccessError):
            driver.start(system, 2.0, 5)
        driver.stop()

    def test_second_driver_cannot_share_system(self, system):
        first, second = SimulationDriver(), SimulationDriver()
        first.start(system, 2.0, 5)
        with pytest.raises(ExclusiveAccessError):
            second.start(system, 2.0, 5)
        assert second.state is DriverState.IDLE
        first.stop()

    def test_invalid_parameters(self, system):
        driver = SimulationDriver()
        with pytest.raises(ConfigurationError):
            driver.start(system, 0.0, 5)
        with pytest.raises(ConfigurationError):
            driver.start(system, 2.0, 0)
        assert system.owner is None

    def test_settle_sweeps_applied(self, square5):
        system = SpinSystem(square5, init="up", seed=1)
        driver = SimulationDriver()
        driver.start(system, 50.0, 1, settle_sweeps=200)
        assert system.absolute_magnetization() < 1.0
        driver.stop()


class TestLiveUpdates:

    def test_update_while_running(self, system):
        driver = SimulationDriver()
        driver.start(system, 2.0, 5)
        driver.update(temperature=3.5, steps_per_tick=2)
        snap = driver.tick()
        assert snap.temperature == 3.5
        assert driver.steps_per_tick == 2
        driver.stop()

    def test_update_validated(self, system):
        driver = SimulationDriver()
        driver.start(system, 2.0, 5)
        with pytest.raises(ConfigurationError):
            driver.update(temperature=-1.0)
        assert driver.temperature == 2.0
        driver.stop()


class TestObserversAndLoop:

    def test_observers_receive_snapshots(self, system):
        driver = SimulationDriver()
        seen = []
        driver.subscribe(seen.append)
        driver.start(system, 2.0, 1)
        assert driver.run(ticks=4) == 4
        assert [s.tick for s in seen] == [1, 2, 3, 4]
        driver.unsubscribe(seen.append)
        driver.tick()
        assert len(seen) == 4
        driver.stop()

    def test_observer_can_stop_loop(self, system):
        driver = SimulationDriver()
        driver.subscribe(lambda snap: driver.stop() if snap.tick == 3 else None)
        driver.start(system, 2.0, 1)
        assert driver.run() == 3
        assert driver.state is DriverState.STOPPED

    def test_should_continue(self, system):
        driver = SimulationDriver()
        driver.start(system, 2.0, 1)
        assert driver.run(should_continue=lambda: driver.ticks < 2) == 2
        assert driver.is_running
        driver.stop()

    def test_observer_error_propagates(self, system):
        driver = SimulationDriver()

        def broken(snap):
            raise RuntimeError("render failed")

        driver.subscribe(broken)
        driver.start(system, 2.0, 1)
        with pytest.raises(RuntimeError):
            driver.tick()
        driver.stop()
