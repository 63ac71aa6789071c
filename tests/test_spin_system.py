"""
Unit tests for SpinSystem.

Tests:
- Cached vs recomputed energy after Metropolis dynamics
- Spin domain and magnetization bounds
- Flip delta against an explicit flip
- Resets, initialisation policies, zero temperature, ownership
"""

import numpy as np
import pytest

from graph_ising.errors import ConfigurationError, ExclusiveAccessError
from graph_ising.graph.lattices import generate_lattice
from graph_ising.simulation.observables import energy_per_node
from graph_ising.simulation.spin_system import SpinInit, SpinSystem


class TestEnergyConsistency:
    """The incrementally maintained energy tracks the configuration."""

    @pytest.mark.parametrize("temperature", [0.5, 2.27, 5.0])
    def test_run_steps_lattice(self, square5, temperature):
        system = SpinSystem(square5, seed=1)
        for _ in range(20):
            system.run_steps(temperature, 50)
            assert np.isclose(system.energy, system.calculate_total_energy(),
                              rtol=1e-6, atol=1e-9)

    def test_run_steps_weighted_graph(self, weighted_graph):
        system = SpinSystem(weighted_graph, J=-1.0, seed=7)
        system.run_steps(1.3, 5000)
        assert np.isclose(system.energy, system.calculate_total_energy(),
                          rtol=1e-6, atol=1e-9)

    def test_single_steps(self, weighted_graph):
        system = SpinSystem(weighted_graph, J=0.7, seed=3)
        for _ in range(2000):
            system.metropolis_step(1.0)
        assert np.isclose(system.energy, system.calculate_total_energy(),
                          rtol=1e-6, atol=1e-9)

    def test_matches_vectorised_observable(self, weighted_graph):
        system = SpinSystem(weighted_graph, J=-1.0, seed=11)
        system.run_steps(2.0, 100)
        assert np.isclose(system.energy_per_node(),
                          energy_per_node(system.snapshot(), weighted_graph, J=-1.0))

    def test_reset_all_closed_form(self, square5):
        system = SpinSystem(square5, J=-1.0, seed=0)
        system.reset_all(1)
        # every bond satisfied: E = J * sum of edge weights
        assert system.energy == pytest.approx(-1.0 * square5.total_weight)
        assert system.energy == pytest.approx(-40.0)
        system.reset_all(-1)
        assert system.calculate_total_energy() == pytest.approx(-40.0)

    def test_reset_recomputes_from_scratch(self, square5):
        system = SpinSystem(square5, seed=5)
        system.run_steps(2.0, 100)
        system.reset_random()
        assert system.energy == system.calculate_total_energy()


class TestFlipDelta:

    def test_delta_matches_explicit_flip(self, weighted_graph):
        system = SpinSystem(weighted_graph, J=-1.0, seed=2)
        for i in range(weighted_graph.n):
            before = system.calculate_total_energy()
            delta = system.proposed_flip_delta(i)
            flipped = system.snapshot()
            flipped[i] = -flipped[i]
            system.set_spins(flipped)
            assert np.isclose(system.energy - before, delta)

    def test_delta_does_not_mutate(self, square5):
        system = SpinSystem(square5, seed=2)
        spins, energy = system.snapshot(), system.energy
        system.proposed_flip_delta(12)
        assert np.array_equal(system.snapshot(), spins)
        assert system.energy == energy

    def test_aligned_flip_cost_ferromagnet(self, square5):
        system = SpinSystem(square5, J=-1.0, init="up")
        # interior node, 4 satisfied bonds
        assert system.proposed_flip_delta(12) == pytest.approx(8.0)
        assert system.proposed_flip_delta(0) == pytest.approx(4.0)

    def test_delta_rejects_bad_node(self, square5):
        system = SpinSystem(square5, init="up")
        with pytest.raises(IndexError):
            system.proposed_flip_delta(-1)
        with pytest.raises(IndexError):
            system.proposed_flip_delta(25)


class TestSpinDomain:

    def test_spins_stay_plus_minus_one(self, weighted_graph):
        system = SpinSystem(weighted_graph, seed=4)
        for _ in range(10):
            system.run_steps(1.5, 100)
            assert set(np.unique(system.spins)) <= {-1, 1}

    def test_magnetization_bounds(self, square5):
        system = SpinSystem(square5, seed=8)
        for T in (0.5, 2.0, 10.0):
            system.run_steps(T, 20)
            assert -1.0 <= system.magnetization() <= 1.0
            assert 0.0 <= system.absolute_magnetization() <= 1.0
            assert system.absolute_magnetization() == abs(system.magnetization())

    def test_spins_view_read_only(self, square5):
        system = SpinSystem(square5, seed=0)
        with pytest.raises(ValueError):
            system.spins[0] = 1


class TestInitialisation:

    def test_up_and_down(self, square5):
        assert SpinSystem(square5, init=SpinInit.UP).magnetization() == 1.0
        assert SpinSystem(square5, init="down").magnetization() == -1.0

    def test_balanced(self):
        system = SpinSystem(generate_lattice("square", 4), init="balanced", seed=9)
        assert system.magnetization() == 0.0

    def test_initialize_alias(self, square5):
        system = SpinSystem.initialize(square5, "up", J=-2.0)
        assert system.J == -2.0
        assert system.energy == pytest.approx(-80.0)

    def test_unknown_policy(self, square5):
        with pytest.raises(ConfigurationError):
            SpinSystem(square5, init="sideways")

    def test_seed_reproducible(self, square5):
        a = SpinSystem(square5, seed=123)
        b = SpinSystem(square5, seed=123)
        a.run_steps(2.0, 200)
        b.run_steps(2.0, 200)
        assert np.array_equal(a.spins, b.spins)
        assert a.energy == b.energy

    def test_set_spins_validation(self, square5):
        system = SpinSystem(square5, seed=0)
        with pytest.raises(ConfigurationError):
            system.set_spins(np.zeros(25))
        with pytest.raises(ConfigurationError):
            system.set_spins(np.ones(24))

    def test_reset_all_validation(self, square5):
        with pytest.raises(ConfigurationError):
            SpinSystem(square5).reset_all(0)

    def test_zero_coupling_rejected(self, square5):
        with pytest.raises(ConfigurationError):
            SpinSystem(square5, J=0.0)


class TestDynamics:

    def test_zero_temperature_never_raises_energy(self, square5):
        system = SpinSystem(square5, init="up", seed=0)
        system.run_steps(0.0, 50)
        assert system.magnetization() == 1.0

        system.reset_random()
        energy = system.energy
        for _ in range(500):
            system.metropolis_step(0.0)
            assert system.energy <= energy + 1e-12
            energy = system.energy

    def test_negative_temperature_rejected(self, square5):
        system = SpinSystem(square5)
        with pytest.raises(ConfigurationError):
            system.run_steps(-1.0, 1)
        with pytest.raises(ConfigurationError):
            system.metropolis_step(float("nan"))

    def test_bad_sweep_count(self, square5):
        with pytest.raises(ConfigurationError):
            SpinSystem(square5).run_steps(1.0, -1)

    def test_zero_sweeps_is_noop(self, square5):
        system = SpinSystem(square5, seed=1)
        spins = system.snapshot()
        assert system.run_steps(2.0, 0) == 0
        assert np.array_equal(system.spins, spins)

    def test_ordered_at_low_temperature(self):
        system = SpinSystem(generate_lattice("square", 8), init="up", seed=3)
        system.run_steps(1.0, 500)
        assert system.absolute_magnetization() > 0.9

    def test_disordered_at_high_temperature(self):
        system = SpinSystem(generate_lattice("square", 8), init="up", seed=3)
        system.run_steps(20.0, 500)
        assert system.absolute_magnetization() < 0.5


class TestOwnership:

    def test_exclusive(self, square5):
        system = SpinSystem(square5)
        first, second = object(), object()
        system.acquire(first)
        system.acquire(first)
        with pytest.raises(ExclusiveAccessError):
            system.acquire(second)
        system.release(second)
        assert system.owner is first
        system.release(first)
        system.acquire(second)
        assert system.owner is second
