"""
Tests for the YAML-backed configuration objects.
"""

from pathlib import Path

import pytest

from graph_ising.config import (
    LatticeConfig,
    RealtimeConfig,
    SimulationConfig,
    SweepConfig,
)
from graph_ising.errors import ConfigurationError


REPO_CONFIG = Path(__file__).resolve().parent.parent / "configs" / "simulation.yaml"


class TestDefaults:

    def test_sweep_defaults(self):
        cfg = SweepConfig()
        assert (cfg.t_min, cfg.t_max, cfg.n_points) == (0.5, 4.0, 20)
        assert (cfg.equilibration_sweeps, cfg.measurement_sweeps, cfg.n_trials) == (5000, 500, 50)
        assert cfg.chunk_sweeps == 2000

    def test_realtime_defaults(self):
        cfg = RealtimeConfig()
        assert cfg.temperature == 1.5
        assert cfg.steps_per_tick == 100
        assert cfg.settle_sweeps == 200

    def test_root_defaults(self):
        cfg = SimulationConfig()
        assert cfg.coupling == -1.0
        assert cfg.seed is None
        assert cfg.lattice == LatticeConfig("square", 5)


class TestValidation:

    @pytest.mark.parametrize("kwargs", [
        dict(t_min=0.0),
        dict(t_min=3.0, t_max=2.0),
        dict(n_points=1),
        dict(n_points=True),
        dict(n_trials=0),
        dict(measurement_sweeps=0),
        dict(equilibration_sweeps=-1),
        dict(margin=0.0),
    ])
    def test_bad_sweep(self, kwargs):
        with pytest.raises(ConfigurationError):
            SweepConfig(**kwargs)

    def test_bad_lattice(self):
        with pytest.raises(ConfigurationError):
            LatticeConfig("cubic", 5)
        with pytest.raises(ConfigurationError):
            LatticeConfig("square", 1)

    def test_bad_realtime(self):
        with pytest.raises(ConfigurationError):
            RealtimeConfig(temperature=-1.0)
        with pytest.raises(ConfigurationError):
            RealtimeConfig(steps_per_tick=0)

    def test_bad_root(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(coupling=0.0)
        with pytest.raises(ConfigurationError):
            SimulationConfig(seed=-3)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SweepConfig(n_points=0)


class TestLoading:

    def test_from_dict_wrapped_and_bare(self):
        body = {"seed": 1, "sweep": {"n_points": 8}}
        wrapped = SimulationConfig.from_dict({"simulation": body})
        bare = SimulationConfig.from_dict(body)
        assert wrapped == bare
        assert wrapped.sweep.n_points == 8
        assert wrapped.sweep.t_max == 4.0

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigurationError, match="temprature"):
            SimulationConfig.from_dict({"realtime": {"temprature": 2.0}})
        with pytest.raises(ConfigurationError, match="lattices"):
            SimulationConfig.from_dict({"lattices": {}})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "sim.yaml"
        path.write_text(
            "simulation:\n"
            "  coupling: 1.0\n"
            "  lattice: {kind: hexagonal, size: 3}\n"
            "  sweep:\n"
            "    t_min: 1.0\n"
            "    t_max: 3.0\n"
            "    two_stage: false\n"
        )
        cfg = SimulationConfig.from_yaml(str(path))
        assert cfg.coupling == 1.0
        assert cfg.lattice.kind == "hexagonal"
        assert cfg.sweep.t_min == 1.0
        assert cfg.sweep.two_stage is False

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SimulationConfig.from_yaml(str(path)) == SimulationConfig()

    def test_repo_config_loads(self):
        cfg = SimulationConfig.from_yaml(str(REPO_CONFIG))
        assert cfg.seed == 42
        assert cfg.lattice.kind == "square"
        assert cfg.sweep.n_points == 20
