"""
scripts/run_sweep.py

CLI entry point for a temperature sweep with Tc estimation.

Examples
--------
# Default config (5x5 square lattice, two-stage sampling):
python scripts/run_sweep.py

# Custom graph from an edge list (row,col,weight; 1-based):
python scripts/run_sweep.py --graph data/my_graph.csv

# Built-in lattice override and a plot:
python scripts/run_sweep.py --lattice triangular --size 6 --plot sweep.png

# Quick smoke test (small, fast):
python scripts/run_sweep.py --smoke-test

Ctrl-C cancels the sweep cooperatively; measurements taken so far are kept.
"""

import argparse
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path

from tqdm import tqdm

# Make sure the package root is on the path when running as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from graph_ising.analysis.critical_point import two_stage_sweep
from graph_ising.config import LatticeConfig, SimulationConfig, SweepConfig
from graph_ising.graph.lattices import generate_lattice, known_critical_temperature
from graph_ising.graph.model import GraphModel
from graph_ising.simulation.spin_system import SpinSystem
from graph_ising.sweep.engine import CancellationToken, TemperatureSweepEngine


def parse_args():
    parser = argparse.ArgumentParser(
        description="Estimate the critical temperature of an Ising model on a graph."
    )
    parser.add_argument(
        "--config", default="configs/simulation.yaml",
        help="Path to simulation YAML config (default: configs/simulation.yaml)"
    )
    parser.add_argument(
        "--graph", default=None,
        help="Edge-list file (row,col,weight per line); overrides the lattice"
    )
    parser.add_argument("--lattice", choices=["square", "triangular", "hexagonal"],
                        default=None, help="Built-in lattice kind (overrides yaml)")
    parser.add_argument("--size", type=int, default=None,
                        help="Built-in lattice linear size (overrides yaml)")
    parser.add_argument("--plot", default=None,
                        help="Save a summary figure to this path")
    parser.add_argument("--smoke-test", action="store_true",
                        help="Quick test: 5x5 square lattice, few sweeps")
    parser.add_argument("--log-level", default=None,
                        help="Enable library logging at this level (e.g. INFO)")
    parser.add_argument("--quiet", action="store_true", help="No progress output")
    return parser.parse_args()


def load_config(args) -> SimulationConfig:
    if args.smoke_test:
        return SimulationConfig(
            seed    = 42,
            lattice = LatticeConfig("square", 5),
            sweep   = SweepConfig(
                t_min=1.0, t_max=4.0, n_points=12,
                equilibration_sweeps=500, measurement_sweeps=20, n_trials=10,
            ),
        )

    cfg = (SimulationConfig.from_yaml(args.config)
           if Path(args.config).exists() else SimulationConfig())
    if args.lattice is not None or args.size is not None:
        cfg = replace(cfg, lattice=LatticeConfig(
            kind = args.lattice or cfg.lattice.kind,
            size = args.size or cfg.lattice.size,
        ))
    return cfg


def main():
    args = parse_args()
    if args.log_level:
        logging.basicConfig(level=args.log_level.upper(),
                            format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    cfg     = load_config(args)
    verbose = not args.quiet

    if args.graph:
        graph    = GraphModel.from_file(args.graph)
        known_tc = None
        label    = args.graph
    else:
        graph    = generate_lattice(cfg.lattice.kind, cfg.lattice.size)
        known_tc = known_critical_temperature(cfg.lattice.kind)
        label    = f"{cfg.lattice.kind} {cfg.lattice.size}x{cfg.lattice.size}"

    stats = graph.stats()
    sw    = cfg.sweep
    if verbose:
        print(f"\n{'='*60}")
        print(f"Graph: {label}  nodes={stats.nodes}  edges={stats.edges}  "
              f"<k>={stats.average_degree:.2f}  isolated={stats.isolated_nodes}")
        print(f"Temperatures: {sw.n_points} points in [{sw.t_min:.3f}, {sw.t_max:.3f}]"
              f"{'  (two-stage)' if sw.two_stage else ''}")
        print(f"Eq={sw.equilibration_sweeps}  Ms={sw.measurement_sweeps}  K={sw.n_trials}  "
              f"J={cfg.coupling}")
        print(f"{'='*60}\n")

    system = SpinSystem(graph, J=cfg.coupling, seed=cfg.seed)
    engine = TemperatureSweepEngine.from_config(system, sw)
    token  = CancellationToken()
    signal.signal(signal.SIGINT, lambda *_: token.cancel())

    with tqdm(total=100, disable=not verbose, unit="%",
              bar_format="{l_bar}{bar}| {n:.0f}/{total}% [{elapsed}<{remaining}]") as bar:
        def on_progress(progress):
            bar.n = round(100 * progress.fraction, 1)
            if progress.temperature is not None:
                bar.set_postfix_str(f"T={progress.temperature:.3f} {progress.phase}")
            bar.refresh()

        result, estimate = two_stage_sweep(engine, sw, token=token, on_progress=on_progress)

    if verbose:
        print(f"\n  {'T':>7}  {'|m|':>7}  {'sd':>7}  {'E/n':>8}")
        for rec in result.measurements:
            print(f"  {rec.temperature:7.3f}  {rec.magnetization:7.4f}  "
                  f"{rec.std_dev:7.4f}  {rec.energy:8.4f}")
        print(f"\nStatus: {result.status.value}  ({result.elapsed:.1f}s)")

    if estimate is None:
        print("Not enough measurements for a Tc estimate (need at least 6).")
    else:
        print(f"Tc estimate: {estimate.temperature:.4f} +/- {estimate.uncertainty:.4f}")
        if known_tc is not None:
            print(f"Theory (infinite lattice): {known_tc:.2f}  "
                  f"(difference {abs(estimate.temperature - known_tc):.4f})")

    if args.plot and result.measurements:
        from graph_ising.visualization.sweep_plot import plot_summary
        plot_summary(result.measurements, estimate, known_tc, save_path=args.plot)
        print(f"Figure saved: {args.plot}")


if __name__ == "__main__":
    main()
