"""
scripts/simulate_realtime.py

Terminal front end for the real-time simulation loop.

Examples
--------
# 200 frames at the configured temperature:
python scripts/simulate_realtime.py --ticks 200

# Anneal live from T=4.0 down to T=1.0 over 300 frames:
python scripts/simulate_realtime.py --temperature 4.0 --ramp-to 1.0 --ticks 300
"""

import argparse
import signal
import sys
from pathlib import Path

from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from graph_ising.config import SimulationConfig
from graph_ising.graph.lattices import generate_lattice
from graph_ising.graph.model import GraphModel
from graph_ising.simulation.driver import SimulationDriver
from graph_ising.simulation.spin_system import SpinSystem


def parse_args():
    parser = argparse.ArgumentParser(description="Real-time Ising simulation on a graph.")
    parser.add_argument("--config", default="configs/simulation.yaml")
    parser.add_argument("--graph", default=None, help="Edge-list file; overrides the lattice")
    parser.add_argument("--ticks", type=int, default=100)
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--ramp-to", type=float, default=None,
                        help="Change the temperature linearly to this value while running")
    parser.add_argument("--init", choices=["random", "up", "down", "balanced"], default="random")
    return parser.parse_args()


def main():
    args = parse_args()
    cfg  = (SimulationConfig.from_yaml(args.config)
            if Path(args.config).exists() else SimulationConfig())
    rt   = cfg.realtime

    graph = (GraphModel.from_file(args.graph) if args.graph
             else generate_lattice(cfg.lattice.kind, cfg.lattice.size))
    system = SpinSystem(graph, J=cfg.coupling, init=args.init, seed=cfg.seed)

    T_start = args.temperature if args.temperature is not None else rt.temperature
    T_end   = args.ramp_to if args.ramp_to is not None else T_start

    driver = SimulationDriver()
    signal.signal(signal.SIGINT, lambda *_: driver.stop())

    with tqdm(total=args.ticks, unit="frame") as bar:
        def show(snap):
            bar.update(1)
            bar.set_postfix_str(
                f"T={snap.temperature:.3f} m={snap.magnetization:+.3f} E={snap.energy:.1f}"
            )
            if args.ticks > 1 and T_end != T_start:
                frac = snap.tick / (args.ticks - 1)
                driver.update(temperature=T_start + (T_end - T_start) * min(frac, 1.0))

        driver.subscribe(show)
        driver.start(system, T_start, rt.steps_per_tick, settle_sweeps=rt.settle_sweeps)
        driver.run(ticks=args.ticks, interval=rt.interval)
        driver.stop()

    print(f"\nFinal: |m|={system.absolute_magnetization():.4f}  "
          f"E/n={system.energy_per_node():.4f}  ({driver.ticks} frames)")


if __name__ == "__main__":
    main()
