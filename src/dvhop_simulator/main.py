import os
import time
import random
import argparse
from dvhop_simulator.config.config_handler import ConfigHandler
from dvhop_simulator.core.channel import Channel
from dvhop_simulator.core.simulator import Simulator
from dvhop_simulator.protocols.localization import ESTIMATORS
from dvhop_simulator.topology import assign_beacons, build_grid
from dvhop_simulator.utils import logging
from dvhop_simulator.utils.metrics import Metrics

def beacon_fraction(value: str) -> float:
    fraction = float(value)
    if not 0.0 < fraction <= 1.0:
        raise argparse.ArgumentTypeError(f"beacon fraction must be in (0, 1], got {value}")
    return fraction

def parse_args(argv=None):
    cfg = ConfigHandler()

    parser = argparse.ArgumentParser(description="Run the DV-Hop localization simulator")
    parser.add_argument(
        "--size",
        type=int,
        default=cfg.get('topology', 'size'),
        help="Number of nodes"
    )
    parser.add_argument(
        "--step",
        type=float,
        default=cfg.get('topology', 'step'),
        help="Grid step in metres"
    )
    parser.add_argument(
        "--grid-width",
        type=int,
        default=cfg.get('topology', 'grid_width'),
        help="Nodes per grid row"
    )
    parser.add_argument(
        "--beacon-fraction",
        type=beacon_fraction,
        default=cfg.get('topology', 'beacon_fraction'),
        help="Share of nodes acting as beacons"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=cfg.get('simulation', 'duration'),
        help="Simulation time in seconds"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=cfg.get('simulation', 'seed'),
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--hop-distance",
        type=float,
        default=cfg.get('protocol', 'hop_unit_distance'),
        help="Distance assumed per hop when converting hop counts to ranges"
    )
    parser.add_argument(
        "--estimator",
        choices=ESTIMATORS,
        default=cfg.get('protocol', 'estimator'),
        help="Position estimator"
    )
    parser.add_argument(
        "--ideal",
        action=argparse.BooleanOptionalAction,
        default=cfg.get('simulation', 'ideal_channel'),
        help="Lossless channel"
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Directory for CSV results and table dumps"
    )
    parser.add_argument(
        "--verbose",
        action='store_true',
        help="Enable logging output"
    )
    return parser.parse_args(argv)

def apply_args(cfg: ConfigHandler, args):
    cfg.set('topology', 'size', args.size)
    cfg.set('topology', 'step', args.step)
    cfg.set('topology', 'grid_width', args.grid_width)
    cfg.set('topology', 'beacon_fraction', args.beacon_fraction)
    cfg.set('simulation', 'duration', args.duration)
    cfg.set('simulation', 'seed', args.seed)
    cfg.set('simulation', 'ideal_channel', args.ideal)
    cfg.set('protocol', 'hop_unit_distance', args.hop_distance)
    cfg.set('protocol', 'estimator', args.estimator)

def run_scenario(results_dir=None, seed=None):
    """Build the grid, pick beacons, run to completion. Returns (simulator, metrics)."""
    cfg = ConfigHandler()

    random.seed(seed if seed is not None else time.time())

    metrics = None
    if cfg.get('simulation', 'enable_metrics'):
        metrics = Metrics(beacon_fraction=cfg.get('topology', 'beacon_fraction'))
        metrics.set_simulation_info(
            size=cfg.get('topology', 'size'),
            step=cfg.get('topology', 'step'),
            duration=cfg.get('simulation', 'duration'),
            hop_unit_distance=cfg.get('protocol', 'hop_unit_distance'),
            estimator=cfg.get('protocol', 'estimator'),
            seed=seed,
        )

    channel = Channel(metrics=metrics)
    nodes = build_grid(
        cfg.get('topology', 'size'),
        cfg.get('topology', 'step'),
        cfg.get('topology', 'grid_width'),
        cfg.get('topology', 'network'),
        channel,
        metrics,
    )
    assign_beacons(nodes, cfg.get('topology', 'beacon_fraction'))

    simulator = Simulator(nodes, channel, metrics, output_dir=results_dir)
    logging.log_info(f"Starting simulation for {simulator.duration} s ...")
    simulator.start()
    return simulator, metrics

def main(argv=None):
    cfg = ConfigHandler()
    args = parse_args(argv)
    apply_args(cfg, args)

    logging.configure(
        enabled=args.verbose or cfg.get('simulation', 'enable_logging'),
        level=cfg.get('simulation', 'log_level'),
        log_file=os.path.join(args.results_dir, "simulator.log"),
    )
    os.makedirs(args.results_dir, exist_ok=True)

    simulator, metrics = run_scenario(args.results_dir, args.seed)

    if metrics:
        metrics.export_localization_csv(os.path.join(args.results_dir, "localization_data.csv"))
        summary = metrics.summary(simulator.simulated_time)
        metrics.export_metrics_to_csv(summary, os.path.join(args.results_dir, "summary.csv"))
        print(f"Localized {summary['Localized Ratio']:.0%} of unknown nodes, "
              f"mean error {summary['Mean Localization Error']:.2f} m")

if __name__ == "__main__":
    main()
