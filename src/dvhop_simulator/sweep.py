import os
import argparse
from itertools import product
from multiprocessing import Pool
import pandas as pd
from tqdm import tqdm
from dvhop_simulator.config.config_handler import ConfigHandler
from dvhop_simulator.main import beacon_fraction, run_scenario
from dvhop_simulator.topology import BEACON_FRACTIONS

def parse_args(argv=None):
    cfg = ConfigHandler()

    parser = argparse.ArgumentParser(description="Sweep DV-Hop scenarios over beacon fractions and seeds")
    parser.add_argument("--fractions", type=beacon_fraction, nargs="+", default=list(BEACON_FRACTIONS),
                        help="Beacon fractions to simulate")
    parser.add_argument("--seeds", type=int, default=5, help="Runs per beacon fraction")
    parser.add_argument("--duration", type=float, default=cfg.get('simulation', 'duration'),
                        help="Simulation time in seconds")
    parser.add_argument("--processes", type=int, default=os.cpu_count() or 1,
                        help="Worker processes")
    parser.add_argument("--results-dir", type=str, default="results",
                        help="Directory for the aggregated CSV files")
    return parser.parse_args(argv)

def simulation_worker(task):
    fraction, seed, duration = task
    cfg = ConfigHandler()
    cfg.set('topology', 'beacon_fraction', fraction)
    cfg.set('simulation', 'duration', duration)
    cfg.set('simulation', 'enable_metrics', True)
    cfg.set('simulation', 'print_routes_at', None)
    cfg.set('simulation', 'print_distances_at', None)

    simulator, metrics = run_scenario(results_dir=None, seed=seed)
    summary = metrics.summary(simulator.simulated_time)
    summary["Beacon Fraction"] = fraction
    return summary

def run_sweep(fractions, seeds, duration, processes) -> pd.DataFrame:
    tasks = [(fraction, seed, duration) for fraction, seed in product(fractions, range(seeds))]

    rows = []
    with Pool(processes=processes) as pool:
        with tqdm(total=len(tasks), desc="Simulating scenarios", unit="run") as pbar:
            for summary in pool.imap_unordered(simulation_worker, tasks):
                rows.append(summary)
                pbar.update(1)
    return pd.DataFrame(rows)

def aggregate(results: pd.DataFrame) -> pd.DataFrame:
    grouped = results.groupby("Beacon Fraction")
    return pd.DataFrame({
        "Runs": grouped.size(),
        "Mean Localization Error": grouped["Mean Localization Error"].mean(),
        "Std Localization Error": grouped["Mean Localization Error"].std(),
        "Localized Ratio": grouped["Localized Ratio"].mean(),
    }).reset_index()

def main(argv=None):
    ConfigHandler()
    args = parse_args(argv)

    results = run_sweep(args.fractions, args.seeds, args.duration, args.processes)
    os.makedirs(args.results_dir, exist_ok=True)
    results.to_csv(os.path.join(args.results_dir, "sweep_runs.csv"), index=False)

    table = aggregate(results)
    table.to_csv(os.path.join(args.results_dir, "sweep_summary.csv"), index=False)
    print(table.to_string(index=False))

if __name__ == "__main__":
    main()
