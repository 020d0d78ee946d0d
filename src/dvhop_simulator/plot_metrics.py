import os
import argparse
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

def final_snapshot(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["Time"] == df["Time"].max()]

def plot_positions(localization_csv, plot_dir):
    df = final_snapshot(pd.read_csv(localization_csv))
    beacons = df[df["Beacon"].astype(bool)] if "Beacon" in df else df.iloc[0:0]
    unknown = df.drop(beacons.index)
    located = unknown.dropna(subset=["EstimatedX", "EstimatedY"])

    fig, ax = plt.subplots(figsize=(8, 8))

    ax.scatter(unknown["RealX"], unknown["RealY"], c="tab:blue", marker="o", label="Unknown node (true)")
    ax.scatter(located["EstimatedX"], located["EstimatedY"], c="tab:orange", marker="x", label="Estimate")
    ax.scatter(beacons["RealX"], beacons["RealY"], c="tab:red", marker="^", s=80, label="Beacon")

    # Error segments from truth to estimate
    for _, row in located.iterrows():
        ax.plot([row["RealX"], row["EstimatedX"]], [row["RealY"], row["EstimatedY"]],
                color="gray", linewidth=0.6, alpha=0.7)

    ax.set_xlabel("x (m)")
    ax.set_ylabel("y (m)")
    ax.set_title(f"True vs Estimated Positions (t = {df['Time'].max():.1f}s)")
    ax.set_aspect("equal", adjustable="datalim")
    ax.legend()
    ax.grid(linestyle="--", alpha=0.6)
    plt.tight_layout()
    plt.savefig(os.path.join(plot_dir, "positions.png"))
    plt.close(fig)

def plot_error_per_node(localization_csv, plot_dir):
    df = final_snapshot(pd.read_csv(localization_csv))
    if "Beacon" in df:
        df = df[~df["Beacon"].astype(bool)]
    df = df.sort_values("Node")

    x = np.arange(len(df))
    fig, ax = plt.subplots(figsize=(12, 5))
    ax.bar(x, df["LocalizationError"].fillna(0.0), color="tab:blue")

    # Nodes without a fix are marked instead of plotted as zero error
    missing = df["LocalizationError"].isna().to_numpy()
    if missing.any():
        ax.scatter(x[missing], np.zeros(missing.sum()), color="tab:red", marker="x", label="No estimate")
        ax.legend()

    mean_error = df["LocalizationError"].mean()
    if not np.isnan(mean_error):
        ax.axhline(mean_error, color="tab:orange", linestyle="--", label=f"Mean {mean_error:.1f} m")
        ax.legend()

    ax.set_xticks(x)
    ax.set_xticklabels([str(n) for n in df["Node"]], rotation=90, fontsize=7)
    ax.set_xlabel("Node")
    ax.set_ylabel("Localization Error (m)")
    ax.set_title("Localization Error per Unknown Node")
    ax.grid(axis="y", linestyle="--", alpha=0.6)
    plt.tight_layout()
    plt.savefig(os.path.join(plot_dir, "error_per_node.png"))
    plt.close(fig)

def plot_error_over_time(localization_csv, plot_dir):
    df = pd.read_csv(localization_csv)
    if "Beacon" in df:
        df = df[~df["Beacon"].astype(bool)]
    grouped = df.groupby("Time")
    mean_error = grouped["LocalizationError"].mean()
    located = grouped["LocalizationError"].apply(lambda s: s.notna().mean())

    fig, ax1 = plt.subplots(figsize=(10, 6))
    ax1.plot(mean_error.index, mean_error.values, marker="o", color="tab:blue", label="Mean error")
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("Mean Localization Error (m)")

    ax2 = ax1.twinx()
    ax2.plot(located.index, located.values, marker="s", color="tab:green", label="Localized ratio")
    ax2.set_ylabel("Localized Ratio")
    ax2.set_ylim(0, 1.05)

    ax1.set_title("Localization Convergence")
    ax1.grid(linestyle="--", alpha=0.6)
    fig.legend(loc="upper right")
    plt.tight_layout()
    plt.savefig(os.path.join(plot_dir, "error_over_time.png"))
    plt.close(fig)

def plot_sweep(sweep_csv, plot_dir):
    df = pd.read_csv(sweep_csv)
    df = df.sort_values("Beacon Fraction")

    x = np.arange(len(df))
    fig, ax = plt.subplots(figsize=(8, 6))
    ax.bar(x, df["Mean Localization Error"], yerr=df["Std Localization Error"].fillna(0.0),
           capsize=4, color="tab:blue")
    ax.set_xticks(x)
    ax.set_xticklabels([f"{f:.1%}" for f in df["Beacon Fraction"]])
    ax.set_xlabel("Beacon Fraction")
    ax.set_ylabel("Mean Localization Error (m)")
    ax.set_title("Localization Error vs Beacon Fraction")
    ax.grid(axis="y", linestyle="--", alpha=0.6)
    plt.tight_layout()
    plt.savefig(os.path.join(plot_dir, "error_vs_beacon_fraction.png"))
    plt.close(fig)

def main(argv=None):
    parser = argparse.ArgumentParser(description="Plot DV-Hop localization results")
    parser.add_argument("--results-dir", type=str, default="results", help="Directory with result CSVs")
    parser.add_argument("--plot-dir", type=str, default=None, help="Directory to save plots")
    args = parser.parse_args(argv)

    plot_dir = args.plot_dir or os.path.join(args.results_dir, "plots")
    os.makedirs(plot_dir, exist_ok=True)

    print(f"Loading results from: {args.results_dir}")
    print(f"Saving plots to: {plot_dir}")

    localization_csv = os.path.join(args.results_dir, "localization_data.csv")
    if os.path.exists(localization_csv):
        plot_positions(localization_csv, plot_dir)
        plot_error_per_node(localization_csv, plot_dir)
        plot_error_over_time(localization_csv, plot_dir)
    else:
        print("No localization data found.")

    sweep_csv = os.path.join(args.results_dir, "sweep_summary.csv")
    if os.path.exists(sweep_csv):
        plot_sweep(sweep_csv, plot_dir)

    print("Plots saved to:", plot_dir)

if __name__ == "__main__":
    main()
