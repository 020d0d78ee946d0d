import os
import csv
import math
import pandas as pd
from dvhop_simulator.utils import logging

LOCALIZATION_COLUMNS = ["Time", "Node", "RealX", "RealY", "EstimatedX", "EstimatedY", "LocalizationError", "Beacon"]

class Metrics:
    def __init__(self, beacon_fraction=None):
        self.packets_sent = 0
        self.packets_received = 0
        self.packets_lost = 0
        self.decode_errors = 0
        self.table_updates = 0
        self.estimation_failures = 0
        self.beacon_fraction = beacon_fraction
        self.localization_records = []
        self.simulation_info = {}

    def set_simulation_info(self, **info):
        self.simulation_info.update(info)

    def log_sent(self):
        self.packets_sent += 1

    def log_received(self):
        self.packets_received += 1

    def log_lost(self, count=1):
        self.packets_lost += count

    def log_decode_error(self):
        self.decode_errors += 1

    def log_table_update(self):
        self.table_updates += 1

    def log_estimation_failure(self):
        self.estimation_failures += 1

    def log_localization(self, sim_time, node_id, real_position, estimated_position, is_beacon=False):
        real_x, real_y = real_position
        if estimated_position is None:
            est_x = est_y = error = None
        else:
            est_x, est_y = estimated_position
            error = math.hypot(real_x - est_x, real_y - est_y)
        self.localization_records.append({
            "Time": sim_time,
            "Node": node_id,
            "RealX": real_x,
            "RealY": real_y,
            "EstimatedX": est_x,
            "EstimatedY": est_y,
            "LocalizationError": error,
            "Beacon": is_beacon,
        })

    def localization_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.localization_records, columns=LOCALIZATION_COLUMNS)

    def final_localization(self) -> pd.DataFrame:
        df = self.localization_frame()
        if df.empty:
            return df
        final = df[df["Time"] == df["Time"].max()]
        # Beacons know their position, only unknown nodes are scored
        return final[~final["Beacon"].astype(bool)]

    def localized_ratio(self) -> float:
        final = self.final_localization()
        if final.empty:
            return 0.0
        return float(final["LocalizationError"].notna().mean())

    def mean_localization_error(self) -> float:
        final = self.final_localization()
        errors = final["LocalizationError"].dropna() if not final.empty else []
        return float(errors.mean()) if len(errors) else float("nan")

    def summary(self, sim_time: float):
        summary = {**self.simulation_info}
        summary.update({
            "Simulation Time": sim_time,
            "Sent": self.packets_sent,
            "Received": self.packets_received,
            "Lost": self.packets_lost,
            "Decode Errors": self.decode_errors,
            "Table Updates": self.table_updates,
            "Estimation Failures": self.estimation_failures,
            "Localized Ratio": self.localized_ratio(),
            "Mean Localization Error": self.mean_localization_error(),
        })
        if self.beacon_fraction is not None:
            summary["Beacon Fraction"] = self.beacon_fraction
        return summary

    def export_metrics_to_csv(self, summary, filename):
        dirname = os.path.dirname(filename)
        if dirname:
            os.makedirs(dirname, exist_ok=True)

        with open(filename, mode="w", newline="") as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(["Metric", "Value"])
            for key, value in summary.items():
                writer.writerow([key, value])
        logging.log_info(f"Metrics exported to {filename}")

    def export_localization_csv(self, filename):
        dirname = os.path.dirname(filename)
        if dirname:
            os.makedirs(dirname, exist_ok=True)

        self.localization_frame().to_csv(filename, index=False)
        logging.log_info(f"Localization data exported to {filename}")
