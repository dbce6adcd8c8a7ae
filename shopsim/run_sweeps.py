# v2
# file: shopsim/run_sweeps.py

"""
Parameter sweep runner for the shop simulation.

Reads a sweep specification (CSV with optional comment lines), executes one
simulation per row with that row's overrides applied on top of a base
configuration, and persists outputs into experiment-specific folders. An
aggregate CSV (and optionally a bar chart of average waiting time) can be
produced for quick comparison. Example usage:

    python -m shopsim.run_sweeps --spec sweeps.csv --outdir experiments/sweep1
"""

from __future__ import annotations

import argparse
import ast
import csv
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .config import ConfigError, SimulationConfig  # noqa: E402
from .simulate import run  # noqa: E402
from .stats import SUMMARY_FILENAME  # noqa: E402

DEFAULT_OUTDIR = os.path.join("experiments", "sweeps")
CONFIG_FILENAME = "config_used.json"
TRACE_TEXT_FILENAME = "trace.txt"
AGGREGATE_FILENAME = "aggregate_summary.csv"
PLOT_FILENAME = "average_waiting_time.png"
LOG_FILENAME = "sweep.log"

SUMMARY_METRICS = [
    "customers_arrived",
    "customers_served",
    "customers_left",
    "total_waiting_time",
    "average_waiting_time",
    "station_rests",
]


@dataclass
class SweepExperiment:
    """Container for a single experiment specification."""

    experiment_id: str
    parameters: Dict[str, Any]


def configure_logging(base_outdir: str) -> None:
    """Configure stderr and file logging for sweep execution."""
    os.makedirs(base_outdir, exist_ok=True)
    logfile = os.path.join(base_outdir, LOG_FILENAME)
    handlers: List[logging.Handler] = [
        logging.FileHandler(logfile, mode="w"),
        logging.StreamHandler(sys.stderr),
    ]
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )
    logging.info("Sweep logging initialized. Output dir: %s", base_outdir)


def parse_value(raw: str) -> Any:
    """Convert CSV string fields into Python literals when possible."""
    text = raw.strip()
    if text == "":
        return None
    try:
        return ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return text


def _iter_non_comment_lines(filepath: str) -> Iterable[str]:
    with open(filepath, "r", newline="") as handle:
        for line in handle:
            if line.lstrip().startswith("#"):
                continue
            if line.strip() == "":
                continue
            yield line


def load_sweep_spec(filepath: str) -> Tuple[List[SweepExperiment], List[str]]:
    """Load sweep experiments from a CSV specification file."""
    experiments: List[SweepExperiment] = []
    reader = csv.DictReader(_iter_non_comment_lines(filepath))
    if reader.fieldnames is None:
        raise ValueError(f"Spec file {filepath} is missing headers.")
    param_columns = [field for field in reader.fieldnames if field != "experiment_id"]
    for row in reader:
        experiment_id = (row.get("experiment_id") or "").strip()
        if not experiment_id:
            logging.warning("Skipping unnamed experiment row: %s", row)
            continue
        overrides: Dict[str, Any] = {}
        for key in param_columns:
            value = parse_value(row.get(key) or "")
            if value is None:
                continue
            overrides[key] = value
        experiments.append(SweepExperiment(experiment_id, overrides))
    return experiments, param_columns


def run_single_experiment(exp: SweepExperiment, base_outdir: str, base_config: Optional[SimulationConfig] = None) -> bool:
    """Execute one experiment and persist outputs. Returns success status."""
    logging.info("--- Running experiment %s ---", exp.experiment_id)
    experiment_dir = os.path.join(base_outdir, exp.experiment_id)
    os.makedirs(experiment_dir, exist_ok=True)

    try:
        config = (base_config or SimulationConfig.from_defaults()).with_overrides(exp.parameters).validate()
    except ConfigError as exc:
        logging.error("Experiment %s has an invalid configuration: %s", exp.experiment_id, exc)
        return False
    logging.info("Applied overrides for %s: %s", exp.experiment_id, exp.parameters)

    with open(os.path.join(experiment_dir, TRACE_TEXT_FILENAME), "w", encoding="utf-8") as trace_out:
        run(config, output_dir=experiment_dir, out=trace_out)

    config_path = os.path.join(experiment_dir, CONFIG_FILENAME)
    with open(config_path, "w", encoding="utf-8") as handle:
        json.dump(config.as_dict(), handle, indent=2, sort_keys=True)
    logging.info("Completed experiment %s; config snapshot at %s", exp.experiment_id, config_path)
    return True


def read_summary_metrics(summary_path: str) -> Dict[str, Any]:
    metrics: Dict[str, Any] = {}
    with open(summary_path, "r", newline="") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            metric = row.get("metric")
            value = row.get("value", "")
            if metric:
                metrics[metric] = parse_value(value)
    return metrics


def build_aggregate(
    experiments: List[SweepExperiment],
    param_columns: List[str],
    base_outdir: str,
) -> Optional[pd.DataFrame]:
    """Combine per-experiment parameters and metrics into one CSV."""
    aggregate_rows: List[Dict[str, Any]] = []
    for exp in experiments:
        summary_path = os.path.join(base_outdir, exp.experiment_id, SUMMARY_FILENAME)
        if not os.path.isfile(summary_path):
            logging.warning("No summary for %s; skipping aggregation.", exp.experiment_id)
            continue
        metrics = read_summary_metrics(summary_path)
        row: Dict[str, Any] = {"experiment_id": exp.experiment_id}
        for col in param_columns:
            row[col] = exp.parameters.get(col)
        for metric in SUMMARY_METRICS:
            row[metric] = metrics.get(metric)
        aggregate_rows.append(row)

    if not aggregate_rows:
        logging.warning("No experiments produced summaries; aggregate not written.")
        return None

    frame = pd.DataFrame(aggregate_rows, columns=["experiment_id", *param_columns, *SUMMARY_METRICS])
    aggregate_path = os.path.join(base_outdir, AGGREGATE_FILENAME)
    frame.to_csv(aggregate_path, index=False)
    logging.info("Aggregate summary written to %s", aggregate_path)
    return frame


def plot_average_wait(frame: pd.DataFrame, base_outdir: str) -> str:
    """Bar chart of average waiting time per experiment."""
    plot_path = os.path.join(base_outdir, PLOT_FILENAME)
    plt.figure(figsize=(8, 4))
    plt.bar(frame["experiment_id"].astype(str), frame["average_waiting_time"].astype(float))
    plt.ylabel("Average waiting time")
    plt.xlabel("Experiment")
    plt.title("Average waiting time per experiment")
    plt.xticks(rotation=45, ha="right")
    plt.tight_layout()
    plt.savefig(plot_path, dpi=200)
    plt.close()
    logging.info("Average waiting time plot written to %s", plot_path)
    return plot_path


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run shop simulation parameter sweeps.")
    parser.add_argument("--spec", required=True, help="Path to sweep spec CSV.")
    parser.add_argument("--outdir", default=DEFAULT_OUTDIR, help="Base output directory.")
    parser.add_argument(
        "--limit", type=int, default=None, help="Optional limit on number of experiments to run."
    )
    parser.add_argument(
        "--skip-aggregate",
        action="store_true",
        help="Skip writing aggregate summary even if runs succeed.",
    )
    parser.add_argument("--plot", action="store_true", help="Also plot average waiting time per experiment.")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.outdir)

    logging.info("Loading sweep spec from %s", args.spec)
    experiments, param_columns = load_sweep_spec(args.spec)
    if args.limit is not None:
        experiments = experiments[: args.limit]
        logging.info("Limiting to first %d experiments", args.limit)

    completed: List[SweepExperiment] = []
    for exp in experiments:
        if run_single_experiment(exp, args.outdir):
            completed.append(exp)

    logging.info("Completed %d/%d experiments", len(completed), len(experiments))
    if not args.skip_aggregate:
        frame = build_aggregate(completed, param_columns, args.outdir)
        if frame is not None and args.plot:
            plot_average_wait(frame, args.outdir)
    return 0 if len(completed) == len(experiments) else 1


if __name__ == "__main__":
    sys.exit(main())
