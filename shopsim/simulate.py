# v5
# file: shopsim/simulate.py

"""
Main entry point for the shop event-driven simulation.
Reads the ten run parameters, initializes logging, wires together the DES
components, prints the event trace and the summary line, and optionally
writes trace/customer/summary CSVs.

Example:
    echo "1 2 1 2 10 1.0 1.0 1.0 0.5 0.5" | python -m shopsim.simulate
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from typing import List, Optional, Sequence, TextIO

from .config import LOG_FILE, OUTPUT_DIR, SEED_OVERRIDE_ENV_VAR, ConfigError, SimulationConfig
from .engine import EventSimulator, SimulationResult
from .stats import StatsCollector


def configure_logging(log_file: Optional[str] = LOG_FILE, verbose: bool = False) -> None:
    """Log to a file and to stderr; stdout carries the trace."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_dir = os.path.dirname(log_file) or "."
        os.makedirs(log_dir, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, mode="w"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )
    logging.info("Simulation logging initialized at %s", datetime.now().isoformat())


def read_config(stream: TextIO) -> SimulationConfig:
    """Parse whitespace-separated run parameters from a text stream."""
    return SimulationConfig.from_tokens(stream.read().split())


def _log_config_summary(config: SimulationConfig, seed_source: str) -> None:
    logging.info(
        "Simulation configuration: servers=%d, self-checkouts=%d, max queue=%d, customers=%d",
        config.n_servers,
        config.n_self_checkouts,
        config.max_queue_length,
        config.n_customers,
    )
    logging.info(
        "Rates: arrival=%.4f, service=%.4f, rest=%.4f; probabilities: rest=%.3f, greedy=%.3f",
        config.arrival_rate,
        config.service_rate,
        config.rest_rate,
        config.rest_probability,
        config.greedy_probability,
    )
    logging.info("Random seed %d from %s.", config.seed, seed_source)


def run(
    config: SimulationConfig,
    output_dir: Optional[str] = None,
    out: Optional[TextIO] = None,
    random_source=None,
) -> SimulationResult:
    """Run one simulation, streaming trace lines and the summary line to out."""
    stats = StatsCollector(record_rows=bool(output_dir))
    simulator = EventSimulator.initialise(config, random_source, stats)
    result = simulator.run(on_event=lambda event: print(event, file=out))
    print(result.summary_line(), file=out)
    simulator.stats.final_report(output_dir)
    return result


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the shop queueing simulation.")
    parser.add_argument(
        "--input",
        default=None,
        help="File with the ten run parameters (default: stdin, or config defaults when stdin is a terminal).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Override the seed from the input.")
    parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Directory for trace and statistics CSVs.")
    parser.add_argument("--no-csv", action="store_true", help="Skip writing CSV outputs.")
    parser.add_argument("--log-file", default=LOG_FILE, help="Log file path ('' disables file logging).")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_file or None, args.verbose)

    try:
        if args.input:
            with open(args.input, "r", encoding="utf-8") as handle:
                config = read_config(handle)
            seed_source = args.input
        elif not sys.stdin.isatty():
            config = read_config(sys.stdin)
            seed_source = "stdin"
        else:
            config = SimulationConfig.from_defaults()
            seed_source = f"config (env var {SEED_OVERRIDE_ENV_VAR} can override)"
        if args.seed is not None:
            config = config.with_overrides({"seed": args.seed})
            seed_source = "--seed"
        config.validate()
    except (ConfigError, OSError) as exc:
        logging.error("Cannot start simulation: %s", exc)
        return 2

    _log_config_summary(config, seed_source)
    run(config, output_dir=None if args.no_csv else args.output_dir)
    logging.info("Simulation complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
