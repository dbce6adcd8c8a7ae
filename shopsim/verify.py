"""Verification CLI for shop simulation outputs.

This module inspects simulation output artifacts (summary, customer and trace
CSVs), performs consistency checks, writes a Markdown report, and exits with a
machine-friendly status code (0 on success, non-zero on failures).

Example:
    python -m shopsim.verify --input output
"""

from __future__ import annotations

import argparse
import csv
import datetime as dt
import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .events import EventStatus
from .stats import CUSTOMERS_FILENAME, SUMMARY_FILENAME, TRACE_FILENAME

REPORT_FILENAME = "verification_report.md"
REQUIRED_METRICS = [
    "customers_arrived",
    "customers_served",
    "customers_left",
    "total_waiting_time",
    "average_waiting_time",
]


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------
@dataclass
class CheckResult:
    """Represents a single verification check."""

    name: str
    passed: bool
    details: str


@dataclass
class RunReport:
    """Collects the results for a single run or experiment."""

    label: str
    results: List[CheckResult]

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------
def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify shop simulation outputs and generate a report.")
    parser.add_argument("--input", default="output", help="Run output directory or sweep root (default: output).")
    parser.add_argument("--fail-fast", action="store_true", help="Stop after the first failing check.")
    parser.add_argument("--tolerance", type=float, default=1e-6, help="Tolerance for floating-point comparisons.")
    parser.add_argument(
        "--mode",
        choices=["single", "sweep"],
        default="single",
        help="Verify a single run directory or sweep experiments contained within the input path.",
    )
    parser.add_argument("--sweep", dest="mode", action="store_const", const="sweep", help="Alias for --mode sweep.")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------
def _ensure_exists(path: str, label: str, results: List[CheckResult]) -> bool:
    if os.path.isfile(path):
        results.append(CheckResult(label, True, f"Found {os.path.basename(path)}."))
        return True
    results.append(CheckResult(label, False, f"Missing required file: {path}"))
    return False


def _load_summary(summary_path: str) -> Dict[str, float]:
    metrics: Dict[str, float] = {}
    with open(summary_path, "r", newline="") as handle:
        for row in csv.DictReader(handle):
            metric = (row.get("metric") or "").strip()
            if not metric:
                continue
            try:
                metrics[metric] = float(row.get("value", ""))
            except (TypeError, ValueError):
                continue
    return metrics


def _load_rows(path: str) -> List[Dict[str, str]]:
    with open(path, "r", newline="") as handle:
        return list(csv.DictReader(handle))


def _approx_equal(a: float, b: float, tolerance: float) -> bool:
    scale = max(1.0, abs(a), abs(b))
    return abs(a - b) <= tolerance * scale


# ---------------------------------------------------------------------------
# Check routines
# ---------------------------------------------------------------------------
def _required_metrics_check(summary: Dict[str, float]) -> CheckResult:
    missing = [metric for metric in REQUIRED_METRICS if metric not in summary]
    if missing:
        return CheckResult("Required summary metrics present", False, f"Missing metrics: {', '.join(missing)}")
    return CheckResult("Required summary metrics present", True, "Found all required metrics.")


def _outcome_balance_check(summary: Dict[str, float], tolerance: float) -> CheckResult:
    arrived = summary["customers_arrived"]
    served = summary["customers_served"]
    left = summary["customers_left"]
    if _approx_equal(arrived, served + left, tolerance):
        return CheckResult("Served + left = arrived", True, f"{served:.0f} + {left:.0f} = {arrived:.0f}.")
    return CheckResult("Served + left = arrived", False, f"Mismatch: {served:.0f} + {left:.0f} != {arrived:.0f}.")


def _average_wait_check(summary: Dict[str, float], tolerance: float) -> CheckResult:
    served = summary["customers_served"]
    total = summary["total_waiting_time"]
    average = summary["average_waiting_time"]
    if served == 0:
        passed = average == 0.0
        return CheckResult("Average waiting time", passed, f"No customers served; average reported {average}.")
    if _approx_equal(average * served, total, tolerance):
        return CheckResult("Average waiting time", True, f"{average:.6f} x {served:.0f} matches total {total:.6f}.")
    return CheckResult("Average waiting time", False, f"{average:.6f} x {served:.0f} != total {total:.6f}.")


def _customer_rows_check(summary: Dict[str, float], customer_rows: List[Dict[str, str]], tolerance: float) -> List[CheckResult]:
    checks: List[CheckResult] = []
    arrived = summary.get("customers_arrived", 0.0)
    if _approx_equal(arrived, len(customer_rows), tolerance):
        checks.append(CheckResult("Customer rows", True, f"{len(customer_rows)} rows match arrivals."))
    else:
        checks.append(CheckResult("Customer rows", False, f"{len(customer_rows)} rows vs {arrived:.0f} arrivals."))

    violations: List[str] = []
    wait_sum = 0.0
    for row in customer_rows:
        customer_id = row.get("customer_id", "<unknown>")
        try:
            wait = float(row.get("wait_time") or 0.0)
        except ValueError:
            violations.append(f"customer {customer_id}: unparseable wait_time")
            continue
        if wait < -tolerance:
            violations.append(f"customer {customer_id}: wait_time={wait}")
        wait_sum += wait
    if violations:
        checks.append(CheckResult("Customer waits non-negative", False, "; ".join(violations)))
    else:
        checks.append(CheckResult("Customer waits non-negative", True, "All per-customer waits are non-negative."))

    total = summary.get("total_waiting_time", 0.0)
    checks.append(
        CheckResult(
            "Total wait decomposition",
            _approx_equal(wait_sum, total, tolerance),
            f"Per-customer waits sum to {wait_sum:.6f}; summary total {total:.6f}.",
        )
    )
    return checks


def _trace_order_check(trace_rows: List[Dict[str, str]]) -> CheckResult:
    """
    Logical time never decreases along the trace. Within one timestamp a
    successor may carry a lower customer id than the event that produced it,
    so only time is checked.
    """
    previous: float | None = None
    for row in trace_rows:
        try:
            event_time = float(row["time"])
            EventStatus[row["status"]]
        except (KeyError, ValueError):
            return CheckResult("Trace ordering", False, f"Unparseable trace row: {row}")
        if previous is not None and event_time < previous:
            return CheckResult("Trace ordering", False, f"Row {row.get('seq')} at t={event_time} precedes t={previous}.")
        previous = event_time
    return CheckResult("Trace ordering", True, f"{len(trace_rows)} trace rows in non-decreasing time order.")


# ---------------------------------------------------------------------------
# Verification runners
# ---------------------------------------------------------------------------
def verify_single_run(base_dir: str, tolerance: float, fail_fast: bool) -> RunReport:
    results: List[CheckResult] = []
    if not os.path.isdir(base_dir):
        results.append(CheckResult("Input directory present", False, f"Directory not found: {base_dir}"))
        return RunReport(base_dir, results)

    summary_path = os.path.join(base_dir, SUMMARY_FILENAME)
    customers_path = os.path.join(base_dir, CUSTOMERS_FILENAME)
    trace_path = os.path.join(base_dir, TRACE_FILENAME)
    present = [
        _ensure_exists(summary_path, f"{SUMMARY_FILENAME} present", results),
        _ensure_exists(customers_path, f"{CUSTOMERS_FILENAME} present", results),
        _ensure_exists(trace_path, f"{TRACE_FILENAME} present", results),
    ]
    if not all(present):
        return RunReport(base_dir, results)

    summary = _load_summary(summary_path)
    checks: List[CheckResult] = [_required_metrics_check(summary)]
    if checks[0].passed:
        checks.append(_outcome_balance_check(summary, tolerance))
        checks.append(_average_wait_check(summary, tolerance))
    checks.extend(_customer_rows_check(summary, _load_rows(customers_path), tolerance))
    checks.append(_trace_order_check(_load_rows(trace_path)))

    for check in checks:
        results.append(check)
        if fail_fast and not check.passed:
            break
    return RunReport(base_dir, results)


def verify_sweep(input_dir: str, tolerance: float, fail_fast: bool) -> Tuple[List[RunReport], bool]:
    if not os.path.isdir(input_dir):
        return [RunReport(input_dir, [CheckResult("Sweep directory present", False, f"Directory not found: {input_dir}")])], False

    subdirs = [
        os.path.join(input_dir, name)
        for name in sorted(os.listdir(input_dir))
        if os.path.isdir(os.path.join(input_dir, name))
    ]
    if not subdirs:
        return [RunReport(input_dir, [CheckResult("Sweep contents", False, "No experiment subdirectories found.")])], False

    run_reports: List[RunReport] = []
    overall_passed = True
    for subdir in subdirs:
        report = verify_single_run(subdir, tolerance, fail_fast)
        run_reports.append(report)
        overall_passed = overall_passed and report.passed
        if fail_fast and not report.passed:
            break
    return run_reports, overall_passed


# ---------------------------------------------------------------------------
# Report assembly
# ---------------------------------------------------------------------------
def _render_table(results: List[CheckResult]) -> List[str]:
    lines = ["| Status | Check | Details |", "| --- | --- | --- |"]
    for result in results:
        status = "PASS" if result.passed else "FAIL"
        lines.append(f"| {status} | {result.name} | {result.details} |")
    return lines


def build_report(input_dir: str, mode: str, tolerance: float, run_reports: Sequence[RunReport], overall_passed: bool) -> str:
    lines: List[str] = [
        "# Verification Report",
        f"*Generated: {dt.datetime.now(dt.timezone.utc).isoformat()}*",
        "",
        f"- Input directory: `{input_dir}`",
        f"- Mode: {mode}",
        f"- Tolerance: {tolerance}",
        "",
        f"## Overall Status: {'PASS' if overall_passed else 'FAIL'}",
        "",
    ]
    for report in run_reports:
        heading = os.path.relpath(report.label, input_dir) if mode == "sweep" else report.label
        lines.append(f"### Run: {heading}")
        lines.extend(_render_table(report.results))
        lines.append("")
    return "\n".join(lines)


def write_report(input_dir: str, content: str) -> str:
    os.makedirs(input_dir, exist_ok=True)
    report_path = os.path.join(input_dir, REPORT_FILENAME)
    with open(report_path, "w", encoding="utf-8") as handle:
        handle.write(content)
    return report_path


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.mode == "sweep":
        run_reports, overall_passed = verify_sweep(args.input, args.tolerance, args.fail_fast)
    else:
        run_report = verify_single_run(args.input, args.tolerance, args.fail_fast)
        run_reports = [run_report]
        overall_passed = run_report.passed

    report_content = build_report(args.input, args.mode, args.tolerance, run_reports, overall_passed)
    report_path = write_report(args.input, report_content)
    print(f"Verification report written to {report_path}")
    return 0 if overall_passed else 1


if __name__ == "__main__":
    sys.exit(main())
