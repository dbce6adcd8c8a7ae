# v9
# file: shopsim/stats.py

"""
Collects statistics and outputs results for the shop simulation.
Tracks the printed event trace, per-customer outcomes and waits, per-station
service counts and the aggregate waiting-time statistics, and writes them as
trace, per-customer and summary CSV files.
"""

from __future__ import annotations

import csv
import logging
import os
from typing import Any, Dict, List, Optional

import numpy as np

TRACE_FILENAME = "trace.csv"
CUSTOMERS_FILENAME = "customers_stats.csv"
SUMMARY_FILENAME = "summary_stats.csv"

TRACE_FIELDS = ["seq", "time", "customer_id", "greedy", "status", "station", "line"]
CUSTOMER_FIELDS = [
    "customer_id",
    "policy",
    "arrival_time",
    "outcome",
    "station",
    "waited",
    "wait_time",
    "service_start",
    "service_time",
    "service_end",
]


class StatsCollector:
    """Tracks per-customer histories, the event trace, and aggregate KPIs."""

    def __init__(self, record_rows: bool = True):
        self.record_rows = record_rows
        self.total_waiting_time: float = 0.0
        self.customers_served: int = 0
        self.customers_left: int = 0
        self.customers_arrived: int = 0
        self.station_rests: int = 0
        self.total_rest_time: float = 0.0
        self.trace: List[str] = []
        self.trace_rows: List[Dict[str, Any]] = []
        self.customer_stats: Dict[int, Dict[str, Any]] = {}
        self.station_served: Dict[str, int] = {}
        self.last_event_time: float = 0.0

    # ------------------------------------------------------------------
    # Customer state helpers
    # ------------------------------------------------------------------
    def _ensure_customer(self, customer) -> Dict[str, Any]:
        return self.customer_stats.setdefault(
            customer.customer_id,
            {
                "customer_id": customer.customer_id,
                "policy": customer.policy.value,
                "arrival_time": customer.arrival_time,
                "outcome": "pending",
                "station": "",
                "waited": False,
                "wait_time": 0.0,
                "service_start": None,
                "service_time": None,
                "service_end": None,
            },
        )

    # ------------------------------------------------------------------
    # Hooks invoked by the engine
    # ------------------------------------------------------------------
    def record_event(self, event) -> None:
        """Append a printable event to the trace."""
        self.last_event_time = max(self.last_event_time, event.time)
        if not event.is_printed:
            return
        line = str(event)
        self.trace.append(line)
        if not self.record_rows:
            return
        self.trace_rows.append(
            {
                "seq": len(self.trace),
                "time": event.time,
                "customer_id": event.customer.customer_id,
                "greedy": event.customer.is_greedy,
                "status": event.status.name,
                "station": event.station.label() if event.station is not None else "",
                "line": line,
            }
        )

    def log_arrival(self, customer, event_time: float) -> None:
        self.customers_arrived += 1
        self._ensure_customer(customer)
        logging.debug("Customer %s arrived at t=%.3f", customer.label(), event_time)

    def log_wait(self, customer, station, event_time: float) -> None:
        stats = self._ensure_customer(customer)
        stats["outcome"] = "waiting"
        stats["station"] = station.label()
        stats["waited"] = True
        logging.debug("Customer %s waits at %s from t=%.3f", customer.label(), station.label(), event_time)

    def log_leave(self, customer, event_time: float) -> None:
        self.customers_left += 1
        self._ensure_customer(customer)["outcome"] = "left"
        logging.debug("Customer %s leaves unserved at t=%.3f", customer.label(), event_time)

    def log_queue_wait(self, customer, station, wait_time: float, event_time: float) -> None:
        """A waiting customer was pulled from a queue; count its waiting time."""
        self.total_waiting_time += wait_time
        stats = self._ensure_customer(customer)
        stats["wait_time"] = wait_time
        stats["station"] = station.label()
        logging.debug(
            "Customer %s waited %.3f at %s (taken at t=%.3f)", customer.label(), wait_time, station.label(), event_time
        )

    def log_service_start(self, customer, station, start_time: float, service_time: float) -> None:
        self.customers_served += 1
        self.station_served[station.label()] = self.station_served.get(station.label(), 0) + 1
        stats = self._ensure_customer(customer)
        stats["outcome"] = "in_service"
        stats["station"] = station.label()
        stats["service_start"] = start_time
        stats["service_time"] = service_time
        stats["service_end"] = start_time + service_time

    def log_service_completion(self, customer, station, event_time: float) -> None:
        self._ensure_customer(customer)["outcome"] = "served"
        logging.debug("Customer %s done at %s t=%.3f", customer.label(), station.label(), event_time)

    def log_station_rest(self, station, event_time: float, rest_time: float) -> None:
        self.station_rests += 1
        self.total_rest_time += rest_time
        logging.debug("%s rests at t=%.3f for %.3f", station.label(), event_time, rest_time)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    @property
    def average_waiting_time(self) -> float:
        if self.customers_served == 0:
            return 0.0
        return self.total_waiting_time / self.customers_served

    def summary_line(self) -> str:
        return f"[{self.average_waiting_time:.3f} {self.customers_served} {self.customers_left}]"

    def _aggregate_summary(self) -> List[Dict[str, Any]]:
        waits = [row["wait_time"] for row in self.customer_stats.values() if row["waited"] and row["service_start"] is not None]
        rows: List[Dict[str, Any]] = [
            {
                "metric": "customers_arrived",
                "value": self.customers_arrived,
                "units": "customers",
                "description": "Customers scheduled to arrive",
            },
            {
                "metric": "customers_served",
                "value": self.customers_served,
                "units": "customers",
                "description": "Customers whose service started",
            },
            {
                "metric": "customers_left",
                "value": self.customers_left,
                "units": "customers",
                "description": "Customers who left without being served",
            },
            {
                "metric": "total_waiting_time",
                "value": self.total_waiting_time,
                "units": "time",
                "description": "Waiting time summed over customers who queued and were then served",
            },
            {
                "metric": "average_waiting_time",
                "value": self.average_waiting_time,
                "units": "time",
                "description": "Total waiting time divided by customers served (0 when none served)",
            },
            {
                "metric": "customers_waited",
                "value": len(waits),
                "units": "customers",
                "description": "Served customers who spent time in a queue first",
            },
            {
                "metric": "max_waiting_time",
                "value": float(np.max(waits)) if waits else 0.0,
                "units": "time",
                "description": "Longest wait among customers who queued",
            },
            {
                "metric": "station_rests",
                "value": self.station_rests,
                "units": "rests",
                "description": "Number of rest periods taken by servers",
            },
            {
                "metric": "total_rest_time",
                "value": self.total_rest_time,
                "units": "time",
                "description": "Rest time summed over all servers",
            },
            {
                "metric": "simulation_end_time",
                "value": self.last_event_time,
                "units": "time",
                "description": "Time of the last processed event",
            },
        ]
        for label, count in sorted(self.station_served.items()):
            rows.append(
                {
                    "metric": f"served_{label.replace(' ', '_')}",
                    "value": count,
                    "units": "customers",
                    "description": f"Customers served by {label}",
                }
            )
        return rows

    # ------------------------------------------------------------------
    # Output files
    # ------------------------------------------------------------------
    def _write_trace_csv(self, path: str) -> None:
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=TRACE_FIELDS)
            writer.writeheader()
            writer.writerows(self.trace_rows)
        logging.info("Event trace written to %s", path)

    def _write_customer_csv(self, path: str) -> None:
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CUSTOMER_FIELDS)
            writer.writeheader()
            for _, row in sorted(self.customer_stats.items()):
                writer.writerow({key: ("" if value is None else value) for key, value in row.items()})
        logging.info("Per-customer statistics written to %s", path)

    def _write_summary_csv(self, path: str, summary_rows: List[Dict[str, Any]]) -> None:
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=["metric", "value", "units", "description"])
            writer.writeheader()
            writer.writerows(summary_rows)
        logging.info("Summary statistics written to %s", path)

    def final_report(self, output_dir: Optional[str] = None) -> List[Dict[str, Any]]:
        """Log a concise summary and, when output_dir is given, write the CSV files."""
        summary_rows = self._aggregate_summary()
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
            if self.record_rows:
                self._write_trace_csv(os.path.join(output_dir, TRACE_FILENAME))
            else:
                logging.warning("Trace rows were not recorded; %s not written.", TRACE_FILENAME)
            self._write_customer_csv(os.path.join(output_dir, CUSTOMERS_FILENAME))
            self._write_summary_csv(os.path.join(output_dir, SUMMARY_FILENAME), summary_rows)

        logging.info("------ SIMULATION SUMMARY ------")
        logging.info(
            "Served %d, left %d, average wait %.3f (total %.3f), rests %d",
            self.customers_served,
            self.customers_left,
            self.average_waiting_time,
            self.total_waiting_time,
            self.station_rests,
        )
        return summary_rows
