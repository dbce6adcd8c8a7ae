# v1
# file: shopsim/random_source.py

"""
Seeded random streams for the shop simulation.
Each quantity (interarrival gaps, customer type, service time, rest decision,
rest period) has its own numpy Generator so draws on one stream never shift
another, keeping traces reproducible for a given seed.
"""

from __future__ import annotations

import logging

import numpy as np

from .config import (
    ARRIVAL_STREAM_OFFSET,
    CUSTOMER_TYPE_STREAM_OFFSET,
    REST_DECISION_STREAM_OFFSET,
    REST_PERIOD_STREAM_OFFSET,
    SERVICE_TIME_STREAM_OFFSET,
)


def _exponential(rng: np.random.Generator, rate: float, label: str) -> float:
    if rate <= 0:
        raise ValueError(f"{label} rate must be positive to draw a duration (got {rate}).")
    return float(rng.exponential(1.0 / rate))


class RandomSource:
    """Random timings and decisions consumed by the simulation engine."""

    def __init__(self, seed: int, arrival_rate: float, service_rate: float, rest_rate: float):
        self.seed = seed
        self.arrival_rate = arrival_rate
        self.service_rate = service_rate
        self.rest_rate = rest_rate
        self._arrival_rng = np.random.default_rng(seed + ARRIVAL_STREAM_OFFSET)
        self._customer_type_rng = np.random.default_rng(seed + CUSTOMER_TYPE_STREAM_OFFSET)
        self._service_rng = np.random.default_rng(seed + SERVICE_TIME_STREAM_OFFSET)
        self._rest_decision_rng = np.random.default_rng(seed + REST_DECISION_STREAM_OFFSET)
        self._rest_period_rng = np.random.default_rng(seed + REST_PERIOD_STREAM_OFFSET)
        logging.info(
            "Random streams initialized from seed %d (arrival=%.4f, service=%.4f, rest=%.4f)",
            seed,
            arrival_rate,
            service_rate,
            rest_rate,
        )

    @classmethod
    def from_config(cls, config) -> "RandomSource":
        return cls(config.seed, config.arrival_rate, config.service_rate, config.rest_rate)

    def interarrival_time(self) -> float:
        return _exponential(self._arrival_rng, self.arrival_rate, "Arrival")

    def customer_type(self) -> float:
        """Uniform draw compared against the greedy-customer probability."""
        return float(self._customer_type_rng.random())

    def service_time(self) -> float:
        return _exponential(self._service_rng, self.service_rate, "Service")

    def rest_decision(self) -> float:
        """Uniform draw compared against the rest probability."""
        return float(self._rest_decision_rng.random())

    def rest_period(self) -> float:
        return _exponential(self._rest_period_rng, self.rest_rate, "Rest")
