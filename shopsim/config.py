# v2
# file: shopsim/config.py

"""
Central configuration for shop simulation parameters.
Rates are per unit of logical time. Probabilities are cut-offs compared
against uniform draws in [0, 1).
Module constants are the defaults; SimulationConfig carries the values of one run.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Iterable, Mapping

# ----------------------------- Logging ----------------------------- #
LOG_FILE = "logs/simulation.log"
OUTPUT_DIR = "output"

# ----------------------------- Stations ----------------------------- #
N_SERVERS = 2          # dedicated stations, each with a private queue
N_SELF_CHECKOUTS = 1   # shared-queue stations
MAX_QUEUE_LENGTH = 2   # per dedicated station, and for the shared self-checkout queue

# --------------------------- Customers --------------------------- #
N_CUSTOMERS = 10
ARRIVAL_RATE = 1.0
GREEDY_PROBABILITY = 0.5

# --------------------------- Service and rest --------------------------- #
SERVICE_RATE = 1.0
REST_RATE = 1.0
REST_PROBABILITY = 0.5

# --------------------------- Random seeds --------------------------- #
SEED = 1
SEED_OVERRIDE_ENV_VAR = "SHOPSIM_SEED"
ARRIVAL_STREAM_OFFSET = 0
CUSTOMER_TYPE_STREAM_OFFSET = 1
SERVICE_TIME_STREAM_OFFSET = 2
REST_DECISION_STREAM_OFFSET = 3
REST_PERIOD_STREAM_OFFSET = 4

# Order of the whitespace-separated values in a simulation input file.
INPUT_FIELDS = (
    "seed",
    "n_servers",
    "n_self_checkouts",
    "max_queue_length",
    "n_customers",
    "arrival_rate",
    "service_rate",
    "rest_rate",
    "rest_probability",
    "greedy_probability",
)


class ConfigError(ValueError):
    """Raised when simulation parameters cannot describe a valid run."""


def _as_int(raw: Any) -> int:
    """Integral values only; 2.0 and "2" pass, 2.7 and "2.7" do not."""
    if isinstance(raw, str):
        return int(raw.strip())
    value = float(raw)
    if not value.is_integer():
        raise ValueError(f"{raw!r} is not a whole number")
    return int(value)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of a single simulation run."""

    seed: int = SEED
    n_servers: int = N_SERVERS
    n_self_checkouts: int = N_SELF_CHECKOUTS
    max_queue_length: int = MAX_QUEUE_LENGTH
    n_customers: int = N_CUSTOMERS
    arrival_rate: float = ARRIVAL_RATE
    service_rate: float = SERVICE_RATE
    rest_rate: float = REST_RATE
    rest_probability: float = REST_PROBABILITY
    greedy_probability: float = GREEDY_PROBABILITY

    @classmethod
    def from_defaults(cls) -> "SimulationConfig":
        """Module defaults, with the seed taken from SHOPSIM_SEED when set."""
        config = cls()
        override = os.environ.get(SEED_OVERRIDE_ENV_VAR)
        if override is not None:
            try:
                config = replace(config, seed=int(override))
            except ValueError as exc:
                raise ConfigError(f"{SEED_OVERRIDE_ENV_VAR}={override!r} is not an integer.") from exc
        return config

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> "SimulationConfig":
        """Build a config from the ten input values, in INPUT_FIELDS order."""
        values = list(tokens)
        if len(values) != len(INPUT_FIELDS):
            raise ConfigError(f"Expected {len(INPUT_FIELDS)} input values, got {len(values)}.")
        return cls().with_overrides(dict(zip(INPUT_FIELDS, values)))

    def with_overrides(self, overrides: Mapping[str, Any]) -> "SimulationConfig":
        """Return a copy with the given fields replaced, coercing to the field types."""
        known = {f.name: f for f in fields(self)}
        coerced: Dict[str, Any] = {}
        for key, raw in overrides.items():
            name = key.lower()
            if name not in known:
                raise ConfigError(f"Unknown configuration key {key!r}.")
            try:
                if known[name].type in ("int", int):
                    coerced[name] = _as_int(raw)
                else:
                    coerced[name] = float(raw)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid value {raw!r} for {name}.") from exc
        return replace(self, **coerced)

    def validate(self) -> "SimulationConfig":
        problems = []
        if self.n_servers < 0 or self.n_self_checkouts < 0:
            problems.append("station counts must be non-negative")
        if self.n_servers + self.n_self_checkouts == 0:
            problems.append("at least one station is required")
        if self.max_queue_length < 0:
            problems.append("max_queue_length must be non-negative")
        if self.n_customers < 0:
            problems.append("n_customers must be non-negative")
        if self.n_customers > 1 and self.arrival_rate <= 0:
            problems.append("arrival_rate must be positive")
        if self.n_customers > 0 and self.service_rate <= 0:
            problems.append("service_rate must be positive")
        if self.n_servers > 0 and self.rest_probability > 0 and self.rest_rate <= 0:
            problems.append("rest_rate must be positive when servers may rest")
        for name in ("rest_probability", "greedy_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                problems.append(f"{name} must lie in [0, 1]")
        if problems:
            raise ConfigError("Invalid simulation configuration: " + "; ".join(problems))
        return self

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
