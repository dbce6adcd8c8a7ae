# v5
# file: shopsim/entities.py

"""
Defines customers, waiting queues and stations for the shop simulation.
Stations are either dedicated servers with a private queue or self-checkout
counters that all draw from one shared queue. Occupancy and queue transitions
live here; routing belongs to routing_policy and dispatch to the engine.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional


class CustomerPolicy(str, Enum):
    """How a customer picks a queue to wait in."""

    STANDARD = "standard"
    GREEDY = "greedy"


class StationKind(str, Enum):
    SERVER = "server"
    SELF_CHECKOUT = "self-check"


class StationStateError(RuntimeError):
    """Raised when dispatch asks a station for a transition its state forbids."""


@dataclass(frozen=True)
class Customer:
    """An arriving customer; identity and arrival time never change."""

    customer_id: int
    arrival_time: float
    policy: CustomerPolicy = CustomerPolicy.STANDARD

    @property
    def is_greedy(self) -> bool:
        return self.policy is CustomerPolicy.GREEDY

    def waiting_time(self, current_time: float) -> float:
        return current_time - self.arrival_time

    def label(self) -> str:
        return f"{self.customer_id}(greedy)" if self.is_greedy else str(self.customer_id)

    def __str__(self) -> str:
        return self.label()


class WaitingQueue:
    """Bounded FIFO of waiting customers. Self-checkouts share one instance."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._customers: Deque[Customer] = deque()

    def __len__(self) -> int:
        return len(self._customers)

    def has_room(self) -> bool:
        return len(self._customers) < self.capacity

    def append(self, customer: Customer) -> None:
        if not self.has_room():
            raise StationStateError(
                f"Queue at capacity {self.capacity}; cannot add customer {customer.customer_id}."
            )
        self._customers.append(customer)

    def popleft(self) -> Customer:
        if not self._customers:
            raise StationStateError("Cannot take the next customer from an empty queue.")
        return self._customers.popleft()


def _server_rests(random_source, rest_probability: float) -> bool:
    return random_source.rest_decision() < rest_probability


def _never_rests(random_source, rest_probability: float) -> bool:
    return False


# Self-checkouts never rest and never consume a rest-decision draw.
REST_POLICIES: Dict[StationKind, Callable[..., bool]] = {
    StationKind.SERVER: _server_rests,
    StationKind.SELF_CHECKOUT: _never_rests,
}


class Station:
    """A service point holding at most one customer plus a waiting queue."""

    def __init__(self, station_id: int, kind: StationKind, queue: WaitingQueue):
        self.station_id = station_id
        self.kind = kind
        self.queue = queue
        self.occupant: Optional[Customer] = None

    @property
    def capacity(self) -> int:
        return self.queue.capacity

    def label(self) -> str:
        return f"{self.kind.value} {self.station_id}"

    def __str__(self) -> str:
        return self.label()

    def __repr__(self) -> str:
        occupant = self.occupant.customer_id if self.occupant is not None else "-"
        return f"Station({self.label()!r}, occupant={occupant}, queued={len(self.queue)})"

    # ---- Occupancy ------------------------------------------------------
    def can_serve(self) -> bool:
        return self.occupant is None

    def serve(self, customer: Customer) -> None:
        if self.occupant is not None:
            raise StationStateError(
                f"{self.label()} is serving customer {self.occupant.customer_id}; "
                f"cannot start customer {customer.customer_id}."
            )
        self.occupant = customer
        logging.debug("%s now serving customer %s", self.label(), customer.customer_id)

    def clear(self) -> None:
        logging.debug("%s cleared", self.label())
        self.occupant = None

    # ---- Queue ----------------------------------------------------------
    def queue_length(self) -> int:
        return len(self.queue)

    def can_enqueue(self) -> bool:
        return self.queue.has_room()

    def has_waiting_customer(self) -> bool:
        return len(self.queue) > 0

    def enqueue(self, customer: Customer) -> None:
        self.queue.append(customer)
        logging.debug(
            "Customer %s queued at %s (queue length %d)", customer.customer_id, self.label(), len(self.queue)
        )

    def dequeue_next(self) -> Customer:
        """Take the head of the queue and make it the occupant."""
        customer = self.queue.popleft()
        self.occupant = customer
        logging.debug("%s took customer %s from its queue", self.label(), customer.customer_id)
        return customer

    # ---- Rest -----------------------------------------------------------
    def decides_to_rest(self, random_source, rest_probability: float) -> bool:
        return REST_POLICIES[self.kind](random_source, rest_probability)


def make_stations(n_servers: int, n_self_checkouts: int, max_queue_length: int) -> List[Station]:
    """
    Create dedicated servers (ids 1..n_servers) followed by self-checkouts.
    Every self-checkout references the same WaitingQueue object.
    """
    stations: List[Station] = []
    for station_id in range(1, n_servers + 1):
        stations.append(Station(station_id, StationKind.SERVER, WaitingQueue(max_queue_length)))

    shared_queue = WaitingQueue(max_queue_length)
    for offset in range(1, n_self_checkouts + 1):
        stations.append(Station(n_servers + offset, StationKind.SELF_CHECKOUT, shared_queue))

    logging.info(
        "Created %d servers and %d self-checkouts (max queue length %d)",
        n_servers,
        n_self_checkouts,
        max_queue_length,
    )
    return stations
