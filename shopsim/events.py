# v5
# file: shopsim/events.py

"""
Defines the immutable Event record and the priority event queue for the shop simulation.
Events order by time, then customer id, then status rank, so runs are fully
deterministic. New events are only derived from earlier ones through the
transition constructors below; dispatch semantics live in the engine.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

from .entities import Customer, CustomerPolicy, Station


class EventStatus(IntEnum):
    """Event kinds; the integer value is the tie-break rank."""

    ARRIVES = 0
    SERVED = 1
    LEAVES = 2
    DONE = 3
    WAITS = 4
    STATION_RESTS = 5

    @property
    def phrase(self) -> str:
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    EventStatus.ARRIVES: "arrives",
    EventStatus.SERVED: "served by",
    EventStatus.LEAVES: "leaves",
    EventStatus.DONE: "done serving by",
    EventStatus.WAITS: "waits to be served by",
    EventStatus.STATION_RESTS: "done; resting by",
}


@dataclass(frozen=True, eq=False)
class Event:
    """
    One occurrence in the shop. For STATION_RESTS the customer is the one just
    finished, kept for bookkeeping until the station takes its next customer.
    """

    customer: Customer
    station: Optional[Station]
    time: float
    status: EventStatus

    # ---- Ordering -------------------------------------------------------
    def sort_key(self) -> Tuple[float, int, int]:
        return (self.time, self.customer.customer_id, int(self.status))

    def __lt__(self, other: "Event") -> bool:
        return self.sort_key() < other.sort_key()

    # ---- Transition constructors ----------------------------------------
    @classmethod
    def arrival(cls, arrival_time: float, customer_id: int, greedy: bool = False) -> "Event":
        policy = CustomerPolicy.GREEDY if greedy else CustomerPolicy.STANDARD
        return cls(Customer(customer_id, arrival_time, policy), None, arrival_time, EventStatus.ARRIVES)

    def served(self, station: Station, customer: Optional[Customer] = None) -> "Event":
        """Serve this event's customer, or a dequeued one, at the current time."""
        target = customer if customer is not None else self.customer
        return Event(target, station, self.time, EventStatus.SERVED)

    def waits(self, station: Station) -> "Event":
        return Event(self.customer, station, self.time, EventStatus.WAITS)

    def leaves(self) -> "Event":
        return Event(self.customer, self.station, self.time, EventStatus.LEAVES)

    def done(self, service_time: float) -> "Event":
        return Event(self.customer, self.station, self.time + service_time, EventStatus.DONE)

    def station_rests(self, rest_time: float) -> "Event":
        return Event(self.customer, self.station, self.time + rest_time, EventStatus.STATION_RESTS)

    # ---- Queries --------------------------------------------------------
    @property
    def is_printed(self) -> bool:
        return self.status is not EventStatus.STATION_RESTS

    def customer_waiting_time(self) -> float:
        return self.customer.waiting_time(self.time)

    def require_station(self) -> Station:
        if self.station is None:
            raise ValueError(f"Event {self!r} has no station attached.")
        return self.station

    def __str__(self) -> str:
        line = f"{self.time:.3f} {self.customer.label()} {self.status.phrase}"
        if self.station is not None:
            line += f" {self.station.label()}"
        return line

    def __repr__(self) -> str:
        station = self.station.label() if self.station is not None else "-"
        return f"Event({self.status.name}, t={self.time:.3f}, customer={self.customer.customer_id}, station={station})"


class EventQueue:
    """Min-heap priority queue for chronological DES execution."""

    def __init__(self):
        self._q: List[Event] = []

    def __len__(self) -> int:
        return len(self._q)

    def push(self, event: Event):
        heapq.heappush(self._q, event)
        logging.debug("Event queued: %r", event)

    def pop(self) -> Event:
        event = heapq.heappop(self._q)
        logging.debug("Event dequeued: %r", event)
        return event

    def empty(self) -> bool:
        return len(self._q) == 0

    def schedule_initial_arrivals(self, config, random_source) -> List[Event]:
        """
        Pre-schedule one arrival per customer. The first customer arrives at
        t=0; all interarrival gaps are drawn before any customer-type draw.
        """
        arrival_times: List[float] = []
        current = 0.0
        for idx in range(config.n_customers):
            if idx > 0:
                current += random_source.interarrival_time()
            arrival_times.append(current)

        arrivals: List[Event] = []
        for customer_id, arrival_time in enumerate(arrival_times, start=1):
            greedy = random_source.customer_type() < config.greedy_probability
            event = Event.arrival(arrival_time, customer_id, greedy)
            self.push(event)
            arrivals.append(event)
        logging.info("Scheduled %d arrivals up to t=%.3f", len(arrivals), arrival_times[-1] if arrival_times else 0.0)
        return arrivals
