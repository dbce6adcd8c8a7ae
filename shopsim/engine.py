# v7
# file: shopsim/engine.py

"""
EventSimulator encapsulates the dispatch semantics of the shop simulation.
Arrival routing, service starts, completions and server rests are handled
here; stations own their occupancy and queues, events own ordering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import SimulationConfig
from .entities import Station, make_stations
from .events import Event, EventQueue, EventStatus
from .random_source import RandomSource
from .roster import RosterSummary
from .routing_policy import pick_serving_index, pick_waiting_index
from .stats import StatsCollector


@dataclass
class SimulationResult:
    """Outcome of one run: the printed trace plus aggregate statistics."""

    trace: List[str]
    total_waiting_time: float
    customers_served: int
    customers_left: int
    stats: StatsCollector

    @property
    def average_waiting_time(self) -> float:
        return self.stats.average_waiting_time

    def summary_line(self) -> str:
        return self.stats.summary_line()


class EventSimulator:
    """Runs the event loop over a fixed station roster."""

    def __init__(
        self,
        stations: List[Station],
        random_source,
        rest_probability: float,
        event_queue: Optional[EventQueue] = None,
        stats: Optional[StatsCollector] = None,
    ):
        self.stations = stations
        self.random_source = random_source
        self.rest_probability = rest_probability
        self.event_queue = event_queue if event_queue is not None else EventQueue()
        self.stats = stats if stats is not None else StatsCollector()
        self._handlers = {
            EventStatus.ARRIVES: self.handle_arrival,
            EventStatus.SERVED: self.handle_served,
            EventStatus.DONE: self.handle_completion,
            EventStatus.STATION_RESTS: self.handle_completion,
        }

    @classmethod
    def initialise(
        cls, config: SimulationConfig, random_source=None, stats: Optional[StatsCollector] = None
    ) -> "EventSimulator":
        """Build stations and pre-schedule every customer's arrival."""
        config.validate()
        if random_source is None:
            random_source = RandomSource.from_config(config)
        stations = make_stations(config.n_servers, config.n_self_checkouts, config.max_queue_length)
        simulator = cls(stations, random_source, config.rest_probability, stats=stats)
        simulator.event_queue.schedule_initial_arrivals(config, random_source)
        return simulator

    def schedule(self, event: Event) -> None:
        self.event_queue.push(event)

    # ------------------------------------------------------------------
    def run(self, on_event: Optional[Callable[[Event], None]] = None) -> SimulationResult:
        """
        Process events until the queue is empty. on_event, when given, receives
        every printable event in dispatch order.
        """
        logging.info("Starting simulation loop with %d stations.", len(self.stations))
        processed = 0
        while not self.event_queue.empty():
            event = self.event_queue.pop()
            handler = self._handlers.get(event.status)
            if handler is not None:
                handler(event)
            self.stats.record_event(event)
            if on_event is not None and event.is_printed:
                on_event(event)
            processed += 1

        logging.info("Simulation loop finished after %d events.", processed)
        return SimulationResult(
            trace=self.stats.trace,
            total_waiting_time=self.stats.total_waiting_time,
            customers_served=self.stats.customers_served,
            customers_left=self.stats.customers_left,
            stats=self.stats,
        )

    # ------------------------------------------------------------------
    def handle_arrival(self, event: Event) -> None:
        """Serve if a station is idle, else wait if a queue has room, else leave."""
        customer = event.customer
        self.stats.log_arrival(customer, event.time)
        roster = RosterSummary.build(self.stations)

        serve_idx = pick_serving_index(customer, roster)
        if serve_idx is not None:
            station = self.stations[serve_idx]
            station.serve(customer)
            self.schedule(event.served(station))
            logging.debug("Customer %s routed to %s for service", customer.label(), station.label())
            return

        wait_idx = pick_waiting_index(customer, roster)
        if wait_idx is not None:
            station = self.stations[wait_idx]
            station.enqueue(customer)
            self.schedule(event.waits(station))
            self.stats.log_wait(customer, station, event.time)
            return

        self.schedule(event.leaves())
        self.stats.log_leave(customer, event.time)

    def handle_served(self, event: Event) -> None:
        """Service time is drawn only once the customer is actually served."""
        station = event.require_station()
        service_time = self.random_source.service_time()
        self.schedule(event.done(service_time))
        self.stats.log_service_start(event.customer, station, event.time, service_time)

    def handle_completion(self, event: Event) -> None:
        """
        DONE first checks whether the station rests; resting defers the queue
        until the STATION_RESTS event fires. Otherwise take the next waiting
        customer or go idle.
        """
        station = event.require_station()
        if event.status is EventStatus.DONE:
            self.stats.log_service_completion(event.customer, station, event.time)
            if station.decides_to_rest(self.random_source, self.rest_probability):
                rest_time = self.random_source.rest_period()
                self.schedule(event.station_rests(rest_time))
                self.stats.log_station_rest(station, event.time, rest_time)
                return

        if station.has_waiting_customer():
            waiting_customer = station.dequeue_next()
            serve_event = event.served(station, waiting_customer)
            self.schedule(serve_event)
            self.stats.log_queue_wait(waiting_customer, station, serve_event.customer_waiting_time(), event.time)
        else:
            station.clear()


def run_simulation(config: SimulationConfig, random_source=None, on_event=None) -> SimulationResult:
    simulator = EventSimulator.initialise(config, random_source)
    return simulator.run(on_event=on_event)
