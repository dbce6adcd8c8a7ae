# v1
# file: shopsim/roster.py

"""
Read-only snapshot of every station's occupancy and queue state, built once per
arrival. Routing reasons over these abstract entries only, without knowing
whether a queue length came from a private or a shared queue.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple


class StationStatus(Enum):
    AVAILABLE = "available"
    FULL = "full"
    QUEUEING = "queueing"


@dataclass(frozen=True)
class RosterEntry:
    status: StationStatus
    queue_length: int = 0

    @property
    def is_available(self) -> bool:
        return self.status is StationStatus.AVAILABLE

    @property
    def is_full(self) -> bool:
        return self.status is StationStatus.FULL

    def wait_rank(self) -> int:
        """Ordering key for shortest-queue selection; idle stations rank first."""
        return -1 if self.is_available else self.queue_length


AVAILABLE = RosterEntry(StationStatus.AVAILABLE)


def classify(station) -> RosterEntry:
    if station.can_serve():
        return AVAILABLE
    if not station.can_enqueue():
        return RosterEntry(StationStatus.FULL, station.queue_length())
    return RosterEntry(StationStatus.QUEUEING, station.queue_length())


@dataclass(frozen=True)
class RosterSummary:
    """One entry per station, in station-list order."""

    entries: Tuple[RosterEntry, ...]

    @classmethod
    def build(cls, stations: Iterable) -> "RosterSummary":
        return cls(tuple(classify(station) for station in stations))

    def first_available_index(self) -> Optional[int]:
        for idx, entry in enumerate(self.entries):
            if entry.is_available:
                return idx
        return None

    def first_waiting_index(self) -> Optional[int]:
        for idx, entry in enumerate(self.entries):
            if not entry.is_full:
                return idx
        return None

    def shortest_waiting_index(self) -> Optional[int]:
        """Non-full entry with the smallest queue; the earliest index wins ties."""
        best = self.first_waiting_index()
        if best is None:
            return None
        for idx in range(best + 1, len(self.entries)):
            entry = self.entries[idx]
            if not entry.is_full and entry.wait_rank() < self.entries[best].wait_rank():
                best = idx
        return best
