# v1
# file: shopsim/routing_policy.py

"""
Customer routing policies for the shop simulation.

Serving-station selection is shared by every customer: the first idle station
in roster order. Waiting-queue selection depends on the customer's policy:
standard customers join the first queue with room, greedy customers join the
shortest queue with room. Lookups return None when nothing qualifies so the
engine can fall through serve -> wait -> leave without exceptions.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .entities import Customer, CustomerPolicy
from .roster import RosterSummary

WAIT_POLICIES: Dict[CustomerPolicy, Callable[[RosterSummary], Optional[int]]] = {
    CustomerPolicy.STANDARD: RosterSummary.first_waiting_index,
    CustomerPolicy.GREEDY: RosterSummary.shortest_waiting_index,
}


def pick_serving_index(customer: Customer, roster: RosterSummary) -> Optional[int]:
    return roster.first_available_index()


def pick_waiting_index(customer: Customer, roster: RosterSummary) -> Optional[int]:
    return WAIT_POLICIES[customer.policy](roster)
