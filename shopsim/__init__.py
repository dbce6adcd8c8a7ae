"""Discrete-event simulation of a shop with servers and self-checkout counters."""
