"""In-process fan-out of creation events to stream subscribers."""

from __future__ import annotations

from .broadcast import DEFAULT_CAPACITY, EventBus, Subscription
from .errors import BusClosedError, LaggedError

__all__ = [
    "DEFAULT_CAPACITY",
    "BusClosedError",
    "EventBus",
    "LaggedError",
    "Subscription",
]
