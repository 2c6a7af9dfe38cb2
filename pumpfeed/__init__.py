"""pumpfeed: republish pump.fun token creations as a server-sent event stream."""

from __future__ import annotations

__version__ = "0.1.0"
