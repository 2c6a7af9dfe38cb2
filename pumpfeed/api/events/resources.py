"""Server-sent event gateway between the event bus and HTTP listeners.

Each ``GET /events`` request attaches one bus subscription and streams every
delivered event as a ``data: <json>`` frame. Lag signals are skipped: the
listener simply sees a gap. When the client disconnects, or the bus closes
at shutdown, the frame generator finishes and the subscription detaches.
Idle streams send a comment ping every few seconds so that a vanished
client is noticed even when no events arrive.
"""

from __future__ import annotations

import asyncio
import typing as typ

import falcon
import msgspec
from falcon.asgi import SSEvent

from pumpfeed.bus import BusClosedError, LaggedError
from pumpfeed.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

    from pumpfeed.bus import EventBus, Subscription
    from pumpfeed.stream.models import CreateEvent

__all__ = [
    "DEFAULT_KEEPALIVE_S",
    "EventStreamResource",
    "encode_event",
    "event_frames",
]

logger = get_logger(__name__)

_EVENT_STREAM = "text/event-stream"

# Seconds of silence before an idle stream sends a comment ping.
DEFAULT_KEEPALIVE_S = 15.0

_encoder = msgspec.json.Encoder()


def encode_event(event: CreateEvent) -> bytes:
    """Serialise *event* to the compact JSON carried in each frame."""
    return _encoder.encode(event)


async def event_frames(
    subscription: Subscription[CreateEvent],
    keepalive: float = DEFAULT_KEEPALIVE_S,
) -> cabc.AsyncIterator[SSEvent | None]:
    """Yield one SSE frame per delivered event until the stream ends.

    After *keepalive* seconds without an event the generator yields ``None``,
    which Falcon sends as a comment ping. Falcon only notices a client
    disconnect between yields, so an idle stream must keep yielding for its
    subscription to be released.

    The subscription is always detached when the generator finishes,
    including when the server closes it after a client disconnect.
    """
    try:
        while True:
            try:
                async with asyncio.timeout(keepalive):
                    event = await subscription.recv()
            except TimeoutError:
                yield None
                continue
            except LaggedError as exc:
                log_debug(
                    logger, "Event stream listener lagged; skipped %d events", exc.skipped
                )
                continue
            except BusClosedError:
                return
            yield SSEvent(data=encode_event(event))
    finally:
        subscription.close()


class EventStreamResource:
    """``GET /events``: long-lived SSE stream of creation events."""

    def __init__(
        self, bus: EventBus[CreateEvent], keepalive: float = DEFAULT_KEEPALIVE_S
    ) -> None:
        """Bind the resource to the bus it subscribes to per request."""
        self._bus = bus
        self._keepalive = keepalive

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Attach a subscription and stream it to the caller.

        Raises
        ------
        BusClosedError
            If the service is shutting down; mapped to 503 by the app.

        """
        subscription = self._bus.subscribe()
        resp.content_type = _EVENT_STREAM
        resp.cache_control = ["no-cache"]
        resp.set_header("Connection", "keep-alive")
        resp.status = falcon.HTTP_200
        resp.sse = event_frames(subscription, self._keepalive)
