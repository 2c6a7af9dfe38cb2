"""Supervisor keeping the upstream subscription alive.

One task runs :meth:`StreamSupervisor.run` for the life of the process. Each
attempt connects, sends a single subscription request, and reads updates
until the upstream closes the stream or something fails. Updates are
classified inline and matches are published to the event bus, which never
blocks. Every failure is retried with capped exponential backoff; a clean
close restarts the backoff schedule from the floor.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

import msgspec

from pumpfeed.logging import get_logger, log_warning

from .classifier import classify_update
from .config import StreamConfig
from .errors import (
    UpstreamConnectError,
    UpstreamError,
    UpstreamSendError,
    UpstreamStreamError,
)
from .models import build_subscribe_request
from .observability import (
    ConnectionContext,
    ConnectionSummary,
    SubscriptionEventLogger,
)
from .state import Signal, SupervisorState, initial_state, transition
from .upstream import coerce_update

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pumpfeed.bus import EventBus

    from .models import CreateEvent
    from .upstream import UpstreamClient, UpstreamSession

    type Sleep = cabc.Callable[[float], cabc.Awaitable[None]]

logger = get_logger(__name__)


@dataclasses.dataclass(slots=True)
class _AttemptCounters:
    """Mutable per-connection counters."""

    updates_seen: int = 0
    events_published: int = 0


class StreamSupervisor:
    """Drive the reconnect state machine against an upstream client."""

    def __init__(
        self,
        client: UpstreamClient,
        bus: EventBus[CreateEvent],
        config: StreamConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        event_logger: SubscriptionEventLogger | None = None,
    ) -> None:
        """Bind the supervisor to its upstream client and output bus."""
        self._client = client
        self._bus = bus
        self._config = config or StreamConfig()
        self._policy = self._config.backoff
        self._request = build_subscribe_request(
            self._config.program_id, self._config.commitment
        )
        self._sleep = sleep
        self._event_logger = event_logger or SubscriptionEventLogger()
        self._state = initial_state(self._policy)
        self._stop_requested = False
        self._attempts = 0
        self.events_published = 0

    @property
    def state(self) -> SupervisorState:
        """Return the current reconnect state."""
        return self._state

    @property
    def attempts(self) -> int:
        """Return the number of connection attempts made so far."""
        return self._attempts

    def stop(self) -> None:
        """Ask the loop to exit at its next suspension point.

        No event is published once this has been called. A task blocked on
        the upstream should also be cancelled for a prompt exit.
        """
        self._stop_requested = True

    async def run(self) -> None:
        """Connect, stream, and reconnect until :meth:`stop` is called."""
        while not self._stop_requested:
            if self._state.delay > 0:
                await self._sleep(self._state.delay)
                if self._stop_requested:
                    break

            self._advance(Signal.RETRY)
            self._attempts += 1
            context = ConnectionContext(
                endpoint=self._config.endpoint, attempt=self._attempts
            )
            counters = _AttemptCounters()
            try:
                await self._run_attempt(context, counters)
            except UpstreamError as exc:
                self._advance(Signal.FAILED)
                self._event_logger.log_stream_failed(
                    context, exc, self._summary(counters)
                )
                continue

            if self._stop_requested:
                break
            self._advance(Signal.CLOSED)
            self._event_logger.log_stream_closed(context, self._summary(counters))

    def _advance(self, signal: Signal) -> None:
        self._state = transition(self._state, signal, self._policy)

    def _summary(self, counters: _AttemptCounters) -> ConnectionSummary:
        return ConnectionSummary(
            updates_seen=counters.updates_seen,
            events_published=counters.events_published,
            retry_in_seconds=self._state.delay,
        )

    async def _run_attempt(
        self, context: ConnectionContext, counters: _AttemptCounters
    ) -> None:
        """Run one connection from handshake to stream end."""
        self._event_logger.log_connect_started(context)
        session = await self._connect()
        try:
            await self._subscribe(session)
            self._advance(Signal.SUBSCRIBED)
            self._event_logger.log_subscribed(
                context, self._config.program_id, self._config.commitment
            )
            await self._consume(session, context, counters)
        finally:
            await self._close_session(session, context)

    async def _connect(self) -> UpstreamSession:
        endpoint = self._config.endpoint
        try:
            return await self._client.connect(endpoint)
        except UpstreamError:
            raise
        except Exception as exc:  # noqa: BLE001 - every transport failure is retried
            raise UpstreamConnectError.wrap(exc, endpoint=endpoint) from exc

    async def _subscribe(self, session: UpstreamSession) -> None:
        try:
            await session.send(self._request)
        except UpstreamError:
            raise
        except Exception as exc:  # noqa: BLE001 - send failure counts as connect failure
            raise UpstreamSendError.wrap(exc, endpoint=self._config.endpoint) from exc

    async def _next_update(
        self, updates: cabc.AsyncIterator[object]
    ) -> tuple[bool, object]:
        """Return ``(True, raw)`` for the next update or ``(False, None)`` at end."""
        try:
            return (True, await anext(updates))
        except StopAsyncIteration:
            return (False, None)
        except UpstreamError:
            raise
        except Exception as exc:  # noqa: BLE001 - mid-stream failures are retried
            raise UpstreamStreamError.wrap(exc, endpoint=self._config.endpoint) from exc

    async def _consume(
        self,
        session: UpstreamSession,
        context: ConnectionContext,
        counters: _AttemptCounters,
    ) -> None:
        """Classify updates and publish matches until the stream ends."""
        updates = aiter(session.updates())
        while not self._stop_requested:
            has_update, raw = await self._next_update(updates)
            if not has_update:
                return
            counters.updates_seen += 1
            self._advance(Signal.UPDATE)

            try:
                update = coerce_update(raw)
            except msgspec.ValidationError as exc:
                self._event_logger.log_update_malformed(context, exc)
                continue

            event = classify_update(update, program_id=self._config.program_id)
            if event is None or self._stop_requested:
                continue

            receivers = self._bus.publish(event)
            counters.events_published += 1
            self.events_published += 1
            self._event_logger.log_event_published(event, receivers)

    async def _close_session(
        self, session: UpstreamSession, context: ConnectionContext
    ) -> None:
        try:
            await session.close()
        except Exception as exc:  # noqa: BLE001 - the connection is discarded either way
            log_warning(
                logger,
                "Failed to close upstream session endpoint=%s attempt=%d: %s",
                context.endpoint,
                context.attempt,
                exc,
                exc_info=exc,
            )


__all__ = ["StreamSupervisor"]
