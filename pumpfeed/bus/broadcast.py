"""Single-producer, multi-consumer broadcast with bounded history.

The bus keeps the most recent ``capacity`` events in a ring and a running
sequence number for the next event. Each :class:`Subscription` holds its own
cursor into that sequence, so publishing never waits on a reader: a reader
that falls more than ``capacity`` events behind is fast-forwarded to the
oldest retained event and told how many it missed.

All state lives on one event loop. ``publish`` is synchronous and never
suspends; readers suspend on an :class:`asyncio.Event` that is swapped out
on every publish.

Usage
-----
::

    bus: EventBus[CreateEvent] = EventBus(capacity=1000)

    async with bus.subscribe() as subscription:
        while True:
            try:
                event = await subscription.recv()
            except LaggedError:
                continue
            ...

    bus.publish(event)

"""

from __future__ import annotations

import asyncio
import collections
import typing as typ

from .errors import BusClosedError, LaggedError

if typ.TYPE_CHECKING:
    import types

DEFAULT_CAPACITY = 1000


class EventBus[T]:
    """Broadcast events to every attached subscription without blocking."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Create an empty bus retaining at most *capacity* events."""
        if capacity < 1:
            msg = f"capacity must be positive, got: {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._ring: collections.deque[T] = collections.deque(maxlen=capacity)
        self._tail = 0
        self._wakeup = asyncio.Event()
        self._subscriptions: set[Subscription[T]] = set()
        self._closed = False

    @property
    def capacity(self) -> int:
        """Return the number of events retained for slow readers."""
        return self._capacity

    @property
    def subscriber_count(self) -> int:
        """Return the number of attached subscriptions."""
        return len(self._subscriptions)

    @property
    def closed(self) -> bool:
        """Return True once :meth:`close` has been called."""
        return self._closed

    @property
    def _head(self) -> int:
        """Sequence number of the oldest retained event."""
        return self._tail - len(self._ring)

    def publish(self, event: T) -> int:
        """Append *event* and wake waiting readers.

        Overwrites the oldest event when the ring is full. Never suspends.

        Returns
        -------
        int
            Number of subscriptions attached at publish time.

        Raises
        ------
        BusClosedError
            If the bus has been closed.

        """
        if self._closed:
            raise BusClosedError.bus_closed()
        self._ring.append(event)
        self._tail += 1
        self._notify()
        return len(self._subscriptions)

    def subscribe(self) -> Subscription[T]:
        """Attach a subscription positioned after the latest event."""
        if self._closed:
            raise BusClosedError.bus_closed()
        subscription = Subscription(self, self._tail)
        self._subscriptions.add(subscription)
        return subscription

    def close(self) -> None:
        """Stop accepting events; readers drain the ring then see the close."""
        if self._closed:
            return
        self._closed = True
        self._notify()

    def _notify(self) -> None:
        waiter, self._wakeup = self._wakeup, asyncio.Event()
        waiter.set()

    def _detach(self, subscription: Subscription[T]) -> None:
        self._subscriptions.discard(subscription)
        self._notify()


class Subscription[T]:
    """Independent read cursor over an :class:`EventBus`."""

    def __init__(self, bus: EventBus[T], cursor: int) -> None:
        """Bind to *bus* starting at sequence number *cursor*."""
        self._bus = bus
        self._cursor = cursor
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        """Return True once the subscription has been detached."""
        return self._closed

    async def recv(self) -> T:
        """Return the next event, waiting for one if necessary.

        Raises
        ------
        LaggedError
            Once per gap, when older events were overwritten before this
            subscription read them.
        BusClosedError
            When the subscription is detached, or the bus is closed and every
            retained event has been read.

        """
        bus = self._bus
        while True:
            if self._closed:
                raise BusClosedError.detached()

            waiter = bus._wakeup  # noqa: SLF001 - same-module collaborator
            head = bus._head  # noqa: SLF001
            if self._cursor < head:
                skipped = head - self._cursor
                self._cursor = head
                self.dropped += skipped
                raise LaggedError(skipped)

            if self._cursor < bus._tail:  # noqa: SLF001
                event = bus._ring[self._cursor - head]  # noqa: SLF001
                self._cursor += 1
                return event

            if bus.closed:
                raise BusClosedError.bus_closed()
            await waiter.wait()

    def close(self) -> None:
        """Detach from the bus; other subscriptions are unaffected."""
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self)  # noqa: SLF001

    async def __aenter__(self) -> typ.Self:
        """Return the subscription for use in ``async with``."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: types.TracebackType | None,
    ) -> None:
        """Detach from the bus."""
        self.close()

    def __aiter__(self) -> typ.Self:
        """Iterate events until the subscription or bus closes."""
        return self

    async def __anext__(self) -> T:
        """Return the next event; lag signals propagate to the caller."""
        try:
            return await self.recv()
        except BusClosedError:
            raise StopAsyncIteration from None


__all__ = ["DEFAULT_CAPACITY", "EventBus", "Subscription"]
