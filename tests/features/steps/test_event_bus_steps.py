"""Step definitions for event fan-out scenarios."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from pumpfeed.bus import EventBus, LaggedError, Subscription
from pumpfeed.stream.models import CreateEvent

scenarios("../event_bus.feature")

_CAPACITY = 4


class BusContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    bus: EventBus[CreateEvent]
    subscriptions: list[Subscription[CreateEvent]]
    lagged: LaggedError


@pytest.fixture
def bus_context() -> BusContext:
    """Provide fresh context for each scenario."""
    return {}


def _event(slot: int) -> CreateEvent:
    return CreateEvent(
        signature=f"sig{slot}",
        mint_address=f"mint{slot}pump",
        creator_address="creator",
        slot=slot,
    )


def _attached(context: BusContext) -> list[Subscription[CreateEvent]]:
    return [sub for sub in context["subscriptions"] if not sub.closed]


@given(parsers.parse("an event bus with {count:d} subscribers"))
def given_bus(bus_context: BusContext, count: int) -> None:
    """Attach *count* subscriptions to a small bus."""
    bus: EventBus[CreateEvent] = EventBus(capacity=_CAPACITY)
    bus_context["bus"] = bus
    bus_context["subscriptions"] = [bus.subscribe() for _ in range(count)]


@when(parsers.parse("an event for slot {slot:d} is published"))
def when_published(bus_context: BusContext, slot: int) -> None:
    """Publish one event."""
    bus_context["bus"].publish(_event(slot))


@when(parsers.parse("{count:d} events are published without reading"))
def when_many_published(bus_context: BusContext, count: int) -> None:
    """Publish *count* events while nobody reads."""
    for slot in range(count):
        bus_context["bus"].publish(_event(slot))


@when(parsers.parse("subscriber {index:d} disconnects"))
def when_disconnects(bus_context: BusContext, index: int) -> None:
    """Close the one-based *index*-th subscription."""
    bus_context["subscriptions"][index - 1].close()


def _receive_all(
    subscriptions: list[Subscription[CreateEvent]],
) -> list[CreateEvent]:
    async def _gather() -> list[CreateEvent]:
        return [await sub.recv() for sub in subscriptions]

    return asyncio.run(_gather())


@then(parsers.parse("every subscriber receives the event for slot {slot:d}"))
def then_everyone_receives(bus_context: BusContext, slot: int) -> None:
    """Each subscription yields the published event."""
    received = _receive_all(bus_context["subscriptions"])
    assert [event.slot for event in received] == [slot] * len(received)


@then(
    parsers.parse("the remaining {count:d} subscribers receive the event for slot {slot:d}")
)
def then_remaining_receive(bus_context: BusContext, count: int, slot: int) -> None:
    """Attached subscriptions keep receiving after a disconnect."""
    attached = _attached(bus_context)
    assert len(attached) == count
    assert bus_context["bus"].subscriber_count == count
    received = _receive_all(attached)
    assert [event.slot for event in received] == [slot] * count


@then(parsers.parse("the subscriber is told {skipped:d} events were dropped"))
def then_lagged(bus_context: BusContext, skipped: int) -> None:
    """The first read after the stall reports the gap."""
    (subscription,) = bus_context["subscriptions"]
    with pytest.raises(LaggedError) as excinfo:
        asyncio.run(subscription.recv())
    assert excinfo.value.skipped == skipped


@then(parsers.parse("the subscriber resumes at slot {slot:d}"))
def then_resumes(bus_context: BusContext, slot: int) -> None:
    """Reading continues from the oldest retained event."""
    (subscription,) = bus_context["subscriptions"]
    (event,) = _receive_all([subscription])
    assert event.slot == slot
