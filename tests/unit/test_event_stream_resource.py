"""Unit tests for the SSE frame generator."""

from __future__ import annotations

import pytest

from pumpfeed.api.events.resources import encode_event, event_frames
from pumpfeed.bus import EventBus
from pumpfeed.stream.models import CreateEvent


def _event(slot: int) -> CreateEvent:
    return CreateEvent(
        signature=f"sig{slot}",
        mint_address=f"mint{slot}pump",
        creator_address="creator",
        slot=slot,
    )


def test_encode_event_is_compact_json() -> None:
    """Frames carry compact JSON with the fixed field order."""
    assert encode_event(_event(3)) == (
        b'{"signature":"sig3","mint_address":"mint3pump",'
        b'"creator_address":"creator","slot":3}'
    )


@pytest.mark.asyncio
async def test_frames_follow_bus_until_close(bus: EventBus[CreateEvent]) -> None:
    """One frame per event, then the generator ends and detaches."""
    subscription = bus.subscribe()
    bus.publish(_event(1))
    bus.publish(_event(2))
    bus.close()

    frames = [frame async for frame in event_frames(subscription)]

    assert [frame.serialize() for frame in frames] == [  # type: ignore[union-attr]
        b"data: " + encode_event(_event(1)) + b"\n\n",
        b"data: " + encode_event(_event(2)) + b"\n\n",
    ]
    assert subscription.closed is True


@pytest.mark.asyncio
async def test_lag_is_skipped(bus: EventBus[CreateEvent]) -> None:
    """A lagging listener sees a gap rather than an error."""
    subscription = bus.subscribe()
    for slot in range(bus.capacity + 2):
        bus.publish(_event(slot))
    bus.close()

    frames = [frame async for frame in event_frames(subscription)]

    assert len(frames) == bus.capacity
    assert frames[0] is not None
    assert frames[0].data == encode_event(_event(2))
    assert subscription.dropped == 2


@pytest.mark.asyncio
async def test_client_disconnect_detaches(bus: EventBus[CreateEvent]) -> None:
    """Closing the generator early releases the subscription."""
    subscription = bus.subscribe()
    frames = event_frames(subscription)
    bus.publish(_event(1))

    await anext(frames)
    await frames.aclose()

    assert subscription.closed is True
    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_idle_stream_yields_keepalive(bus: EventBus[CreateEvent]) -> None:
    """Silence longer than the keepalive yields a ping, then events resume."""
    subscription = bus.subscribe()
    frames = event_frames(subscription, keepalive=0.01)

    assert await anext(frames) is None

    bus.publish(_event(4))
    frame = await anext(frames)
    await frames.aclose()

    assert frame is not None
    assert frame.data == encode_event(_event(4))
    assert subscription.closed is True
