"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from pumpfeed.bus import EventBus

if typ.TYPE_CHECKING:
    from pumpfeed.stream.models import CreateEvent

_PUMPFEED_ENV_VARS = (
    "PUMPFEED_UPSTREAM_ENDPOINT",
    "PUMPFEED_PROGRAM_ID",
    "PUMPFEED_COMMITMENT",
    "PUMPFEED_BACKOFF_INITIAL_S",
    "PUMPFEED_BACKOFF_MAX_S",
    "PUMPFEED_UPSTREAM_CLIENT",
    "PUMPFEED_BUS_CAPACITY",
    "PUMPFEED_HOST",
    "PUMPFEED_PORT",
    "PUMPFEED_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_pumpfeed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove pumpfeed settings inherited from the developer's shell."""
    for name in _PUMPFEED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def bus() -> EventBus[CreateEvent]:
    """Return a small event bus so lag scenarios stay cheap."""
    return EventBus(capacity=4)
