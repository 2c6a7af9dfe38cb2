"""Scripted upstream collaborators for supervisor tests."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    from pumpfeed.stream.models import SubscribeRequest
    from pumpfeed.stream.supervisor import StreamSupervisor


@dataclasses.dataclass(slots=True)
class SessionScript:
    """Behaviour of one upstream session.

    ``updates`` are yielded in order; afterwards the stream raises
    ``stream_error`` if set, blocks forever if ``hang`` is set, or ends
    cleanly.
    """

    updates: list[object] = dataclasses.field(default_factory=list)
    stream_error: BaseException | None = None
    send_error: BaseException | None = None
    hang: bool = False


@dataclasses.dataclass(slots=True)
class ConnectFailure:
    """A connection attempt that fails during the handshake."""

    error: BaseException


type Attempt = SessionScript | ConnectFailure


class FakeSession:
    """Upstream session replaying a :class:`SessionScript`."""

    def __init__(self, script: SessionScript) -> None:
        """Store the script and initialise call records."""
        self._script = script
        self.sent: list[SubscribeRequest] = []
        self.closed = False

    async def send(self, request: SubscribeRequest) -> None:
        """Record the request or fail as scripted."""
        if self._script.send_error is not None:
            raise self._script.send_error
        self.sent.append(request)

    async def updates(self) -> typ.AsyncIterator[object]:
        """Yield scripted updates, then end, fail, or hang."""
        for update in self._script.updates:
            await asyncio.sleep(0)
            yield update
        if self._script.stream_error is not None:
            raise self._script.stream_error
        if self._script.hang:
            await asyncio.Event().wait()

    async def close(self) -> None:
        """Mark the session closed."""
        self.closed = True


class FakeUpstreamClient:
    """Upstream client that plays back one scripted attempt per connect."""

    def __init__(self, attempts: typ.Sequence[Attempt]) -> None:
        """Queue the scripted attempts; extra connects are refused."""
        self._attempts = list(attempts)
        self.endpoints: list[str] = []
        self.sessions: list[FakeSession] = []

    async def connect(self, endpoint: str) -> FakeSession:
        """Return the next scripted session or raise its failure."""
        self.endpoints.append(endpoint)
        if not self._attempts:
            msg = "no more scripted attempts"
            raise ConnectionRefusedError(msg)
        attempt = self._attempts.pop(0)
        if isinstance(attempt, ConnectFailure):
            raise attempt.error
        session = FakeSession(attempt)
        self.sessions.append(session)
        return session


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays.

    Stops the bound supervisor once ``stop_after`` delays were requested so
    the run loop terminates deterministically.
    """

    def __init__(self, stop_after: int) -> None:
        """Configure how many sleeps happen before the supervisor is stopped."""
        self.delays: list[float] = []
        self._stop_after = stop_after
        self._supervisor: StreamSupervisor | None = None

    def bind(self, supervisor: StreamSupervisor) -> None:
        """Attach the supervisor to stop."""
        self._supervisor = supervisor

    async def __call__(self, delay: float) -> None:
        """Record *delay* and stop the supervisor when the budget is spent."""
        self.delays.append(delay)
        if len(self.delays) >= self._stop_after and self._supervisor is not None:
            self._supervisor.stop()
        await asyncio.sleep(0)
