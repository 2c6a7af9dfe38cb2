"""ASGI lifespan middleware owning the upstream supervisor task.

The supervisor must run on the server's event loop, so it is started from
the lifespan ``startup`` event rather than at import time. On ``shutdown``
the supervisor is told to stop, its task is cancelled so a pending upstream
read returns immediately, and the bus is closed so every open event stream
finishes.

Usage
-----
Register the middleware when creating the Falcon app::

    lifecycle = SupervisorLifecycle(bus, supervisor)
    app = falcon.asgi.App(middleware=[lifecycle])

"""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from pumpfeed.logging import get_logger, log_exception, log_info

if typ.TYPE_CHECKING:
    from pumpfeed.bus import EventBus
    from pumpfeed.stream.models import CreateEvent
    from pumpfeed.stream.supervisor import StreamSupervisor

__all__ = ["SupervisorLifecycle"]

logger = get_logger(__name__)


class SupervisorLifecycle:
    """Falcon lifespan middleware running the supervisor for the app's lifetime.

    Parameters
    ----------
    bus
        Event bus shared by the supervisor and the event stream resource.
    supervisor
        Supervisor to run, or ``None`` when no upstream is configured.

    """

    def __init__(
        self,
        bus: EventBus[CreateEvent],
        supervisor: StreamSupervisor | None = None,
    ) -> None:
        """Store the bus and supervisor managed across the lifespan."""
        self._bus = bus
        self._supervisor = supervisor
        self._task: asyncio.Task[None] | None = None

    @property
    def task(self) -> asyncio.Task[None] | None:
        """Return the running supervisor task, if started."""
        return self._task

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Spawn the supervisor task on the server's event loop."""
        if self._supervisor is None:
            log_info(logger, "No upstream client configured; serving without a feed")
            return
        self._task = asyncio.create_task(
            self._supervisor.run(), name="pumpfeed-supervisor"
        )
        self._task.add_done_callback(_report_exit)
        log_info(logger, "Upstream supervisor started")

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Stop the supervisor, wait for its task, and close the bus."""
        if self._supervisor is not None:
            self._supervisor.stop()
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._bus.close()
        log_info(logger, "Upstream supervisor stopped; event bus closed")


def _report_exit(task: asyncio.Task[None]) -> None:
    """Log a supervisor task that died with an unexpected error."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log_exception(logger, "Upstream supervisor exited unexpectedly", exc)
