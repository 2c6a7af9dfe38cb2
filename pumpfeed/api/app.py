"""Application factory for the pumpfeed Falcon ASGI application.

Usage
-----
Create an app with a private bus and no upstream feed::

    app = create_app()

Create an app wired to a running supervisor::

    from pumpfeed.api.app import AppDependencies, create_app

    deps = AppDependencies(bus=bus, supervisor=supervisor)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from pumpfeed.api.errors import handle_bus_closed
from pumpfeed.api.events.resources import DEFAULT_KEEPALIVE_S, EventStreamResource
from pumpfeed.api.health.resources import HealthResource, ReadyResource
from pumpfeed.api.middleware import SupervisorLifecycle
from pumpfeed.bus import BusClosedError, EventBus

if typ.TYPE_CHECKING:
    from pumpfeed.stream.models import CreateEvent
    from pumpfeed.stream.supervisor import StreamSupervisor

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    bus
        Event bus fanned out to ``/events`` listeners.
    supervisor
        Upstream supervisor run for the app's lifespan. ``None`` serves the
        HTTP surface without a feed.
    sse_keepalive_s
        Idle seconds before an ``/events`` stream sends a comment ping.

    """

    bus: EventBus[CreateEvent] = dc.field(default_factory=EventBus)
    supervisor: StreamSupervisor | None = None
    sse_keepalive_s: float = DEFAULT_KEEPALIVE_S


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Registers ``/events``, ``/health`` and ``/ready`` and attaches the
    lifespan middleware that runs the supervisor.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, a fresh bus is
        created and no supervisor runs.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    lifecycle = SupervisorLifecycle(deps.bus, deps.supervisor)

    app = falcon.asgi.App(middleware=[lifecycle])  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route(
        "/events", EventStreamResource(deps.bus, keepalive=deps.sse_keepalive_s)
    )
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(deps.supervisor))

    app.add_error_handler(BusClosedError, handle_bus_closed)

    return app
