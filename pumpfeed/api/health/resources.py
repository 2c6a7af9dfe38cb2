"""Liveness and readiness probe resources.

``/health`` only proves the process is serving requests; it deliberately
ignores upstream connectivity. ``/ready`` reports whether the upstream
subscription is currently live, so orchestrators can hold traffic while the
supervisor is reconnecting.

Usage
-----
Register health endpoints on the Falcon app::

    from pumpfeed.api.health.resources import HealthResource, ReadyResource

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(supervisor))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from pumpfeed.stream.supervisor import StreamSupervisor

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe resource returning a plain-text ``OK``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with the liveness body.

        """
        resp.content_type = falcon.MEDIA_TEXT
        resp.text = "OK"
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reflecting the upstream subscription phase.

    Responds 200 while the supervisor is subscribed or streaming and 503
    otherwise, including when no upstream client is configured.

    """

    def __init__(self, supervisor: StreamSupervisor | None = None) -> None:
        """Bind the probe to the supervisor whose state it reports."""
        self._supervisor = supervisor

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        if self._supervisor is None:
            resp.media = {"status": "not_ready", "upstream": "unconfigured"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return

        state = self._supervisor.state
        if state.is_live:
            resp.media = {"status": "ready", "upstream": str(state.phase)}
            resp.status = HTTPStatus.OK
        else:
            resp.media = {"status": "not_ready", "upstream": str(state.phase)}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
