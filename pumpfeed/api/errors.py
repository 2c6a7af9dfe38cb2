"""Falcon error handlers for the API layer.

Usage
-----
Register error handlers on the Falcon app::

    from pumpfeed.api.errors import handle_bus_closed
    from pumpfeed.bus import BusClosedError

    app.add_error_handler(BusClosedError, handle_bus_closed)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from pumpfeed.bus import BusClosedError

__all__ = ["handle_bus_closed"]


async def handle_bus_closed(
    _req: Request,
    resp: Response,
    ex: BusClosedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``BusClosedError`` to an HTTP 503 JSON response.

    Raised when a listener connects while the service is shutting down.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The closed-bus error raised while attaching the listener.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_503
    resp.media = {
        "title": "Service unavailable",
        "description": str(ex),
    }
