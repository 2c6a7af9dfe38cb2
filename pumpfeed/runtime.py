"""pumpfeed runtime entrypoint.

This module provides the ASGI application factory used by Granian
(``pumpfeed.runtime:create_app``) and the ``main`` function that starts the
server. The factory reads stream configuration, builds the shared event bus,
loads the upstream client named by ``PUMPFEED_UPSTREAM_CLIENT``, and hands
everything to :func:`pumpfeed.api.app.create_app`.

Configuration is driven by environment variables:

- ``PUMPFEED_HOST``: Bind address (default ``0.0.0.0``)
- ``PUMPFEED_PORT``: Listen port (default ``8724``)
- ``PUMPFEED_LOG_LEVEL``: Log level (default ``INFO``)
- ``PUMPFEED_BUS_CAPACITY``: Events retained for slow listeners
  (default ``1000``)
- ``PUMPFEED_*`` stream settings, see :class:`pumpfeed.stream.config.StreamConfig`

The event bus is in-process, so the server always runs a single worker.

Run the service directly with ``python -m pumpfeed.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from pumpfeed.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_DEFAULT_PORT = "8724"

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid PUMPFEED_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def _parse_capacity(raw: str | None) -> int:
    """Parse the bus capacity, exiting on invalid values."""
    from pumpfeed.bus import DEFAULT_CAPACITY

    if raw is None or not raw.strip():
        return DEFAULT_CAPACITY
    try:
        capacity = int(raw)
        if capacity < 1:
            msg = f"capacity {capacity} must be positive"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(logger, "Invalid PUMPFEED_BUS_CAPACITY value: %r: %s", raw, exc)
        raise SystemExit(1) from exc
    return capacity


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application with bus and supervisor wired in.

    Without ``PUMPFEED_UPSTREAM_CLIENT`` the app serves ``/events``,
    ``/health`` and ``/ready`` but never publishes.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    Raises
    ------
    SystemExit
        If stream configuration is invalid or the upstream client cannot be
        loaded.

    """
    from pumpfeed.api.app import AppDependencies
    from pumpfeed.api.app import create_app as _create_api_app
    from pumpfeed.bus import EventBus
    from pumpfeed.stream import (
        StreamConfig,
        StreamConfigError,
        StreamSupervisor,
        UpstreamConfigError,
        load_upstream_client,
    )

    bus = EventBus(capacity=_parse_capacity(os.environ.get("PUMPFEED_BUS_CAPACITY")))

    try:
        config = StreamConfig.from_env()
        client = (
            load_upstream_client(config.client_factory, config)
            if config.client_factory is not None
            else None
        )
    except (StreamConfigError, UpstreamConfigError) as exc:
        log_error(logger, "Invalid stream configuration: %s", exc)
        raise SystemExit(1) from exc

    if client is None:
        log_warning(
            logger,
            "PUMPFEED_UPSTREAM_CLIENT is not set; no events will be published",
        )
        return _create_api_app(AppDependencies(bus=bus))

    supervisor = StreamSupervisor(client, bus, config)
    return _create_api_app(AppDependencies(bus=bus, supervisor=supervisor))


def main() -> None:
    """Start the pumpfeed server using Granian.

    Reads ``PUMPFEED_HOST``, ``PUMPFEED_PORT``, and ``PUMPFEED_LOG_LEVEL``
    from the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("PUMPFEED_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("PUMPFEED_PORT", _DEFAULT_PORT))
    log_level_str = os.environ.get("PUMPFEED_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid PUMPFEED_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting pumpfeed on http://%s:%d/events (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "pumpfeed.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
        workers=1,
    )
    server.serve()


if __name__ == "__main__":
    main()
