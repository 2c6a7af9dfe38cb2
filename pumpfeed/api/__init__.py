"""pumpfeed HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: the ``/events`` server-sent event stream plus liveness
and readiness probes.

Usage
-----
Create and run the application::

    from pumpfeed.api import create_app

    app = create_app()              # no upstream feed
    app = create_app(dependencies)  # bus and supervisor supplied by runtime

Public API
----------
create_app
    Application factory that registers the event stream and probes and
    runs the supervisor across the ASGI lifespan.
"""

from pumpfeed.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
