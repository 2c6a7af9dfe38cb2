"""Behavioural coverage for the pumpfeed runtime service."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when

if typ.TYPE_CHECKING:
    from falcon.testing.client import Result


class RuntimeContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    client: falcon.testing.TestClient
    response: Result


@scenario("../runtime.feature", "Health endpoint returns OK")
def test_health_endpoint_returns_ok() -> None:
    """Wrap the pytest-bdd scenario for the health endpoint."""


@scenario("../runtime.feature", "Ready endpoint reports a missing upstream")
def test_ready_endpoint_reports_missing_upstream() -> None:
    """Wrap the pytest-bdd scenario for the ready endpoint."""


@pytest.fixture
def runtime_context() -> RuntimeContext:
    """Provide fresh context for each scenario."""
    return {}


@given("a running pumpfeed app without an upstream client")
def given_running_app(runtime_context: RuntimeContext) -> None:
    """Build the runtime app from an empty environment."""
    from pumpfeed.runtime import create_app

    runtime_context["client"] = falcon.testing.TestClient(create_app())


@when(parsers.parse("I request GET {path}"))
def when_request_get(runtime_context: RuntimeContext, path: str) -> None:
    """Issue a GET request to the given path."""
    runtime_context["response"] = runtime_context["client"].simulate_get(path)


@then(parsers.parse("the response status is {status:d}"))
def then_response_status(runtime_context: RuntimeContext, status: int) -> None:
    """Assert the HTTP response status code."""
    response = runtime_context["response"]
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}"
    )


@then(parsers.parse('the response text is "{text}"'))
def then_response_text(runtime_context: RuntimeContext, text: str) -> None:
    """Assert the plain-text response body."""
    assert runtime_context["response"].text == text
