"""Unit tests for upstream subscription observability."""

from __future__ import annotations

import msgspec
import pytest

from pumpfeed.stream.errors import (
    StreamConfigError,
    UpstreamConfigError,
    UpstreamConnectError,
    UpstreamSendError,
    UpstreamStreamError,
)
from pumpfeed.stream.models import CommitmentLevel, CreateEvent
from pumpfeed.stream.observability import (
    ConnectionContext,
    ConnectionSummary,
    ErrorCategory,
    SubscriptionEventLogger,
    SubscriptionEventType,
    categorize_error,
)
from tests.helpers.femtologging_capture import capture_femto_logs

LOGGER_NAME = "pumpfeed.stream.observability"
ENDPOINT = "http://node.test:10000"


class TestCategorizeError:
    """Failure categories used for alerting."""

    @pytest.mark.parametrize(
        ("exc", "category"),
        [
            (UpstreamConnectError("refused"), ErrorCategory.CONNECT),
            (UpstreamSendError("reset"), ErrorCategory.SEND),
            (UpstreamStreamError("eof"), ErrorCategory.STREAM),
            (UpstreamConfigError.invalid_spec("x"), ErrorCategory.CONFIGURATION),
            (StreamConfigError.empty("PUMPFEED_PROGRAM_ID"), ErrorCategory.CONFIGURATION),
            (ValueError("other"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categories(self, exc: BaseException, category: ErrorCategory) -> None:
        """Each upstream stage maps to its own category."""
        assert categorize_error(exc) == category


class TestSubscriptionEventLogger:
    """Structured log lines for the subscription lifecycle."""

    @pytest.fixture
    def event_logger(self) -> SubscriptionEventLogger:
        """Return a fresh event logger."""
        return SubscriptionEventLogger()

    @pytest.fixture
    def context(self) -> ConnectionContext:
        """Return a sample connection attempt."""
        return ConnectionContext(endpoint=ENDPOINT, attempt=3)

    @pytest.fixture
    def summary(self) -> ConnectionSummary:
        """Return sample counters for a finished connection."""
        return ConnectionSummary(updates_seen=12, events_published=2, retry_in_seconds=4)

    def test_connect_started_is_info(
        self, event_logger: SubscriptionEventLogger, context: ConnectionContext
    ) -> None:
        """Connection attempts are logged at INFO with the endpoint."""
        with capture_femto_logs(LOGGER_NAME) as capture:
            event_logger.log_connect_started(context)

        capture.wait_for_count(1)
        record = capture.records[0]
        assert record.level == "INFO"
        assert SubscriptionEventType.CONNECT_STARTED in record.message
        assert f"endpoint={ENDPOINT}" in record.message
        assert "attempt=3" in record.message

    def test_subscribed_names_commitment(
        self, event_logger: SubscriptionEventLogger, context: ConnectionContext
    ) -> None:
        """Accepted subscriptions log the program and commitment level."""
        with capture_femto_logs(LOGGER_NAME) as capture:
            event_logger.log_subscribed(context, "Prog1111", CommitmentLevel.CONFIRMED)

        capture.wait_for_count(1)
        message = capture.records[0].message
        assert "program_id=Prog1111" in message
        assert "commitment=confirmed" in message

    def test_stream_closed_is_warning(
        self,
        event_logger: SubscriptionEventLogger,
        context: ConnectionContext,
        summary: ConnectionSummary,
    ) -> None:
        """Clean closes are logged at WARN with counters and retry delay."""
        with capture_femto_logs(LOGGER_NAME) as capture:
            event_logger.log_stream_closed(context, summary)

        capture.wait_for_count(1)
        record = capture.records[0]
        assert record.level == "WARN"
        assert SubscriptionEventType.STREAM_CLOSED in record.message
        assert "updates_seen=12" in record.message
        assert "events_published=2" in record.message
        assert "retry_in_seconds=4.0" in record.message

    def test_stream_failed_is_error_with_category(
        self,
        event_logger: SubscriptionEventLogger,
        context: ConnectionContext,
        summary: ConnectionSummary,
    ) -> None:
        """Failures carry the error type and category."""
        error = UpstreamSendError.wrap(
            ConnectionResetError("reset by peer"), endpoint=ENDPOINT
        )

        with capture_femto_logs(LOGGER_NAME) as capture:
            event_logger.log_stream_failed(context, error, summary)

        capture.wait_for_count(1)
        record = capture.records[0]
        assert record.level == "ERROR"
        assert SubscriptionEventType.STREAM_FAILED in record.message
        assert "error_type=UpstreamSendError" in record.message
        assert "error_category=send" in record.message
        assert "reset by peer" in record.message

    def test_event_published_lists_fields(
        self, event_logger: SubscriptionEventLogger
    ) -> None:
        """Published events are logged with mint, creator and receiver count."""
        event = CreateEvent(
            signature="sig", mint_address="mintpump", creator_address="dev", slot=42
        )

        with capture_femto_logs(LOGGER_NAME) as capture:
            event_logger.log_event_published(event, receivers=3)

        capture.wait_for_count(1)
        message = capture.records[0].message
        assert capture.records[0].level == "INFO"
        for fragment in ("mint=mintpump", "creator=dev", "slot=42", "receivers=3"):
            assert fragment in message, f"Expected {fragment!r} in {message!r}"

    def test_update_malformed_is_debug(
        self, event_logger: SubscriptionEventLogger, context: ConnectionContext
    ) -> None:
        """Malformed updates are expected noise and logged at DEBUG."""
        error = msgspec.ValidationError("Expected `int`, got `str`")

        with capture_femto_logs(LOGGER_NAME) as capture:
            event_logger.log_update_malformed(context, error)

        capture.wait_for_count(1)
        record = capture.records[0]
        assert record.level == "DEBUG"
        assert SubscriptionEventType.UPDATE_MALFORMED in record.message
