"""Structured log events for the upstream subscription.

Events are emitted as ``[event_type] key=value ...`` lines so log
aggregators can parse connection churn, failure categories, and publish
throughput without a metrics backend.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from pumpfeed.logging import get_logger, log_debug, log_error, log_info, log_warning

from .errors import (
    StreamConfigError,
    UpstreamConfigError,
    UpstreamConnectError,
    UpstreamSendError,
    UpstreamStreamError,
)

if typ.TYPE_CHECKING:
    from .models import CommitmentLevel, CreateEvent

logger = get_logger(__name__)


class SubscriptionEventType(enum.StrEnum):
    """Structured log event types for the upstream subscription."""

    CONNECT_STARTED = "upstream.connect.started"
    SUBSCRIBED = "upstream.subscribed"
    STREAM_CLOSED = "upstream.stream.closed"
    STREAM_FAILED = "upstream.stream.failed"
    EVENT_PUBLISHED = "upstream.event.published"
    UPDATE_MALFORMED = "upstream.update.malformed"


class ErrorCategory(enum.StrEnum):
    """Where in the connection lifecycle a failure happened."""

    CONNECT = "connect"
    SEND = "send"
    STREAM = "stream"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (UpstreamConnectError, ErrorCategory.CONNECT),
    (UpstreamSendError, ErrorCategory.SEND),
    (UpstreamStreamError, ErrorCategory.STREAM),
    (UpstreamConfigError, ErrorCategory.CONFIGURATION),
    (StreamConfigError, ErrorCategory.CONFIGURATION),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes."""
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


@dataclasses.dataclass(frozen=True, slots=True)
class ConnectionContext:
    """Identifies one connection attempt in log lines."""

    endpoint: str
    attempt: int


@dataclasses.dataclass(frozen=True, slots=True)
class ConnectionSummary:
    """Counters for a finished connection."""

    updates_seen: int
    events_published: int
    retry_in_seconds: float


class SubscriptionEventLogger:
    """Emit structured subscription events through femtologging.

    Progress is logged at INFO, clean closes at WARNING, failures at ERROR,
    and malformed updates at DEBUG because they are expected noise.
    """

    def log_connect_started(self, context: ConnectionContext) -> None:
        """Log the start of a connection attempt."""
        log_info(
            logger,
            "[%s] endpoint=%s attempt=%d",
            SubscriptionEventType.CONNECT_STARTED,
            context.endpoint,
            context.attempt,
        )

    def log_subscribed(
        self,
        context: ConnectionContext,
        program_id: str,
        commitment: CommitmentLevel,
    ) -> None:
        """Log an accepted subscription request."""
        log_info(
            logger,
            "[%s] endpoint=%s attempt=%d program_id=%s commitment=%s",
            SubscriptionEventType.SUBSCRIBED,
            context.endpoint,
            context.attempt,
            program_id,
            commitment.name.lower(),
        )

    def log_stream_closed(
        self, context: ConnectionContext, summary: ConnectionSummary
    ) -> None:
        """Log a clean close by the upstream."""
        log_warning(
            logger,
            "[%s] endpoint=%s attempt=%d updates_seen=%d events_published=%d "
            "retry_in_seconds=%.1f",
            SubscriptionEventType.STREAM_CLOSED,
            context.endpoint,
            context.attempt,
            summary.updates_seen,
            summary.events_published,
            summary.retry_in_seconds,
        )

    def log_stream_failed(
        self,
        context: ConnectionContext,
        error: BaseException,
        summary: ConnectionSummary,
    ) -> None:
        """Log a failed attempt with its error category."""
        log_error(
            logger,
            "[%s] endpoint=%s attempt=%d error_type=%s error_category=%s "
            "error_message=%s updates_seen=%d events_published=%d "
            "retry_in_seconds=%.1f",
            SubscriptionEventType.STREAM_FAILED,
            context.endpoint,
            context.attempt,
            type(error).__name__,
            categorize_error(error),
            str(error),
            summary.updates_seen,
            summary.events_published,
            summary.retry_in_seconds,
        )

    def log_event_published(self, event: CreateEvent, receivers: int) -> None:
        """Log a creation event handed to the bus."""
        log_info(
            logger,
            "[%s] mint=%s creator=%s signature=%s slot=%d receivers=%d",
            SubscriptionEventType.EVENT_PUBLISHED,
            event.mint_address,
            event.creator_address,
            event.signature,
            event.slot,
            receivers,
        )

    def log_update_malformed(self, context: ConnectionContext, error: Exception) -> None:
        """Log an update that could not be coerced into the expected shape."""
        log_debug(
            logger,
            "[%s] endpoint=%s attempt=%d error_message=%s",
            SubscriptionEventType.UPDATE_MALFORMED,
            context.endpoint,
            context.attempt,
            str(error),
        )


__all__ = [
    "ConnectionContext",
    "ConnectionSummary",
    "ErrorCategory",
    "SubscriptionEventLogger",
    "SubscriptionEventType",
    "categorize_error",
]
