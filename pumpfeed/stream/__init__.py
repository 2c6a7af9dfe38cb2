"""Upstream subscription, classification, and reconnect supervision."""

from __future__ import annotations

from .classifier import PUMP_FUN_PROGRAM_ID, classify_update, select_new_mint
from .config import StreamConfig
from .errors import (
    InvalidTransitionError,
    StreamConfigError,
    UpstreamConfigError,
    UpstreamConnectError,
    UpstreamError,
    UpstreamSendError,
    UpstreamStreamError,
)
from .models import (
    CommitmentLevel,
    CreateEvent,
    SubscribeRequest,
    SubscribeUpdate,
    build_subscribe_request,
)
from .observability import (
    ErrorCategory,
    SubscriptionEventLogger,
    SubscriptionEventType,
    categorize_error,
)
from .state import BackoffPolicy, Phase, Signal, SupervisorState, transition
from .supervisor import StreamSupervisor
from .upstream import (
    UpstreamClient,
    UpstreamSession,
    coerce_update,
    load_upstream_client,
)

__all__ = [
    "PUMP_FUN_PROGRAM_ID",
    "BackoffPolicy",
    "CommitmentLevel",
    "CreateEvent",
    "ErrorCategory",
    "InvalidTransitionError",
    "Phase",
    "Signal",
    "StreamConfig",
    "StreamConfigError",
    "StreamSupervisor",
    "SubscribeRequest",
    "SubscribeUpdate",
    "SubscriptionEventLogger",
    "SubscriptionEventType",
    "SupervisorState",
    "UpstreamClient",
    "UpstreamConfigError",
    "UpstreamConnectError",
    "UpstreamError",
    "UpstreamSendError",
    "UpstreamSession",
    "UpstreamStreamError",
    "build_subscribe_request",
    "categorize_error",
    "classify_update",
    "coerce_update",
    "load_upstream_client",
    "select_new_mint",
    "transition",
]
