"""Upstream subscription errors."""

from __future__ import annotations


class UpstreamError(RuntimeError):
    """Base class for transport failures talking to the upstream node.

    Every subclass is recoverable: the supervisor reconnects with backoff.
    """

    stage = "upstream"

    def __init__(self, message: str, *, endpoint: str | None = None) -> None:
        """Initialise with a message and the endpoint involved, if known."""
        self.endpoint = endpoint
        super().__init__(message)

    @classmethod
    def wrap(cls, exc: BaseException, *, endpoint: str) -> UpstreamError:
        """Return an error of this class describing *exc*."""
        detail = str(exc) or type(exc).__name__
        return cls(f"{cls.stage} failed for {endpoint}: {detail}", endpoint=endpoint)


class UpstreamConnectError(UpstreamError):
    """Raised when the connection handshake fails."""

    stage = "connect"


class UpstreamSendError(UpstreamError):
    """Raised when the subscription request cannot be sent."""

    stage = "subscribe"


class UpstreamStreamError(UpstreamError):
    """Raised when reading the update stream fails mid-flight."""

    stage = "stream"


class UpstreamConfigError(RuntimeError):
    """Raised when the upstream client cannot be constructed."""

    @classmethod
    def invalid_spec(cls, spec: str) -> UpstreamConfigError:
        """Return an error for a malformed ``module:attribute`` reference."""
        return cls(
            f"PUMPFEED_UPSTREAM_CLIENT must look like 'package.module:factory', "
            f"got: {spec!r}"
        )

    @classmethod
    def not_importable(cls, spec: str, exc: BaseException) -> UpstreamConfigError:
        """Return an error for a factory that cannot be imported."""
        return cls(f"Cannot import upstream client factory {spec!r}: {exc}")

    @classmethod
    def not_callable(cls, spec: str) -> UpstreamConfigError:
        """Return an error for a factory reference that is not callable."""
        return cls(f"Upstream client factory {spec!r} is not callable")


class StreamConfigError(ValueError):
    """Raised when stream configuration values are invalid."""

    @classmethod
    def invalid_number(cls, env_var: str, raw: str) -> StreamConfigError:
        """Return an error for a non-numeric or non-positive value."""
        return cls(f"{env_var} must be a positive number, got: {raw!r}")

    @classmethod
    def invalid_commitment(cls, raw: str) -> StreamConfigError:
        """Return an error for an unknown commitment level."""
        return cls(
            "PUMPFEED_COMMITMENT must be one of processed, confirmed, finalized; "
            f"got: {raw!r}"
        )

    @classmethod
    def inverted_backoff(cls, initial: float, maximum: float) -> StreamConfigError:
        """Return an error when the backoff ceiling is below the floor."""
        return cls(
            f"PUMPFEED_BACKOFF_MAX_S ({maximum}) must not be below "
            f"PUMPFEED_BACKOFF_INITIAL_S ({initial})"
        )

    @classmethod
    def empty(cls, env_var: str) -> StreamConfigError:
        """Return an error for a value that is set but blank."""
        return cls(f"{env_var} must be non-empty")


class InvalidTransitionError(RuntimeError):
    """Raised when the reconnect state machine receives an impossible signal."""

    @classmethod
    def for_signal(cls, phase: str, signal: str) -> InvalidTransitionError:
        """Return an error naming the rejected phase and signal."""
        return cls(f"No transition from '{phase}' on '{signal}'")
