"""Configuration for the upstream subscription.

Usage
-----
Build a configuration from the environment:

>>> config = StreamConfig.from_env()
>>> config.program_id
'6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P'

"""

from __future__ import annotations

import dataclasses as dc
import os

from .classifier import PUMP_FUN_PROGRAM_ID
from .errors import StreamConfigError
from .models import CommitmentLevel
from .state import BackoffPolicy

_DEFAULT_ENDPOINT = "http://fr.grpc.gadflynode.com:25565"
_DEFAULT_BACKOFF_INITIAL_S = 1.0
_DEFAULT_BACKOFF_MAX_S = 30.0


@dc.dataclass(frozen=True, slots=True)
class StreamConfig:
    """Settings for the upstream subscription and reconnect loop.

    Attributes
    ----------
    endpoint
        Upstream node address (``scheme://host:port``).
    program_id
        Base-58 id of the program whose create instructions are tracked.
    commitment
        Commitment level requested in the subscription.
    backoff
        Reconnect delay policy.
    client_factory
        Optional ``module:attribute`` reference to the upstream client
        factory. When ``None`` the service runs without an upstream feed.

    """

    endpoint: str = _DEFAULT_ENDPOINT
    program_id: str = PUMP_FUN_PROGRAM_ID
    commitment: CommitmentLevel = CommitmentLevel.PROCESSED
    backoff: BackoffPolicy = dc.field(default_factory=BackoffPolicy)
    client_factory: str | None = None

    @staticmethod
    def _parse_seconds(env_var: str, default: float) -> float:
        """Read a positive float env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            raise StreamConfigError.invalid_number(env_var, raw) from exc
        if value <= 0:
            raise StreamConfigError.invalid_number(env_var, raw)
        return value

    @staticmethod
    def _parse_commitment() -> CommitmentLevel:
        raw = os.environ.get("PUMPFEED_COMMITMENT", "")
        if not raw.strip():
            return CommitmentLevel.PROCESSED
        try:
            return CommitmentLevel[raw.strip().upper()]
        except KeyError as exc:
            raise StreamConfigError.invalid_commitment(raw) from exc

    @staticmethod
    def _parse_text(env_var: str, default: str) -> str:
        raw = os.environ.get(env_var)
        if raw is None:
            return default
        value = raw.strip()
        if not value:
            raise StreamConfigError.empty(env_var)
        return value

    @classmethod
    def from_env(cls) -> StreamConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``PUMPFEED_UPSTREAM_ENDPOINT``: Upstream node address.
        - ``PUMPFEED_PROGRAM_ID``: Program whose creates are tracked.
        - ``PUMPFEED_COMMITMENT``: ``processed``, ``confirmed`` or
          ``finalized``.
        - ``PUMPFEED_BACKOFF_INITIAL_S``: Reconnect delay floor in seconds.
        - ``PUMPFEED_BACKOFF_MAX_S``: Reconnect delay ceiling in seconds.
        - ``PUMPFEED_UPSTREAM_CLIENT``: ``module:factory`` for the upstream
          client.

        Raises
        ------
        StreamConfigError
            If any value is malformed.

        """
        initial = cls._parse_seconds(
            "PUMPFEED_BACKOFF_INITIAL_S", _DEFAULT_BACKOFF_INITIAL_S
        )
        maximum = cls._parse_seconds("PUMPFEED_BACKOFF_MAX_S", _DEFAULT_BACKOFF_MAX_S)
        if maximum < initial:
            raise StreamConfigError.inverted_backoff(initial, maximum)

        client_factory = os.environ.get("PUMPFEED_UPSTREAM_CLIENT", "").strip() or None

        return cls(
            endpoint=cls._parse_text("PUMPFEED_UPSTREAM_ENDPOINT", _DEFAULT_ENDPOINT),
            program_id=cls._parse_text("PUMPFEED_PROGRAM_ID", PUMP_FUN_PROGRAM_ID),
            commitment=cls._parse_commitment(),
            backoff=BackoffPolicy(initial=initial, maximum=maximum),
            client_factory=client_factory,
        )
