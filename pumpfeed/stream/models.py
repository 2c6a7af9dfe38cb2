"""Typed models for the upstream transaction feed and published events.

The upstream structures mirror the Geyser ``SubscribeUpdate`` message family
closely enough that collaborator objects can be coerced into them with
``msgspec.convert``. Only the transaction variant is interpreted; the other
variants are carried as opaque payloads so non-transaction updates can be
recognised and skipped.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

# Filter key used in subscription requests; upstream echoes it in ``filters``.
TRANSACTION_FILTER_NAME = "pump_fun"


class TokenBalance(msgspec.Struct, kw_only=True):
    """Token balance entry from pre- or post-execution metadata.

    Attributes
    ----------
    account_index : int
        Index of the token account within the message account keys.
    mint : str | None
        Base-58 mint address, when the upstream reports one.
    owner : str | None
        Base-58 owner of the token account, when reported.

    """

    account_index: int = 0
    mint: str | None = None
    owner: str | None = None


class TransactionStatusMeta(msgspec.Struct, kw_only=True):
    """Execution metadata attached to a transaction update.

    ``log_messages`` lines are kept exactly as delivered: ``str`` from the
    wire format, or UTF-8 ``bytes`` from some clients. msgspec would
    base64-decode text into a ``bytes`` field, so the element type is left
    open and the classifier decodes; an undecodable line is a non-match
    rather than a coercion failure.
    """

    err: typ.Any = None
    fee: int = 0
    log_messages: list[typ.Any] | None = None
    pre_token_balances: list[TokenBalance] = msgspec.field(default_factory=list)
    post_token_balances: list[TokenBalance] = msgspec.field(default_factory=list)


class Message(msgspec.Struct, kw_only=True):
    """Transaction message; only the ordered account keys are retained."""

    account_keys: list[bytes] = msgspec.field(default_factory=list)


class Transaction(msgspec.Struct, kw_only=True):
    """Signed transaction envelope."""

    signatures: list[bytes] = msgspec.field(default_factory=list)
    message: Message | None = None


class TransactionInfo(msgspec.Struct, kw_only=True):
    """Transaction payload of a transaction update.

    Attributes
    ----------
    signature : bytes
        Raw signature of the transaction; may be empty, in which case the
        first entry of ``transaction.signatures`` identifies it.
    is_vote : bool
        Whether the upstream flagged the transaction as a vote.
    transaction : Transaction | None
        Envelope carrying signatures and the message.
    meta : TransactionStatusMeta | None
        Execution metadata including logs and token balances.

    """

    signature: bytes = b""
    is_vote: bool = False
    transaction: Transaction | None = None
    meta: TransactionStatusMeta | None = None


class SubscribeUpdateTransaction(msgspec.Struct, kw_only=True):
    """Transaction variant of an upstream update."""

    slot: int
    transaction: TransactionInfo | None = None


class SubscribeUpdate(msgspec.Struct, kw_only=True):
    """One upstream notification.

    Exactly one variant is expected to be set. Non-transaction variants are
    kept opaque because nothing downstream interprets them.
    """

    filters: list[str] = msgspec.field(default_factory=list)
    transaction: SubscribeUpdateTransaction | None = None
    account: typ.Any = None
    slot: typ.Any = None
    ping: typ.Any = None
    block_meta: typ.Any = None


class CreateEvent(msgspec.Struct, frozen=True, kw_only=True):
    """Token creation observed on the target program.

    Field order is part of the wire format: frames serialise as
    ``{"signature", "mint_address", "creator_address", "slot"}``.
    """

    signature: str
    mint_address: str
    creator_address: str
    slot: int


class CommitmentLevel(enum.IntEnum):
    """Finality the upstream must reach before reporting a transaction."""

    PROCESSED = 0
    CONFIRMED = 1
    FINALIZED = 2


class TransactionFilter(msgspec.Struct, kw_only=True):
    """Transaction selection criteria for a subscription."""

    vote: bool | None = False
    failed: bool | None = False
    signature: str | None = None
    account_include: list[str] = msgspec.field(default_factory=list)
    account_exclude: list[str] = msgspec.field(default_factory=list)
    account_required: list[str] = msgspec.field(default_factory=list)


class SubscribeRequest(msgspec.Struct, kw_only=True):
    """Subscription request sent once per upstream connection."""

    transactions: dict[str, TransactionFilter] = msgspec.field(default_factory=dict)
    commitment: CommitmentLevel | None = None


def build_subscribe_request(
    program_id: str,
    commitment: CommitmentLevel = CommitmentLevel.PROCESSED,
) -> SubscribeRequest:
    """Return a request for non-vote, successful transactions touching *program_id*.

    Examples
    --------
    >>> request = build_subscribe_request("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")
    >>> request.transactions["pump_fun"].account_include
    ['6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P']

    """
    return SubscribeRequest(
        transactions={
            TRANSACTION_FILTER_NAME: TransactionFilter(
                vote=False,
                failed=False,
                account_include=[program_id],
            )
        },
        commitment=commitment,
    )


__all__ = [
    "TRANSACTION_FILTER_NAME",
    "CommitmentLevel",
    "CreateEvent",
    "Message",
    "SubscribeRequest",
    "SubscribeUpdate",
    "SubscribeUpdateTransaction",
    "TokenBalance",
    "Transaction",
    "TransactionFilter",
    "TransactionInfo",
    "TransactionStatusMeta",
    "build_subscribe_request",
]
