"""Classification of upstream updates into token creation events.

The upstream feed does not tag which mint a transaction created, so the
classifier works from two weaker signals: the program logs must show a create
instruction on the target program, and exactly which mint is new has to be
inferred by diffing the post-execution token balances against the
pre-execution ones.

Every function here is pure. Partial or malformed input yields ``None``
rather than an exception or a partially populated event.
"""

from __future__ import annotations

import typing as typ

import base58

from .models import CreateEvent

if typ.TYPE_CHECKING:
    from .models import SubscribeUpdate, TokenBalance, TransactionInfo

PUMP_FUN_PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"

# All-"1" address of the system program; never a real token mint.
SYSTEM_PROGRAM_PLACEHOLDER = "1" * 32

# The program vanity-grinds its mint addresses to end with this suffix.
VANITY_MINT_SUFFIX = "pump"

CREATE_MARKER = "Instruction: Create"
CREATE_V2_MARKER = "Instruction: CreateV2"
# Plain creates only count when no V2 instruction appears in the same batch.
_V2_GUARD = "CreateV2"


def _encode(raw: bytes) -> str:
    return base58.b58encode(raw).decode("ascii")


def _decode_line(line: object) -> str | None:
    if isinstance(line, str):
        return line
    if isinstance(line, bytes | bytearray):
        try:
            return bytes(line).decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def _decode_logs(lines: typ.Sequence[object]) -> str | None:
    """Join log lines into one text blob.

    Text lines pass through; byte lines must be valid UTF-8. Any line that
    cannot be read as text makes the whole batch ``None``.
    """
    decoded: list[str] = []
    for line in lines:
        text = _decode_line(line)
        if text is None:
            return None
        decoded.append(text)
    return "\n".join(decoded)


def is_create_transaction(
    info: TransactionInfo, program_id: str = PUMP_FUN_PROGRAM_ID
) -> bool:
    """Return True when the logs show a create instruction on *program_id*.

    A batch matches when the program id appears verbatim and either the V2
    create marker is present, or the plain create marker is present without
    any V2 marker. Logs that mention both markers therefore match once, via
    the V2 branch.
    """
    meta = info.meta
    if meta is None or meta.log_messages is None:
        return False

    text = _decode_logs(meta.log_messages)
    if text is None or program_id not in text:
        return False

    is_create = CREATE_MARKER in text and _V2_GUARD not in text
    is_create_v2 = CREATE_V2_MARKER in text
    return is_create or is_create_v2


def extract_signature(info: TransactionInfo) -> str | None:
    """Return the base-58 signature, preferring the direct field."""
    if info.signature:
        return _encode(info.signature)
    envelope = info.transaction
    if envelope is None or not envelope.signatures:
        return None
    first = envelope.signatures[0]
    return _encode(first) if first else None


def extract_creator(info: TransactionInfo) -> str | None:
    """Return the base-58 address of the first account in the message."""
    envelope = info.transaction
    if envelope is None or envelope.message is None:
        return None
    keys = envelope.message.account_keys
    if not keys or not keys[0]:
        return None
    return _encode(keys[0])


def _is_placeholder(mint: str) -> bool:
    return SYSTEM_PROGRAM_PLACEHOLDER in mint


def select_new_mint(
    pre_balances: typ.Iterable[TokenBalance],
    post_balances: typ.Iterable[TokenBalance],
) -> str | None:
    """Pick the mint that first appears in *post_balances*.

    Candidates are post-execution mints absent from the pre-execution set,
    excluding the system placeholder, in encounter order. The first candidate
    carrying the vanity suffix wins; otherwise the first candidate does.

    Examples
    --------
    >>> from pumpfeed.stream.models import TokenBalance
    >>> select_new_mint([], [TokenBalance(mint="XYZ"), TokenBalance(mint="ABCpump")])
    'ABCpump'
    >>> select_new_mint([TokenBalance(mint="XYZ")], [TokenBalance(mint="XYZ")]) is None
    True

    """
    pre_mints = {balance.mint for balance in pre_balances if balance.mint}
    candidates = [
        balance.mint
        for balance in post_balances
        if balance.mint
        and balance.mint not in pre_mints
        and not _is_placeholder(balance.mint)
    ]
    if not candidates:
        return None
    return next(
        (mint for mint in candidates if mint.endswith(VANITY_MINT_SUFFIX)),
        candidates[0],
    )


def classify_update(
    update: SubscribeUpdate, *, program_id: str = PUMP_FUN_PROGRAM_ID
) -> CreateEvent | None:
    """Return the creation event carried by *update*, if any.

    Non-transaction updates, logs without a create instruction, and
    transactions missing a signature, creator, or newly appearing mint all
    yield ``None``.
    """
    tx_update = update.transaction
    if tx_update is None or tx_update.transaction is None:
        return None

    info = tx_update.transaction
    if not is_create_transaction(info, program_id):
        return None

    signature = extract_signature(info)
    if signature is None:
        return None

    creator = extract_creator(info)
    if creator is None:
        return None

    if info.meta is None:
        return None
    mint = select_new_mint(info.meta.pre_token_balances, info.meta.post_token_balances)
    if mint is None:
        return None

    return CreateEvent(
        signature=signature,
        mint_address=mint,
        creator_address=creator,
        slot=tx_update.slot,
    )


__all__ = [
    "CREATE_MARKER",
    "CREATE_V2_MARKER",
    "PUMP_FUN_PROGRAM_ID",
    "SYSTEM_PROGRAM_PLACEHOLDER",
    "VANITY_MINT_SUFFIX",
    "classify_update",
    "extract_creator",
    "extract_signature",
    "is_create_transaction",
    "select_new_mint",
]
