"""Boundary with the upstream streaming collaborator.

pumpfeed does not implement the transport itself (handshake, TLS, wire
decoding). It talks to any object satisfying :class:`UpstreamClient`, loaded
from the ``module:factory`` reference in ``PUMPFEED_UPSTREAM_CLIENT``. The
factory is called with the active :class:`~pumpfeed.stream.config.StreamConfig`.

Sessions may yield native :class:`SubscribeUpdate` structs, plain mappings,
attribute objects, or generated protobuf messages. :func:`coerce_update`
normalises all of them. Protobuf messages are recognised by their
``ListFields()`` method and walked into plain dicts and lists first, since
their repeated-field containers are not sequences msgspec accepts.
"""

from __future__ import annotations

import collections.abc as cabc
import importlib
import typing as typ

import msgspec

from .errors import UpstreamConfigError
from .models import SubscribeUpdate

if typ.TYPE_CHECKING:
    from .config import StreamConfig
    from .models import SubscribeRequest


class _FieldDescriptor(typ.Protocol):
    name: str


class _ProtoMessage(typ.Protocol):
    """The part of the protobuf message API used for normalisation."""

    def ListFields(self) -> list[tuple[_FieldDescriptor, object]]: ...  # noqa: N802


class UpstreamSession(typ.Protocol):
    """One bidirectional subscription stream."""

    async def send(self, request: SubscribeRequest) -> None:
        """Send a subscription request on the stream."""
        ...

    def updates(self) -> cabc.AsyncIterator[object]:
        """Yield raw updates until the upstream closes the stream.

        A clean close ends the iteration; a transport failure raises.
        """
        ...

    async def close(self) -> None:
        """Release the stream and its connection."""
        ...


class UpstreamClient(typ.Protocol):
    """Factory for upstream sessions."""

    async def connect(self, endpoint: str) -> UpstreamSession:
        """Perform the handshake with *endpoint* and open a stream."""
        ...


def _is_message(value: object) -> bool:
    return callable(getattr(value, "ListFields", None))


def _message_to_builtins(value: object) -> object:
    """Return a generated message tree as plain dicts and lists.

    Only fields the message reports as set are included, so unset oneof
    variants fall back to their struct defaults. Repeated containers are
    materialised as lists because ``msgspec.convert`` only accepts real
    sequences.
    """
    if _is_message(value):
        fields = typ.cast("_ProtoMessage", value).ListFields()
        return {
            descriptor.name: _message_to_builtins(item) for descriptor, item in fields
        }
    if isinstance(value, str | bytes | bytearray | int | float) or value is None:
        return value
    if isinstance(value, cabc.Mapping):
        return {key: _message_to_builtins(item) for key, item in value.items()}
    if isinstance(value, cabc.Iterable):
        return [_message_to_builtins(item) for item in value]
    return value


def coerce_update(raw: object) -> SubscribeUpdate:
    """Return *raw* as a :class:`SubscribeUpdate`.

    Raises
    ------
    msgspec.ValidationError
        If *raw* does not have the shape of an update.

    """
    if isinstance(raw, SubscribeUpdate):
        return raw
    if _is_message(raw):
        raw = _message_to_builtins(raw)
    return msgspec.convert(raw, SubscribeUpdate, from_attributes=True)


def load_upstream_client(spec: str, config: StreamConfig) -> UpstreamClient:
    """Import the factory named by *spec* and build a client with it.

    Parameters
    ----------
    spec
        Reference of the form ``package.module:factory``.
    config
        Stream configuration passed to the factory.

    Raises
    ------
    UpstreamConfigError
        If the reference is malformed, cannot be imported, or is not callable.

    """
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        raise UpstreamConfigError.invalid_spec(spec)

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise UpstreamConfigError.not_importable(spec, exc) from exc

    if not callable(factory):
        raise UpstreamConfigError.not_callable(spec)
    return typ.cast("UpstreamClient", factory(config))


__all__ = [
    "UpstreamClient",
    "UpstreamSession",
    "coerce_update",
    "load_upstream_client",
]
