"""Normalization of values read off the wire.

A raw msgpack unpacker hands back ``bytes`` for every string the host sends.
:func:`decode` turns those into ``str`` wherever they are valid UTF-8 and
leaves everything else alone, so it can be applied to any payload, any
number of times.
"""

from typing import Any

import msgpack

from .ext import ExtHandle

_BINARY = (bytes, bytearray, memoryview)


def decode_bytes(data: bytes | bytearray | memoryview) -> str | bytes | bytearray | memoryview:
    """Return ``data`` as text, or unchanged if it is not valid UTF-8."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError:
        return data


def decode(value: Any) -> Any:
    """Recursively decode binary leaves of ``value``.

    Containers are rebuilt with the same type. Extension handles and
    unregistered ``msgpack.ExtType`` values are leaves and are returned as-is.
    """
    if isinstance(value, ExtHandle | msgpack.ExtType):
        return value
    if isinstance(value, _BINARY):
        return decode_bytes(value)
    if isinstance(value, dict):
        return {decode(k): decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode(item) for item in value]
    if isinstance(value, tuple):
        return tuple(decode(item) for item in value)
    return value
