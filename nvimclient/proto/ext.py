"""Extension handles: opaque references to host-side objects.

The host tags buffers, windows and tabpages with msgpack ext codes listed in
the API metadata. Each connection gets its own handle classes, built from
that metadata, so two clients in one process never share a type.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import msgpack

if TYPE_CHECKING:
    from nvimclient.generator.types import TypeSpec

_BINARY = (bytes, bytearray, memoryview)


class ExtHandle:
    """Base class for per-connection extension handle types.

    Generated subclasses define:
        code: ClassVar[int]  # msgpack ext code
    """

    code: int = -1

    def __init__(self, session: Any, data: bytes, decode: Callable[[Any], Any]) -> None:
        self._session = session
        self._data = data
        self._decode = decode

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def handle(self) -> int | None:
        """The integer id packed in the payload, if there is one."""
        try:
            value = msgpack.unpackb(self._data)
        except (ValueError, msgpack.UnpackException):
            return None
        return value if isinstance(value, int) else None

    def equals(self, other: object) -> bool:
        """Compare payloads; any failure means "not equal"."""
        other_data = getattr(other, "_data", None)
        if not isinstance(self._data, _BINARY) or not isinstance(other_data, _BINARY):
            return False
        try:
            return bytes(self._data) == bytes(other_data)
        except (TypeError, ValueError):
            return False

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(bytes(self._data))

    def __repr__(self) -> str:
        handle = self.handle
        ident = handle if handle is not None else bytes(self._data).hex()
        return f"<{type(self).__name__} {ident}>"


@dataclass(frozen=True)
class ExtTypeHook:
    """What the session needs to (de)serialize one handle type."""

    constructor: type[ExtHandle]
    code: int
    decode: Callable[[bytes], ExtHandle]
    encode: Callable[[ExtHandle], bytes]


@dataclass
class ExtTypes:
    """Handle classes and session hooks built for one connection."""

    classes: dict[str, type[ExtHandle]] = field(default_factory=dict)
    hooks: list[ExtTypeHook] = field(default_factory=list)


def _encode(obj: ExtHandle) -> bytes:
    return obj._data


def make_ext_type(name: str, code: int) -> type[ExtHandle]:
    """Create a fresh :class:`ExtHandle` subclass for ``name``."""
    return type(name, (ExtHandle,), {"code": code, "__module__": __name__})


def build_ext_types(
    session: Any,
    types: "Mapping[str, TypeSpec]",
    decode: Callable[[Any], Any],
) -> ExtTypes:
    """Build handle classes and session hooks for every metadata type."""
    result = ExtTypes()

    for name, spec in types.items():
        cls = make_ext_type(name, spec.id)

        def _decode_ext(data: bytes, cls: type[ExtHandle] = cls) -> ExtHandle:
            return cls(session, data, decode)

        result.classes[name] = cls
        result.hooks.append(
            ExtTypeHook(constructor=cls, code=spec.id, decode=_decode_ext, encode=_encode)
        )

    return result
