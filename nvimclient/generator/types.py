"""API metadata as reported by the host's ``*_get_api_info`` call."""

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import msgpack
from dataclasses_json import DataClassJsonMixin, Undefined, config

from nvimclient.proto.decode import decode

__all__ = [
    "GLOBAL_OWNERS",
    "ApiMetadata",
    "FunctionSpec",
    "TypeSpec",
    "capitalize",
    "owner_type_name",
]

# Owner type names whose functions land on the client itself
GLOBAL_OWNERS = frozenset(["Nvim", "Vim", "Ui"])

_IGNORE_UNKNOWN = config(undefined=Undefined.EXCLUDE)["dataclasses_json"]


@dataclass
class TypeSpec(DataClassJsonMixin):
    """An extension type; ``id`` is its msgpack ext code."""

    dataclass_json_config = _IGNORE_UNKNOWN

    id: int
    prefix: str | None = None


@dataclass
class FunctionSpec(DataClassJsonMixin):
    """A remote function.

    ``parameters`` holds ``[type, name]`` pairs in call order. Older hosts
    report ``deferred`` and ``can_fail``; newer ones omit them.
    """

    dataclass_json_config = _IGNORE_UNKNOWN

    name: str
    parameters: list[list[str]] = field(default_factory=list)
    return_type: str = "void"
    deferred: bool = False
    can_fail: bool = False
    method: bool | None = None
    since: int | None = None
    deprecated_since: int | None = None

    @property
    def parameter_names(self) -> list[str]:
        return [param[1] for param in self.parameters]

    @property
    def parameter_types(self) -> list[str]:
        return [param[0] for param in self.parameters]

    @property
    def owner_type_name(self) -> str:
        return owner_type_name(self.name)


@dataclass
class ApiMetadata(DataClassJsonMixin):
    """The host's self-description. Read once per connection."""

    dataclass_json_config = _IGNORE_UNKNOWN

    functions: list[FunctionSpec] = field(default_factory=list)
    types: dict[str, TypeSpec] = field(default_factory=dict)
    version: dict[str, Any] | None = None
    error_types: dict[str, Any] | None = None

    @classmethod
    def from_wire(cls, value: Any) -> "ApiMetadata":
        """Build from a decoded or raw msgpack payload."""
        return cls.from_dict(decode(value))

    @classmethod
    def loads(cls, data: bytes) -> "ApiMetadata":
        """Parse a JSON or msgpack metadata dump."""
        if data.lstrip()[:1] == b"{":
            return cls.from_dict(json.loads(data))
        return cls.from_wire(msgpack.unpackb(data, raw=True, strict_map_key=False))

    @classmethod
    def load(cls, path: str | Path) -> "ApiMetadata":
        """Load a dump file, such as the output of ``nvim --api-info``.

        ``-`` reads standard input.
        """
        if str(path) == "-":
            return cls.loads(sys.stdin.buffer.read())
        return cls.loads(Path(path).read_bytes())


def capitalize(word: str) -> str:
    """Upper-case the first letter and lower-case the rest."""
    return word[:1].upper() + word[1:].lower()


def owner_type_name(function_name: str) -> str:
    """The capitalized first ``_`` segment of a function name."""
    return capitalize(function_name.split("_")[0])
