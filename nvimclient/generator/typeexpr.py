"""API type expression parser using Lark."""

import os
from dataclasses import dataclass, field
from typing import Any

from lark import Lark, LarkError
from lark.visitors import Transformer

from nvimclient.proto.errors import TypeExprError

_g_parser: Lark | None = None

# Map API scalar types to Python type annotations
SCALAR_TYPE_MAP = {
    "Boolean": "bool",
    "Integer": "int",
    "Float": "float",
    "String": "str",
    "Array": "list[Any]",
    "Dictionary": "dict[str, Any]",
    "Dict": "dict[str, Any]",
    "Object": "Any",
    "LuaRef": "Any",
    "void": "None",
}

CONTAINER_TYPES = frozenset(["ArrayOf", "DictionaryOf", "DictOf"])
KEYSET_TYPES = frozenset(["Dict", "Dictionary"])


@dataclass(frozen=True)
class ApiType:
    """A parsed type expression.

    - ``ArrayOf(Integer, 2)``: name="ArrayOf", args=(Integer,), size=2
    - ``Dict(option)``: name="Dict", keyset="option"
    """

    name: str
    args: tuple["ApiType", ...] = field(default_factory=tuple)
    size: int | None = None
    keyset: str | None = None

    def __str__(self) -> str:
        if self.keyset is not None:
            return f"{self.name}({self.keyset})"
        if not self.args:
            return self.name
        inner = ", ".join(str(arg) for arg in self.args)
        if self.size is not None:
            inner += f", {self.size}"
        return f"{self.name}({inner})"


class TypeTransformer(Transformer):
    """Transform parse tree into ApiType values."""

    def start(self, args: list[Any]) -> ApiType:
        return args[0]

    def simple(self, args: list[Any]) -> ApiType:
        return ApiType(name=str(args[0]))

    def generic(self, args: list[Any]) -> ApiType:
        name = str(args[0])
        inner: ApiType = args[1]
        size = args[2] if len(args) > 2 else None
        # Dict(option) names a keyset, not an element type
        if name in KEYSET_TYPES and not inner.args and size is None:
            return ApiType(name=name, keyset=inner.name)
        return ApiType(name=name, args=(inner,), size=size)

    def size(self, args: list[Any]) -> int:
        return int(args[0])


def _parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/apitypes.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar)
    return _g_parser


def parse_type(text: str) -> ApiType:
    """Parse an API type string."""
    try:
        tree = _parser().parse(text)
    except LarkError as e:
        raise TypeExprError(f"Invalid type expression {text!r}: {e}") from e
    return TypeTransformer().transform(tree)


def to_annotation(t: ApiType, ext_types: frozenset[str] | set[str] = frozenset()) -> str:
    """Map an ApiType to a Python type annotation string."""
    if t.name in ext_types:
        return t.name
    if t.keyset is not None:
        return "dict[str, Any]"
    if t.name in CONTAINER_TYPES and t.args:
        inner = to_annotation(t.args[0], ext_types)
        if t.name == "ArrayOf":
            return f"list[{inner}]"
        return f"dict[str, {inner}]"
    return SCALAR_TYPE_MAP.get(t.name, "Any")


def annotation_for(text: str, ext_types: frozenset[str] | set[str] = frozenset()) -> str:
    """Annotation for a raw type string; unparseable strings become ``Any``."""
    try:
        return to_annotation(parse_type(text), ext_types)
    except TypeExprError:
        return "Any"
