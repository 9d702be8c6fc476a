"""Tests for extension handle types."""

import msgpack
import pytest

from nvimclient.generator.types import TypeSpec
from nvimclient.proto.decode import decode
from nvimclient.proto.ext import ExtHandle, build_ext_types


@pytest.fixture
def ext_types(session):
    types = {"Buffer": TypeSpec(id=0), "Window": TypeSpec(id=1)}
    return build_ext_types(session, types, decode)


def describe_build_ext_types():
    def creates_a_class_per_type(expect, ext_types):
        Buffer = ext_types.classes["Buffer"]
        expect(Buffer.__name__) == "Buffer"
        expect(Buffer.code) == 0
        expect(issubclass(Buffer, ExtHandle)) == True
        expect(ext_types.classes["Window"].code) == 1

    def creates_fresh_classes_per_connection(expect, session, ext_types):
        other = build_ext_types(session, {"Buffer": TypeSpec(id=0)}, decode)
        expect(other.classes["Buffer"] is ext_types.classes["Buffer"]) == False

    def builds_session_hooks(expect, session, ext_types):
        hooks = {hook.code: hook for hook in ext_types.hooks}
        expect(sorted(hooks)) == [0, 1]

        buf = hooks[0].decode(b"\x05")
        expect(isinstance(buf, ext_types.classes["Buffer"])) == True
        expect(buf._session is session) == True
        expect(buf._decode is decode) == True
        expect(hooks[0].encode(buf)) == b"\x05"
        expect(hooks[0].constructor is ext_types.classes["Buffer"]) == True


def describe_ext_handle():
    def equals_compares_payloads(expect, ext_types):
        Buffer = ext_types.classes["Buffer"]
        expect(Buffer(None, b"\x01", decode).equals(Buffer(None, b"\x01", decode))) == True
        expect(Buffer(None, b"\x01", decode).equals(Buffer(None, b"\x02", decode))) == False

    def equals_never_raises(expect, ext_types):
        buf = ext_types.classes["Buffer"](None, b"\x01", decode)
        expect(buf.equals(None)) == False
        expect(buf.equals("\x01")) == False
        expect(buf.equals(object())) == False

    def equals_rejects_non_binary_payloads(expect, ext_types):
        Buffer = ext_types.classes["Buffer"]
        expect(Buffer(None, 2, decode).equals(Buffer(None, b"\x00\x00", decode))) == False
        expect(Buffer(None, b"\x00\x00", decode).equals(Buffer(None, 2, decode))) == False
        expect(Buffer(None, 2, decode).equals(Buffer(None, 2, decode))) == False

    def supports_operators_and_hashing(expect, ext_types):
        Buffer = ext_types.classes["Buffer"]
        a, b = Buffer(None, b"\x01", decode), Buffer(None, b"\x01", decode)
        expect(a == b) == True
        expect(a != Buffer(None, b"\x03", decode)) == True
        expect(len({a, b})) == 1

    def exposes_integer_handle(expect, ext_types):
        Buffer = ext_types.classes["Buffer"]
        buf = Buffer(None, msgpack.packb(300), decode)
        expect(buf.handle) == 300
        expect(repr(buf)) == "<Buffer 300>"

    def handle_is_none_for_non_integer_payload(expect, ext_types):
        Buffer = ext_types.classes["Buffer"]
        expect(Buffer(None, b"", decode).handle) == None
        expect(Buffer(None, msgpack.packb("x"), decode).handle) == None
