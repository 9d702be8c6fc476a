"""Tests for the msgpack-RPC session."""

import asyncio

import msgpack
import pytest
from loguru import logger

from nvimclient.generator.types import TypeSpec
from nvimclient.proto.decode import decode
from nvimclient.proto.errors import SessionError
from nvimclient.proto.ext import build_ext_types
from nvimclient.proto.session import Session


class BufferWriter:
    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data.extend(data)


def sent(writer):
    unpacker = msgpack.Unpacker(raw=False, strict_map_key=False)
    unpacker.feed(bytes(writer.data))
    return list(unpacker)


@pytest.fixture
def writer():
    return BufferWriter()


@pytest.fixture
def rpc(writer):
    s = Session()
    s.attach(writer)
    return s


def describe_outgoing():
    def sends_notifications(expect, rpc, writer):
        rpc.notify("nvim_command", ["echo 1"])
        expect(sent(writer)) == [[2, "nvim_command", ["echo 1"]]]

    def sends_requests_and_routes_responses(expect, rpc, writer):
        results = []
        rpc.request("nvim_eval", ["1+1"], lambda err, res: results.append((err, res)))
        rpc.request("nvim_eval", ["2+2"], lambda err, res: results.append((err, res)))
        (_, first, *_), (_, second, *_) = sent(writer)

        rpc.feed(msgpack.packb([1, second, None, 4]))
        rpc.feed(msgpack.packb([1, first, [0, "boom"], None]))
        expect(results) == [(None, 4), ([0, b"boom"], None)]

    def refuses_to_send_when_detached(expect):
        with pytest.raises(SessionError):
            Session().notify("x", [])


def describe_incoming():
    def emits_requests_with_a_responder(expect, rpc, writer):
        seen = []
        rpc.on("request", lambda method, args, response: seen.append((method, args, response)))
        rpc.feed(msgpack.packb([0, 7, "specs", ["a"]]))

        method, args, response = seen[0]
        expect(method) == b"specs"
        expect(args) == [b"a"]

        response.send(["spec"])
        expect(sent(writer)) == [[1, 7, None, ["spec"]]]
        with pytest.raises(SessionError):
            response.send(None)

    def sends_error_responses(expect, rpc, writer):
        rpc.on("request", lambda method, args, response: response.send("nope", is_error=True))
        rpc.feed(msgpack.packb([0, 3, "x", []]))
        expect(sent(writer)) == [[1, 3, "nope", None]]

    def emits_notifications(expect, rpc):
        seen = []
        rpc.on("notification", lambda method, args: seen.append((method, args)))
        rpc.feed(msgpack.packb([2, "redraw", [["flush"]]]))
        expect(seen) == [(b"redraw", [[b"flush"]])]

    def handles_split_frames(expect, rpc):
        seen = []
        rpc.on("notification", lambda method, args: seen.append(method))
        data = msgpack.packb([2, "one", []]) + msgpack.packb([2, "two", []])
        rpc.feed(data[:5])
        expect(seen) == []
        rpc.feed(data[5:])
        expect(seen) == [b"one", b"two"]

    def drops_malformed_messages(expect, rpc):
        seen = []
        rpc.on("notification", lambda *args: seen.append(args))
        rpc.feed(msgpack.packb([9, "x"]) + msgpack.packb("junk") + msgpack.packb([1, 99, None, 1]))
        expect(seen) == []


def describe_ext_types():
    def round_trips_registered_handles(expect, rpc, writer):
        ext = build_ext_types(rpc, {"Buffer": TypeSpec(id=0)}, decode)
        rpc.add_types(ext.hooks)
        seen = []
        rpc.on("notification", lambda method, args: seen.append(args))

        rpc.feed(msgpack.packb([2, "ev", [msgpack.ExtType(0, b"\x05")]]))
        buf = seen[0][0]
        expect(isinstance(buf, ext.classes["Buffer"])) == True
        expect(buf.data) == b"\x05"

        rpc.notify("nvim_buf_get_name", [buf])
        expect(sent(writer)) == [[2, "nvim_buf_get_name", [msgpack.ExtType(0, b"\x05")]]]

    def keeps_unknown_ext_codes(expect, rpc):
        seen = []
        rpc.on("notification", lambda method, args: seen.append(args))
        rpc.feed(msgpack.packb([2, "ev", [msgpack.ExtType(42, b"\x01")]]))
        expect(seen) == [[msgpack.ExtType(42, b"\x01")]]

    def rejects_unserializable_values(expect, rpc):
        with pytest.raises(TypeError):
            rpc.notify("x", [object()])


def describe_attach():
    def reads_until_eof_then_detaches(expect, writer):
        events = []

        async def run():
            reader = asyncio.StreamReader()
            rpc = Session()
            rpc.on("notification", lambda method, args: events.append(method))
            rpc.on("detach", lambda: events.append("detach"))
            rpc.attach(writer, reader)
            reader.feed_data(msgpack.packb([2, "hello", []]))
            reader.feed_eof()
            await rpc._reader_task
            return rpc

        rpc = asyncio.run(run())
        expect(events) == [b"hello", "detach"]
        expect(rpc.attached) == False

    def logs_listener_failures_that_stop_the_read_loop(expect, writer):
        messages = []
        logger.enable("nvimclient")
        sink = logger.add(messages.append, level="ERROR", format="{message}")

        async def run():
            reader = asyncio.StreamReader()
            rpc = Session()
            rpc.on("notification", lambda method, args: 1 / 0)
            rpc.attach(writer, reader)
            reader.feed_data(msgpack.packb([2, "hello", []]))
            await asyncio.wait([rpc._reader_task])
            await asyncio.sleep(0)
            return rpc

        try:
            rpc = asyncio.run(run())
        finally:
            logger.remove(sink)
            logger.disable("nvimclient")

        expect(rpc.attached) == False
        expect(isinstance(rpc._reader_task.exception(), ZeroDivisionError)) == True
        expect(len(messages)) == 1
        expect(messages[0]).contains("Read loop stopped")

    def detach_is_emitted_once(expect, rpc):
        events = []
        rpc.on("detach", lambda: events.append("detach"))
        rpc.detach()
        rpc.detach()
        expect(events) == ["detach"]
