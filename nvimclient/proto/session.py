"""msgpack-RPC session over a pair of byte streams.

Messages follow the MessagePack-RPC layout::

    request:      [0, msgid, method, params]
    response:     [1, msgid, error, result]
    notification: [2, method, params]

Strings are read raw (as ``bytes``); normalizing them is left to
:func:`nvimclient.proto.decode.decode`.

Example:
    reader, writer = await asyncio.open_unix_connection(path)
    session = Session()
    session.attach(writer, reader)
    session.request("nvim_eval", ["1 + 1"], lambda err, res: print(res))
"""

import asyncio
import enum
import itertools
from collections.abc import Callable, Iterable
from typing import Any, Protocol

import msgpack
from loguru import logger

from .errors import SessionError
from .events import EventEmitter
from .ext import ExtHandle, ExtTypeHook

ResponseCallback = Callable[[Any, Any], Any]


class MessageType(enum.IntEnum):
    REQUEST = 0
    RESPONSE = 1
    NOTIFICATION = 2


class Writer(Protocol):
    def write(self, data: bytes) -> Any: ...


class Reader(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class Response:
    """Sends the reply to one inbound request."""

    def __init__(self, session: "Session", msgid: int) -> None:
        self._session = session
        self._msgid = msgid
        self.sent = False

    def send(self, value: Any, is_error: bool = False) -> None:
        if self.sent:
            raise SessionError(f"response {self._msgid} already sent")
        self.sent = True
        if is_error:
            message = [MessageType.RESPONSE, self._msgid, value, None]
        else:
            message = [MessageType.RESPONSE, self._msgid, None, value]
        self._session.write(message)


class Session(EventEmitter):
    """Routes msgpack-RPC traffic and emits ``request``, ``notification`` and
    ``detach`` events."""

    def __init__(self, types: Iterable[ExtTypeHook] = ()) -> None:
        super().__init__()
        self._hooks_by_code: dict[int, ExtTypeHook] = {}
        self._hooks_by_class: dict[type, ExtTypeHook] = {}
        self._msgids = itertools.count(1)
        self._pending: dict[int, ResponseCallback] = {}
        self._writer: Writer | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._unpacker = self._new_unpacker()
        self._packer = msgpack.Packer(default=self._encode_ext, use_bin_type=True)
        self.attached = False
        self.add_types(types)

    def _new_unpacker(self) -> msgpack.Unpacker:
        return msgpack.Unpacker(raw=True, ext_hook=self._decode_ext, strict_map_key=False)

    def add_types(self, types: Iterable[ExtTypeHook]) -> None:
        for hook in types:
            self._hooks_by_code[hook.code] = hook
            self._hooks_by_class[hook.constructor] = hook

    def _decode_ext(self, code: int, data: bytes) -> Any:
        hook = self._hooks_by_code.get(code)
        if hook is None:
            return msgpack.ExtType(code, data)
        return hook.decode(data)

    def _encode_ext(self, obj: Any) -> Any:
        hook = self._hooks_by_class.get(type(obj))
        if hook is not None:
            return msgpack.ExtType(hook.code, hook.encode(obj))
        if isinstance(obj, ExtHandle):
            return msgpack.ExtType(obj.code, obj.data)
        raise TypeError(f"cannot serialize {type(obj).__name__}")

    def attach(self, writer: Writer, reader: Reader | None = None) -> None:
        """Bind to the streams. A reader starts a read task on the running loop."""
        self._writer = writer
        self.attached = True
        if reader is not None:
            self._reader_task = asyncio.get_running_loop().create_task(self._read_loop(reader))
            self._reader_task.add_done_callback(self._on_reader_done)
        logger.debug("session attached")

    @staticmethod
    def _on_reader_done(task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error(f"Read loop stopped: {error!r}")

    async def _read_loop(self, reader: Reader) -> None:
        try:
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                self.feed(data)
        finally:
            self.detach()

    def detach(self) -> None:
        if not self.attached:
            return
        self.attached = False
        self._writer = None
        logger.debug("session detached")
        self.emit("detach")

    def write(self, message: list[Any]) -> None:
        if self._writer is None:
            raise SessionError("session is not attached")
        self._writer.write(self._packer.pack(message))

    def request(self, method: str, args: list[Any], cb: ResponseCallback) -> None:
        msgid = next(self._msgids)
        self._pending[msgid] = cb
        try:
            self.write([MessageType.REQUEST, msgid, method, args])
        except Exception:
            del self._pending[msgid]
            raise

    def notify(self, method: str, args: list[Any]) -> None:
        self.write([MessageType.NOTIFICATION, method, args])

    def feed(self, data: bytes) -> None:
        """Process raw bytes received from the peer."""
        self._unpacker.feed(data)
        for message in self._unpacker:
            self._dispatch(message)

    def _dispatch(self, message: Any) -> None:
        if not isinstance(message, list | tuple) or not message:
            logger.warning(f"Dropping malformed message: {message!r}")
            return

        kind = message[0]
        if kind == MessageType.REQUEST and len(message) == 4:
            _, msgid, method, args = message
            self.emit("request", method, args, Response(self, msgid))
        elif kind == MessageType.RESPONSE and len(message) == 4:
            _, msgid, error, result = message
            cb = self._pending.pop(msgid, None)
            if cb is None:
                logger.warning(f"Dropping response to unknown request {msgid}")
                return
            cb(error, result)
        elif kind == MessageType.NOTIFICATION and len(message) == 3:
            _, method, args = message
            self.emit("notification", method, args)
        else:
            logger.warning(f"Dropping message of unknown type: {message!r}")
