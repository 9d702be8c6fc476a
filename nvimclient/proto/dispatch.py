"""Inbound RPC dispatch across the API bootstrap.

Until the client has generated its API, requests and notifications from the
host are queued and replayed once generation finishes, so applications see
them in arrival order and can already use the generated methods. Requests
for the bootstrap method skip the queue: the host may be waiting on their
answer before it will answer ours.

State Diagram::

    BUFFERING -> go_direct() -> DIRECT
    BUFFERING | DIRECT -> detach() -> DETACHED
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any

from loguru import logger

from .decode import decode as default_decode


class DispatchState(StrEnum):
    BUFFERING = auto()
    DIRECT = auto()
    DETACHED = auto()


class RpcKind(StrEnum):
    REQUEST = auto()
    NOTIFICATION = auto()


@dataclass(frozen=True)
class PendingRpc:
    """Inbound traffic held back during bootstrap.

    ``args`` is the full listener argument tuple; for requests it ends with
    the response object so a reply can still be sent after replay.
    """

    kind: RpcKind
    args: tuple[Any, ...]


class RpcDispatcher:
    """Feeds inbound traffic to ``emit`` in arrival order.

    ``emit`` is called as ``emit("request", method, args, response)`` or
    ``emit("notification", method, args)`` with method and args decoded.
    """

    def __init__(
        self,
        emit: Callable[..., Any],
        *,
        bootstrap_method: str = "specs",
        decode: Callable[[Any], Any] = default_decode,
    ) -> None:
        self._emit = emit
        self._decode = decode
        self._bootstrap_method = bootstrap_method
        self._lock = threading.RLock()
        self._pending: list[PendingRpc] = []
        self._replaying = False
        self.state = DispatchState.BUFFERING

    @property
    def pending(self) -> tuple[PendingRpc, ...]:
        with self._lock:
            return tuple(self._pending)

    def on_request(self, method: Any, args: Any, response: Any) -> None:
        with self._lock:
            if self.state == DispatchState.DETACHED:
                return
            if self.state == DispatchState.BUFFERING:
                if self._decode(method) != self._bootstrap_method:
                    self._pending.append(PendingRpc(RpcKind.REQUEST, (method, args, response)))
                    return
                logger.debug(f"Dispatching {self._bootstrap_method!r} ahead of bootstrap")
            self._deliver(RpcKind.REQUEST, (method, args, response))

    def on_notification(self, method: Any, args: Any) -> None:
        with self._lock:
            if self.state == DispatchState.DETACHED:
                return
            if self.state == DispatchState.BUFFERING:
                self._pending.append(PendingRpc(RpcKind.NOTIFICATION, (method, args)))
                return
            self._deliver(RpcKind.NOTIFICATION, (method, args))

    def _deliver(self, kind: RpcKind, args: tuple[Any, ...]) -> None:
        method, params, *rest = args
        self._emit(str(kind), self._decode(method), self._decode(params), *rest)

    def go_direct(self) -> None:
        """Replay queued traffic and dispatch everything after it directly.

        Only the first call from BUFFERING has any effect. Traffic arriving
        while the queue drains goes behind it, not ahead of it.
        """
        with self._lock:
            if self.state != DispatchState.BUFFERING or self._replaying:
                return
            self._replaying = True
            try:
                logger.debug(f"Bootstrap complete, replaying {len(self._pending)} queued message(s)")
                while self._pending and self.state == DispatchState.BUFFERING:
                    item = self._pending.pop(0)
                    self._deliver(item.kind, item.args)
                if self.state == DispatchState.BUFFERING:
                    self.state = DispatchState.DIRECT
            finally:
                self._replaying = False

    def detach(self) -> None:
        with self._lock:
            if self.state == DispatchState.DETACHED:
                return
            dropped = len(self._pending)
            self._pending = []
            self.state = DispatchState.DETACHED
            if dropped:
                logger.debug(f"Detached with {dropped} queued message(s) dropped")
