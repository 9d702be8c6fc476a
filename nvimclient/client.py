"""The client object applications talk to, and :func:`attach`."""

from collections.abc import Callable
from typing import Any

from loguru import logger

from nvimclient.config import DEFAULT_OPTIONS, AttachOptions
from nvimclient.generator.types import ApiMetadata
from nvimclient.generator.wrappers import ApiTable, generate_wrappers, install_wrappers
from nvimclient.proto.decode import decode
from nvimclient.proto.dispatch import DispatchState, RpcDispatcher
from nvimclient.proto.errors import BootstrapError
from nvimclient.proto.events import EventEmitter
from nvimclient.proto.ext import build_ext_types
from nvimclient.proto.session import Reader, Session, Writer

AttachCallback = Callable[..., Any]


class Nvim(EventEmitter):
    """A connected host.

    Methods for every remote function appear on the instance once the API
    metadata has been received (``api_ready`` is then true and ``ready`` has
    been emitted). Extension handle types are reachable as attributes, e.g.
    ``isinstance(obj, nvim.Buffer)``.

    Events:
        request(method, args, response): the host called us; reply with
            ``response.send(value)``.
        notification(method, args): the host notified us.
        disconnect(): the transport went away.
        ready(): generated methods are available.
    """

    def __init__(self, session: Any, options: AttachOptions = DEFAULT_OPTIONS) -> None:
        super().__init__()
        self._session = session
        self._decode = decode
        self._options = options
        self.channel_id: int | None = None
        self.metadata: ApiMetadata | None = None
        self.api: ApiTable = {}
        self.api_ready = False
        self._dispatcher: RpcDispatcher | None = None

    def quit(self, cb: Callable[..., Any] | None = None) -> None:
        """Force the host to quit."""
        self.command(self._options.quit_command, cb=cb)  # type: ignore[attr-defined]


def _on_api_info(
    nvim: Nvim,
    session: Any,
    dispatcher: RpcDispatcher,
    cb: AttachCallback,
    err: Any,
    res: Any,
) -> None:
    if err:
        error = BootstrapError.from_payload(err)
        logger.warning(f"API metadata request failed: {error}")
        dispatcher.detach()
        cb(error, None)
        return

    channel_id, raw_metadata = res[0], res[1]
    metadata = ApiMetadata.from_wire(raw_metadata)

    ext_types = build_ext_types(session, metadata.types, decode)
    for name, cls in ext_types.classes.items():
        setattr(nvim, name, cls)

    table = generate_wrappers(session, metadata, ext_types.classes, decode)
    install_wrappers(table, nvim, ext_types.classes)
    session.add_types(ext_types.hooks)

    nvim.channel_id = channel_id
    nvim.metadata = metadata
    nvim.api = table
    nvim.api_ready = True
    logger.debug(
        f"Generated {len(table)} method(s) and {len(ext_types.classes)} type(s) "
        f"for channel {channel_id}"
    )

    dispatcher.go_direct()
    if dispatcher.state == DispatchState.DIRECT:
        nvim.emit("ready")


def attach(
    writer: Writer,
    reader: Reader | None,
    cb: AttachCallback | None = None,
    *,
    options: AttachOptions = DEFAULT_OPTIONS,
    session: Any = None,
) -> Nvim:
    """Connect to a host over ``writer``/``reader`` and bootstrap its API.

    ``cb(None, nvim)`` is called right away; ``cb(error, None)`` follows if
    the metadata request fails. The client is also returned. Inbound traffic
    that arrives before the metadata is queued and replayed afterwards.

    ``session`` replaces the default :class:`Session`; it must provide
    ``attach``, ``request``, ``notify``, ``add_types`` and the event methods.
    """
    if cb is None:
        cb = _ignore
    if session is None:
        session = Session()
    nvim = Nvim(session, options)
    dispatcher = RpcDispatcher(nvim.emit, bootstrap_method=options.bootstrap_method)
    nvim._dispatcher = dispatcher

    session.attach(writer, reader)

    cb(None, nvim)

    session.on("request", dispatcher.on_request)
    session.on("notification", dispatcher.on_notification)

    def _on_detach() -> None:
        session.remove_all_listeners("request")
        session.remove_all_listeners("notification")
        dispatcher.detach()
        nvim.emit("disconnect")

    session.on("detach", _on_detach)

    session.request(
        options.api_info_method,
        [],
        lambda err, res: _on_api_info(nvim, session, dispatcher, cb, err, res),
    )
    return nvim


def _ignore(*_args: Any) -> None:
    pass
