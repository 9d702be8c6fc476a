"""Build callable wrappers for every function in the API metadata.

Each remote function becomes a :class:`GeneratedMethod` owned either by the
client itself or by one extension handle type. Names follow the host's
``<owner>_<words>`` convention::

    nvim_command     -> Nvim.command
    buffer_get_line  -> Buffer.getLine   (handle passed as first argument)
    ui_attach        -> Nvim.uiAttach    (Ui functions keep their prefix)

A wrapper called without a callback sends a notification. Called with one,
it sends a request and later calls ``cb(err)`` or ``cb(None, result)``.
"""

import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any

from loguru import logger

from nvimclient.proto.decode import decode as default_decode
from nvimclient.proto.errors import GenerationError, NvimError, SessionError

from .types import GLOBAL_OWNERS, ApiMetadata, FunctionSpec, owner_type_name
from .util import to_camel_case

Callback = Callable[..., Any]


class OwnerKind(StrEnum):
    GLOBAL = auto()
    EXTENSION = auto()


@dataclass(frozen=True)
class Owner:
    """Where a generated method lives: the client, or one handle type."""

    kind: OwnerKind
    type_name: str | None = None

    @property
    def is_global(self) -> bool:
        return self.kind == OwnerKind.GLOBAL


GLOBAL = Owner(OwnerKind.GLOBAL)


@dataclass(frozen=True)
class MethodMetadata:
    """Introspection data attached to each generated method."""

    name: str
    deferred: bool
    return_type: str
    parameters: tuple[str, ...]
    parameter_types: tuple[str, ...]
    can_fail: bool


def method_name(function_name: str) -> str:
    parts = function_name.split("_")
    if owner_type_name(function_name) != "Ui":
        parts = parts[1:]
    return to_camel_case("_".join(parts))


def resolve_owner(function_name: str, ext_type_names: Mapping[str, Any]) -> Owner:
    """Classify a function by its owner segment.

    Raises:
        GenerationError: The segment names neither the client nor a
            registered extension type.
    """
    type_name = owner_type_name(function_name)
    if type_name in GLOBAL_OWNERS:
        return GLOBAL
    if type_name not in ext_type_names:
        raise GenerationError(
            f"{function_name}: undefined owner type {type_name!r} "
            "(API metadata does not match this client)"
        )
    return Owner(OwnerKind.EXTENSION, type_name)


class GeneratedMethod:
    """A call wrapper for one remote function.

    Invoked as ``method(target, *args, cb=None)``; ``target`` is the client
    or a handle. The callback may also be given positionally right after
    the exposed parameters. Installed on a class, it binds like a function.
    """

    def __init__(
        self,
        session: Any,
        function_name: str,
        owner: Owner,
        parameters: tuple[str, ...],
        metadata: MethodMetadata,
        decode: Callable[[Any], Any] = default_decode,
    ) -> None:
        self._session = session
        self._decode = decode
        self.function_name = function_name
        self.owner = owner
        self.parameters = parameters
        self.metadata = metadata
        self.__name__ = metadata.name
        self.__qualname__ = metadata.name
        self.__doc__ = f"Call the remote function ``{function_name}``."

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def __repr__(self) -> str:
        return f"<GeneratedMethod {self.metadata.name} -> {self.function_name}>"

    def call_args(self, target: Any, args: tuple[Any, ...]) -> list[Any]:
        if self.owner.is_global:
            return list(args)
        return [target, *args]

    def __call__(self, target: Any, *args: Any, cb: Callback | None = None) -> None:
        count = len(self.parameters)
        if cb is None and len(args) > count:
            cb = args[count]
        call_args = self.call_args(target, args[:count])

        if cb is None:
            try:
                self._session.notify(self.function_name, call_args)
            except SessionError as e:
                logger.debug(f"Notification {self.function_name} not sent: {e}")
            return

        def _on_response(err: Any, res: Any) -> None:
            if err:
                cb(NvimError.from_payload(err))
                return
            cb(None, self._decode(res))

        try:
            self._session.request(self.function_name, call_args, _on_response)
        except SessionError as e:
            logger.debug(f"Request {self.function_name} not sent: {e}")
            cb(e)


ApiTable = dict[tuple[Owner, str], GeneratedMethod]


def build_method(
    session: Any,
    func: FunctionSpec,
    ext_type_names: Mapping[str, Any],
    decode: Callable[[Any], Any] = default_decode,
) -> tuple[Owner, GeneratedMethod]:
    owner = resolve_owner(func.name, ext_type_names)
    name = method_name(func.name)

    parameters = tuple(func.parameter_names)
    if not owner.is_global:
        parameters = parameters[1:]

    parameter_types = tuple(func.parameter_types)
    if owner_type_name(func.name) == "Nvim":
        parameter_types = parameter_types[1:]

    metadata = MethodMetadata(
        name=name,
        deferred=func.deferred,
        return_type=func.return_type,
        parameters=(*parameters, "cb"),
        parameter_types=parameter_types,
        can_fail=func.can_fail,
    )
    return owner, GeneratedMethod(session, func.name, owner, parameters, metadata, decode)


def generate_wrappers(
    session: Any,
    metadata: ApiMetadata,
    ext_type_names: Mapping[str, Any],
    decode: Callable[[Any], Any] = default_decode,
) -> ApiTable:
    """Build the ``(owner, method name) -> method`` table for ``metadata``.

    Later functions win when two map to the same method name.
    """
    table: ApiTable = {}
    for func in metadata.functions:
        owner, method = build_method(session, func, ext_type_names, decode)
        table[(owner, method.metadata.name)] = method
    return table


def install_wrappers(table: ApiTable, client: Any, ext_classes: Mapping[str, type]) -> None:
    """Attach every method in ``table`` to its owner.

    Client methods are bound onto the client instance; handle methods go on
    the per-connection handle classes.
    """
    for (owner, name), method in table.items():
        if owner.is_global:
            setattr(client, name, method.__get__(client))
        else:
            setattr(ext_classes[owner.type_name], name, method)
