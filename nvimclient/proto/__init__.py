"""Runtime support: transport session, decoding, handles and dispatch."""

from .decode import decode as decode
from .dispatch import DispatchState as DispatchState
from .dispatch import PendingRpc as PendingRpc
from .dispatch import RpcDispatcher as RpcDispatcher
from .dispatch import RpcKind as RpcKind
from .errors import *
from .events import EventEmitter as EventEmitter
from .ext import ExtHandle as ExtHandle
from .ext import ExtTypeHook as ExtTypeHook
from .ext import build_ext_types as build_ext_types
from .session import Response as Response
from .session import Session as Session
