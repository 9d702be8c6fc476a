"""nvimclient - RPC client generated at runtime from the host's API metadata."""

from importlib.metadata import PackageNotFoundError, version

from loguru import logger

from nvimclient.client import Nvim, attach
from nvimclient.config import AttachOptions
from nvimclient.proto.errors import (
    BootstrapError,
    GenerationError,
    NvimClientError,
    NvimError,
    SessionError,
)

try:
    __version__ = version("nvimclient")
except PackageNotFoundError:
    __version__ = "(local)"

logger.disable("nvimclient")

__all__ = [
    "AttachOptions",
    "BootstrapError",
    "GenerationError",
    "Nvim",
    "NvimClientError",
    "NvimError",
    "SessionError",
    "attach",
]
