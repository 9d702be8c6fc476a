"""Exception types raised or reported by nvimclient."""

from typing import Any

__all__ = [
    "BootstrapError",
    "GenerationError",
    "NvimClientError",
    "NvimError",
    "SessionError",
    "TypeExprError",
]


class NvimClientError(RuntimeError):
    """Base class for nvimclient errors."""


class NvimError(NvimClientError):
    """A remote call failed.

    The host reports errors as ``[type_id, message]``; ``payload`` keeps the
    raw value and the exception message is the description.
    """

    payload: Any

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload

    @classmethod
    def from_payload(cls, payload: Any) -> "NvimError":
        try:
            message = payload[1]
        except (IndexError, KeyError, TypeError):
            message = payload
        if isinstance(message, bytes | bytearray):
            message = bytes(message).decode("utf-8", errors="replace")
        return cls(str(message), payload)


class BootstrapError(NvimError):
    """Raised when the API metadata request fails."""


class GenerationError(NvimClientError):
    """Raised when metadata describes a function no owner can take."""


class SessionError(NvimClientError):
    """Raised for transport misuse, such as sending before attach."""


class TypeExprError(NvimClientError):
    """Raised when an API type string cannot be parsed."""
