"""Connection options."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AttachOptions:
    """Knobs for :func:`nvimclient.attach`.

    api_info_method: request that returns ``[channel_id, metadata]``.
    bootstrap_method: inbound request answered ahead of queued traffic while
        the API is being generated.
    quit_command: Ex command sent by :meth:`Nvim.quit`.
    """

    api_info_method: str = "nvim_get_api_info"
    bootstrap_method: str = "specs"
    quit_command: str = "qa!"


DEFAULT_OPTIONS = AttachOptions()
