"""Unit tests configuration file."""

import pytest

from nvimclient.proto.events import EventEmitter


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


class FakeSession(EventEmitter):
    """In-memory stand-in for the transport session.

    Records outgoing traffic; tests answer requests with ``respond`` and
    inject inbound traffic with ``emit``.
    """

    def __init__(self):
        super().__init__()
        self.attached_to = None
        self.notifications = []
        self.requests = []
        self.types = []

    def attach(self, writer, reader):
        self.attached_to = (writer, reader)

    def notify(self, method, args):
        self.notifications.append((method, args))

    def request(self, method, args, cb):
        self.requests.append((method, args, cb))

    def add_types(self, types):
        self.types.extend(types)

    def respond(self, index, err, result=None):
        _, _, cb = self.requests[index]
        cb(err, result)


API_INFO = {
    b"functions": [
        {
            b"name": b"nvim_command",
            b"parameters": [[b"String", b"command"]],
            b"return_type": b"void",
            b"deferred": True,
            b"can_fail": True,
        },
        {
            b"name": b"nvim_eval",
            b"parameters": [[b"String", b"expr"]],
            b"return_type": b"Object",
            b"deferred": True,
            b"can_fail": True,
        },
        {
            b"name": b"vim_get_buffers",
            b"parameters": [],
            b"return_type": b"ArrayOf(Buffer)",
            b"deferred": True,
            b"can_fail": False,
        },
        {
            b"name": b"buffer_get_line",
            b"parameters": [[b"Buffer", b"buffer"], [b"Integer", b"index"]],
            b"return_type": b"String",
            b"deferred": True,
            b"can_fail": True,
        },
        {
            b"name": b"window_get_buffer",
            b"parameters": [[b"Window", b"window"]],
            b"return_type": b"Buffer",
            b"deferred": False,
            b"can_fail": True,
        },
        {
            b"name": b"ui_attach",
            b"parameters": [[b"Integer", b"width"], [b"Integer", b"height"], [b"Boolean", b"rgb"]],
            b"return_type": b"void",
            b"deferred": False,
            b"can_fail": True,
        },
    ],
    b"types": {
        b"Buffer": {b"id": 0, b"prefix": b"nvim_buf_"},
        b"Window": {b"id": 1, b"prefix": b"nvim_win_"},
        b"Tabpage": {b"id": 2, b"prefix": b"nvim_tabpage_"},
    },
    b"version": {b"major": 0, b"minor": 10, b"patch": 0, b"api_level": 12},
}


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def api_info():
    """Raw metadata as a raw msgpack unpacker would hand it over."""
    return API_INFO
