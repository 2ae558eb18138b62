import json
import os
import sys

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# Put the project root (the parent of tests/) on sys.path so the flat
# top-level modules (`backend`, `session`, ...) import as they do in the app.
# ──────────────────────────────────────────────────────────────────────────────
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# fmt: off
from backend import RoomStore
from connections import ConnectionRegistry
from session import SessionLifecycle
from signaling import SignalRouter
# fmt: on


class FakeWebSocket:
    """Collects every frame sent to it."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))

    def of_type(self, message_type):
        return [m for m in self.sent if m["type"] == message_type]


@pytest.fixture
def store():
    return RoomStore()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def router(registry):
    return SignalRouter(registry)


@pytest.fixture
def lifecycle(store, registry, router):
    return SessionLifecycle(store, registry, router)


@pytest.fixture
def connect(registry):
    """Register a fake client and return (connection_id, websocket)."""
    def _connect(fail=False):
        ws = FakeWebSocket(fail=fail)
        connection = registry.register(ws)
        return connection.connection_id, ws
    return _connect
