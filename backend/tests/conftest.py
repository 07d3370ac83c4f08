import pytest
from httpx import AsyncClient, ASGITransport

from relay_hub.api.deps import get_hub
from relay_hub.main import api
from relay_hub.realtime.hub import RelayHub


class FakeEmitter:
    """
    Stands in for the Socket.IO server.
    Records (event, data, to) for every emit; to=None is a broadcast.
    Handles listed in fail_for raise on delivery.
    """

    def __init__(self):
        self.sent = []
        self.fail_for = set()
        self.fail_broadcast = False

    async def emit(self, event, data=None, to=None, **kwargs):
        if to is None and self.fail_broadcast:
            raise ConnectionError("broadcast failed")
        if to is not None and to in self.fail_for:
            raise ConnectionError(f"send to {to} failed")
        self.sent.append((event, data, to))

    def to(self, handle):
        return [(event, data) for event, data, target in self.sent if target == handle]

    def broadcasts(self):
        return [(event, data) for event, data, target in self.sent if target is None]

    def events(self, name):
        return [(data, target) for event, data, target in self.sent if event == name]

    def clear(self):
        self.sent.clear()


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def emitter():
    return FakeEmitter()


@pytest.fixture
def hub(emitter):
    return RelayHub(emitter, echo_sent_messages=False, announce_every_registration=True)


@pytest.fixture
async def client(hub):
    api.dependency_overrides[get_hub] = lambda: hub
    async with AsyncClient(transport=ASGITransport(app=api), base_url="http://test") as ac:
        yield ac
    api.dependency_overrides.clear()
