# tests/conftest.py
import asyncio
import inspect

import pytest
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from foodrescue.core.locks import KeyedLock
from foodrescue.deps import get_dispatcher, get_repo
from foodrescue.errors import NotificationError
from foodrescue.main import app
from foodrescue.repos.inmemory import InMemoryRepo
from foodrescue.services.donations import DonationRegistry
from foodrescue.services.matching import MatchCoordinator
from foodrescue.services.notify import NotificationDispatcher
from foodrescue.services.shelters import ShelterRegistry


class RecordingSender:
    """Stands in for SmsSender; remembers what would have been texted."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, phone, message):
        if self.fail:
            raise NotificationError("carrier rejected the message")
        self.sent.append((phone, message))
        return f"SM{len(self.sent)}"


class YieldingRepo(InMemoryRepo):
    """
    InMemoryRepo that gives up the event loop before every store call, the
    way a round-trip to a database server would.
    """

    def __getattribute__(self, name):
        attr = super().__getattribute__(name)
        if name.startswith("_") or not inspect.iscoroutinefunction(attr):
            return attr

        async def suspended(*args, **kwargs):
            await asyncio.sleep(0)
            return await attr(*args, **kwargs)
        return suspended


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"


@pytest.fixture
def repo():
    return InMemoryRepo()


@pytest.fixture
def yielding_repo():
    return YieldingRepo()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def dispatcher(sender):
    return NotificationDispatcher(sender)


@pytest.fixture
def failing_dispatcher():
    return NotificationDispatcher(RecordingSender(fail=True))


@pytest.fixture
def donations(repo):
    return DonationRegistry(repo)


@pytest.fixture
def shelters(repo):
    return ShelterRegistry(repo)


@pytest.fixture
def coordinator(repo, donations, shelters, dispatcher):
    return MatchCoordinator(repo, donations, shelters, KeyedLock(), notifier=dispatcher)


@pytest.fixture
def make_donation(donations):
    async def _make(**overrides):
        fields = {
            "restaurant_name": "Tony's Pizza Palace",
            "food_type": "Pizza, Pasta",
            "quantity": 20,
            "address": "123 Market St, San Francisco, CA",
            "expires_in_hours": 4,
            "location": {"lat": 37.7749, "lng": -122.4194},
        }
        fields.update(overrides)
        return await donations.create(**fields)
    return _make


@pytest.fixture
async def test_client(repo, dispatcher):
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    async with LifespanManager(app):
        transport = ASGITransport(app=app, raise_app_exceptions=True)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.clear()
