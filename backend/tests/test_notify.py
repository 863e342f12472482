import asyncio
from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from foodrescue.core.config import Settings
from foodrescue.errors import NotificationError
from foodrescue.services.notify import NotificationDispatcher, SmsSender, claim_message

pytestmark = pytest.mark.anyio

DONATION = {
    "id": "d1",
    "restaurant_name": "Green Leaf Bistro",
    "food_type": "Salads, Sandwiches",
    "quantity": 15,
    "location": {"lat": 37.7849, "lng": -122.4094, "address": "456 Mission St"},
    "expires_at": datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc),
}
SHELTER = {"id": "s1", "name": "Hope Center", "contact_phone": "+15550001"}


def _twilio_settings(**kw):
    return Settings(
        _env_file=None,
        twilio_account_sid="AC123",
        twilio_auth_token="secret",
        twilio_phone_number="+15005550006",
        **kw,
    )


def test_claim_message_mentions_the_pickup():
    msg = claim_message(DONATION, SHELTER)
    assert "15 meals of Salads, Sandwiches from Green Leaf Bistro" in msg
    assert "456 Mission St" in msg
    assert "18:30 UTC" in msg


async def test_unconfigured_sender_only_logs():
    def handler(request):
        raise AssertionError("no HTTP call expected")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = SmsSender(Settings(_env_file=None), client=client)
        assert await sender.send("+15550001", "hello") is None


async def test_sender_posts_to_twilio():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM42", "status": "queued"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = SmsSender(_twilio_settings(), client=client)
        sid = await sender.send("+15550001", "Food is on the way")

    assert sid == "SM42"
    req = seen[0]
    assert req.method == "POST"
    assert req.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    assert req.headers["authorization"].startswith("Basic ")
    form = parse_qs(req.content.decode())
    assert form == {"To": ["+15550001"], "From": ["+15005550006"], "Body": ["Food is on the way"]}


async def test_sender_raises_on_http_error():
    def handler(request):
        return httpx.Response(400, json={"message": "invalid number"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = SmsSender(_twilio_settings(), client=client)
        with pytest.raises(NotificationError):
            await sender.send("not-a-number", "hi")


async def test_sender_raises_on_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = SmsSender(_twilio_settings(), client=client)
        with pytest.raises(NotificationError):
            await sender.send("+15550001", "hi")


async def test_dispatch_runs_in_background(sender, dispatcher):
    task = dispatcher.dispatch("+15550001", DONATION, SHELTER)
    assert task is not None
    await dispatcher.drain()
    assert sender.sent and sender.sent[0][0] == "+15550001"
    assert dispatcher.pending == 0


async def test_dispatch_swallows_failures(failing_dispatcher):
    task = failing_dispatcher.dispatch("+15550001", DONATION, SHELTER)
    await failing_dispatcher.drain()
    assert task.done() and task.exception() is None


async def test_dispatch_without_phone_is_skipped(sender, dispatcher):
    assert dispatcher.dispatch("", DONATION, SHELTER) is None
    assert dispatcher.dispatch(None, DONATION, SHELTER) is None
    assert dispatcher.pending == 0


async def test_aclose_cancels_in_flight():
    started = asyncio.Event()

    class SlowSender:
        async def send(self, phone, message):
            started.set()
            await asyncio.sleep(30)

    dispatcher = NotificationDispatcher(SlowSender())
    task = dispatcher.dispatch("+15550001", DONATION, SHELTER)
    await started.wait()

    await dispatcher.aclose()

    assert task.cancelled()
    assert dispatcher.pending == 0
