# foodrescue/services/notify.py
import asyncio
from typing import Optional, Set

import httpx

from foodrescue.core.config import Settings
from foodrescue.core.logging import get_logger
from foodrescue.errors import NotificationError

log = get_logger(__name__)


def claim_message(donation: dict, shelter: dict) -> str:
    loc = donation.get("location") or {}
    expires = donation.get("expires_at")
    pickup = f" Pickup before {expires.strftime('%H:%M UTC')}." if expires else ""
    return (
        f"New food donation matched for {shelter['name']}! "
        f"{donation['quantity']} meals of {donation['food_type']} from {donation['restaurant_name']}. "
        f"Location: {loc.get('address') or 'see app'}.{pickup}"
    )


class SmsSender:
    """
    Twilio Messages API over httpx. Without credentials the message is only
    logged, which keeps local development free of external calls.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client

    async def send(self, phone: str, message: str) -> Optional[str]:
        s = self.settings
        if not s.sms_configured:
            log.info("sms.not_configured", to=phone, message=message)
            return None

        url = f"{s.twilio_api_base}/2010-04-01/Accounts/{s.twilio_account_sid}/Messages.json"
        data = {"To": phone, "From": s.twilio_phone_number, "Body": message}
        auth = (s.twilio_account_sid, s.twilio_auth_token)
        try:
            if self._client is not None:
                r = await self._client.post(url, data=data, auth=auth)
            else:
                timeout = httpx.Timeout(s.sms_timeout, connect=5.0)
                async with httpx.AsyncClient(timeout=timeout) as client:
                    r = await client.post(url, data=data, auth=auth)
            r.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationError(f"SMS to {phone} failed: {exc}") from exc
        return r.json().get("sid")


class NotificationDispatcher:
    """
    Fire-and-forget delivery. Each message runs in its own task; failures
    are logged and dropped, nothing is retried.
    """

    def __init__(self, sender):
        self.sender = sender
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self, phone: Optional[str], donation: dict, shelter: dict) -> Optional[asyncio.Task]:
        if not phone:
            log.info("notification.skipped", reason="no_phone", shelter_id=shelter.get("id"))
            return None
        task = asyncio.create_task(self._deliver(phone, claim_message(donation, shelter), donation["id"]))
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error("notification.crashed", error=repr(task.exception()))

    async def _deliver(self, phone: str, message: str, donation_id: str) -> None:
        try:
            sid = await self.sender.send(phone, message)
        except NotificationError as exc:
            log.warning("notification.failed", donation_id=donation_id, to=phone, error=str(exc))
            return
        log.info("notification.sent", donation_id=donation_id, to=phone, sid=sid)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-flight notifications to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel whatever is still in flight (process shutdown)."""
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
