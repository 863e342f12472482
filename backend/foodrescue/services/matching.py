# foodrescue/services/matching.py
"""
Claiming a donation for a shelter.

A claim is one unit of writes: the donation flips available -> matched
(compare-and-set in the store), a shelter named for the first time is
registered, a Match snapshot is appended, and the shelter gets CLAIM_POINTS.
Nothing is written before the compare-and-set, so a claim that loses the race
leaves no trace. Points go last because an increment is the one write that
is never undone; if anything fails before it, the earlier writes are
compensated and the original error is re-raised. The SMS goes out only after
the unit has committed.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from foodrescue.core.locks import KeyedLock
from foodrescue.core.logging import get_logger
from foodrescue.errors import Conflict, EngineError, StorageError, ValidationError
from foodrescue.services.donations import AVAILABLE, DonationRegistry
from foodrescue.services.proximity import rank_shelters
from foodrescue.services.shelters import ShelterRegistry

log = get_logger(__name__)

CLAIM_POINTS = 10
PENDING_PICKUP = "pending_pickup"


def _utcnow():
    return datetime.now(timezone.utc)


def _is_expired(donation: dict, now: datetime) -> bool:
    expires = donation.get("expires_at")
    return bool(expires and expires <= now)


class MatchCoordinator:
    def __init__(self, repo, donations: DonationRegistry, shelters: ShelterRegistry,
                 locks: KeyedLock, notifier=None, reject_expired: bool = False):
        self.repo = repo
        self.donations = donations
        self.shelters = shelters
        self.locks = locks
        self.notifier = notifier
        self.reject_expired = reject_expired

    async def rank_shelters(self, donation_id: str) -> List[Tuple[Dict, float]]:
        donation = await self.donations.get_by_id(donation_id)
        return rank_shelters(donation, await self.shelters.list_all())

    async def list_matches(self) -> List[dict]:
        return await self.repo.list_matches()

    async def claim(self, donation_id: str, shelter_id: Optional[str] = None,
                    shelter_name: Optional[str] = None, defaults: Optional[Dict] = None) -> dict:
        if bool(shelter_id) == bool((shelter_name or "").strip()):
            raise ValidationError("give exactly one of shelter_id or shelter_name")

        async with self.locks.hold(donation_id):
            donation = await self.donations.get_by_id(donation_id)
            if donation["status"] != AVAILABLE:
                log.info("claim.conflict", donation_id=donation_id, status=donation["status"])
                raise Conflict(f"Donation {donation_id} is already matched")
            if self.reject_expired and _is_expired(donation, _utcnow()):
                raise Conflict(f"Donation {donation_id} expired at {donation['expires_at'].isoformat()}")

            if shelter_id:
                shelter = await self.shelters.get_by_id(shelter_id)
            else:
                # an unknown name is only registered once the donation is ours
                shelter = await self.repo.find_shelter_by_name(shelter_name.strip())

            match, shelter = await self._commit(donation, shelter, shelter_name, defaults)

        log.info("claim.committed", donation_id=donation_id, shelter_id=shelter["id"],
                 match_id=match["id"], points=shelter["points"])
        if self.notifier is not None:
            self.notifier.dispatch(shelter.get("contact_phone"), donation, shelter)
        return match

    async def _commit(self, donation: dict, shelter: Optional[dict],
                      shelter_name: Optional[str], defaults: Optional[Dict]):
        donation = await self.donations.mark_matched(donation["id"], shelter)
        match = None
        try:
            if shelter is None:
                shelter = await self.shelters.upsert_by_name(shelter_name, defaults)
                donation = await self.donations.attach_shelter(donation["id"], shelter)
            match = await self.repo.insert_match({
                "donation_id": donation["id"],
                "shelter_id": shelter["id"],
                "restaurant_name": donation["restaurant_name"],
                "shelter_name": shelter["name"],
                "food_type": donation["food_type"],
                "quantity": donation["quantity"],
                "carbon_saved": donation["carbon_saved"],
                "matched_at": _utcnow(),
                "status": PENDING_PICKUP,
            })
            shelter = await self.shelters.award_points(shelter["id"], CLAIM_POINTS)
        except EngineError:
            log.error("claim.rolled_back", donation_id=donation["id"],
                      shelter_id=(shelter or {}).get("id"))
            await self._undo(donation["id"], match)
            raise
        return match, shelter

    async def _undo(self, donation_id: str, match: Optional[dict]) -> None:
        # each step runs even if the one before it failed
        if match is not None:
            try:
                await self.repo.delete_match(match["id"])
            except StorageError as exc:
                log.error("claim.undo_failed", step="delete_match", match_id=match["id"], error=str(exc))
        try:
            await self.donations.release(donation_id)
        except StorageError as exc:
            log.error("claim.undo_failed", step="release", donation_id=donation_id, error=str(exc))
