# foodrescue/services/donations.py
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from foodrescue.core.config import get_settings
from foodrescue.core.logging import get_logger
from foodrescue.errors import Conflict, NotFound, ValidationError
from foodrescue.services.impact import carbon_saved
from foodrescue.services.proximity import random_point_near

log = get_logger(__name__)

AVAILABLE = "available"
MATCHED = "matched"

MIN_EXPIRY_HOURS = 1
MAX_EXPIRY_HOURS = 48


def _utcnow():
    return datetime.now(timezone.utc)


def _is_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def seeded_location(address: Optional[str], lat=None, lng=None) -> Dict:
    """
    Coordinates are taken as given; when missing they are scattered around
    the configured centre (addresses are not geocoded).
    """
    if lat is None or lng is None:
        s = get_settings()
        point = random_point_near(s.seed_center_lat, s.seed_center_lng, s.seed_radius_km)
        lat, lng = point["lat"], point["lng"]
    return {"lat": float(lat), "lng": float(lng), "address": (address or "").strip()}


class DonationRegistry:
    def __init__(self, repo):
        self.repo = repo

    async def create(self, restaurant_name: str, food_type: str, quantity: int, address: str,
                     expires_in_hours: int, location: Optional[Dict] = None, **extras) -> dict:
        if not (restaurant_name or "").strip():
            raise ValidationError("restaurant_name is required")
        if not (food_type or "").strip():
            raise ValidationError("food_type is required")
        if not _is_int(quantity) or quantity <= 0:
            raise ValidationError("quantity must be a positive whole number of meals")
        if not _is_int(expires_in_hours) or not MIN_EXPIRY_HOURS <= expires_in_hours <= MAX_EXPIRY_HOURS:
            raise ValidationError(
                f"expires_in_hours must be between {MIN_EXPIRY_HOURS} and {MAX_EXPIRY_HOURS}"
            )

        loc = location or {}
        now = _utcnow()
        doc = {
            "restaurant_name": restaurant_name.strip(),
            "food_type": food_type.strip(),
            "quantity": quantity,
            "location": seeded_location(address, loc.get("lat"), loc.get("lng")),
            "expires_at": now + timedelta(hours=expires_in_hours),
            "status": AVAILABLE,
            "carbon_saved": carbon_saved(quantity),
            "created_at": now,
            "meal_category": extras.get("meal_category"),
            "allergens": list(extras.get("allergens") or []),
            "dietary_info": list(extras.get("dietary_info") or []),
            "preparation_time": extras.get("preparation_time"),
            "shelter_id": None,
            "shelter_name": None,
        }
        saved = await self.repo.insert_donation(doc)
        log.info("donation.created", donation_id=saved["id"], restaurant=saved["restaurant_name"],
                 quantity=quantity, carbon_saved=str(saved["carbon_saved"]))
        return saved

    async def list_available(self) -> List[dict]:
        return await self.repo.list_donations(status=AVAILABLE)

    async def list_all(self) -> List[dict]:
        return await self.repo.list_donations()

    async def get_by_id(self, donation_id: str) -> dict:
        doc = await self.repo.find_donation(donation_id)
        if not doc:
            raise NotFound(f"Donation {donation_id} not found")
        return doc

    async def mark_matched(self, donation_id: str, shelter: Optional[dict] = None) -> dict:
        fields = {}
        if shelter:
            fields = {"shelter_id": shelter["id"], "shelter_name": shelter["name"]}
        doc = await self.repo.swap_donation_status(donation_id, AVAILABLE, MATCHED, fields)
        if doc is None:
            # tell "lost the race" apart from "never existed"
            await self.get_by_id(donation_id)
            raise Conflict(f"Donation {donation_id} is already matched")
        return doc

    async def release(self, donation_id: str) -> Optional[dict]:
        """Undo mark_matched; only used to roll back a claim that failed midway."""
        return await self.repo.swap_donation_status(
            donation_id, MATCHED, AVAILABLE, {"shelter_id": None, "shelter_name": None}
        )

    async def attach_shelter(self, donation_id: str, shelter: dict) -> dict:
        """Record the claiming shelter on a donation that is already matched."""
        doc = await self.repo.swap_donation_status(
            donation_id, MATCHED, MATCHED, {"shelter_id": shelter["id"], "shelter_name": shelter["name"]}
        )
        if doc is None:
            raise Conflict(f"Donation {donation_id} is no longer matched")
        return doc
