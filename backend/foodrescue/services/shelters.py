# foodrescue/services/shelters.py
from typing import Dict, List, Optional

from foodrescue.core.logging import get_logger
from foodrescue.errors import NotFound, ValidationError
from foodrescue.services.donations import seeded_location

log = get_logger(__name__)

DEFAULT_NEEDS = "Any food welcome"


def shelter_defaults(defaults: Optional[Dict] = None) -> Dict:
    """Field values for a shelter registered on the fly by a claim."""
    d = dict(defaults or {})
    loc = d.get("location") or {}
    capacity = d.get("capacity")
    return {
        "capacity": 0 if capacity is None else capacity,
        "location": seeded_location(loc.get("address"), loc.get("lat"), loc.get("lng")),
        "contact_phone": (d.get("contact_phone") or "").strip(),
        "needs": d.get("needs") or DEFAULT_NEEDS,
        "points": 0,
    }


def _check_capacity(capacity):
    if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 0:
        raise ValidationError("capacity must be a non-negative integer")


class ShelterRegistry:
    def __init__(self, repo):
        self.repo = repo

    async def get_by_id(self, shelter_id: str) -> dict:
        doc = await self.repo.find_shelter(shelter_id)
        if not doc:
            raise NotFound(f"Shelter {shelter_id} not found")
        return doc

    async def get_by_name(self, name: str) -> dict:
        doc = await self.repo.find_shelter_by_name((name or "").strip())
        if not doc:
            raise NotFound(f"Shelter '{name}' not found")
        return doc

    async def create(self, name: str, capacity: int = 0, location: Optional[Dict] = None,
                     contact_phone: str = "", needs: str = "") -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("shelter name is required")
        _check_capacity(capacity)
        doc = {
            "name": name,
            **shelter_defaults({
                "capacity": capacity,
                "location": location,
                "contact_phone": contact_phone,
                "needs": needs,
            }),
        }
        saved = await self.repo.insert_shelter(doc)
        log.info("shelter.created", shelter_id=saved["id"], name=name)
        return saved

    async def upsert_by_name(self, name: str, defaults: Optional[Dict] = None) -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("shelter name is required")
        existing = await self.repo.find_shelter_by_name(name)
        if existing:
            return existing
        fields = shelter_defaults(defaults)
        _check_capacity(fields["capacity"])
        # the store still decides atomically; a racing registration wins here
        doc = await self.repo.upsert_shelter_by_name(name, fields)
        log.info("shelter.registered", shelter_id=doc["id"], name=name)
        return doc

    async def award_points(self, shelter_id: str, delta: int) -> dict:
        if delta < 0:
            raise ValidationError("points can only be awarded, never taken away")
        doc = await self.repo.increment_shelter_points(shelter_id, delta)
        if not doc:
            raise NotFound(f"Shelter {shelter_id} not found")
        return doc

    async def list_all(self) -> List[dict]:
        return await self.repo.list_shelters()

    async def leaderboard(self) -> List[dict]:
        # list_shelters is in registration order and sorted() is stable
        board = [{"name": s["name"], "points": s.get("points", 0)} for s in await self.repo.list_shelters()]
        return sorted(board, key=lambda row: row["points"], reverse=True)
