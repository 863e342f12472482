# foodrescue/repos/inmemory.py
import copy
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict

from foodrescue.errors import Conflict


def _id() -> str:
    return uuid.uuid4().hex


class InMemoryRepo:
    """
    Process-local store. Every method runs to completion without awaiting,
    so each call is atomic with respect to other coroutines on the loop.
    Documents are copied on the way in and out; callers never hold live rows.
    """

    def __init__(self):
        self.donations: Dict[str, dict] = {}
        self.shelters: Dict[str, dict] = {}
        self.shelters_by_name: Dict[str, str] = {}
        self.matches: Dict[str, dict] = {}

    async def ensure_indexes(self) -> None:
        return None

    async def close(self) -> None:
        return None

    # Donations
    async def insert_donation(self, doc: dict) -> dict:
        doc = copy.deepcopy(doc)
        doc["id"] = _id()
        self.donations[doc["id"]] = doc
        return copy.deepcopy(doc)

    async def find_donation(self, donation_id: str) -> Optional[dict]:
        d = self.donations.get(donation_id)
        return copy.deepcopy(d) if d else None

    async def list_donations(self, status: Optional[str] = None) -> List[dict]:
        vals = [d for d in self.donations.values() if (status is None or d["status"] == status)]
        # dict order is insertion order, so reversing keeps same-timestamp rows newest first
        vals = sorted(reversed(vals), key=lambda d: d["created_at"], reverse=True)
        return copy.deepcopy(vals)

    async def count_donations(self) -> int:
        return len(self.donations)

    async def swap_donation_status(self, donation_id: str, expected: str, new: str,
                                   fields: Optional[dict] = None) -> Optional[dict]:
        d = self.donations.get(donation_id)
        if d is None or d["status"] != expected:
            return None
        d["status"] = new
        d.update(fields or {})
        return copy.deepcopy(d)

    # Shelters
    async def insert_shelter(self, doc: dict) -> dict:
        if doc["name"] in self.shelters_by_name:
            raise Conflict(f"Shelter '{doc['name']}' already exists")
        return self._add_shelter(doc)

    def _add_shelter(self, doc: dict) -> dict:
        doc = copy.deepcopy(doc)
        doc["id"] = _id()
        doc.setdefault("created_at", datetime.now(timezone.utc))
        self.shelters[doc["id"]] = doc
        self.shelters_by_name[doc["name"]] = doc["id"]
        return copy.deepcopy(doc)

    async def find_shelter(self, shelter_id: str) -> Optional[dict]:
        s = self.shelters.get(shelter_id)
        return copy.deepcopy(s) if s else None

    async def find_shelter_by_name(self, name: str) -> Optional[dict]:
        sid = self.shelters_by_name.get(name)
        return copy.deepcopy(self.shelters[sid]) if sid else None

    async def upsert_shelter_by_name(self, name: str, defaults: dict) -> dict:
        # no awaits in here, so find-or-create cannot interleave
        sid = self.shelters_by_name.get(name)
        if sid:
            return copy.deepcopy(self.shelters[sid])
        return self._add_shelter({**defaults, "name": name})

    async def list_shelters(self) -> List[dict]:
        return copy.deepcopy(list(self.shelters.values()))

    async def count_shelters(self) -> int:
        return len(self.shelters)

    async def increment_shelter_points(self, shelter_id: str, delta: int) -> Optional[dict]:
        s = self.shelters.get(shelter_id)
        if s is None:
            return None
        s["points"] = s.get("points", 0) + delta
        return copy.deepcopy(s)

    # Matches
    async def insert_match(self, doc: dict) -> dict:
        doc = copy.deepcopy(doc)
        doc["id"] = _id()
        self.matches[doc["id"]] = doc
        return copy.deepcopy(doc)

    async def delete_match(self, match_id: str) -> None:
        self.matches.pop(match_id, None)

    async def list_matches(self) -> List[dict]:
        return copy.deepcopy(list(reversed(list(self.matches.values()))))
