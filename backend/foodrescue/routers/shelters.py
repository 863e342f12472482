# foodrescue/routers/shelters.py
from typing import List

from fastapi import APIRouter, Depends, status

from ..deps import get_shelters
from ..schemas import LeaderboardEntry, ShelterIn, ShelterOut
from ..services.shelters import ShelterRegistry

router = APIRouter(prefix="/api", tags=["shelters"])


def serialize_shelter(doc: dict) -> dict:
    return {
        "id": doc["id"],
        "name": doc["name"],
        "capacity": doc.get("capacity", 0),
        "location": doc.get("location"),
        "contact_phone": doc.get("contact_phone") or "",
        "needs": doc.get("needs") or "",
        "points": doc.get("points", 0),
    }


@router.get("/shelters", response_model=List[ShelterOut])
async def list_shelters(shelters: ShelterRegistry = Depends(get_shelters)):
    return [serialize_shelter(s) for s in await shelters.list_all()]


@router.post("/shelters", response_model=ShelterOut, status_code=status.HTTP_201_CREATED)
async def create_shelter(body: ShelterIn, shelters: ShelterRegistry = Depends(get_shelters)):
    doc = await shelters.create(
        name=body.name,
        capacity=body.capacity,
        location=body.location.model_dump() if body.location else None,
        contact_phone=body.contact_phone,
        needs=body.needs,
    )
    return serialize_shelter(doc)


@router.get("/shelters/{shelter_id}", response_model=ShelterOut)
async def get_shelter(shelter_id: str, shelters: ShelterRegistry = Depends(get_shelters)):
    return serialize_shelter(await shelters.get_by_id(shelter_id))


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(shelters: ShelterRegistry = Depends(get_shelters)):
    return await shelters.leaderboard()
