# foodrescue/routers/matches.py
from typing import List

from fastapi import APIRouter, Depends, status

from ..deps import get_coordinator
from ..schemas import ClaimIn, MatchOut
from ..services.impact import display_carbon
from ..services.matching import MatchCoordinator

router = APIRouter(prefix="/api", tags=["matches"])


def _serialize(doc: dict) -> dict:
    return {**doc, "carbon_saved": display_carbon(doc.get("carbon_saved"))}


@router.post("/claim", response_model=MatchOut, status_code=status.HTTP_201_CREATED)
async def claim(body: ClaimIn, coordinator: MatchCoordinator = Depends(get_coordinator)):
    defaults = {"contact_phone": body.contact_phone} if body.contact_phone else None
    match = await coordinator.claim(
        body.donation_id,
        shelter_id=body.shelter_id,
        shelter_name=body.shelter_name,
        defaults=defaults,
    )
    return _serialize(match)


@router.get("/matches", response_model=List[MatchOut])
async def list_matches(coordinator: MatchCoordinator = Depends(get_coordinator)):
    return [_serialize(m) for m in await coordinator.list_matches()]
