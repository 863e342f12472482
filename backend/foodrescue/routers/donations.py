# foodrescue/routers/donations.py
from typing import List

from fastapi import APIRouter, Depends, status

from ..deps import get_coordinator, get_donations
from ..schemas import DonationIn, DonationOut, RankedShelterOut
from ..services.donations import DonationRegistry
from ..services.impact import display_carbon
from ..services.matching import MatchCoordinator
from .shelters import serialize_shelter

router = APIRouter(prefix="/api/donations", tags=["donations"])


def _serialize(doc: dict) -> dict:
    return {
        "id": doc["id"],
        "restaurant_name": doc["restaurant_name"],
        "food_type": doc["food_type"],
        "quantity": doc["quantity"],
        "location": doc["location"],
        "expires_at": doc["expires_at"],
        "status": doc["status"],
        "carbon_saved": display_carbon(doc.get("carbon_saved")),
        "created_at": doc["created_at"],
        "meal_category": doc.get("meal_category"),
        "allergens": doc.get("allergens") or [],
        "dietary_info": doc.get("dietary_info") or [],
        "preparation_time": doc.get("preparation_time"),
        "shelter_id": doc.get("shelter_id"),
        "shelter_name": doc.get("shelter_name"),
    }


@router.post("", response_model=DonationOut, status_code=status.HTTP_201_CREATED)
async def create_donation(body: DonationIn, donations: DonationRegistry = Depends(get_donations)):
    doc = await donations.create(
        restaurant_name=body.restaurant_name,
        food_type=body.food_type,
        quantity=body.quantity,
        address=body.address,
        expires_in_hours=body.expires_in_hours,
        location=body.location.model_dump() if body.location else None,
        meal_category=body.meal_category,
        allergens=body.allergens,
        dietary_info=body.dietary_info,
        preparation_time=body.preparation_time,
    )
    return _serialize(doc)


@router.get("", response_model=List[DonationOut])
async def list_available(donations: DonationRegistry = Depends(get_donations)):
    return [_serialize(d) for d in await donations.list_available()]


@router.get("/{donation_id}", response_model=DonationOut)
async def get_donation(donation_id: str, donations: DonationRegistry = Depends(get_donations)):
    return _serialize(await donations.get_by_id(donation_id))


@router.get("/{donation_id}/nearby-shelters", response_model=List[RankedShelterOut])
async def nearby_shelters(donation_id: str, coordinator: MatchCoordinator = Depends(get_coordinator)):
    ranked = await coordinator.rank_shelters(donation_id)
    return [
        {"shelter": serialize_shelter(s), "distance_km": round(km, 2)}
        for s, km in ranked
    ]
