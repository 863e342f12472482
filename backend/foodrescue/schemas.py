from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from datetime import datetime

# --------------------------
# Shared Submodels
# --------------------------
class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = ""

# --------------------------
# Donations
# --------------------------
class DonationIn(BaseModel):
    restaurant_name: str
    food_type: str
    quantity: int                      # meals; bounds checked by DonationRegistry
    address: str = ""
    expires_in_hours: int = 4
    location: Optional[LatLng] = None  # seeded near the city centre when missing
    meal_category: Optional[str] = None
    allergens: List[str] = []
    dietary_info: List[str] = []
    preparation_time: Optional[str] = None

class DonationOut(BaseModel):
    id: str
    restaurant_name: str
    food_type: str
    quantity: int
    location: Location
    expires_at: datetime
    status: Literal["available", "matched"]
    carbon_saved: float
    created_at: datetime
    meal_category: Optional[str] = None
    allergens: List[str] = []
    dietary_info: List[str] = []
    preparation_time: Optional[str] = None
    shelter_id: Optional[str] = None
    shelter_name: Optional[str] = None

# --------------------------
# Shelters
# --------------------------
class ShelterIn(BaseModel):
    name: str
    capacity: int = 0
    location: Optional[Location] = None
    contact_phone: str = ""
    needs: str = ""

class ShelterOut(BaseModel):
    id: str
    name: str
    capacity: int
    location: Optional[Location] = None
    contact_phone: str = ""
    needs: str = ""
    points: int

class RankedShelterOut(BaseModel):
    shelter: ShelterOut
    distance_km: float

class LeaderboardEntry(BaseModel):
    name: str
    points: int

# --------------------------
# Claims / Matches
# --------------------------
class ClaimIn(BaseModel):
    donation_id: str
    shelter_id: Optional[str] = None
    shelter_name: Optional[str] = None
    # only used when shelter_name registers a new shelter
    contact_phone: Optional[str] = None

class MatchOut(BaseModel):
    id: str
    donation_id: str
    shelter_id: str
    restaurant_name: str
    shelter_name: str
    food_type: str
    quantity: int
    carbon_saved: float
    matched_at: datetime
    status: Literal["pending_pickup"]

# --------------------------
# Stats
# --------------------------
class StatsOverview(BaseModel):
    total_donations: int
    total_meals_saved: int
    total_carbon_saved: float
    active_shelters: int
