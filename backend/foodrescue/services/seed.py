# foodrescue/services/seed.py
from foodrescue.core.logging import get_logger
from foodrescue.services.donations import DonationRegistry
from foodrescue.services.shelters import ShelterRegistry

log = get_logger(__name__)

DEMO_SHELTERS = [
    {"name": "Hope Center", "capacity": 50, "contact_phone": "+1234567890",
     "needs": "Any food welcome",
     "location": {"lat": 37.7739, "lng": -122.4312, "address": "789 Howard St, San Francisco, CA"}},
    {"name": "Community Care Shelter", "capacity": 80, "contact_phone": "+1234567891",
     "needs": "Hot meals preferred",
     "location": {"lat": 37.7839, "lng": -122.4212, "address": "321 Folsom St, San Francisco, CA"}},
]

DEMO_DONATIONS = [
    {"restaurant_name": "Tony's Pizza Palace", "food_type": "Pizza, Pasta", "quantity": 20,
     "address": "123 Market St, San Francisco, CA", "expires_in_hours": 4,
     "location": {"lat": 37.7749, "lng": -122.4194}, "meal_category": "Main Course"},
    {"restaurant_name": "Green Leaf Bistro", "food_type": "Salads, Sandwiches", "quantity": 15,
     "address": "456 Mission St, San Francisco, CA", "expires_in_hours": 3,
     "location": {"lat": 37.7849, "lng": -122.4094}, "dietary_info": ["vegetarian"]},
]


async def seed_demo(repo) -> dict:
    """
    Load the demo shelters and donations into an empty store.
    Shelters are upserted by name, so re-running never duplicates them;
    donations are only added when the store has none.
    """
    shelters = ShelterRegistry(repo)
    donations = DonationRegistry(repo)

    for s in DEMO_SHELTERS:
        fields = dict(s)
        await shelters.upsert_by_name(fields.pop("name"), fields)

    added = 0
    if await repo.count_donations() == 0:
        for d in DEMO_DONATIONS:
            await donations.create(**d)
            added += 1

    log.info("seed.done", shelters=len(DEMO_SHELTERS), donations=added)
    return {"shelters": len(DEMO_SHELTERS), "donations": added}
