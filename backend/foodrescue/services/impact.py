# foodrescue/services/impact.py
from decimal import Decimal, ROUND_HALF_UP

# Average kg CO2e avoided per rescued meal
CARBON_KG_PER_MEAL = Decimal("0.76")

MATCHED = "matched"


def carbon_saved(quantity: int) -> Decimal:
    """Exact quantity * 0.76; nothing is rounded until presentation."""
    return Decimal(int(quantity)) * CARBON_KG_PER_MEAL


def display_carbon(value) -> float:
    """One decimal place for API payloads and charts."""
    if value is None:
        return 0.0
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


async def compute_stats(repo) -> dict:
    """
    Platform totals, aggregated from the stored records on every call.
    Repo must implement:
      - count_donations()
      - count_shelters()
      - list_donations(status)
    """
    matched = await repo.list_donations(status=MATCHED)
    return {
        "total_donations": await repo.count_donations(),
        "total_meals_saved": sum(int(d["quantity"]) for d in matched),
        "total_carbon_saved": sum((Decimal(d["carbon_saved"]) for d in matched), Decimal("0")),
        "active_shelters": await repo.count_shelters(),
    }
