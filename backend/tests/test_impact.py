from decimal import Decimal

import pytest

from foodrescue.services.impact import carbon_saved, compute_stats, display_carbon

pytestmark = pytest.mark.anyio


def test_carbon_for_twenty_meals():
    assert carbon_saved(20) == Decimal("15.2")


def test_carbon_is_exact_for_any_positive_quantity():
    for q in range(1, 500):
        c = carbon_saved(q)
        assert c == Decimal(q) * Decimal("0.76")
        assert c >= 0


def test_display_rounds_to_one_decimal():
    assert display_carbon(Decimal("15.20")) == 15.2
    assert display_carbon(Decimal("0.76")) == 0.8
    assert display_carbon(Decimal("11.40")) == 11.4
    assert display_carbon(None) == 0.0


async def test_stats_on_empty_store(repo):
    assert await compute_stats(repo) == {
        "total_donations": 0,
        "total_meals_saved": 0,
        "total_carbon_saved": Decimal("0"),
        "active_shelters": 0,
    }


async def test_stats_only_count_matched_donations_as_saved(make_donation, coordinator, shelters, repo):
    first = await make_donation(quantity=20)
    second = await make_donation(quantity=15)
    await make_donation(quantity=7)
    await shelters.create("Community Care Shelter")

    await coordinator.claim(first["id"], shelter_name="Hope Center")
    await coordinator.claim(second["id"], shelter_name="Hope Center")

    stats = await compute_stats(repo)
    assert stats["total_donations"] == 3
    assert stats["total_meals_saved"] == 35
    assert stats["total_carbon_saved"] == Decimal("26.60")
    assert stats["active_shelters"] == 2


async def test_stats_match_sums_over_matched_records(make_donation, coordinator, repo):
    for q in (3, 11, 40, 1):
        d = await make_donation(quantity=q)
        if q != 40:
            await coordinator.claim(d["id"], shelter_name="Hope Center")

    matched = await repo.list_donations(status="matched")
    stats = await compute_stats(repo)
    assert stats["total_meals_saved"] == sum(d["quantity"] for d in matched)
    assert stats["total_carbon_saved"] == sum(d["carbon_saved"] for d in matched)
