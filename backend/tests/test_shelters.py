import pytest

from foodrescue.errors import Conflict, NotFound, ValidationError

pytestmark = pytest.mark.anyio


async def test_create_starts_with_zero_points(shelters):
    s = await shelters.create("Hope Center", capacity=50, contact_phone="+1234567890",
                              location={"lat": 37.7739, "lng": -122.4312, "address": "789 Howard St"})
    assert s["points"] == 0
    assert s["capacity"] == 50
    assert s["location"]["address"] == "789 Howard St"
    assert (await shelters.get_by_name("Hope Center"))["id"] == s["id"]
    assert (await shelters.get_by_id(s["id"]))["name"] == "Hope Center"


async def test_create_rejects_duplicates_and_bad_fields(shelters):
    await shelters.create("Hope Center")
    with pytest.raises(Conflict):
        await shelters.create("Hope Center")
    with pytest.raises(ValidationError):
        await shelters.create("   ")
    with pytest.raises(ValidationError):
        await shelters.create("Negative", capacity=-1)


async def test_lookups_fail_for_unknown(shelters):
    with pytest.raises(NotFound):
        await shelters.get_by_id("missing")
    with pytest.raises(NotFound):
        await shelters.get_by_name("Nobody")


async def test_upsert_creates_once_with_defaults(shelters, repo):
    created = await shelters.upsert_by_name("Hope Center")
    assert created["points"] == 0
    assert created["capacity"] == 0
    assert created["contact_phone"] == ""
    assert created["needs"] == "Any food welcome"
    assert created["location"]["lat"] is not None

    again = await shelters.upsert_by_name("Hope Center", {"contact_phone": "+15550000", "capacity": 99})
    assert again["id"] == created["id"]
    assert again["contact_phone"] == ""
    assert await repo.count_shelters() == 1


async def test_upsert_uses_supplied_defaults(shelters):
    s = await shelters.upsert_by_name("Night Owl Shelter", {"contact_phone": " +15551234 ", "capacity": 30})
    assert s["contact_phone"] == "+15551234"
    assert s["capacity"] == 30


async def test_award_points(shelters):
    s = await shelters.create("Hope Center")
    assert (await shelters.award_points(s["id"], 10))["points"] == 10
    assert (await shelters.award_points(s["id"], 10))["points"] == 20
    with pytest.raises(ValidationError):
        await shelters.award_points(s["id"], -10)
    with pytest.raises(NotFound):
        await shelters.award_points("missing", 10)
    assert (await shelters.get_by_id(s["id"]))["points"] == 20


async def test_leaderboard_sorts_by_points_then_registration(shelters):
    a = await shelters.create("Alpha")
    b = await shelters.create("Bravo")
    c = await shelters.create("Charlie")
    await shelters.create("Delta")
    await shelters.award_points(c["id"], 30)
    await shelters.award_points(b["id"], 10)
    await shelters.award_points(a["id"], 10)

    assert await shelters.leaderboard() == [
        {"name": "Charlie", "points": 30},
        {"name": "Alpha", "points": 10},
        {"name": "Bravo", "points": 10},
        {"name": "Delta", "points": 0},
    ]


async def test_upsert_of_existing_name_skips_defaults(shelters, monkeypatch):
    created = await shelters.upsert_by_name("Hope Center")

    def no_defaults(*args, **kwargs):
        raise AssertionError("defaults built for an existing shelter")

    monkeypatch.setattr("foodrescue.services.shelters.shelter_defaults", no_defaults)

    again = await shelters.upsert_by_name("Hope Center", {"capacity": 99})
    assert again["id"] == created["id"]
