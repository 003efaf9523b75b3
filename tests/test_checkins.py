import pytest

from pitpulse.services.background import rating_updates


@pytest.fixture
def show(create_venue, create_band):
    async def _show():
        venue = await create_venue()
        band = await create_band()
        return {"venueId": venue["id"], "bandId": band["id"], "eventDate": "2024-06-01"}

    return _show


async def test_checkin_creates_event_and_enriches(client, auth_headers, show):
    payload = await show()
    r = await client.post(
        "/api/checkins",
        json={**payload, "reviewText": "Pit was unreal", "imageUrls": ["https://img/1.jpg"]},
        headers=auth_headers,
    )
    assert r.status_code == 201
    assert r.json()["message"] == "Check-in created successfully"
    checkin = r.json()["data"]
    assert checkin["user"]["username"] == "moshpit_mike"
    assert checkin["event"]["venue"]["name"] == "The Roxy"
    assert checkin["event"]["band"]["name"] == "Turnstile"
    assert checkin["event"]["eventDate"] == "2024-06-01"
    assert checkin["toastCount"] == 0
    assert checkin["commentCount"] == 0
    assert checkin["hasUserToasted"] is False
    assert checkin["imageUrls"] == ["https://img/1.jpg"]


async def test_duplicate_checkin_rejected(client, auth_headers, show):
    payload = await show()
    r = await client.post("/api/checkins", json=payload, headers=auth_headers)
    assert r.status_code == 201
    r = await client.post("/api/checkins", json=payload, headers=auth_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "User already checked into this event"


async def test_checkin_rejected_after_venue_soft_deleted(client, register_user, show):
    first_headers, _ = await register_user("first_in")
    late_headers, _ = await register_user("late_comer")
    payload = await show()
    r = await client.post("/api/checkins", json=payload, headers=first_headers)
    assert r.status_code == 201

    r = await client.delete(f"/api/venues/{payload['venueId']}", headers=first_headers)
    assert r.status_code == 200

    r = await client.post("/api/checkins", json=payload, headers=late_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Venue not found"

    r = await client.post("/api/events", json=payload, headers=late_headers)
    assert r.status_code == 404


async def test_checkin_rejected_after_band_soft_deleted(client, register_user, show):
    first_headers, _ = await register_user("first_in")
    late_headers, _ = await register_user("late_comer")
    payload = await show()
    await client.post("/api/checkins", json=payload, headers=first_headers)
    await client.delete(f"/api/bands/{payload['bandId']}", headers=first_headers)

    r = await client.post("/api/checkins", json=payload, headers=late_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Band not found"


@pytest.mark.parametrize("field,value", [
    ("venueRating", 0), ("venueRating", 6), ("bandRating", 4.5), ("bandRating", "5"),
])
async def test_checkin_rating_bounds(client, auth_headers, show, field, value):
    payload = await show()
    r = await client.post("/api/checkins", json={**payload, field: value}, headers=auth_headers)
    assert r.status_code == 400


async def test_band_rating_recomputed_in_background(client, auth_headers, show):
    payload = await show()
    r = await client.post(
        "/api/checkins", json={**payload, "bandRating": 5, "venueRating": 3}, headers=auth_headers)
    assert r.status_code == 201

    await rating_updates.drain()

    band = (await client.get(f"/api/bands/{payload['bandId']}")).json()["data"]
    assert band["averageRating"] == 5.0
    assert band["totalReviews"] == 1
    venue = (await client.get(f"/api/venues/{payload['venueId']}")).json()["data"]
    assert venue["averageRating"] == 3.0


async def test_toast_once_and_untoast_idempotent(client, register_user, show):
    owner_headers, _ = await register_user("owner")
    fan_headers, _ = await register_user("fan")
    payload = await show()
    checkin_id = (await client.post(
        "/api/checkins", json=payload, headers=owner_headers)).json()["data"]["id"]

    r = await client.post(f"/api/checkins/{checkin_id}/toast", headers=fan_headers)
    assert r.status_code == 200
    r = await client.post(f"/api/checkins/{checkin_id}/toast", headers=fan_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "Already toasted this check-in"

    r = await client.get(f"/api/checkins/{checkin_id}", headers=fan_headers)
    data = r.json()["data"]
    assert data["toastCount"] == 1
    assert data["hasUserToasted"] is True
    r = await client.get(f"/api/checkins/{checkin_id}", headers=owner_headers)
    assert r.json()["data"]["hasUserToasted"] is False
    r = await client.get(f"/api/checkins/{checkin_id}")
    assert r.status_code == 200
    assert r.json()["data"]["toastCount"] == 1
    assert r.json()["data"]["hasUserToasted"] is False

    for _ in range(2):
        r = await client.delete(f"/api/checkins/{checkin_id}/toast", headers=fan_headers)
        assert r.status_code == 200
    r = await client.get(f"/api/checkins/{checkin_id}", headers=fan_headers)
    assert r.json()["data"]["toastCount"] == 0

    r = await client.post("/api/checkins/9999/toast", headers=fan_headers)
    assert r.status_code == 404


async def test_comments_in_order(client, register_user, show):
    owner_headers, _ = await register_user("owner")
    fan_headers, _ = await register_user("fan")
    payload = await show()
    checkin_id = (await client.post(
        "/api/checkins", json=payload, headers=owner_headers)).json()["data"]["id"]

    r = await client.post(
        f"/api/checkins/{checkin_id}/comments", json={"commentText": "   "}, headers=fan_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Comment text is required"

    for text in ("first!", "jealous", "next time"):
        r = await client.post(
            f"/api/checkins/{checkin_id}/comments", json={"commentText": text}, headers=fan_headers)
        assert r.status_code == 201
    assert r.json()["data"]["user"]["username"] == "fan"

    r = await client.get(f"/api/checkins/{checkin_id}/comments", headers=owner_headers)
    assert [c["commentText"] for c in r.json()["data"]] == ["first!", "jealous", "next time"]

    r = await client.get(f"/api/checkins/{checkin_id}", headers=owner_headers)
    assert r.json()["data"]["commentCount"] == 3


async def test_delete_checkin_owner_only_and_cascades(client, register_user, show, test_session):
    from sqlalchemy import select, func
    from pitpulse.models import CheckinToast, CheckinComment

    owner_headers, _ = await register_user("owner")
    fan_headers, _ = await register_user("fan")
    payload = await show()
    checkin_id = (await client.post(
        "/api/checkins", json=payload, headers=owner_headers)).json()["data"]["id"]
    await client.post(f"/api/checkins/{checkin_id}/toast", headers=fan_headers)
    await client.post(
        f"/api/checkins/{checkin_id}/comments", json={"commentText": "nice"}, headers=fan_headers)

    r = await client.delete(f"/api/checkins/{checkin_id}", headers=fan_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "Unauthorized to delete this check-in"

    r = await client.delete(f"/api/checkins/{checkin_id}", headers=owner_headers)
    assert r.status_code == 200
    r = await client.get(f"/api/checkins/{checkin_id}", headers=owner_headers)
    assert r.status_code == 404

    toasts = await test_session.scalar(select(func.count(CheckinToast.id)))
    comments = await test_session.scalar(select(func.count(CheckinComment.id)))
    assert toasts == 0
    assert comments == 0


async def test_feed_filters(client, register_user, create_venue, create_band):
    me_headers, _ = await register_user("me_fan")
    friend_headers, friend = await register_user("friend")
    stranger_headers, _ = await register_user("stranger")
    await client.post(f"/api/users/{friend['id']}/follow", headers=me_headers)

    la = await create_venue(name="The Roxy", latitude=34.0907, longitude=-118.3897)
    nyc = await create_venue(name="Bowery Ballroom", latitude=40.7204, longitude=-73.9934)
    band = await create_band()

    await client.post(
        "/api/checkins",
        json={"venueId": la["id"], "bandId": band["id"], "eventDate": "2024-06-01"},
        headers=friend_headers,
    )
    await client.post(
        "/api/checkins",
        json={"venueId": nyc["id"], "bandId": band["id"], "eventDate": "2024-06-05"},
        headers=stranger_headers,
    )

    r = await client.get("/api/checkins/feed", params={"filter": "friends"}, headers=me_headers)
    assert [c["user"]["username"] for c in r.json()["data"]] == ["friend"]

    r = await client.get("/api/checkins/feed", params={"filter": "global"}, headers=me_headers)
    assert [c["user"]["username"] for c in r.json()["data"]] == ["stranger", "friend"]

    r = await client.get(
        "/api/checkins/feed",
        params={"filter": "nearby", "lat": 40.73, "lng": -73.99},
        headers=me_headers,
    )
    assert [c["user"]["username"] for c in r.json()["data"]] == ["stranger"]

    # Without coordinates "nearby" behaves like "global"
    r = await client.get("/api/checkins/feed", params={"filter": "nearby"}, headers=me_headers)
    assert len(r.json()["data"]) == 2

    r = await client.get("/api/checkins/feed", params={"filter": "sideways"}, headers=me_headers)
    assert r.status_code == 400

    r = await client.get("/api/checkins/feed")
    assert r.status_code == 401


async def test_nearby_feed_wraps_antimeridian_and_skips_closed_venues(
        client, auth_headers, create_venue, create_band):
    venue = await create_venue(name="Taveuni Hall", latitude=-16.5, longitude=179.95)
    band = await create_band()
    r = await client.post(
        "/api/checkins",
        json={"venueId": venue["id"], "bandId": band["id"], "eventDate": "2024-06-01"},
        headers=auth_headers,
    )
    assert r.status_code == 201

    params = {"filter": "nearby", "lat": -16.5, "lng": -179.95}
    r = await client.get("/api/checkins/feed", params=params, headers=auth_headers)
    assert [c["event"]["venue"]["name"] for c in r.json()["data"]] == ["Taveuni Hall"]

    await client.delete(f"/api/venues/{venue['id']}", headers=auth_headers)
    r = await client.get("/api/checkins/feed", params=params, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"] == []
