from pitpulse.services.background import rating_updates
from pitpulse.services.badge_service import BADGE_CATALOG


async def test_catalog_is_listed(client):
    r = await client.get("/api/badges")
    assert r.status_code == 200
    badges = r.json()["data"]
    assert len(badges) == len(BADGE_CATALOG)
    assert {b["badgeType"] for b in badges} == {
        "review_count", "venue_explorer", "music_lover", "event_attendance", "helpful_count",
    }

    badge_id = badges[0]["id"]
    r = await client.get(f"/api/badges/{badge_id}")
    assert r.json()["data"]["name"] == badges[0]["name"]
    r = await client.get("/api/badges/99999")
    assert r.status_code == 404


async def test_check_awards_is_idempotent(client, auth_headers, create_venue):
    venue = await create_venue()
    r = await client.post(
        "/api/reviews", json={"venueId": venue["id"], "rating": 5}, headers=auth_headers)
    assert r.status_code == 201
    # Review creation also schedules a badge check
    await rating_updates.drain()

    r = await client.post("/api/badges/check-awards", headers=auth_headers)
    assert r.status_code == 200

    r = await client.get("/api/badges/my-badges", headers=auth_headers)
    names = [ub["badge"]["name"] for ub in r.json()["data"]]
    assert names == ["First Review"]

    r = await client.post("/api/badges/check-awards", headers=auth_headers)
    body = r.json()
    assert body["data"] == {"newBadges": [], "count": 0}
    assert body["message"] == "No new badges earned at this time"


async def test_check_awards_reports_new_badges(client, auth_headers, create_band, test_session):
    from pitpulse.models import Review, User
    from sqlalchemy import select

    band = await create_band()
    user_id = await test_session.scalar(select(User.id).where(User.username == "moshpit_mike"))
    # Written directly so no background badge check runs
    test_session.add(Review(user_id=user_id, band_id=band["id"], rating=4))
    await test_session.commit()

    r = await client.post("/api/badges/check-awards", headers=auth_headers)
    body = r.json()
    assert body["data"]["count"] == 1
    assert body["data"]["newBadges"][0]["name"] == "First Review"
    assert body["message"] == "Congratulations! You earned 1 new badge!"


async def test_progress_covers_unheld_badges_only(client, auth_headers, create_venue):
    venue = await create_venue()
    await client.post(
        "/api/reviews", json={"venueId": venue["id"], "rating": 4}, headers=auth_headers)
    await rating_updates.drain()
    await client.post("/api/badges/check-awards", headers=auth_headers)

    r = await client.get("/api/badges/my-progress", headers=auth_headers)
    progress = {p["badge"]["name"]: p for p in r.json()["data"]}
    assert "First Review" not in progress
    assert len(progress) == len(BADGE_CATALOG) - 1
    assert progress["Regular Reviewer"]["currentValue"] == 1
    assert progress["Regular Reviewer"]["progress"] == 10
    assert progress["Venue Hopper"]["progress"] == 20
    assert progress["Music Lover"]["progress"] == 0


async def test_leaderboard_and_user_badges(client, register_user, create_venue):
    venue = await create_venue()
    a_headers, a_user = await register_user("leader")
    await register_user("no_badges")
    await client.post("/api/reviews", json={"venueId": venue["id"], "rating": 4}, headers=a_headers)
    await rating_updates.drain()
    await client.post("/api/badges/check-awards", headers=a_headers)

    r = await client.get("/api/badges/leaderboard")
    board = r.json()["data"]
    assert [entry["user"]["username"] for entry in board] == ["leader"]
    assert board[0]["badgeCount"] == 1
    assert board[0]["recentBadges"][0]["name"] == "First Review"

    r = await client.get(f"/api/badges/user/{a_user['id']}")
    assert len(r.json()["data"]) == 1


async def test_my_badges_requires_auth(client):
    r = await client.get("/api/badges/my-badges")
    assert r.status_code == 401
