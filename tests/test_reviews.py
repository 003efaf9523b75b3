import pytest


async def test_review_updates_venue_rating_and_rejects_duplicate(client, auth_headers, create_venue):
    venue = await create_venue()

    r = await client.post(
        "/api/reviews",
        json={"venueId": venue["id"], "rating": 4, "title": "Great sound"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    review = r.json()["data"]
    assert review["rating"] == 4
    assert review["venue"]["name"] == "The Roxy"
    assert review["user"]["username"] == "moshpit_mike"

    r = await client.get(f"/api/venues/{venue['id']}")
    data = r.json()["data"]
    assert data["averageRating"] == 4.0
    assert data["totalReviews"] == 1

    r = await client.post(
        "/api/reviews", json={"venueId": venue["id"], "rating": 1}, headers=auth_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "You have already reviewed this venue"

    r = await client.get(f"/api/venues/{venue['id']}")
    data = r.json()["data"]
    assert data["averageRating"] == 4.0
    assert data["totalReviews"] == 1


async def test_average_is_mean_of_all_ratings(client, register_user, create_venue):
    venue = await create_venue()
    ratings = [5, 4, 2]
    for i, rating in enumerate(ratings):
        headers, _ = await register_user(f"critic_{i}")
        r = await client.post(
            "/api/reviews", json={"venueId": venue["id"], "rating": rating}, headers=headers)
        assert r.status_code == 201

    r = await client.get(f"/api/venues/{venue['id']}")
    data = r.json()["data"]
    assert data["averageRating"] == pytest.approx(sum(ratings) / len(ratings))
    assert data["totalReviews"] == len(ratings)


async def test_review_target_must_be_exactly_one(client, auth_headers, create_venue, create_band):
    venue = await create_venue()
    band = await create_band()

    r = await client.post(
        "/api/reviews",
        json={"venueId": venue["id"], "bandId": band["id"], "rating": 3},
        headers=auth_headers,
    )
    assert r.status_code == 400

    r = await client.post("/api/reviews", json={"rating": 3}, headers=auth_headers)
    assert r.status_code == 400


@pytest.mark.parametrize("rating", [0, 6, 3.5, "4", True, None])
async def test_review_rating_must_be_integer_one_to_five(client, auth_headers, create_band, rating):
    band = await create_band()
    r = await client.post(
        "/api/reviews", json={"bandId": band["id"], "rating": rating}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["success"] is False


async def test_review_for_missing_or_deleted_target(client, auth_headers, create_venue):
    r = await client.post("/api/reviews", json={"venueId": 9999, "rating": 3}, headers=auth_headers)
    assert r.status_code == 404

    venue = await create_venue()
    await client.delete(f"/api/venues/{venue['id']}", headers=auth_headers)
    r = await client.post(
        "/api/reviews", json={"venueId": venue["id"], "rating": 3}, headers=auth_headers)
    assert r.status_code == 404


async def test_update_and_delete_are_owner_only(client, register_user, create_band):
    owner_headers, _ = await register_user("owner")
    other_headers, _ = await register_user("stranger")
    band = await create_band()

    r = await client.post(
        "/api/reviews", json={"bandId": band["id"], "rating": 2}, headers=owner_headers)
    review_id = r.json()["data"]["id"]

    r = await client.put(f"/api/reviews/{review_id}", json={"rating": 5}, headers=other_headers)
    assert r.status_code == 403

    r = await client.put(
        f"/api/reviews/{review_id}", json={"rating": 5, "content": "Grew on me"}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["data"]["content"] == "Grew on me"
    r = await client.get(f"/api/bands/{band['id']}")
    assert r.json()["data"]["averageRating"] == 5.0

    r = await client.put(f"/api/reviews/{review_id}", json={"helpfulCount": 99}, headers=owner_headers)
    assert r.status_code == 400

    r = await client.delete(f"/api/reviews/{review_id}", headers=other_headers)
    assert r.status_code == 403
    r = await client.delete(f"/api/reviews/{review_id}", headers=owner_headers)
    assert r.status_code == 200

    r = await client.get(f"/api/reviews/{review_id}")
    assert r.status_code == 404
    r = await client.get(f"/api/bands/{band['id']}")
    data = r.json()["data"]
    assert data["averageRating"] == 0.0
    assert data["totalReviews"] == 0


async def test_mark_helpful(client, register_user, create_venue):
    author_headers, _ = await register_user("author")
    reader_headers, _ = await register_user("reader")
    venue = await create_venue()
    r = await client.post(
        "/api/reviews", json={"venueId": venue["id"], "rating": 5}, headers=author_headers)
    review_id = r.json()["data"]["id"]

    r = await client.post(f"/api/reviews/{review_id}/helpful", json={}, headers=author_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "You cannot mark your own review as helpful"

    r = await client.post(
        f"/api/reviews/{review_id}/helpful", json={"isHelpful": True}, headers=reader_headers)
    assert r.status_code == 200
    assert r.json()["data"]["helpfulCount"] == 1
    assert r.json()["message"] == "Review marked as helpful"

    # Voting again replaces the earlier vote
    r = await client.post(
        f"/api/reviews/{review_id}/helpful", json={"isHelpful": False}, headers=reader_headers)
    assert r.json()["data"]["helpfulCount"] == 0


async def test_search_and_listing_endpoints(client, register_user, create_venue, create_band):
    a_headers, a_user = await register_user("reviewer_a")
    b_headers, _ = await register_user("reviewer_b")
    venue = await create_venue()
    band = await create_band()

    await client.post("/api/reviews", json={"venueId": venue["id"], "rating": 5,
                                            "content": "Incredible mosh pit"}, headers=a_headers)
    await client.post("/api/reviews", json={"bandId": band["id"], "rating": 3}, headers=a_headers)
    await client.post("/api/reviews", json={"venueId": venue["id"], "rating": 2}, headers=b_headers)

    r = await client.get(f"/api/reviews/venue/{venue['id']}")
    assert r.json()["data"]["total"] == 2

    r = await client.get(f"/api/reviews/user/{a_user['id']}")
    assert r.json()["data"]["total"] == 2

    r = await client.get("/api/reviews", params={"minRating": 3, "sort": "rating", "order": "asc"})
    assert [rv["rating"] for rv in r.json()["data"]["items"]] == [3, 5]

    r = await client.get("/api/reviews", params={"q": "mosh"})
    assert r.json()["data"]["total"] == 1

    r = await client.get("/api/reviews/my-review", params={"bandId": band["id"]}, headers=a_headers)
    assert r.json()["data"]["rating"] == 3
    r = await client.get("/api/reviews/my-review", params={"bandId": band["id"]}, headers=b_headers)
    assert r.json()["data"] is None
    r = await client.get("/api/reviews/my-review", headers=b_headers)
    assert r.status_code == 400
