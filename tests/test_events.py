from datetime import date, timedelta


async def test_create_event_twice_returns_same_id(client, auth_headers, create_venue, create_band):
    venue = await create_venue()
    band = await create_band()
    payload = {"venueId": venue["id"], "bandId": band["id"], "eventDate": "2024-06-01"}

    first = await client.post("/api/events", json=payload, headers=auth_headers)
    second = await client.post(
        "/api/events", json={**payload, "eventName": "Different name"}, headers=auth_headers)
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["data"]["id"] == second.json()["data"]["id"]

    event = first.json()["data"]
    assert event["venue"]["name"] == "The Roxy"
    assert event["band"]["name"] == "Turnstile"
    assert event["checkinCount"] == 0
    assert event["isVerified"] is False


async def test_create_event_for_unknown_band(client, auth_headers, create_venue):
    venue = await create_venue()
    r = await client.post(
        "/api/events",
        json={"venueId": venue["id"], "bandId": 4242, "eventDate": "2024-06-01"},
        headers=auth_headers,
    )
    assert r.status_code == 404
    assert r.json()["error"] == "Band not found"


async def test_delete_event_blocked_by_checkins(client, auth_headers, create_venue, create_band):
    venue = await create_venue()
    band = await create_band()
    r = await client.post(
        "/api/checkins",
        json={"venueId": venue["id"], "bandId": band["id"], "eventDate": "2024-06-01"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    event_id = r.json()["data"]["eventId"]

    r = await client.delete(f"/api/events/{event_id}", headers=auth_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "Cannot delete event with existing check-ins"

    r = await client.get(f"/api/events/{event_id}")
    assert r.status_code == 200
    assert r.json()["data"]["checkinCount"] == 1


async def test_delete_event_without_checkins(client, auth_headers, create_venue, create_band):
    venue = await create_venue()
    band = await create_band()
    r = await client.post(
        "/api/events",
        json={"venueId": venue["id"], "bandId": band["id"], "eventDate": "2024-06-01"},
        headers=auth_headers,
    )
    event_id = r.json()["data"]["id"]

    r = await client.delete(f"/api/events/{event_id}", headers=auth_headers)
    assert r.status_code == 200
    r = await client.get(f"/api/events/{event_id}")
    assert r.status_code == 404


async def test_upcoming_and_past_events(client, auth_headers, create_venue, create_band):
    venue = await create_venue()
    band = await create_band()
    today = date.today()
    for offset in (-10, -3, 5, 20):
        await client.post(
            "/api/events",
            json={
                "venueId": venue["id"],
                "bandId": band["id"],
                "eventDate": (today + timedelta(days=offset)).isoformat(),
            },
            headers=auth_headers,
        )

    r = await client.get(f"/api/venues/{venue['id']}/events")
    dates = [e["eventDate"] for e in r.json()["data"]]
    assert dates == [(today + timedelta(days=d)).isoformat() for d in (5, 20)]

    r = await client.get(f"/api/bands/{band['id']}/events", params={"upcoming": "false"})
    dates = [e["eventDate"] for e in r.json()["data"]]
    assert dates == [(today + timedelta(days=d)).isoformat() for d in (-3, -10)]

    r = await client.get("/api/events/upcoming")
    assert len(r.json()["data"]) == 2


async def test_trending_counts_recent_checkins(client, register_user, create_venue, create_band):
    venue = await create_venue()
    quiet_band = await create_band(name="Quiet Band")
    loud_band = await create_band(name="Loud Band")
    show_date = (date.today() - timedelta(days=2)).isoformat()

    for i in range(2):
        headers, _ = await register_user(f"fan_{i}")
        await client.post(
            "/api/checkins",
            json={"venueId": venue["id"], "bandId": loud_band["id"], "eventDate": show_date},
            headers=headers,
        )
    headers, _ = await register_user("loner")
    await client.post(
        "/api/checkins",
        json={"venueId": venue["id"], "bandId": quiet_band["id"], "eventDate": show_date},
        headers=headers,
    )
    # An old show with check-ins falls outside the window
    await client.post(
        "/api/checkins",
        json={"venueId": venue["id"], "bandId": quiet_band["id"], "eventDate": "2001-01-01"},
        headers=headers,
    )

    r = await client.get("/api/events/trending")
    trending = r.json()["data"]
    assert [e["band"]["name"] for e in trending] == ["Loud Band", "Quiet Band"]
    assert [e["checkinCount"] for e in trending] == [2, 1]
