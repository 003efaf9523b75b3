async def test_health_ok(client):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"


async def test_unknown_route_uses_error_envelope(client):
    r = await client.get("/api/nope")
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert "not found" in body["error"]
    assert r.headers.get("X-Request-ID")


async def test_metrics_requires_token_outside_debug(client):
    r = await client.get("/metrics")
    assert r.status_code == 403
