"""
API tests for application-wide behavior: health check, error envelope,
request ids and request metrics.
"""

import re


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["environment"] == "test"
    assert "timestamp" in body


def test_every_response_has_request_id(client):
    generated = client.get("/api/health")
    assert re.fullmatch(r"\d+-[0-9a-z]{9}", generated.headers["X-Request-ID"])

    echoed = client.get("/api/health", headers={"X-Request-ID": "trace-42"})
    assert echoed.headers["X-Request-ID"] == "trace-42"


def test_unknown_route(client):
    response = client.get("/api/does-not-exist", headers={"X-Request-ID": "trace-404"})
    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Route /api/does-not-exist not found"
    assert body["requestId"] == "trace-404"
    assert "timestamp" in body
    assert "stack" not in body
    assert response.headers["X-Request-ID"] == "trace-404"


def test_method_not_allowed_keeps_status(client):
    response = client.patch("/api/health")
    assert response.status_code == 405
    assert response.json()["status"] == "error"


def test_malformed_json_body(client, alice):
    response = client.post(
        "/api/posts",
        content=b'{"title": "broken"',
        headers={**alice["headers"], "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Malformed JSON body"


def test_error_responses_carry_request_id(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["requestId"] == response.headers["X-Request-ID"]


def test_metrics_track_failing_endpoints(app, client, alice):
    app.state.metrics.reset()
    client.get("/api/posts/not-an-id")
    client.get("/api/posts/not-an-id")
    client.get("/api/health")

    errors = dict(app.state.metrics.get_error_endpoints())
    assert errors == {"GET /api/posts/{id}": 2}
    assert app.state.metrics.total_requests == 3
