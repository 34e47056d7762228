from fastapi.testclient import TestClient

from app.config import settings
from app.main import create_app

from helpers import PASSWORD, client, signup, unique_email


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"
    assert r.headers.get("X-Request-ID")


def test_request_id_is_echoed():
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"


def test_metrics_exposed():
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "http_requests_total" in r.text


def test_popular_cities():
    r = client.get("/cities/popular")
    assert r.status_code == 200
    body = r.json()
    assert body["default"] == "上海市"
    assert "北京市" in body["cities"] and len(body["cities"]) == 6


def test_signup_signin_and_session():
    email = unique_email("auth")
    r = client.post("/auth/signup", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    assert r.json()["token_type"] == "bearer"

    r = client.post("/auth/signin", json={"email": email.upper(), "password": PASSWORD})
    assert r.status_code == 200, r.text
    h = {"Authorization": f"Bearer {r.json()['access_token']}"}

    s = client.get("/auth/session", headers=h)
    assert s.status_code == 200
    body = s.json()
    assert body["email"] == email
    assert body["energy"] == 10
    assert body["tier"]["title"] == "Firefly"
    assert body["can_post_seek"] is True


def test_duplicate_signup_rejected():
    email = unique_email("dup")
    assert client.post("/auth/signup", json={"email": email, "password": PASSWORD}).status_code == 200
    r = client.post("/auth/signup", json={"email": email, "password": PASSWORD})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "email_taken"


def test_signin_wrong_password():
    h, _ = signup("wrongpw")
    email = client.get("/auth/session", headers=h).json()["email"]
    r = client.post("/auth/signin", json={"email": email, "password": PASSWORD + "x"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "invalid_credentials"
    assert r.json()["error"]["message"] == "Invalid email or password"


def test_signup_invalid_email():
    r = client.post("/auth/signup", json={"email": "not-an-email", "password": PASSWORD})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_email"


def test_short_password_is_validation_error():
    r = client.post("/auth/signup", json={"email": unique_email(), "password": "123"})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "validation_error"


def test_session_requires_token():
    r = client.get("/auth/session")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "not_authenticated"
    r = client.get("/auth/session", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "invalid_token"


def test_signout():
    h, _ = signup("bye")
    r = client.post("/auth/signout", headers=h)
    assert r.status_code == 200
    assert r.json()["detail"] == "signed_out"


def test_unknown_route_uses_error_envelope():
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_api_key_gate_lets_cors_preflight_through(monkeypatch):
    monkeypatch.setattr(settings, "PUBLIC_API_KEY", "anon-key")
    keyed = TestClient(create_app())
    origin = "http://localhost:5173"

    r = keyed.options("/listings", headers={"Origin": origin, "Access-Control-Request-Method": "GET"})
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] in (origin, "*")

    r = keyed.get("/listings", headers={"Origin": origin})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "invalid_api_key"
    assert r.headers["access-control-allow-origin"] in (origin, "*")

    assert keyed.get("/listings", headers={"apikey": "anon-key"}).status_code == 200
    assert keyed.get("/health").status_code == 200
