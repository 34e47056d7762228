import secrets
import uuid

from fastapi.testclient import TestClient

from app.database import session_scope
from app.main import app
from app.models import Profile


client = TestClient(app)

PASSWORD = "secret123"


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{secrets.token_hex(4)}@example.com"


def unique_city() -> str:
    # Keeps tests from seeing each other's listings in the shared database.
    return f"测试市{secrets.token_hex(3)}"


def signup(prefix: str = "user") -> tuple[dict, str]:
    r = client.post("/auth/signup", json={"email": unique_email(prefix), "password": PASSWORD})
    assert r.status_code == 200, r.text
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}
    s = client.get("/auth/session", headers=headers)
    assert s.status_code == 200, s.text
    return headers, s.json()["user_id"]


def set_energy(user_id: str, energy: int) -> None:
    with session_scope() as db:
        db.get(Profile, uuid.UUID(user_id)).energy = energy


def energy_of(headers: dict) -> int:
    return client.get("/auth/session", headers=headers).json()["energy"]


def post_listing(headers: dict, city: str, title: str = "Free books", type: str = "offer", area: str | None = None, description: str = ""):
    return client.post("/listings", headers=headers, json={"title": title, "description": description, "type": type, "city": city, "area": area})
