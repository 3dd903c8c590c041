import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app
from factories import create_user, issue_api_token, session_headers, token_headers


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_create_token_returns_secret_once():
    client = TestClient(app)
    user_id = create_user("owner@example.com")
    resp = client.post(
        "/api-tokens/",
        json={"name": "Zapier", "duration_days": 90, "permissions": ["read"], "description": "sync"},
        headers=session_headers(user_id),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert len(data["secret"]) == 64
    assert data["permissions"] == ["read"]
    assert data["active"] is True
    assert data["description"] == "sync"

    list_resp = client.get("/api-tokens/", headers=session_headers(user_id))
    assert list_resp.status_code == 200
    tokens = list_resp.json()
    assert [t["id"] for t in tokens] == [data["id"]]
    assert "secret" not in tokens[0]


def test_create_token_validation_error_envelope():
    client = TestClient(app)
    user_id = create_user("invalid@example.com")
    resp = client.post(
        "/api-tokens/",
        json={"name": "", "duration_days": 0, "permissions": ["everything"]},
        headers=session_headers(user_id),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["type"] == "validation_error"
    assert "name is required" in body["error"]["details"]
    assert len(body["error"]["details"]) == 3


def test_wrong_json_type_is_a_400():
    client = TestClient(app)
    user_id = create_user("types@example.com")
    resp = client.post(
        "/api-tokens/",
        json={"name": "x", "duration_days": "soon"},
        headers=session_headers(user_id),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["details"][0].startswith("duration_days:")


def test_revoke_token_and_cross_owner_revoke():
    client = TestClient(app)
    owner_id = create_user("owner@example.com")
    other_id = create_user("other@example.com")
    created = client.post(
        "/api-tokens/", json={"name": "x", "duration_days": 5}, headers=session_headers(owner_id)
    ).json()

    resp = client.delete(f"/api-tokens/{created['id']}", headers=session_headers(other_id))
    assert resp.status_code == 404

    resp = client.delete(f"/api-tokens/{created['id']}", headers=session_headers(owner_id))
    assert resp.status_code == 200
    assert resp.json()["active"] is False

    resp = client.get("/auth/me", headers=token_headers(created["secret"]))
    assert resp.status_code == 401


def test_revoke_all_and_sweep():
    client = TestClient(app)
    owner_id = create_user("owner@example.com")
    issue_api_token(client, owner_id)
    issue_api_token(client, owner_id)

    resp = client.delete("/api-tokens/", headers=session_headers(owner_id))
    assert resp.status_code == 200
    assert resp.json() == {"revoked": 2}

    resp = client.post("/api-tokens/sweep", headers=session_headers(owner_id))
    assert resp.status_code == 200
    assert resp.json() == {"deactivated": 0}


def test_api_token_without_admin_cannot_manage_tokens():
    client = TestClient(app)
    owner_id = create_user("owner@example.com")
    secret = issue_api_token(client, owner_id, permissions=["read", "write"])
    resp = client.get("/api-tokens/", headers=token_headers(secret))
    assert resp.status_code == 403
    assert resp.json()["error"]["type"] == "authorization_error"


def test_api_token_with_admin_can_manage_tokens():
    client = TestClient(app)
    owner_id = create_user("owner@example.com")
    secret = issue_api_token(client, owner_id, permissions=["admin"])
    resp = client.get("/api-tokens/", headers=token_headers(secret))
    assert resp.status_code == 200
    assert len(resp.json()) == 1


def test_token_routes_require_credentials():
    client = TestClient(app)
    resp = client.get("/api-tokens/")
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "authentication_error"
