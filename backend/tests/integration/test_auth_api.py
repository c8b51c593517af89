"""Login, session cookie and current-user endpoints"""
from taskplus.config.settings import settings
from taskplus.domain.enums import UserStatus


def test_login_sets_cookie_and_returns_effective_access(client, users):
    response = client.post(
        "/api/auth/login",
        json={"identifier": "agent", "password": settings.seed_password},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    data = body["data"]
    assert data["username"] == "agent"
    assert data["employeeId"] == users["agent"].employee_id
    assert "support.tickets" in data["permissions"]
    assert data["homeRoute"] == "/support/tickets"
    assert settings.cookie_name in response.cookies


def test_login_by_email_is_case_insensitive(client, users):
    response = client.post(
        "/api/auth/login",
        json={"identifier": "Manager@TaskPlus.local", "password": settings.seed_password},
    )

    assert response.status_code == 200
    assert response.json()["data"]["username"] == "manager"


def test_wrong_password(client, users):
    response = client.post("/api/auth/login", json={"identifier": "agent", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_disabled_user_cannot_login(client, users, db):
    db["users"].update_one({"username": "agent"}, {"$set": {"status": UserStatus.DISABLED.value}})

    response = client.post(
        "/api/auth/login",
        json={"identifier": "agent", "password": settings.seed_password},
    )

    assert response.status_code == 401


def test_me_requires_session(client, users):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {
        "ok": False,
        "error": {"code": "UNAUTHENTICATED", "message": "Not authenticated"},
    }


def test_me_with_cookie(login_as, users):
    response = login_as("followup").get("/api/auth/me")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == users["followup"].user_id
    assert data["roles"] == ["followup"]
    assert data["homeRoute"] == "/dashboard/admin"


def test_me_with_bearer_header(client, users):
    login = client.post(
        "/api/auth/login",
        json={"identifier": "admin", "password": settings.seed_password},
    )
    token = login.cookies[settings.cookie_name]
    client.cookies.clear()

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert "settings.access.manage" in response.json()["data"]["permissions"]


def test_session_of_disabled_user_is_rejected(login_as, users, db):
    session = login_as("supervisor")
    db["users"].update_one({"username": "supervisor"}, {"$set": {"status": UserStatus.DISABLED.value}})

    assert session.get("/api/auth/me").status_code == 401


def test_logout_clears_cookie(login_as, users):
    session = login_as("agent")

    response = session.post("/api/auth/logout")

    assert response.status_code == 200
    assert session.get("/api/auth/me").status_code == 401


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.headers["X-Correlation-Id"]


def test_correlation_id_is_echoed(client):
    response = client.get("/", headers={"X-Correlation-Id": "COR-test-123"})

    assert response.headers["X-Correlation-Id"] == "COR-test-123"
