"""

인증 기본 플로우 통합 테스트.
- 기본 관리자 로그인 → 상태 확인 → 로그아웃
- 로그인 실패 시 401 + login_history 기록
- 관리자 계정 등록 / 중복 username 차단
- 비밀번호 변경 / 관리자 초기화
- 잠금·삭제된 사용자의 세션 즉시 무효화

"""


from app.db.helper import DatabaseHelper
from app.db.session import SessionLocal
from tests.helpers import DEFAULT_PASSWORD, client_as, create_user_in_db, login, login_admin, new_client


def count_logins(success: int) -> int:
    session = SessionLocal()
    try:
        return DatabaseHelper(session).count("login_history", "WHERE success = :s", {"s": success})
    finally:
        session.close()


def test_admin_login_check_logout(client):
    r = login(client, "admin", "admin123")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["data"]["redirectUrl"] == "/admin"
    assert body["data"]["user"]["role"] == "admin"
    assert "password_hash" not in body["data"]["user"]

    check = client.get("/api/auth/check")
    assert check.status_code == 200
    assert check.json()["data"]["authenticated"] is True
    assert check.json()["data"]["user"]["username"] == "admin"

    out = client.post("/api/auth/logout")
    assert out.status_code == 200

    check = client.get("/api/auth/check")
    assert check.json()["data"]["authenticated"] is False
    assert count_logins(1) == 1


def test_login_failure_is_generic_and_recorded(client):
    wrong_password = login(client, "admin", "nope")
    unknown_user = login(client, "ghost", "nope")

    for r in (wrong_password, unknown_user):
        assert r.status_code == 401
        assert r.json()["message"] == "Invalid username or password"

    assert count_logins(0) == 2


def test_protected_endpoint_requires_session(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["message"] == "Please log in first"


def test_register_requires_admin_and_blocks_duplicates(client):
    user_client, _ = client_as("user")
    payload = {"username": "newbie", "password": "Secret1!", "full_name": "New Member", "role": "finance"}

    forbidden = user_client.post("/api/auth/register", json=payload)
    assert forbidden.status_code == 403

    login_admin(client)
    created = client.post("/api/auth/register", json=payload)
    assert created.status_code == 201, created.text
    assert created.json()["data"]["role"] == "finance"

    duplicate = client.post("/api/auth/register", json=payload)
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Username already exists"

    # 등록한 계정으로 로그인 → 역할별 이동 경로
    fresh = new_client()
    r = login(fresh, "newbie", "Secret1!")
    assert r.status_code == 200, r.text
    assert r.json()["data"]["redirectUrl"] == "/finance"


def test_register_validation_error(client):
    login_admin(client)
    r = client.post("/api/auth/register", json={"username": "x", "password": "1"})
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert {"username", "password", "full_name"} <= fields


def test_change_password(client):
    user_client, user = client_as("user")

    wrong = user_client.post("/api/auth/change-password",
                             json={"current_password": "wrong-one", "new_password": "Another1!"})
    assert wrong.status_code == 400
    assert wrong.json()["message"] == "Current password is incorrect"

    same = user_client.post("/api/auth/change-password",
                            json={"current_password": DEFAULT_PASSWORD, "new_password": DEFAULT_PASSWORD})
    assert same.status_code == 400

    ok = user_client.post("/api/auth/change-password",
                          json={"current_password": DEFAULT_PASSWORD, "new_password": "Another1!"})
    assert ok.status_code == 200, ok.text

    assert login(client, user.username, DEFAULT_PASSWORD).status_code == 401
    assert login(client, user.username, "Another1!").status_code == 200


def test_admin_reset_password(client):
    user = create_user_in_db("user")
    login_admin(client)

    missing = client.post("/api/auth/reset-password", json={"user_id": 9999, "new_password": "Reset123!"})
    assert missing.status_code == 404

    r = client.post("/api/auth/reset-password", json={"user_id": user.id, "new_password": "Reset123!"})
    assert r.status_code == 200, r.text
    assert login(new_client(), user.username, "Reset123!").status_code == 200


def test_profile_update_refreshes_session(client):
    user_client, _ = client_as("user")

    r = user_client.put("/api/auth/profile", json={"full_name": "Renamed Member", "email": "me@example.com"})
    assert r.status_code == 200, r.text
    assert r.json()["data"]["full_name"] == "Renamed Member"

    me = user_client.get("/api/auth/me")
    assert me.json()["data"]["email"] == "me@example.com"

    empty = user_client.put("/api/auth/profile", json={})
    assert empty.status_code == 400


def test_locked_user_session_is_invalidated(client):
    user_client, user = client_as("user")
    assert user_client.get("/api/auth/me").status_code == 200

    login_admin(client)
    lock = client.post(f"/api/admin/users/{user.id}/toggle-lock")
    assert lock.status_code == 200, lock.text
    assert lock.json()["data"]["is_active"] is False

    r = user_client.get("/api/auth/me")
    assert r.status_code == 403

    # 세션이 정리되었으므로 이후 요청은 401
    assert user_client.get("/api/auth/me").status_code == 401
    assert login(user_client, user.username, DEFAULT_PASSWORD).status_code == 401


def test_inactive_user_cannot_log_in(client):
    user = create_user_in_db("user", is_active=False)
    assert login(client, user.username, DEFAULT_PASSWORD).status_code == 401
