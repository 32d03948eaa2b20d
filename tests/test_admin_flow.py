"""

관리자 API 통합 테스트.
- 관리자 외 접근 차단
- 사용자 생성 / 수정 / 삭제(soft) / 비밀번호 초기화 / 잠금 전환
- 본인 계정 보호 (삭제 / 잠금 / 역할 변경 불가)
- 일괄 처리, 시스템 통계, 설정, 로그 조회 / 정리

"""

from app.db.helper import DatabaseHelper
from app.db.session import SessionLocal
from tests.helpers import DEFAULT_PASSWORD, client_as, create_user_in_db, get_user, login, login_admin, new_client


def run_sql(sql: str, params: dict | None = None) -> None:
    session = SessionLocal()
    try:
        DatabaseHelper(session).run(sql, params)
    finally:
        session.close()


def test_admin_only(client):
    finance, _ = client_as("finance")
    assert finance.get("/api/admin/users").status_code == 403
    assert client.get("/api/admin/users").status_code == 401


def test_user_management(client):
    admin = login_admin(client)

    r = client.post("/api/admin/users", json={
        "username": "treasurer", "password": "Treasure1!", "full_name": "Treasurer",
        "role": "finance", "student_id": "20250001",
    })
    assert r.status_code == 201, r.text
    user_id = r.json()["data"]["id"]

    dup = client.post("/api/admin/users", json={
        "username": "other", "password": "Treasure1!", "full_name": "Other", "student_id": "20250001",
    })
    assert dup.status_code == 400
    assert dup.json()["message"] == "Student ID already in use"

    listed = client.get("/api/admin/users", params={"role": "finance"}).json()
    assert listed["pagination"]["total"] == 1
    assert "password_hash" not in listed["data"][0]

    updated = client.put(f"/api/admin/users/{user_id}", json={"role": "secretary", "full_name": "Secretary Kim"})
    assert updated.status_code == 200, updated.text
    assert updated.json()["data"]["role"] == "secretary"

    reset = client.post(f"/api/admin/users/{user_id}/reset-password", json={"new_password": "NewPass1!"})
    assert reset.status_code == 200
    assert login(new_client(), "treasurer", "NewPass1!").status_code == 200

    detail = client.get(f"/api/admin/users/{user_id}").json()["data"]
    assert len(detail["recent_logins"]) == 1

    assert client.delete(f"/api/admin/users/{user_id}").status_code == 200
    assert client.get(f"/api/admin/users/{user_id}").status_code == 404
    assert get_user(user_id).is_deleted is True

    # 관리 작업은 operation_history 에 남는다
    ops = client.get("/api/admin/logs/operations", params={"target_type": "user"}).json()
    types = {row["operation_type"] for row in ops["data"]}
    assert {"USER_CREATE", "USER_UPDATE", "USER_RESET_PASSWORD", "USER_DELETE"} <= types
    assert all(row["username"] == admin["username"] for row in ops["data"])


def test_self_protection(client):
    admin = login_admin(client)
    admin_id = admin["id"]

    r = client.delete(f"/api/admin/users/{admin_id}")
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot delete your own account"

    assert client.post(f"/api/admin/users/{admin_id}/toggle-lock").status_code == 400
    assert client.put(f"/api/admin/users/{admin_id}", json={"role": "user"}).status_code == 400
    assert client.put(f"/api/admin/users/{admin_id}", json={"is_active": False}).status_code == 400


def test_toggle_lock_and_batch(client):
    login_admin(client)
    a = create_user_in_db("user")
    b = create_user_in_db("user")

    locked = client.post(f"/api/admin/users/{a.id}/toggle-lock").json()["data"]
    assert locked["is_active"] is False
    unlocked = client.post(f"/api/admin/users/{a.id}/toggle-lock").json()["data"]
    assert unlocked["is_active"] is True

    me = client.get("/api/auth/me").json()["data"]
    only_self = client.post("/api/admin/users/batch", json={"action": "lock", "user_ids": [me["id"]]})
    assert only_self.status_code == 400
    assert only_self.json()["message"] == "No valid users selected"

    batch = client.post("/api/admin/users/batch", json={"action": "lock", "user_ids": [a.id, b.id, me["id"]]})
    assert batch.status_code == 200, batch.text
    assert batch.json()["data"]["affected"] == 2
    assert login(new_client(), a.username, DEFAULT_PASSWORD).status_code == 401

    stats = client.get("/api/admin/stats/overview").json()["data"]
    assert stats["users"]["total"] == 3
    assert stats["users"]["locked"] == 2


def test_settings(client):
    login_admin(client)

    r = client.put("/api/admin/settings", json={"settings": {"site_name": "SCU DS", "max_upload_mb": 10}})
    assert r.status_code == 200, r.text

    all_settings = client.get("/api/admin/settings").json()["data"]
    assert all_settings == {"max_upload_mb": 10, "site_name": "SCU DS"}

    client.put("/api/admin/settings/max_upload_mb", json={"value": 25})
    one = client.get("/api/admin/settings/max_upload_mb").json()["data"]
    assert one["value"] == 25

    assert client.get("/api/admin/settings/missing").status_code == 404
    assert client.put("/api/admin/settings", json={"settings": {}}).status_code == 400


def test_logs_and_cleanup(client):
    login_admin(client)
    finance, _ = client_as("finance")
    finance.post("/api/finance/records", json={
        "title": "Dues", "amount": 10, "type": "income", "date": "2025-03-01",
    })

    system = client.get("/api/admin/logs/system", params={"module": "finance"}).json()
    assert system["pagination"]["total"] == 1
    assert system["data"][0]["action"] == "FINANCE_CREATE"
    assert system["data"][0]["data"]["amount"] == 10

    logins = client.get("/api/admin/logs/logins", params={"success": "true"}).json()
    assert logins["pagination"]["total"] == 2

    run_sql(
        "INSERT INTO system_logs (action, description, created_at) VALUES ('OLD', 'old entry', '2000-01-01 00:00:00')"
    )
    run_sql(
        "INSERT INTO login_history (username, success, login_time) VALUES ('ghost', 0, '2000-01-01 00:00:00')"
    )

    r = client.delete("/api/admin/logs/cleanup", params={"days": 30})
    assert r.status_code == 200, r.text
    deleted = r.json()["data"]["deleted"]
    assert deleted["system_logs"] == 1
    assert deleted["login_history"] == 1
    assert deleted["operation_history"] == 0

    assert client.delete("/api/admin/logs/cleanup", params={"days": 0}).status_code == 400
    assert client.delete("/api/admin/logs/cleanup", params={"log_type": "bogus"}).status_code == 400
