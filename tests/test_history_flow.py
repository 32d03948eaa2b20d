"""

작업 / 로그인 이력 API 통합 테스트.
- 조회 권한 (admin / secretary), 수동 기록 / 일괄 삭제 / 정리 (admin)
- 내 로그인 이력, 사용자별 로그인 이력
- 통계 개요

"""

from app.db.helper import DatabaseHelper
from app.db.session import SessionLocal
from tests.helpers import client_as, login_admin


def insert_old_rows() -> None:
    session = SessionLocal()
    try:
        helper = DatabaseHelper(session)
        helper.run(
            "INSERT INTO operation_history (operation_type, created_at) VALUES ('OLD_OP', '2000-01-01 00:00:00')"
        )
        helper.run(
            "INSERT INTO login_history (username, success, login_time) VALUES ('old', 1, '2000-01-01 00:00:00')"
        )
    finally:
        session.close()


def test_operation_records(client):
    admin = login_admin(client)
    secretary, _ = client_as("secretary")
    member, _ = client_as("user")

    r = client.post("/api/history/operations", json={
        "operation_type": "BUDGET_EXPORT", "description": "Exported Q1 budget",
        "details": {"quarter": 1}, "target_type": "finance",
    })
    assert r.status_code == 201, r.text
    op = r.json()["data"]
    assert op["details"] == {"quarter": 1}
    assert op["username"] == admin["username"]

    assert secretary.post("/api/history/operations", json={"operation_type": "X"}).status_code == 403

    listed = secretary.get("/api/history/operations", params={"operation_type": "BUDGET_EXPORT"}).json()
    assert listed["pagination"]["total"] == 1
    assert secretary.get(f"/api/history/operations/{op['id']}").json()["data"]["description"] == "Exported Q1 budget"
    assert secretary.get("/api/history/operations/999").status_code == 404
    assert member.get("/api/history/operations").status_code == 403

    second = client.post("/api/history/operations", json={"operation_type": "BUDGET_EXPORT"}).json()["data"]
    deleted = client.request("DELETE", "/api/history/operations/batch", json={"ids": [op["id"], second["id"], 0]})
    assert deleted.status_code == 200, deleted.text
    assert deleted.json()["data"]["deleted"] == 2

    empty = client.request("DELETE", "/api/history/operations/batch", json={"ids": [0, -1]})
    assert empty.status_code == 400


def test_login_history_views(client):
    login_admin(client)
    member, me = client_as("user")

    mine = member.get("/api/history/logins/my").json()
    assert mine["pagination"]["total"] == 1
    assert mine["data"][0]["username"] == me.username

    by_user = client.get(f"/api/history/logins/user/{me.id}").json()
    assert by_user["pagination"]["total"] == 1
    assert client.get("/api/history/logins/user/9999").status_code == 404

    all_logins = client.get("/api/history/logins", params={"username": me.username}).json()
    assert all_logins["pagination"]["total"] == 1
    assert member.get("/api/history/logins").status_code == 403


def test_cleanup_endpoints(client):
    login_admin(client)
    insert_old_rows()

    ops = client.delete("/api/history/operations/cleanup", params={"days": 30})
    assert ops.status_code == 200, ops.text
    assert ops.json()["data"]["deleted"] == 1

    logins = client.delete("/api/history/logins/cleanup", params={"days": 30})
    assert logins.json()["data"]["deleted"] == 1

    # 최근 기록(관리자 로그인)은 유지
    remaining = client.get("/api/history/logins").json()
    assert remaining["pagination"]["total"] == 1


def test_stats_overview(client):
    login_admin(client)
    client.post("/api/history/operations", json={"operation_type": "MANUAL_NOTE"})

    stats = client.get("/api/history/stats/overview", params={"days": 7}).json()["data"]
    assert stats["days"] == 7
    assert stats["operations"]["total"] == 1
    assert stats["operations"]["by_type"][0]["operation_type"] == "MANUAL_NOTE"
    assert stats["logins"]["succeeded"] == 1

    assert client.get("/api/history/stats/overview", params={"days": 365}).status_code == 400
