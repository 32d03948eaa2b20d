"""

활동 API 통합 테스트.
- 활동 생성 / 조회 / 수정 / 삭제 (세부 항목, 신청 포함 삭제)
- 참가 신청 / 중복 신청 차단 / 종료된 활동 신청 차단 / 신청 취소
- 신청 상태 변경 및 통계

"""

from app.core.guards import submission_guard
from tests.helpers import client_as


def create_activity(c, **overrides) -> dict:
    submission_guard.clear()
    payload = {"title": "Freshman Welcome", "event_date": "2099-03-02", "location": "Hall A", "budget": 500}
    payload.update(overrides)
    r = c.post("/api/activities", json=payload)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_activity_crud_with_details(client):
    staff, me = client_as("activity")
    activity = create_activity(staff)
    assert activity["status"] == "planning"
    assert activity["created_by"] == me.id
    assert activity["registration_count"] == 0

    detail = staff.post(f"/api/activities/{activity['id']}/details",
                        json={"title": "Schedule", "content": "10:00 opening", "detail_type": "schedule"})
    assert detail.status_code == 201, detail.text
    detail_id = detail.json()["data"]["id"]

    updated = staff.put(f"/api/activities/{activity['id']}/details/{detail_id}", json={"content": "10:30 opening"})
    assert updated.json()["data"]["content"] == "10:30 opening"

    got = staff.get(f"/api/activities/{activity['id']}").json()["data"]
    assert [d["title"] for d in got["details"]] == ["Schedule"]
    assert got["my_registration"] is None

    changed = staff.put(f"/api/activities/{activity['id']}", json={"status": "ongoing", "location": None})
    assert changed.status_code == 200, changed.text
    assert changed.json()["data"]["status"] == "ongoing"
    assert changed.json()["data"]["location"] is None

    assert staff.put(f"/api/activities/{activity['id']}", json={"title": None}).status_code == 400

    listed = staff.get("/api/activities", params={"status": "ongoing"}).json()
    assert listed["pagination"]["total"] == 1

    assert staff.delete(f"/api/activities/{activity['id']}/details/{detail_id}").status_code == 200
    assert staff.delete(f"/api/activities/{activity['id']}").status_code == 200
    assert staff.get(f"/api/activities/{activity['id']}").status_code == 404


def test_plain_user_cannot_create(client):
    user_client, _ = client_as("user")
    r = user_client.post("/api/activities", json={"title": "Nope"})
    assert r.status_code == 403
    assert user_client.get("/api/activities").status_code == 200


def test_registration_flow(client):
    staff, _ = client_as("activity")
    member, member_user = client_as("user")
    activity = create_activity(staff)

    r = member.post(f"/api/activities/{activity['id']}/register", json={"notes": "vegetarian"})
    assert r.status_code == 201, r.text
    registration_id = r.json()["data"]["registration_id"]
    assert r.json()["data"]["status"] == "pending"

    dup = member.post(f"/api/activities/{activity['id']}/register")
    assert dup.status_code == 400
    assert dup.json()["message"] == "Already registered for this activity"

    mine = member.get("/api/activities/user/registrations").json()["data"]
    assert [m["event_plan_id"] for m in mine] == [activity["id"]]

    registrations = staff.get(f"/api/activities/{activity['id']}/registrations").json()
    assert registrations["pagination"]["total"] == 1
    assert registrations["data"][0]["username"] == member_user.username

    # 일반 사용자는 신청자 목록 / 상태 변경 불가
    assert member.get(f"/api/activities/{activity['id']}/registrations").status_code == 403

    approved = staff.put(f"/api/activities/{activity['id']}/registrations/{registration_id}",
                         json={"status": "approved"})
    assert approved.status_code == 200, approved.text

    detail = member.get(f"/api/activities/{activity['id']}").json()["data"]
    assert detail["my_registration"]["status"] == "approved"
    assert detail["registration_count"] == 1

    stats = staff.get("/api/activities/stats/overview").json()["data"]
    assert stats["activities"]["total_activities"] == 1
    assert stats["registrations"]["approved_registrations"] == 1
    assert [u["id"] for u in stats["upcoming"]] == [activity["id"]]

    cancelled = member.delete(f"/api/activities/{activity['id']}/register")
    assert cancelled.status_code == 200
    assert member.delete(f"/api/activities/{activity['id']}/register").status_code == 404


def test_closed_activity_rejects_registration(client):
    staff, _ = client_as("activity")
    member, _ = client_as("user")
    activity = create_activity(staff, status="completed")

    r = member.post(f"/api/activities/{activity['id']}/register")
    assert r.status_code == 400
    assert r.json()["message"] == "Registration is closed for this activity"


def test_delete_activity_removes_registrations(client):
    staff, _ = client_as("activity")
    member, _ = client_as("user")
    activity = create_activity(staff)
    assert member.post(f"/api/activities/{activity['id']}/register").status_code == 201

    assert staff.delete(f"/api/activities/{activity['id']}").status_code == 200
    assert member.get("/api/activities/user/registrations").json()["data"] == []


def test_other_staff_cannot_edit(client):
    owner, _ = client_as("activity")
    other, _ = client_as("activity")
    activity = create_activity(owner)

    assert other.put(f"/api/activities/{activity['id']}", json={"title": "Hijack"}).status_code == 403
    assert other.delete(f"/api/activities/{activity['id']}").status_code == 403
    assert other.get("/api/activities/abc").status_code == 400
