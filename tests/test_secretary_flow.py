"""

사무국 API 통합 테스트.
- 문서 CRUD 및 공유 링크 (발급 / 열람 / 위조 토큰 / 보관 문서)
- 회의록 CRUD 및 권한
- 알림: 전체 공지 + 개인 알림, 읽음 처리, 삭제 권한

"""

from app.core.guards import submission_guard
from tests.helpers import client_as, create_user_in_db


def create_document(c, **overrides) -> dict:
    submission_guard.clear()
    payload = {"title": "Bylaws", "document_type": "policy", "content": "Article 1", "status": "published"}
    payload.update(overrides)
    r = c.post("/api/secretary/documents", json=payload)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_document_crud(client):
    sec, me = client_as("secretary")
    member, _ = client_as("user")
    doc = create_document(sec)
    assert doc["creator_name"] == me.full_name

    listed = member.get("/api/secretary/documents", params={"search": "bylaw"}).json()
    assert listed["pagination"]["total"] == 1

    assert member.post("/api/secretary/documents", json={"title": "x"}).status_code == 403

    updated = sec.put(f"/api/secretary/documents/{doc['id']}", json={"content": "Article 1 (amended)"})
    assert updated.json()["data"]["content"] == "Article 1 (amended)"

    assert sec.delete(f"/api/secretary/documents/{doc['id']}").status_code == 200
    assert member.get(f"/api/secretary/documents/{doc['id']}").status_code == 404


def test_share_link(client):
    sec, _ = client_as("secretary")
    doc = create_document(sec)

    r = sec.post(f"/api/secretary/documents/{doc['id']}/share", json={"permissions": "read", "expires_days": 3})
    assert r.status_code == 200, r.text
    share = r.json()["data"]
    assert share["shareUrl"].endswith(f"/api/secretary/shared/{share['token']}")
    assert share["permissions"] == "read"

    # 로그인 없이 열람 가능
    opened = client.get(f"/api/secretary/shared/{share['token']}")
    assert opened.status_code == 200, opened.text
    assert opened.json()["data"]["document"]["title"] == "Bylaws"
    assert opened.json()["data"]["permissions"] == "read"

    bad = client.get("/api/secretary/shared/not-a-token")
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid or expired share link"

    # 보관 처리 후에는 링크로 열람 불가, 새 링크 발급도 불가
    sec.put(f"/api/secretary/documents/{doc['id']}", json={"status": "archived"})
    assert client.get(f"/api/secretary/shared/{share['token']}").status_code == 404
    assert sec.post(f"/api/secretary/documents/{doc['id']}/share").status_code == 400


def test_meeting_records(client):
    sec, _ = client_as("secretary")
    member, _ = client_as("user")

    submission_guard.clear()
    r = sec.post("/api/secretary/meetings",
                 json={"title": "Weekly sync", "meeting_date": "2025-03-10", "attendees": "A, B"})
    assert r.status_code == 201, r.text
    meeting_id = r.json()["data"]["id"]

    submission_guard.clear()
    missing_date = sec.post("/api/secretary/meetings", json={"title": "No date"})
    assert missing_date.status_code == 400

    assert sec.get("/api/secretary/meetings").json()["pagination"]["total"] == 1
    assert member.get("/api/secretary/meetings").status_code == 403
    assert member.get(f"/api/secretary/meetings/{meeting_id}").status_code == 200

    updated = sec.put(f"/api/secretary/meetings/{meeting_id}", json={"location": "Room 301"})
    assert updated.json()["data"]["location"] == "Room 301"

    assert member.delete(f"/api/secretary/meetings/{meeting_id}").status_code == 403
    assert sec.delete(f"/api/secretary/meetings/{meeting_id}").status_code == 200


def test_notifications(client):
    sec, _ = client_as("secretary")
    member, me = client_as("user")
    bystander, _ = client_as("user")

    broadcast = sec.post("/api/secretary/notifications", json={"title": "General assembly"})
    assert broadcast.status_code == 201, broadcast.text
    personal = sec.post("/api/secretary/notifications",
                        json={"title": "Submit receipt", "target_user_id": me.id})
    assert personal.status_code == 201, personal.text

    missing_target = sec.post("/api/secretary/notifications", json={"title": "x", "target_user_id": 9999})
    assert missing_target.status_code == 404

    inbox = member.get("/api/secretary/notifications").json()
    assert inbox["pagination"]["total"] == 2
    assert inbox["data"]["unread_count"] == 2

    other_inbox = bystander.get("/api/secretary/notifications").json()
    assert other_inbox["pagination"]["total"] == 1

    personal_id = personal.json()["data"]["id"]
    assert bystander.put(f"/api/secretary/notifications/{personal_id}/read").status_code == 404
    assert member.put(f"/api/secretary/notifications/{personal_id}/read").status_code == 200

    unread = member.get("/api/secretary/notifications", params={"unread_only": "true"}).json()
    assert unread["pagination"]["total"] == 1

    marked = member.put("/api/secretary/notifications/mark-all-read").json()["data"]
    assert marked["updated"] == 1

    # 전체 공지는 작성자만 삭제, 개인 알림은 수신자도 삭제 가능
    broadcast_id = broadcast.json()["data"]["id"]
    assert member.delete(f"/api/secretary/notifications/{broadcast_id}").status_code == 403
    assert member.delete(f"/api/secretary/notifications/{personal_id}").status_code == 200
    assert sec.delete(f"/api/secretary/notifications/{broadcast_id}").status_code == 200


def test_plain_user_cannot_notify(client):
    member, _ = client_as("user")
    target = create_user_in_db("user")
    r = member.post("/api/secretary/notifications", json={"title": "spam", "target_user_id": target.id})
    assert r.status_code == 403
