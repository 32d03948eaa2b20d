"""

디자인 / 홍보 API 통합 테스트.
- 디자인 작품: 태그 JSON 저장, 공개 전환, soft delete, 분류 통계
- 홍보 활동: 게시 / 게시 취소, soft delete
- 협력 기관: 상태 전환, 거래처: hard delete
- 부서별 작성 권한

"""

from app.core.guards import submission_guard
from tests.helpers import client_as


def test_design_work_lifecycle(client):
    designer, me = client_as("design")

    r = designer.post("/api/design/works",
                      json={"title": "Festival poster", "category": "poster", "tags": ["festival", "2025"]})
    assert r.status_code == 201, r.text
    work = r.json()["data"]
    assert work["tags"] == ["festival", "2025"]
    assert work["status"] == "draft"
    assert work["creator_name"] == me.full_name

    published = designer.post(f"/api/design/works/{work['id']}/publish")
    assert published.json()["data"]["status"] == "published"
    unpublished = designer.post(f"/api/design/works/{work['id']}/publish")
    assert unpublished.json()["data"]["status"] == "draft"

    updated = designer.put(f"/api/design/works/{work['id']}", json={"tags": ["festival"]})
    assert updated.json()["data"]["tags"] == ["festival"]

    searched = designer.get("/api/design/works", params={"search": "festival"}).json()
    assert searched["pagination"]["total"] == 1

    categories = designer.get("/api/design/categories").json()["data"]
    assert categories == [{"category": "poster", "count": 1}]

    assert designer.delete(f"/api/design/works/{work['id']}").status_code == 200
    assert designer.get(f"/api/design/works/{work['id']}").status_code == 404
    assert designer.get("/api/design/works").json()["pagination"]["total"] == 0
    assert designer.get("/api/design/categories").json()["data"] == []


def test_design_access(client):
    member, _ = client_as("user")
    secretary, _ = client_as("secretary")

    assert member.get("/api/design/works").status_code == 403
    assert member.get("/api/design/categories").status_code == 200
    assert secretary.get("/api/design/works").status_code == 200
    assert secretary.post("/api/design/works", json={"title": "x"}).status_code == 403


def test_pr_activity_publish_and_soft_delete(client):
    pr, _ = client_as("pr")
    member, _ = client_as("user")

    r = pr.post("/api/pr/activities", json={"title": "Campus radio spot", "budget": 50, "status": "draft"})
    assert r.status_code == 201, r.text
    activity_id = r.json()["data"]["id"]

    assert pr.post(f"/api/pr/activities/{activity_id}/publish").json()["data"]["status"] == "published"
    assert member.get("/api/pr/activities", params={"status": "published"}).json()["pagination"]["total"] == 1
    assert pr.post(f"/api/pr/activities/{activity_id}/unpublish").json()["data"]["status"] == "draft"

    assert member.post(f"/api/pr/activities/{activity_id}/publish").status_code == 403
    assert member.post("/api/pr/activities", json={"title": "x"}).status_code == 403

    assert pr.delete(f"/api/pr/activities/{activity_id}").status_code == 200
    assert member.get(f"/api/pr/activities/{activity_id}").status_code == 404


def test_partners_and_vendors(client):
    pr, _ = client_as("pr")

    r = pr.post("/api/pr/partners", json={"name": "Cafe Dream", "email": "hello@cafedream.example"})
    assert r.status_code == 201, r.text
    partner = r.json()["data"]
    assert partner["status"] == "active"

    bad_email = pr.post("/api/pr/vendors", json={"name": "Print Shop", "email": "not-an-email"})
    assert bad_email.status_code == 400

    submission_guard.clear()
    toggled = pr.put(f"/api/pr/partners/{partner['id']}/toggle-status")
    assert toggled.json()["data"]["status"] == "inactive"
    assert pr.get("/api/pr/partners", params={"status": "active"}).json()["pagination"]["total"] == 0

    updated = pr.put(f"/api/pr/partners/{partner['id']}", json={"contact_person": "Kim"})
    assert updated.json()["data"]["contact_person"] == "Kim"

    assert pr.delete(f"/api/pr/partners/{partner['id']}").status_code == 200
    assert pr.get(f"/api/pr/partners/{partner['id']}").status_code == 404

    submission_guard.clear()
    vendor = pr.post("/api/pr/vendors", json={"name": "Print Shop", "service_type": "printing"})
    assert vendor.status_code == 201, vendor.text
    vendor_id = vendor.json()["data"]["id"]

    listed = pr.get("/api/pr/vendors", params={"service_type": "printing"}).json()
    assert listed["pagination"]["total"] == 1

    assert pr.put(f"/api/pr/vendors/{vendor_id}", json={"notes": "A3 only"}).json()["data"]["notes"] == "A3 only"
    assert pr.delete(f"/api/pr/vendors/{vendor_id}").status_code == 200
    assert pr.get("/api/pr/vendors").json()["pagination"]["total"] == 0
