"""

재무 API 통합 테스트.
- 역할별 접근 (user 조회 가능 / 작성 불가, design 접근 불가)
- 생성 후 목록 total 증가 + 합계 통계
- 작성자 본인 / 관리자만 수정·삭제
- 검토 흐름 draft → submitted → approved / rejected
- 잘못된 ID / 금액 검증

"""

from app.core.guards import submission_guard
from tests.helpers import client_as, finance_payload, login_admin


def create_record(c, **overrides) -> dict:
    submission_guard.clear()
    r = c.post("/api/finance/records", json=finance_payload(**overrides))
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_create_then_list_increments_total(client):
    finance, me = client_as("finance")

    before = finance.get("/api/finance/records").json()["pagination"]["total"]
    record = create_record(finance)
    assert record["created_by"] == me.id
    assert record["status"] == "draft"
    assert record["creator_name"] == me.full_name

    body = finance.get("/api/finance/records").json()
    assert body["pagination"]["total"] == before + 1
    assert body["data"]["records"][0]["id"] == record["id"]


def test_list_statistics_and_filters(client):
    finance, _ = client_as("finance")
    create_record(finance, title="Dues", amount=300, type="income", category="dues")
    create_record(finance, title="Snacks", amount=120.5, type="expense", category="food")
    create_record(finance, title="Posters", amount=79.5, type="expense", category="print")

    body = finance.get("/api/finance/records").json()
    stats = body["data"]["statistics"]
    assert stats["total_income"] == 300
    assert stats["total_expense"] == 200
    assert stats["balance"] == 100
    assert stats["expense_count"] == 2

    expenses = finance.get("/api/finance/records", params={"type": "expense"}).json()
    assert expenses["pagination"]["total"] == 2

    searched = finance.get("/api/finance/records", params={"search": "snack"}).json()
    assert [r["title"] for r in searched["data"]["records"]] == ["Snacks"]

    paged = finance.get("/api/finance/records", params={"limit": 2, "page": 2, "sortBy": "amount", "sortOrder": "asc"}).json()
    assert paged["pagination"]["totalPages"] == 2
    assert [r["title"] for r in paged["data"]["records"]] == ["Dues"]

    categories = finance.get("/api/finance/categories").json()["data"]
    assert categories == ["dues", "food", "print"]


def test_role_access(client):
    user_client, _ = client_as("user")
    design_client, _ = client_as("design")

    assert user_client.get("/api/finance/records").status_code == 200
    assert user_client.post("/api/finance/records", json=finance_payload()).status_code == 403
    assert design_client.get("/api/finance/records").status_code == 403
    assert client.get("/api/finance/records").status_code == 401


def test_only_owner_or_admin_can_modify(client):
    owner, _ = client_as("finance")
    other, _ = client_as("finance")
    record = create_record(owner)

    forbidden = other.delete(f"/api/finance/records/{record['id']}")
    assert forbidden.status_code == 403

    forbidden = other.put(f"/api/finance/records/{record['id']}", json={"amount": 1})
    assert forbidden.status_code == 403

    updated = owner.put(f"/api/finance/records/{record['id']}", json={"amount": 175, "notes": "adjusted"})
    assert updated.status_code == 200, updated.text
    assert updated.json()["data"]["amount"] == 175

    login_admin(client)
    deleted = client.delete(f"/api/finance/records/{record['id']}")
    assert deleted.status_code == 200
    assert client.get(f"/api/finance/records/{record['id']}").status_code == 404


def test_invalid_id_and_amount(client):
    finance, _ = client_as("finance")

    r = finance.get("/api/finance/records/abc")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid record ID"

    assert finance.get("/api/finance/records/0").status_code == 400
    assert finance.get("/api/finance/records/999").status_code == 404

    bad = finance.post("/api/finance/records", json=finance_payload(amount=-5))
    assert bad.status_code == 400
    assert bad.json()["errors"][0]["field"] == "amount"

    assert finance.put("/api/finance/records/999", json={"amount": 5}).status_code == 404


def test_review_workflow(client):
    finance, _ = client_as("finance")
    secretary, reviewer = client_as("secretary")
    record = create_record(finance)

    # draft 상태는 검토 불가
    early = secretary.post(f"/api/finance/records/{record['id']}/review", json={"decision": "approved"})
    assert early.status_code == 400

    submitted = finance.post(f"/api/finance/records/{record['id']}/submit-review")
    assert submitted.status_code == 200, submitted.text
    assert submitted.json()["data"]["status"] == "submitted"

    again = finance.post(f"/api/finance/records/{record['id']}/submit-review")
    assert again.status_code == 400

    pending = secretary.get("/api/finance/reviews/pending").json()
    assert pending["pagination"]["total"] == 1

    # 작성자(finance)는 검토 권한 없음
    assert finance.post(f"/api/finance/records/{record['id']}/review",
                        json={"decision": "approved"}).status_code == 403

    rejected = secretary.post(f"/api/finance/records/{record['id']}/review",
                              json={"decision": "rejected", "comment": "missing receipt"})
    assert rejected.status_code == 200, rejected.text
    data = rejected.json()["data"]
    assert data["status"] == "rejected"
    assert data["reviewed_by"] == reviewer.id
    assert data["review_comment"] == "missing receipt"

    # 반려 후 재제출 → 승인
    assert finance.post(f"/api/finance/records/{record['id']}/submit-review").status_code == 200
    approved = secretary.post(f"/api/finance/records/{record['id']}/review", json={"decision": "approved"})
    assert approved.json()["data"]["status"] == "approved"


def test_summary_and_stats(client):
    finance, _ = client_as("finance")
    create_record(finance, amount=500, type="income", category="dues")
    create_record(finance, amount=200, type="expense", category="food")

    summary = finance.get("/api/finance/summary", params={"period": "all"}).json()["data"]
    assert summary["basic"]["balance"] == 300
    assert summary["period"] == "all"
    assert {c["category"] for c in summary["categories"]} == {"dues", "food"}

    this_month = finance.get("/api/finance/summary").json()["data"]
    assert this_month["basic"]["total_income"] == 500

    by_category = finance.get("/api/finance/stats/categories").json()["data"]
    assert {row["category"]: row["expense"] for row in by_category} == {"dues": 0, "food": 200}

    monthly = finance.get("/api/finance/stats/monthly", params={"months": 3}).json()["data"]
    assert len(monthly) == 1
    assert monthly[0]["balance"] == 300
