"""
finance.py

재무부(Finance) API 모음.

주요 기능:
- 수입/지출 레코드 목록 (필터 / 검색 / 정렬 / 페이지네이션 + 합계 통계)
- 레코드 단건 조회 / 생성 / 수정 / 삭제
- 기간별 요약, 분류별 / 월별 통계
- 검토 흐름: draft -> submitted -> approved / rejected

권한:
- 조회 : admin / finance / secretary / user
- 작성 : admin / finance (수정/삭제는 작성자 본인 또는 관리자)
- 검토 : admin / secretary

관련 파일:
- app.core.query           : 페이지네이션 / 정렬 / 검색
- app.core.deps            : 권한 / 작성자 확인
- app.schemas.finance      : 요청 스키마

"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.deps import SessionUser, ensure_owner_or_admin, get_current_user, get_helper, require_role
from app.core.guards import prevent_duplicate_submission
from app.core.query import (
    build_set_clause,
    build_where,
    get_pagination_params,
    get_search_params,
    get_sort_params,
    require_id,
)
from app.core.responses import paginated, success
from app.db.helper import DatabaseHelper
from app.models.user import Role
from app.schemas.finance import FinanceRecordCreate, FinanceRecordUpdate, FinanceReviewRequest
from app.services.audit import log_action

router = APIRouter(prefix="/api/finance", tags=["finance"])

read_access = require_role(Role.ADMIN, Role.FINANCE, Role.SECRETARY, Role.USER)
write_access = require_role(Role.ADMIN, Role.FINANCE)
review_access = require_role(Role.ADMIN, Role.SECRETARY)

SORT_FIELDS = ("date", "amount", "title", "category", "type", "status", "created_at")
SEARCH_FIELDS = ("title", "description", "category", "notes")

RECORD_SELECT = """
    SELECT finance_records.*,
           (SELECT full_name FROM users WHERE users.id = finance_records.created_by) AS creator_name,
           (SELECT full_name FROM users WHERE users.id = finance_records.reviewed_by) AS reviewer_name
    FROM finance_records
"""

TOTALS_SELECT = """
    SELECT
        COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0) AS total_income,
        COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) AS total_expense,
        COUNT(CASE WHEN type = 'income' THEN 1 END) AS income_count,
        COUNT(CASE WHEN type = 'expense' THEN 1 END) AS expense_count
    FROM finance_records
"""


def _totals(helper: DatabaseHelper, where: str = "", params: dict | None = None) -> dict:
    row = helper.get(f"{TOTALS_SELECT} {where}", params) or {}
    income = row.get("total_income") or 0
    expense = row.get("total_expense") or 0
    return {
        "total_income": income,
        "total_expense": expense,
        "balance": income - expense,
        "income_count": row.get("income_count") or 0,
        "expense_count": row.get("expense_count") or 0,
    }


def _get_record_or_404(helper: DatabaseHelper, record_id: int) -> dict:
    record = helper.get(f"{RECORD_SELECT} WHERE finance_records.id = :id", {"id": record_id})
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Finance record not found")
    return record


def _filters(request: Request) -> tuple[list[str], dict]:
    conditions: list[str] = []
    params: dict = {}
    query = request.query_params

    if query.get("type") in ("income", "expense"):
        conditions.append("type = :type")
        params["type"] = query["type"]
    if query.get("category"):
        conditions.append("category = :category")
        params["category"] = query["category"]
    if query.get("status"):
        conditions.append("status = :status")
        params["status"] = query["status"]
    if query.get("startDate"):
        conditions.append("date >= :start_date")
        params["start_date"] = query["startDate"]
    if query.get("endDate"):
        conditions.append("date <= :end_date")
        params["end_date"] = query["endDate"]

    return conditions, params


"""
재무 레코드 목록 API

- type / category / status / startDate / endDate 필터
- search (+ searchField) 검색, sortBy / sortOrder 정렬
- 같은 조건의 수입/지출 합계(statistics)를 함께 반환

"""

@router.get("/records")
def list_records(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, SORT_FIELDS, default_field="date")
    search = get_search_params(request, SEARCH_FIELDS)

    conditions, params = _filters(request)
    conditions.append(search.clause)
    params.update(search.params)
    where = build_where(conditions)

    total = helper.count("finance_records", where, params)
    records = helper.all(
        f"{RECORD_SELECT} {where} {sort.clause}, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )

    return paginated(
        {"records": records, "statistics": _totals(helper, where, params)},
        page=pagination.page,
        limit=pagination.limit,
        total=total,
        message="Finance records retrieved",
    )


@router.get("/records/{record_id}")
def get_record(
    record_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    record = _get_record_or_404(helper, require_id(record_id, "record ID"))
    return success(record)


@router.post("/records", status_code=201)
def create_record(
    data: FinanceRecordCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO finance_records
            (title, description, amount, type, category, date, notes, receipt_url, created_by)
        VALUES
            (:title, :description, :amount, :type, :category, :date, :notes, :receipt_url, :created_by)
        """,
        {**data.model_dump(), "date": data.date.isoformat(), "created_by": current_user.id},
    )
    record = _get_record_or_404(helper, result.last_insert_id)

    log_action(
        helper, request, "FINANCE_CREATE",
        f"Created {data.type} record: {data.title}",
        data={"record_id": record["id"], "amount": data.amount},
        module="finance",
    )
    return success(record, "Finance record created", status_code=201)


@router.put("/records/{record_id}")
def update_record(
    record_id: str,
    data: FinanceRecordUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    record_id = require_id(record_id, "record ID")
    record = _get_record_or_404(helper, record_id)
    ensure_owner_or_admin(current_user, record["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if isinstance(changes.get("date"), date):
        changes["date"] = changes["date"].isoformat()

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE finance_records SET {set_clause} WHERE id = :id", {**params, "id": record_id})

    log_action(
        helper, request, "FINANCE_UPDATE",
        f"Updated finance record {record_id}",
        data=changes,
        module="finance",
    )
    return success(_get_record_or_404(helper, record_id), "Finance record updated")


@router.delete("/records/{record_id}")
def delete_record(
    record_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    record_id = require_id(record_id, "record ID")
    record = _get_record_or_404(helper, record_id)
    ensure_owner_or_admin(current_user, record["created_by"])

    helper.run("DELETE FROM finance_records WHERE id = :id", {"id": record_id})

    log_action(
        helper, request, "FINANCE_DELETE",
        f"Deleted finance record: {record['title']}",
        data={"record_id": record_id, "amount": record["amount"], "type": record["type"]},
        module="finance",
    )
    return success(None, "Finance record deleted")


"""
기간별 요약 API

- period=year&year=2025        : 해당 연도
- period=month&year=2025&month=3 : 해당 월
- period=all                   : 전체 기간
- 그 외                         : 이번 달

"""

@router.get("/summary")
def summary(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    query = request.query_params
    period = query.get("period", "month")
    year = query.get("year")
    month = query.get("month")

    where, params = "", {}
    if period == "all":
        pass
    elif period == "year" and year:
        where, params = "WHERE strftime('%Y', date) = :period", {"period": year}
    elif period == "month" and year and month:
        where, params = "WHERE strftime('%Y-%m', date) = :period", {"period": f"{year}-{month.zfill(2)}"}
    else:
        where, params = "WHERE strftime('%Y-%m', date) = :period", {"period": date.today().strftime("%Y-%m")}

    categories = helper.all(
        f"""
        SELECT category, type, SUM(amount) AS total_amount, COUNT(*) AS count
        FROM finance_records {where}
        GROUP BY category, type
        ORDER BY total_amount DESC
        """,
        params,
    )

    return success(
        {"basic": _totals(helper, where, params), "categories": categories, "period": params.get("period", "all")},
        "Finance summary retrieved",
    )


@router.get("/categories")
def list_categories(
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    rows = helper.all(
        "SELECT DISTINCT category FROM finance_records "
        "WHERE category IS NOT NULL AND category != '' ORDER BY category"
    )
    return success([row["category"] for row in rows])


@router.get("/stats/categories")
def category_stats(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    conditions, params = _filters(request)
    rows = helper.all(
        f"""
        SELECT category,
               COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0) AS income,
               COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) AS expense,
               COUNT(*) AS count
        FROM finance_records {build_where(conditions)}
        GROUP BY category
        ORDER BY category
        """,
        params,
    )
    return success(rows)


# 최근 N개월(기본 12, 최대 60) 월별 수입/지출
@router.get("/stats/monthly")
def monthly_stats(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    try:
        months = int(request.query_params.get("months", 12))
    except ValueError:
        months = 12
    months = min(60, max(1, months))

    rows = helper.all(
        """
        SELECT strftime('%Y-%m', date) AS month,
               COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0) AS income,
               COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) AS expense
        FROM finance_records
        WHERE date >= date('now', :offset)
        GROUP BY strftime('%Y-%m', date)
        ORDER BY month
        """,
        {"offset": f"-{months} months"},
    )
    for row in rows:
        row["balance"] = row["income"] - row["expense"]
    return success(rows)


# 검토 요청 (작성자 본인 또는 관리자, draft / rejected 상태에서만)
@router.post("/records/{record_id}/submit-review")
def submit_for_review(
    record_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    record_id = require_id(record_id, "record ID")
    record = _get_record_or_404(helper, record_id)
    ensure_owner_or_admin(current_user, record["created_by"])

    if record["status"] not in ("draft", "rejected"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Record is already {record['status']}",
        )

    helper.run(
        "UPDATE finance_records SET status = 'submitted', updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"id": record_id},
    )
    log_action(helper, request, "FINANCE_SUBMIT_REVIEW", f"Submitted record {record_id} for review", module="finance")
    return success(_get_record_or_404(helper, record_id), "Record submitted for review")


@router.post("/records/{record_id}/review")
def review_record(
    record_id: str,
    data: FinanceReviewRequest,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(review_access),
):
    record_id = require_id(record_id, "record ID")
    record = _get_record_or_404(helper, record_id)

    if record["status"] != "submitted":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Record is not awaiting review")

    helper.run(
        """
        UPDATE finance_records
        SET status = :status, reviewed_by = :reviewed_by, reviewed_at = CURRENT_TIMESTAMP,
            review_comment = :comment, updated_at = CURRENT_TIMESTAMP
        WHERE id = :id
        """,
        {"status": data.decision, "reviewed_by": current_user.id, "comment": data.comment, "id": record_id},
    )
    log_action(
        helper, request, "FINANCE_REVIEW",
        f"Record {record_id} {data.decision}",
        data={"record_id": record_id, "decision": data.decision},
        module="finance",
    )
    return success(_get_record_or_404(helper, record_id), f"Record {data.decision}")


@router.get("/reviews/pending")
def pending_reviews(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(review_access),
):
    pagination = get_pagination_params(request)
    where = "WHERE status = 'submitted'"
    total = helper.count("finance_records", where)
    records = helper.all(
        f"{RECORD_SELECT} {where} ORDER BY updated_at ASC, id ASC LIMIT :limit OFFSET :offset",
        {"limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(records, page=pagination.page, limit=pagination.limit, total=total)
