"""
activity.py

활동부(Activity) API 모음.

주요 기능:
- 활동(행사) 목록 / 단건 조회 / 생성 / 수정 / 삭제
- 활동 세부 항목 추가 / 수정 / 삭제
- 참가 신청 / 신청 취소 / 내 신청 목록
- 신청자 목록 및 신청 상태 변경 (pending / approved / rejected)
- 활동 통계

권한:
- 조회, 참가 신청 : 로그인한 모든 활성 사용자
- 작성 / 신청 관리 : admin / activity / secretary
  (수정/삭제는 작성자 본인 또는 관리자)

"""

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
from app.schemas.activity import (
    ActivityCreate,
    ActivityDetailCreate,
    ActivityDetailUpdate,
    ActivityRegisterRequest,
    ActivityUpdate,
    RegistrationStatusUpdate,
)
from app.services.audit import log_action

router = APIRouter(prefix="/api/activities", tags=["activity"])

write_access = require_role(Role.ADMIN, Role.ACTIVITY, Role.SECRETARY)

SORT_FIELDS = ("title", "event_date", "budget", "status", "created_at")
SEARCH_FIELDS = ("title", "description", "location")

# 신청을 받지 않는 활동 상태
CLOSED_STATUSES = ("completed", "cancelled")

ACTIVITY_SELECT = """
    SELECT event_plans.*,
           (SELECT full_name FROM users WHERE users.id = event_plans.created_by) AS creator_name,
           (SELECT COUNT(*) FROM activity_registrations r WHERE r.event_plan_id = event_plans.id) AS registration_count
    FROM event_plans
"""


def _get_activity_or_404(helper: DatabaseHelper, activity_id: int) -> dict:
    activity = helper.get(f"{ACTIVITY_SELECT} WHERE event_plans.id = :id", {"id": activity_id})
    if activity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    return activity


def _get_detail_or_404(helper: DatabaseHelper, activity_id: int, detail_id: int) -> dict:
    detail = helper.get(
        "SELECT * FROM activity_details WHERE id = :id AND event_plan_id = :activity_id",
        {"id": detail_id, "activity_id": activity_id},
    )
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity detail not found")
    return detail


@router.get("")
def list_activities(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, SORT_FIELDS)
    search = get_search_params(request, SEARCH_FIELDS)

    conditions = [search.clause]
    params = dict(search.params)
    if request.query_params.get("status"):
        conditions.append("status = :status")
        params["status"] = request.query_params["status"]
    where = build_where(conditions)

    total = helper.count("event_plans", where, params)
    activities = helper.all(
        f"{ACTIVITY_SELECT} {where} {sort.clause}, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(activities, page=pagination.page, limit=pagination.limit, total=total,
                     message="Activities retrieved")


# 내 참가 신청 목록
@router.get("/user/registrations")
def my_registrations(
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    rows = helper.all(
        """
        SELECT r.id, r.event_plan_id, r.status, r.notes, r.registered_at,
               e.title, e.event_date, e.location, e.status AS activity_status
        FROM activity_registrations r
        JOIN event_plans e ON e.id = r.event_plan_id
        WHERE r.user_id = :user_id
        ORDER BY r.registered_at DESC, r.id DESC
        """,
        {"user_id": current_user.id},
    )
    return success(rows)


@router.get("/stats/overview")
def activity_stats(
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    activities = helper.get(
        """
        SELECT COUNT(*) AS total_activities,
               COUNT(CASE WHEN status = 'planning' THEN 1 END) AS planning_count,
               COUNT(CASE WHEN status = 'ongoing' THEN 1 END) AS ongoing_count,
               COUNT(CASE WHEN status = 'completed' THEN 1 END) AS completed_count,
               COUNT(CASE WHEN status = 'cancelled' THEN 1 END) AS cancelled_count,
               COALESCE(SUM(budget), 0) AS total_budget
        FROM event_plans
        """
    )
    registrations = helper.get(
        """
        SELECT COUNT(*) AS total_registrations,
               COUNT(CASE WHEN status = 'pending' THEN 1 END) AS pending_registrations,
               COUNT(CASE WHEN status = 'approved' THEN 1 END) AS approved_registrations,
               COUNT(CASE WHEN status = 'rejected' THEN 1 END) AS rejected_registrations
        FROM activity_registrations
        """
    )
    upcoming = helper.all(
        f"""
        {ACTIVITY_SELECT}
        WHERE event_date >= date('now') AND status IN ('planning', 'ongoing')
        ORDER BY event_date ASC LIMIT 5
        """
    )
    return success({"activities": activities, "registrations": registrations, "upcoming": upcoming})


@router.get("/{activity_id}")
def get_activity(
    activity_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    activity["details"] = helper.all(
        "SELECT * FROM activity_details WHERE event_plan_id = :id ORDER BY created_at, id",
        {"id": activity_id},
    )
    activity["my_registration"] = helper.get(
        "SELECT id, status, registered_at FROM activity_registrations "
        "WHERE event_plan_id = :id AND user_id = :user_id",
        {"id": activity_id, "user_id": current_user.id},
    )
    return success(activity)


@router.post("", status_code=201)
def create_activity(
    data: ActivityCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO event_plans (title, description, event_date, location, budget, status, created_by)
        VALUES (:title, :description, :event_date, :location, :budget, :status, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    activity = _get_activity_or_404(helper, result.last_insert_id)
    log_action(helper, request, "ACTIVITY_CREATE", f"Created activity: {data.title}",
               data={"activity_id": activity["id"]}, module="activity")
    return success(activity, "Activity created", status_code=201)


@router.put("/{activity_id}")
def update_activity(
    activity_id: str,
    data: ActivityUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if "title" in changes and changes["title"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title cannot be empty")
    if "status" in changes and changes["status"] is None:
        del changes["status"]

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE event_plans SET {set_clause} WHERE id = :id", {**params, "id": activity_id})

    log_action(helper, request, "ACTIVITY_UPDATE", f"Updated activity {activity_id}",
               data=changes, module="activity")
    return success(_get_activity_or_404(helper, activity_id), "Activity updated")


@router.delete("/{activity_id}")
def delete_activity(
    activity_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])

    def _delete(tx: DatabaseHelper) -> None:
        tx.run("DELETE FROM activity_registrations WHERE event_plan_id = :id", {"id": activity_id})
        tx.run("DELETE FROM activity_details WHERE event_plan_id = :id", {"id": activity_id})
        tx.run("DELETE FROM event_plans WHERE id = :id", {"id": activity_id})

    helper.transaction(_delete)

    log_action(helper, request, "ACTIVITY_DELETE", f"Deleted activity: {activity['title']}",
               data={"activity_id": activity_id}, module="activity")
    return success(None, "Activity deleted")


# ---- 세부 항목 ----------------------------------------------------------------

@router.post("/{activity_id}/details", status_code=201)
def add_detail(
    activity_id: str,
    data: ActivityDetailCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])

    result = helper.run(
        """
        INSERT INTO activity_details (event_plan_id, title, content, detail_type, created_by)
        VALUES (:event_plan_id, :title, :content, :detail_type, :created_by)
        """,
        {**data.model_dump(), "event_plan_id": activity_id, "created_by": current_user.id},
    )
    detail = _get_detail_or_404(helper, activity_id, result.last_insert_id)
    log_action(helper, request, "ACTIVITY_DETAIL_CREATE", f"Added detail to activity {activity_id}",
               data={"detail_id": detail["id"]}, module="activity")
    return success(detail, "Activity detail added", status_code=201)


@router.put("/{activity_id}/details/{detail_id}")
def update_detail(
    activity_id: str,
    detail_id: str,
    data: ActivityDetailUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    detail_id = require_id(detail_id, "detail ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])
    _get_detail_or_404(helper, activity_id, detail_id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE activity_details SET {set_clause} WHERE id = :id", {**params, "id": detail_id})
    log_action(helper, request, "ACTIVITY_DETAIL_UPDATE", f"Updated detail {detail_id}",
               data=changes, module="activity")
    return success(_get_detail_or_404(helper, activity_id, detail_id), "Activity detail updated")


@router.delete("/{activity_id}/details/{detail_id}")
def delete_detail(
    activity_id: str,
    detail_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    detail_id = require_id(detail_id, "detail ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])
    _get_detail_or_404(helper, activity_id, detail_id)

    helper.run("DELETE FROM activity_details WHERE id = :id", {"id": detail_id})
    log_action(helper, request, "ACTIVITY_DETAIL_DELETE", f"Deleted detail {detail_id}",
               data={"activity_id": activity_id}, module="activity")
    return success(None, "Activity detail deleted")


# ---- 참가 신청 ----------------------------------------------------------------

"""
참가 신청 API

- 종료(completed) / 취소(cancelled)된 활동은 신청 불가
- 같은 활동에 중복 신청 불가 (event_plan_id, user_id 유일)
- 신청 직후 상태는 pending

"""

@router.post("/{activity_id}/register", status_code=201)
def register_activity(
    activity_id: str,
    request: Request,
    data: ActivityRegisterRequest | None = None,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)

    if activity["status"] in CLOSED_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration is closed for this activity")

    existing = helper.get(
        "SELECT id FROM activity_registrations WHERE event_plan_id = :id AND user_id = :user_id",
        {"id": activity_id, "user_id": current_user.id},
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already registered for this activity")

    result = helper.run(
        """
        INSERT INTO activity_registrations (event_plan_id, user_id, status, notes)
        VALUES (:event_plan_id, :user_id, 'pending', :notes)
        """,
        {"event_plan_id": activity_id, "user_id": current_user.id, "notes": data.notes if data else None},
    )
    log_action(helper, request, "ACTIVITY_REGISTER", f"Registered for activity: {activity['title']}",
               data={"activity_id": activity_id}, module="activity")
    return success(
        {"registration_id": result.last_insert_id, "activity_id": activity_id, "status": "pending"},
        "Registered for activity",
        status_code=201,
    )


@router.delete("/{activity_id}/register")
def unregister_activity(
    activity_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    activity_id = require_id(activity_id, "activity ID")
    _get_activity_or_404(helper, activity_id)

    result = helper.run(
        "DELETE FROM activity_registrations WHERE event_plan_id = :id AND user_id = :user_id",
        {"id": activity_id, "user_id": current_user.id},
    )
    if result.rows_affected == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")

    log_action(helper, request, "ACTIVITY_UNREGISTER", f"Cancelled registration for activity {activity_id}",
               module="activity")
    return success(None, "Registration cancelled")


@router.get("/{activity_id}/registrations")
def list_registrations(
    activity_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    _get_activity_or_404(helper, activity_id)
    pagination = get_pagination_params(request, default_limit=50)

    conditions = ["event_plan_id = :id"]
    params: dict = {"id": activity_id}
    if request.query_params.get("status"):
        conditions.append("status = :status")
        params["status"] = request.query_params["status"]
    where = build_where(conditions)

    total = helper.count("activity_registrations", where, params)
    rows = helper.all(
        f"""
        SELECT activity_registrations.*,
               (SELECT full_name FROM users WHERE users.id = activity_registrations.user_id) AS full_name,
               (SELECT username FROM users WHERE users.id = activity_registrations.user_id) AS username,
               (SELECT student_id FROM users WHERE users.id = activity_registrations.user_id) AS student_id
        FROM activity_registrations {where}
        ORDER BY registered_at ASC, id ASC LIMIT :limit OFFSET :offset
        """,
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(rows, page=pagination.page, limit=pagination.limit, total=total)


@router.put("/{activity_id}/registrations/{registration_id}")
def update_registration_status(
    activity_id: str,
    registration_id: str,
    data: RegistrationStatusUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    registration_id = require_id(registration_id, "registration ID")

    result = helper.run(
        """
        UPDATE activity_registrations SET status = :status, updated_at = CURRENT_TIMESTAMP
        WHERE id = :id AND event_plan_id = :activity_id
        """,
        {"status": data.status, "id": registration_id, "activity_id": activity_id},
    )
    if result.rows_affected == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")

    log_action(helper, request, "REGISTRATION_STATUS_UPDATE",
               f"Registration {registration_id} set to {data.status}",
               data={"activity_id": activity_id, "status": data.status}, module="activity")
    return success({"id": registration_id, "status": data.status}, "Registration status updated")
