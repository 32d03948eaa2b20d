"""
history.py

작업 이력 / 로그인 이력 API 모음.

주요 기능:
- 작업 이력 목록 / 상세 (admin / secretary)
- 작업 이력 수동 기록 / 일괄 삭제 / 보존 기간 정리 (admin)
- 로그인 이력 목록 / 사용자별 이력 (admin / secretary)
- 내 로그인 이력 (로그인한 모든 사용자)
- 로그인 이력 정리 (admin)
- 활동 통계 개요 (admin / secretary)

"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.deps import SessionUser, get_current_user, get_helper, require_role
from app.core.query import build_where, get_pagination_params, require_id
from app.core.responses import paginated, success
from app.db.helper import DatabaseHelper
from app.models.user import Role
from app.schemas.history import BatchDeleteRequest, OperationCreate
from app.services import audit

router = APIRouter(prefix="/api/history", tags=["history"])

viewer_access = require_role(Role.ADMIN, Role.SECRETARY)
admin_access = require_role(Role.ADMIN)


def _login_page(helper: DatabaseHelper, request: Request, conditions: list[str], params: dict):
    pagination = get_pagination_params(request, default_limit=20)
    where = build_where(conditions)
    total = helper.count("login_history", where, params)
    rows = helper.all(
        f"SELECT * FROM login_history {where} ORDER BY login_time DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(rows, page=pagination.page, limit=pagination.limit, total=total,
                     message="Login history retrieved")


# ---- 작업 이력 ----------------------------------------------------------------

@router.get("/operations")
def list_operations(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(viewer_access),
):
    pagination = get_pagination_params(request, default_limit=20)
    conditions, params = audit.operation_filters(request)
    where = build_where(conditions)

    total = helper.count("operation_history", where, params)
    rows = helper.all(
        f"{audit.OPERATION_SELECT} {where} ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated([audit.decode_json_field(r, "details") for r in rows],
                     page=pagination.page, limit=pagination.limit, total=total,
                     message="Operation history retrieved")


@router.post("/operations", status_code=201)
def create_operation(
    data: OperationCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(admin_access),
):
    operation_id = audit.record_operation(
        helper, request,
        user_id=current_user.id,
        operation_type=data.operation_type,
        description=data.description,
        details=data.details,
        target_id=data.target_id,
        target_type=data.target_type,
    )
    row = helper.get(f"{audit.OPERATION_SELECT} WHERE operation_history.id = :id", {"id": operation_id})
    return success(audit.decode_json_field(row, "details"), "Operation recorded", status_code=201)


@router.delete("/operations/batch")
def batch_delete_operations(
    data: BatchDeleteRequest,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(admin_access),
):
    ids = sorted({i for i in data.ids if i > 0})
    if not ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid IDs provided")

    result = helper.batch_delete("operation_history", "id", ids)
    audit.log_action(helper, request, "OPERATION_BATCH_DELETE", f"Deleted {result.rows_affected} operation records",
                     data={"ids": ids}, module="history")
    return success({"deleted": result.rows_affected}, "Operation records deleted")


@router.delete("/operations/cleanup")
def cleanup_operations(
    request: Request,
    days: int = Query(90, ge=1, le=3650),
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(admin_access),
):
    deleted = audit.cleanup_logs(helper, "operation_history", days)
    audit.log_action(helper, request, "OPERATION_CLEANUP", f"Removed operation records older than {days} days",
                     data={"deleted": deleted}, module="history")
    return success({"days": days, "deleted": deleted}, "Operation history cleaned up")


@router.get("/operations/{operation_id}")
def get_operation(
    operation_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(viewer_access),
):
    operation_id = require_id(operation_id, "operation ID")
    row = helper.get(f"{audit.OPERATION_SELECT} WHERE operation_history.id = :id", {"id": operation_id})
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Operation record not found")
    return success(audit.decode_json_field(row, "details"))


# ---- 로그인 이력 ---------------------------------------------------------------

@router.get("/logins")
def list_logins(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(viewer_access),
):
    conditions, params = audit.login_filters(request)
    return _login_page(helper, request, conditions, params)


@router.get("/logins/my")
def my_logins(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    return _login_page(helper, request, ["user_id = :user_id"], {"user_id": current_user.id})


@router.get("/logins/user/{user_id}")
def user_logins(
    user_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(viewer_access),
):
    user_id = require_id(user_id, "user ID")
    if not helper.exists("users", "id", user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _login_page(helper, request, ["user_id = :user_id"], {"user_id": user_id})


@router.delete("/logins/cleanup")
def cleanup_logins(
    request: Request,
    days: int = Query(90, ge=1, le=3650),
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(admin_access),
):
    deleted = audit.cleanup_logs(helper, "login_history", days)
    audit.log_action(helper, request, "LOGIN_HISTORY_CLEANUP", f"Removed login records older than {days} days",
                     data={"deleted": deleted}, module="history")
    return success({"days": days, "deleted": deleted}, "Login history cleaned up")


# ---- 통계 --------------------------------------------------------------------

# 최근 N일(기본 7, 최대 90) 작업 / 로그인 통계
@router.get("/stats/overview")
def stats_overview(
    days: int = Query(7, ge=1, le=90),
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(viewer_access),
):
    params = {"offset": f"-{days} days"}
    operations = helper.get(
        """
        SELECT COUNT(*) AS total, COUNT(DISTINCT user_id) AS active_users
        FROM operation_history WHERE created_at >= datetime('now', :offset)
        """,
        params,
    )
    operation_types = helper.all(
        """
        SELECT operation_type, COUNT(*) AS count
        FROM operation_history WHERE created_at >= datetime('now', :offset)
        GROUP BY operation_type ORDER BY count DESC, operation_type LIMIT 10
        """,
        params,
    )
    logins = helper.get(
        """
        SELECT COUNT(*) AS total,
               COUNT(CASE WHEN success = 1 THEN 1 END) AS succeeded,
               COUNT(CASE WHEN success = 0 THEN 1 END) AS failed,
               COUNT(DISTINCT user_id) AS unique_users
        FROM login_history WHERE login_time >= datetime('now', :offset)
        """,
        params,
    )
    daily = helper.all(
        """
        SELECT date(created_at) AS day, COUNT(*) AS count
        FROM system_logs WHERE created_at >= datetime('now', :offset)
        GROUP BY date(created_at) ORDER BY day
        """,
        params,
    )
    return success({
        "days": days,
        "operations": {**operations, "by_type": operation_types},
        "logins": logins,
        "daily_activity": daily,
    }, "Activity statistics retrieved")
