"""
admin.py

관리자(Admin) 전용 API 모음.

주요 기능:
- 사용자 목록 / 조회 / 생성 / 수정 / 삭제(Soft Delete)
- 사용자 비밀번호 초기화 / 잠금 전환 / 일괄 처리(삭제, 잠금, 해제)
- 시스템 통계
- 시스템 설정 조회 / 저장 (key-value, JSON)
- 작업 이력 / 시스템 로그 / 로그인 이력 조회 및 보존 기간 정리

설계 원칙:
- 라우터 전체에 관리자 권한 적용
- 관리자 본인 계정은 삭제 / 잠금 / 권한 변경 불가
- 사용자 관리 작업은 operation_history 에 기록

관련 파일:
- app.services.auth        : 사용자 생성 / 비밀번호 설정
- app.services.audit       : 작업 이력 기록 / 로그 조회 / 정리

"""

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.deps import SessionUser, get_current_admin, get_helper
from app.core.query import (
    build_set_clause,
    build_where,
    get_pagination_params,
    get_search_params,
    get_sort_params,
    require_id,
    sanitize_data,
)
from app.core.responses import paginated, success
from app.db.helper import DatabaseHelper
from app.models.user import Role
from app.schemas.admin import (
    AdminPasswordReset,
    AdminUserCreate,
    AdminUserUpdate,
    BatchUserAction,
    SettingsUpdate,
    SettingValue,
)
from app.services import audit
from app.services import auth as auth_service

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])

USER_SORT_FIELDS = ("username", "full_name", "role", "is_active", "created_at")
USER_SEARCH_FIELDS = ("username", "full_name", "email", "student_id")

LOG_TABLES = {
    "system": "system_logs",
    "operation": "operation_history",
    "login": "login_history",
}


def _get_user_or_404(helper: DatabaseHelper, user_id: int) -> dict:
    user = auth_service.get_user(helper, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _not_self(current_admin: SessionUser, user_id: int, message: str) -> None:
    if user_id == current_admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


# ---- 사용자 관리 ---------------------------------------------------------------

@router.get("/users")
def list_users(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, USER_SORT_FIELDS)
    search = get_search_params(request, USER_SEARCH_FIELDS)

    conditions = ["is_deleted = 0", search.clause]
    params = dict(search.params)
    if request.query_params.get("role"):
        conditions.append("role = :role")
        params["role"] = request.query_params["role"]
    if request.query_params.get("status") in ("active", "locked"):
        conditions.append("is_active = :is_active")
        params["is_active"] = 1 if request.query_params["status"] == "active" else 0
    where = build_where(conditions)

    total = helper.count("users", where, params)
    users = helper.all(
        f"SELECT {auth_service.USER_COLUMNS} FROM users {where} {sort.clause}, id ASC "
        "LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(users, page=pagination.page, limit=pagination.limit, total=total,
                     message="Users retrieved")


@router.get("/users/{user_id}")
def get_user(user_id: str, helper: DatabaseHelper = Depends(get_helper)):
    user_id = require_id(user_id, "user ID")
    user = _get_user_or_404(helper, user_id)
    user["recent_logins"] = helper.all(
        "SELECT ip_address, success, login_time FROM login_history "
        "WHERE user_id = :id ORDER BY login_time DESC, id DESC LIMIT 10",
        {"id": user_id},
    )
    return success(user)


@router.post("/users", status_code=201)
def create_user(
    data: AdminUserCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user = auth_service.create_user(
        helper,
        username=data.username,
        password=data.password,
        full_name=data.full_name,
        role=data.role.value,
        email=data.email,
        student_id=data.student_id,
        is_active=data.is_active,
    )
    audit.record_operation(
        helper, request,
        user_id=current_admin.id,
        operation_type="USER_CREATE",
        description=f"Created user {user['username']}",
        details={"role": user["role"]},
        target_id=user["id"],
        target_type="user",
    )
    return success(sanitize_data(user), "User created", status_code=201)


@router.put("/users/{user_id}")
def update_user(
    user_id: str,
    data: AdminUserUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user_id = require_id(user_id, "user ID")
    before = _get_user_or_404(helper, user_id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    if user_id == current_admin.id:
        if "role" in changes and changes["role"] != Role.ADMIN:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot change your own role")
        if changes.get("is_active") is False:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot lock your own account")

    auth_service.ensure_unique_user_fields(
        helper,
        username=changes.get("username"),
        student_id=changes.get("student_id"),
        exclude_id=user_id,
    )
    if "role" in changes:
        changes["role"] = changes["role"].value
    if "is_active" in changes:
        changes["is_active"] = 1 if changes["is_active"] else 0

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE users SET {set_clause} WHERE id = :id", {**params, "id": user_id})

    audit.record_operation(
        helper, request,
        user_id=current_admin.id,
        operation_type="USER_UPDATE",
        description=f"Updated user {before['username']}",
        details={"before": {k: before.get(k) for k in changes}, "after": changes},
        target_id=user_id,
        target_type="user",
    )
    return success(_get_user_or_404(helper, user_id), "User updated")


# 사용자 삭제 (Soft Delete, 본인 불가)
@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user_id = require_id(user_id, "user ID")
    _not_self(current_admin, user_id, "Cannot delete your own account")
    user = _get_user_or_404(helper, user_id)

    helper.run(
        """
        UPDATE users SET is_deleted = 1, is_active = 0, deleted_at = CURRENT_TIMESTAMP,
                         updated_at = CURRENT_TIMESTAMP
        WHERE id = :id
        """,
        {"id": user_id},
    )
    audit.record_operation(
        helper, request,
        user_id=current_admin.id,
        operation_type="USER_DELETE",
        description=f"Deleted user {user['username']}",
        target_id=user_id,
        target_type="user",
    )
    return success(None, "User deleted")


@router.post("/users/{user_id}/reset-password")
def reset_user_password(
    user_id: str,
    data: AdminPasswordReset,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user_id = require_id(user_id, "user ID")
    user = _get_user_or_404(helper, user_id)

    auth_service.set_password(helper, user_id, data.new_password)
    audit.record_operation(
        helper, request,
        user_id=current_admin.id,
        operation_type="USER_RESET_PASSWORD",
        description=f"Reset password for {user['username']}",
        target_id=user_id,
        target_type="user",
    )
    return success(None, "Password reset")


# 잠금 전환 (본인 불가)
@router.post("/users/{user_id}/toggle-lock")
def toggle_user_lock(
    user_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user_id = require_id(user_id, "user ID")
    _not_self(current_admin, user_id, "Cannot lock your own account")
    user = _get_user_or_404(helper, user_id)

    new_active = 0 if user["is_active"] else 1
    helper.run(
        "UPDATE users SET is_active = :is_active, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"is_active": new_active, "id": user_id},
    )
    action = "USER_UNLOCK" if new_active else "USER_LOCK"
    audit.record_operation(
        helper, request,
        user_id=current_admin.id,
        operation_type=action,
        description=f"{'Unlocked' if new_active else 'Locked'} user {user['username']}",
        target_id=user_id,
        target_type="user",
    )
    return success(
        {"id": user_id, "is_active": bool(new_active)},
        "User unlocked" if new_active else "User locked",
    )


"""
사용자 일괄 처리 API

- action: delete / lock / unlock
- 관리자 본인 ID는 대상에서 제외
- 전체를 하나의 트랜잭션으로 처리

"""

@router.post("/users/batch")
def batch_user_operation(
    data: BatchUserAction,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user_ids = sorted({uid for uid in data.user_ids if uid > 0 and uid != current_admin.id})
    if not user_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid users selected")

    statements = {
        "delete": "UPDATE users SET is_deleted = 1, is_active = 0, deleted_at = CURRENT_TIMESTAMP, "
                  "updated_at = CURRENT_TIMESTAMP WHERE id = :id AND is_deleted = 0",
        "lock": "UPDATE users SET is_active = 0, updated_at = CURRENT_TIMESTAMP WHERE id = :id AND is_deleted = 0",
        "unlock": "UPDATE users SET is_active = 1, updated_at = CURRENT_TIMESTAMP WHERE id = :id AND is_deleted = 0",
    }
    sql = statements[data.action]

    def _apply(tx: DatabaseHelper) -> int:
        affected = 0
        for uid in user_ids:
            affected += tx.run(sql, {"id": uid}).rows_affected
        audit.record_operation(
            tx, request,
            user_id=current_admin.id,
            operation_type=f"USER_BATCH_{data.action.upper()}",
            description=f"Batch {data.action} on {len(user_ids)} users",
            details={"user_ids": user_ids},
            target_type="user",
        )
        return affected

    affected = helper.transaction(_apply)
    return success({"action": data.action, "requested": len(user_ids), "affected": affected},
                   "Batch operation completed")


# ---- 통계 --------------------------------------------------------------------

@router.get("/stats/overview")
def system_stats(helper: DatabaseHelper = Depends(get_helper)):
    users = helper.get(
        """
        SELECT COUNT(*) AS total,
               COUNT(CASE WHEN is_active = 1 THEN 1 END) AS active,
               COUNT(CASE WHEN is_active = 0 THEN 1 END) AS locked
        FROM users WHERE is_deleted = 0
        """
    )
    roles = helper.all(
        "SELECT role, COUNT(*) AS count FROM users WHERE is_deleted = 0 GROUP BY role ORDER BY role"
    )
    finance = helper.get(
        """
        SELECT COUNT(*) AS records,
               COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0)
             - COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) AS balance
        FROM finance_records
        """
    )
    logins_today = helper.get(
        """
        SELECT COUNT(*) AS total, COUNT(CASE WHEN success = 0 THEN 1 END) AS failed
        FROM login_history WHERE date(login_time) = date('now')
        """
    )
    return success({
        "users": {**users, "by_role": roles},
        "finance": finance,
        "activities": helper.count("event_plans"),
        "documents": helper.count("secretary_documents"),
        "design_works": helper.count("design_works", "WHERE deleted_at IS NULL"),
        "pr_activities": helper.count("pr_activities", "WHERE deleted_at IS NULL"),
        "logins_today": logins_today,
    }, "System statistics retrieved")


# ---- 시스템 설정 ---------------------------------------------------------------

def _now() -> str:
    # CURRENT_TIMESTAMP 와 같은 형식 (UTC)
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _setting_row(row: dict) -> dict:
    return audit.decode_json_field(row, "value")


@router.get("/settings")
def get_settings(helper: DatabaseHelper = Depends(get_helper)):
    rows = helper.all("SELECT key, value, updated_at FROM system_settings ORDER BY key")
    return success({row["key"]: _setting_row(row)["value"] for row in rows})


@router.put("/settings")
def update_settings(
    data: SettingsUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    def _save(tx: DatabaseHelper) -> None:
        for key, value in data.settings.items():
            tx.upsert("system_settings", {"key": key, "value": json.dumps(value, ensure_ascii=False),
                                          "updated_at": _now()}, ["key"])

    helper.transaction(_save)
    audit.log_action(helper, request, "SETTINGS_UPDATE", "Updated system settings",
                     data={"keys": sorted(data.settings)}, module="admin")
    return success(data.settings, "Settings updated")


@router.get("/settings/{key}")
def get_setting(key: str, helper: DatabaseHelper = Depends(get_helper)):
    row = helper.get("SELECT key, value, updated_at FROM system_settings WHERE key = :key", {"key": key})
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return success(_setting_row(row))


@router.put("/settings/{key}")
def update_setting(
    key: str,
    data: SettingValue,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
):
    if not key or len(key) > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid setting key")

    helper.upsert(
        "system_settings",
        {"key": key, "value": json.dumps(data.value, ensure_ascii=False), "updated_at": _now()},
        ["key"],
    )
    audit.log_action(helper, request, "SETTING_UPDATE", f"Updated setting {key}", module="admin")
    return success({"key": key, "value": data.value}, "Setting updated")


# ---- 로그 --------------------------------------------------------------------

@router.get("/logs/operations")
def operation_logs(request: Request, helper: DatabaseHelper = Depends(get_helper)):
    pagination = get_pagination_params(request, default_limit=20)
    conditions, params = audit.operation_filters(request)
    where = build_where(conditions)

    total = helper.count("operation_history", where, params)
    rows = helper.all(
        f"{audit.OPERATION_SELECT} {where} ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated([audit.decode_json_field(r, "details") for r in rows],
                     page=pagination.page, limit=pagination.limit, total=total)


@router.get("/logs/system")
def system_logs(request: Request, helper: DatabaseHelper = Depends(get_helper)):
    pagination = get_pagination_params(request, default_limit=20)
    conditions, params = audit.system_log_filters(request)
    where = build_where(conditions)

    total = helper.count("system_logs", where, params)
    rows = helper.all(
        f"{audit.SYSTEM_LOG_SELECT} {where} ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated([audit.decode_json_field(r, "data") for r in rows],
                     page=pagination.page, limit=pagination.limit, total=total)


@router.get("/logs/logins")
def login_logs(request: Request, helper: DatabaseHelper = Depends(get_helper)):
    pagination = get_pagination_params(request, default_limit=20)
    conditions, params = audit.login_filters(request)
    where = build_where(conditions)

    total = helper.count("login_history", where, params)
    rows = helper.all(
        f"SELECT * FROM login_history {where} ORDER BY login_time DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(rows, page=pagination.page, limit=pagination.limit, total=total)


# 보존 기간(days)보다 오래된 로그 삭제 (log_type: system / operation / login / all)
@router.delete("/logs/cleanup")
def cleanup_logs(
    request: Request,
    days: int = Query(90, ge=1, le=3650),
    log_type: str = Query("all", pattern="^(system|operation|login|all)$"),
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    targets = LOG_TABLES.values() if log_type == "all" else [LOG_TABLES[log_type]]

    def _cleanup(tx: DatabaseHelper) -> dict:
        return {table: audit.cleanup_logs(tx, table, days) for table in targets}

    deleted = helper.transaction(_cleanup)
    audit.record_operation(
        helper, request,
        user_id=current_admin.id,
        operation_type="LOG_CLEANUP",
        description=f"Removed logs older than {days} days",
        details=deleted,
    )
    return success({"days": days, "deleted": deleted}, "Logs cleaned up")
