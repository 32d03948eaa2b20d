"""
services/audit.py

행위 기록(Audit) 서비스.

이 파일은 라우터에서 발생한 주요 행위를
system_logs / operation_history / login_history 테이블에 기록한다.

라우터에서 호출되며,
로그 기록 자체는 비즈니스 흐름에 개입하지 않는다.

설계 원칙:
- log_action 은 실패해도 예외를 올리지 않음 (경고 로그만 남김)
- record_operation / record_login 은 호출 측 트랜잭션과 함께 커밋됨
- data / details 는 JSON 문자열로 저장

"""

import json
import logging
from typing import Any

from fastapi import Request

from app.core.deps import client_ip, get_session_user
from app.db.helper import DatabaseHelper

logger = logging.getLogger(__name__)


def _user_agent(request: Request) -> str | None:
    ua = request.headers.get("user-agent")
    return ua[:255] if ua else None


def _to_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


"""
일반 행위 로그 기록 함수

- 세션 사용자 ID / IP / User-Agent 를 요청에서 추출
- 기록 실패 시 경고만 남기고 계속 진행

"""

def log_action(
    helper: DatabaseHelper,
    request: Request,
    action: str,
    description: str,
    data: Any = None,
    module: str | None = None,
    user_id: int | None = None,
) -> None:
    if user_id is None:
        session_user = get_session_user(request)
        user_id = session_user.id if session_user else None

    try:
        helper.run(
            """
            INSERT INTO system_logs (user_id, action, description, ip_address, user_agent, data, module)
            VALUES (:user_id, :action, :description, :ip_address, :user_agent, :data, :module)
            """,
            {
                "user_id": user_id,
                "action": action,
                "description": description,
                "ip_address": client_ip(request),
                "user_agent": _user_agent(request),
                "data": _to_json(data),
                "module": module,
            },
        )
    except Exception as e:
        logger.warning("Failed to write system log %s: %s", action, e)


"""
관리 작업 이력 기록 함수

- operation_type : USER_CREATE / USER_UPDATE / USER_DELETE ... 등
- target_id / target_type : 작업 대상 (선택)

"""

def record_operation(
    helper: DatabaseHelper,
    request: Request,
    *,
    user_id: int | None,
    operation_type: str,
    description: str | None = None,
    details: Any = None,
    target_id: int | None = None,
    target_type: str | None = None,
) -> int | None:
    result = helper.run(
        """
        INSERT INTO operation_history
            (user_id, operation_type, description, details, target_id, target_type, ip_address)
        VALUES
            (:user_id, :operation_type, :description, :details, :target_id, :target_type, :ip_address)
        """,
        {
            "user_id": user_id,
            "operation_type": operation_type,
            "description": description,
            "details": _to_json(details),
            "target_id": target_id,
            "target_type": target_type,
            "ip_address": client_ip(request),
        },
    )
    return result.last_insert_id


def record_login(
    helper: DatabaseHelper,
    request: Request,
    *,
    username: str,
    user_id: int | None,
    success: bool,
    fail_reason: str | None = None,
) -> None:
    try:
        helper.run(
            """
            INSERT INTO login_history (user_id, username, ip_address, user_agent, success, fail_reason)
            VALUES (:user_id, :username, :ip_address, :user_agent, :success, :fail_reason)
            """,
            {
                "user_id": user_id,
                "username": username[:50],
                "ip_address": client_ip(request),
                "user_agent": _user_agent(request),
                "success": 1 if success else 0,
                "fail_reason": fail_reason,
            },
        )
    except Exception as e:
        logger.warning("Failed to write login history for %s: %s", username, e)


# ---- 조회 / 정리 -----------------------------------------------------------------

# 보존 기간 정리 대상 테이블과 기준 시각 컬럼
RETENTION_COLUMNS = {
    "system_logs": "created_at",
    "operation_history": "created_at",
    "login_history": "login_time",
}


def cleanup_logs(helper: DatabaseHelper, table: str, days: int) -> int:
    """보존 기간(days)보다 오래된 로그 행을 삭제하고 삭제 건수를 반환."""
    column = RETENTION_COLUMNS[table]
    result = helper.run(
        f"DELETE FROM {table} WHERE {column} < datetime('now', :offset)",
        {"offset": f"-{int(days)} days"},
    )
    logger.info("Removed %d rows older than %d days from %s", result.rows_affected, days, table)
    return result.rows_affected


def _date_range(request: Request, column: str, conditions: list[str], params: dict) -> None:
    if request.query_params.get("startDate"):
        conditions.append(f"date({column}) >= :start_date")
        params["start_date"] = request.query_params["startDate"]
    if request.query_params.get("endDate"):
        conditions.append(f"date({column}) <= :end_date")
        params["end_date"] = request.query_params["endDate"]


def operation_filters(request: Request) -> tuple[list[str], dict]:
    conditions: list[str] = []
    params: dict = {}
    query = request.query_params
    if query.get("operation_type"):
        conditions.append("operation_type = :operation_type")
        params["operation_type"] = query["operation_type"]
    if query.get("target_type"):
        conditions.append("target_type = :target_type")
        params["target_type"] = query["target_type"]
    if query.get("user_id", "").isdigit():
        conditions.append("user_id = :user_id")
        params["user_id"] = int(query["user_id"])
    _date_range(request, "created_at", conditions, params)
    return conditions, params


def login_filters(request: Request) -> tuple[list[str], dict]:
    conditions: list[str] = []
    params: dict = {}
    query = request.query_params
    if query.get("success", "").lower() in ("true", "1"):
        conditions.append("success = 1")
    elif query.get("success", "").lower() in ("false", "0"):
        conditions.append("success = 0")
    if query.get("username"):
        conditions.append("username = :username")
        params["username"] = query["username"]
    _date_range(request, "login_time", conditions, params)
    return conditions, params


def system_log_filters(request: Request) -> tuple[list[str], dict]:
    conditions: list[str] = []
    params: dict = {}
    query = request.query_params
    if query.get("module"):
        conditions.append("module = :module")
        params["module"] = query["module"]
    if query.get("action"):
        conditions.append("action = :action")
        params["action"] = query["action"]
    if query.get("user_id", "").isdigit():
        conditions.append("user_id = :user_id")
        params["user_id"] = int(query["user_id"])
    _date_range(request, "created_at", conditions, params)
    return conditions, params


OPERATION_SELECT = """
    SELECT operation_history.*,
           (SELECT username FROM users WHERE users.id = operation_history.user_id) AS username,
           (SELECT full_name FROM users WHERE users.id = operation_history.user_id) AS full_name
    FROM operation_history
"""

SYSTEM_LOG_SELECT = """
    SELECT system_logs.*,
           (SELECT username FROM users WHERE users.id = system_logs.user_id) AS username
    FROM system_logs
"""


def decode_json_field(row: dict, field: str) -> dict:
    raw = row.get(field)
    if isinstance(raw, str):
        try:
            row[field] = json.loads(raw)
        except ValueError:
            pass
    return row
