"""
services/auth.py

사용자 계정 관련 공통 로직.

auth 라우터(로그인 / 가입 / 비밀번호)와 admin 라우터(사용자 관리)가
같은 규칙으로 사용자를 조회/생성하도록 한 곳에 모아둔다.

설계 원칙:
- 비밀번호 해시는 응답에 포함하지 않음 (USER_COLUMNS 에서 제외)
- 로그인 실패 사유는 외부에 구분하지 않음 (사용자 없음 / 비밀번호 불일치 동일 처리)
- username 은 삭제된 계정을 포함해 전체에서 고유

"""

from fastapi import HTTPException, status

from app.core.security import get_password_hash, verify_password
from app.db.helper import DatabaseHelper

USER_COLUMNS = "id, username, full_name, student_id, email, role, is_active, is_deleted, created_at, updated_at"


def get_user(helper: DatabaseHelper, user_id: int, include_deleted: bool = False) -> dict | None:
    sql = f"SELECT {USER_COLUMNS} FROM users WHERE id = :id"
    if not include_deleted:
        sql += " AND is_deleted = 0"
    return helper.get(sql, {"id": user_id})


"""
로그인 인증 함수

- 활성 상태이며 삭제되지 않은 사용자만 대상
- 인증 성공 시 password_hash 를 제외한 사용자 정보 반환
- 실패 시 None

"""

def authenticate(helper: DatabaseHelper, username: str, password: str) -> dict | None:
    row = helper.get(
        "SELECT * FROM users WHERE username = :username AND is_active = 1 AND is_deleted = 0",
        {"username": username},
    )
    if row is None or not verify_password(password, row["password_hash"]):
        return None
    row.pop("password_hash", None)
    return row


def ensure_unique_user_fields(
    helper: DatabaseHelper,
    *,
    username: str | None = None,
    student_id: str | None = None,
    exclude_id: int | None = None,
) -> None:
    params = {"exclude_id": exclude_id or 0}
    if username is not None:
        taken = helper.get(
            "SELECT id FROM users WHERE username = :username AND id != :exclude_id",
            {**params, "username": username},
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    if student_id:
        taken = helper.get(
            "SELECT id FROM users WHERE student_id = :student_id AND id != :exclude_id",
            {**params, "student_id": student_id},
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID already in use")


def create_user(
    helper: DatabaseHelper,
    *,
    username: str,
    password: str,
    full_name: str,
    role: str,
    email: str | None = None,
    student_id: str | None = None,
    is_active: bool = True,
) -> dict:
    ensure_unique_user_fields(helper, username=username, student_id=student_id)

    result = helper.run(
        """
        INSERT INTO users (username, password_hash, full_name, student_id, email, role, is_active)
        VALUES (:username, :password_hash, :full_name, :student_id, :email, :role, :is_active)
        """,
        {
            "username": username,
            "password_hash": get_password_hash(password),
            "full_name": full_name,
            "student_id": student_id,
            "email": email,
            "role": role,
            "is_active": 1 if is_active else 0,
        },
    )
    return get_user(helper, result.last_insert_id)


def set_password(helper: DatabaseHelper, user_id: int, new_password: str) -> bool:
    result = helper.run(
        "UPDATE users SET password_hash = :password_hash, updated_at = CURRENT_TIMESTAMP "
        "WHERE id = :id AND is_deleted = 0",
        {"password_hash": get_password_hash(new_password), "id": user_id},
    )
    return result.rows_affected > 0


def check_current_password(helper: DatabaseHelper, user_id: int, password: str) -> bool:
    row = helper.get("SELECT password_hash FROM users WHERE id = :id", {"id": user_id})
    return row is not None and verify_password(password, row["password_hash"])
