"""
deps.py

FastAPI 의존성(Dependency) 모음.

주요 기능:
- get_db / get_helper      : 요청 단위 DB 세션과 DatabaseHelper 주입
- is_authenticated         : 세션 로그인 여부 확인 (401)
- is_user_active           : 매 요청마다 사용자 상태 재확인 (403, 세션 정리)
- get_current_user         : 로그인 + 활성 사용자
- require_role             : 허용된 역할만 통과 (403)
- get_current_admin        : 관리자 전용
- ensure_owner_or_admin    : 작성자 본인 또는 관리자만 수정/삭제 허용

설계 원칙:
- 세션에는 최소 정보(id, username, role, full_name)만 저장
- 역할 변경/잠금/삭제가 즉시 반영되도록 세션 값을 신뢰하지 않고 DB를 다시 조회
- 401 은 JSON 클라이언트에는 JSON, 페이지 요청에는 /login 리다이렉트
  (변환은 app.core.errors 의 전역 처리기가 담당)

관련 파일:
- app.core.errors        : 401/403 응답 변환
- app.db.helper          : DatabaseHelper
- app.models.user        : Role

"""

from dataclasses import asdict, dataclass
from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.helper import DatabaseHelper
from app.db.session import SessionLocal
from app.models.user import Role, landing_page_for

SESSION_USER_KEY = "user"


@dataclass
class SessionUser:
    id: int
    username: str
    role: str
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def to_dict(self) -> dict:
        return asdict(self)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_helper(db: Session = Depends(get_db)) -> DatabaseHelper:
    return DatabaseHelper(db)


def client_ip(request: Request) -> str:
    host = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and host in settings.TRUSTED_PROXIES:
        return forwarded.split(",")[0].strip()
    return host


def login_session(request: Request, user: dict) -> SessionUser:
    session_user = SessionUser(
        id=user["id"],
        username=user["username"],
        role=user["role"],
        full_name=user.get("full_name"),
    )
    request.session.clear()
    request.session[SESSION_USER_KEY] = session_user.to_dict()
    return session_user


def get_session_user(request: Request) -> SessionUser | None:
    data = request.session.get(SESSION_USER_KEY)
    if not data or not data.get("id"):
        return None
    try:
        return SessionUser(**data)
    except TypeError:
        request.session.clear()
        return None


def is_authenticated(request: Request) -> SessionUser:
    user = get_session_user(request)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in first",
        )
    return user


"""
활성 사용자 확인

- 세션의 사용자 ID로 users 행을 다시 조회
- 사용자 없음 / 삭제됨 / 비활성(잠금) 이면 세션을 정리하고 403
- 역할(role)이나 이름이 바뀐 경우 세션 값을 최신으로 갱신

"""

def is_user_active(
    request: Request,
    session_user: SessionUser = Depends(is_authenticated),
    helper: DatabaseHelper = Depends(get_helper),
) -> SessionUser:
    row = helper.get(
        "SELECT id, username, role, full_name, is_active, is_deleted FROM users WHERE id = :id",
        {"id": session_user.id},
    )
    if row is None or row["is_deleted"] or not row["is_active"]:
        request.session.clear()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled or no longer exists",
        )

    if row["role"] != session_user.role or row["full_name"] != session_user.full_name:
        session_user = login_session(request, row)

    return session_user


def get_current_user(user: SessionUser = Depends(is_user_active)) -> SessionUser:
    return user


def require_role(*roles: Role | str):
    allowed = {r.value if isinstance(r, Role) else r for r in roles}

    def _checker(current_user: SessionUser = Depends(get_current_user)) -> SessionUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action",
            )
        return current_user

    return _checker


get_current_admin = require_role(Role.ADMIN)


def ensure_owner_or_admin(user: SessionUser, owner_id: int | None) -> None:
    if user.is_admin:
        return
    if owner_id is None or int(owner_id) != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator or an administrator can modify this record",
        )


def redirect_if_authenticated(request: Request) -> RedirectResponse | None:
    user = get_session_user(request)
    if user is None:
        return None
    return RedirectResponse(landing_page_for(user.role), status_code=302)
