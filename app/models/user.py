"""
user.py

사용자(User) 및 권한(Role) 모델 정의 파일.

이 파일은 학생회 구성원의 기본 정보와
부서 권한(Role), 활성 상태, 탈퇴 상태(Soft Delete)를 관리한다.

모든 인증, 권한, 부서별 기능, 관리자 기능의 기준이 되는 핵심 모델이다.

"""

import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base



"""
사용자 권한(Role) 정의

- ADMIN      : 관리자 (모든 부서 접근)
- FINANCE    : 재무부
- SECRETARY  : 사무국
- ACTIVITY   : 활동부
- DESIGN     : 디자인부
- PR         : 홍보부
- USER       : 일반 구성원

"""

class Role(str, Enum):
    ADMIN = "admin"
    FINANCE = "finance"
    SECRETARY = "secretary"
    ACTIVITY = "activity"
    DESIGN = "design"
    PR = "pr"
    USER = "user"


# 로그인 성공 후 역할별 이동 페이지
ROLE_LANDING_PAGES = {
    Role.ADMIN: "/admin",
    Role.FINANCE: "/finance",
    Role.SECRETARY: "/secretary",
    Role.ACTIVITY: "/activity",
    Role.DESIGN: "/design",
    Role.PR: "/pr",
    Role.USER: "/dashboard",
}


def landing_page_for(role: str) -> str:
    try:
        return ROLE_LANDING_PAGES[Role(role)]
    except ValueError:
        return "/dashboard"



"""
사용자(User) 모델

- username 은 로그인 식별자 (고유)
- student_id 는 학번 (선택, 고유)
- role을 통해 부서별 접근 권한 제어
- is_active=False 이면 로그인 불가 (관리자 잠금)
- is_deleted / deleted_at 으로 Soft Delete 지원

"""

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    student_id: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    role: Mapped[str] = mapped_column(String(20), nullable=False, server_default=Role.USER.value)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("1"))
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("0"), index=True)
    deleted_at: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
