"""

init_db.py

스키마 생성 및 초기 데이터(Seed) 작성.

- 애플리케이션 시작(lifespan) 시 한 번 호출
- Base.metadata.create_all 로 모든 테이블 생성 (이미 있으면 건너뜀)
- users 테이블이 비어 있으면 기본 관리자 계정 생성

관련 파일:
- app.main               : lifespan에서 init_db 호출
- app.models             : 테이블 등록
- scripts.create_admin   : 관리자 계정 수동 생성/재설정

"""

import logging

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

import app.models  # noqa: F401
from app.core.config import settings
from app.core.security import get_password_hash
from app.db.base import Base
from app.models.user import Role, User

logger = logging.getLogger(__name__)


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


def seed_admin(db: Session) -> User | None:
    user_count = db.scalar(select(func.count()).select_from(User))
    if user_count:
        return None

    admin = User(
        username=settings.SEED_ADMIN_USERNAME,
        password_hash=get_password_hash(settings.SEED_ADMIN_PASSWORD),
        full_name=settings.SEED_ADMIN_FULL_NAME,
        role=Role.ADMIN.value,
        is_active=True,
        is_deleted=False,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.warning(
        "Seeded default admin account '%s'; change its password after first login",
        admin.username,
    )
    return admin


def init_db(engine: Engine, session_factory) -> None:
    create_schema(engine)
    db = session_factory()
    try:
        seed_admin(db)
    finally:
        db.close()
