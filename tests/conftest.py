import os

# 앱 import 전에 테스트용 설정 주입 (메모리 SQLite, 고정 세션 키)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from app.main import app as fastapi_app
from app.core.guards import reset_guards
from app.db.base import Base
from app.db.init_db import create_schema, seed_admin
from app.db.session import SessionLocal, engine

# ✅ 모델 import (Base.metadata에 테이블 등록)
import app.models  # noqa: F401


@pytest.fixture(autouse=True)
def clean_tables():
    """각 테스트마다 데이터 초기화 (테이블은 유지, row만 삭제) + 기본 admin 재생성"""
    create_schema(engine)
    with engine.begin() as conn:
        # FK 의존성 때문에 자식 테이블부터 삭제
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())

    session = SessionLocal()
    try:
        seed_admin(session)
    finally:
        session.close()

    reset_guards()
    yield
    reset_guards()


@pytest.fixture()
def client():
    with TestClient(fastapi_app) as c:
        yield c
