"""
main.py

학생회 관리 백엔드의 FastAPI 앱 조립 지점.

uvicorn app.main:app 으로 실행되며, 미들웨어 / 예외 처리기 / 라우터를
한 곳에서 등록한다.

주요 역할:
- 앱 인스턴스 생성 (lifespan: 로그 설정, 스키마 생성, 기본 관리자 계정)
- 세션 / CORS 미들웨어 설정
- 전역 예외 처리기 등록
- 부서별 라우터(auth, finance, activity, secretary, design, pr, admin, history)와 페이지 라우터 등록
- /health, /db-ping 상태 확인 엔드포인트

설계 원칙:
- 이 파일에는 조립 코드만 두고 기능은 routers / services 로 위임
- 미들웨어는 등록 역순으로 감싸므로 세션이 CORS 안쪽에서 동작

관련 파일:
- app.core.config        : 환경 변수 및 설정 로드
- app.core.errors        : 전역 예외 처리
- app.db.init_db         : 스키마 생성 / 초기 데이터
- app.routers.*          : 기능별 API 라우터

"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import settings
from app.core.deps import get_db
from app.core.errors import install_exception_handlers
from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import SessionLocal, engine
from app.routers import activity, admin, auth, design, finance, history, pages, pr, secretary

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db(engine, SessionLocal)
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.APP_ENV)
    yield
    engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 서명된 쿠키 세션 (httpOnly, 응답마다 만료 시각 갱신)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    same_site=settings.COOKIE_SAMESITE,
    https_only=settings.COOKIE_SECURE,
)

install_exception_handlers(app)

app.include_router(auth.router)
app.include_router(finance.router)
app.include_router(activity.router)
app.include_router(secretary.router)
app.include_router(design.router)
app.include_router(pr.router)
app.include_router(admin.router)
app.include_router(history.router)
app.include_router(pages.router)

# 프로세스 생존 확인 (DB 접속 없음)
@app.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME}


# DB 연결 확인: 프로세스는 살아 있으나 DB 접속이 안 되는 상황을 구분
@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    value = db.execute(text("SELECT 1")).scalar_one()
    return {"db": "ok", "value": value, "dialect": engine.dialect.name}


# python -m app.main 으로 직접 실행할 때의 진입점
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.is_development)
