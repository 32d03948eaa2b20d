"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

이 파일은 .env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
애플리케이션 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보 (기본값: SQLite 파일)
- 세션 쿠키 시크릿 및 만료 정책
- 쿠키 보안 옵션
- 중복 제출 / 요청 빈도 제한 정책
- 문서 공유 링크 서명 키
- 로그 레벨 및 로그 파일

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- 로컬 / 테스트 / 운영 환경을 .env로 분리하여 관리
- 실제로 사용하는 설정만 정의 (사용되지 않는 캐시/보안 설정은 두지 않음)

관련 파일:
- app.main               : 세션 / CORS 미들웨어 설정
- app.core.security      : 공유 토큰 시크릿 / 만료 설정 사용
- app.core.guards        : 중복 제출 / 요청 제한 설정 사용
- app.db.session         : DATABASE_URL 사용

"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


# .env 파일에 정의된 환경 변수를 로드하는 설정 클래스
# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "SCU DS Student Association"
    APP_ENV: str = "development"
    PORT: int = 3000

    DATABASE_URL: str = "sqlite:///./database/scu_ds.db"

    # 세션 쿠키 서명 키 (필수)
    SESSION_SECRET: str
    SESSION_COOKIE_NAME: str = "scuds.sid"
    SESSION_MAX_AGE: int = 24 * 60 * 60

    # 쿠키/배포 옵션
    # - COOKIE_SECURE: HTTPS 환경에서만 True 권장
    # - COOKIE_SAMESITE: CSRF 완화를 위해 "lax" 기본값
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # 문서 공유 링크 (JWT)
    SHARE_TOKEN_SECRET: str | None = None
    SHARE_TOKEN_ALGORITHM: str = "HS256"
    SHARE_TOKEN_EXPIRE_DAYS: int = 7

    # /api/auth 요청 제한: 15분에 20회
    AUTH_RATE_LIMIT_MAX: int = 20
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # X-Forwarded-For 는 이 목록의 프록시에서 온 요청일 때만 신뢰
    TRUSTED_PROXIES: List[str] = []

    DUPLICATE_SUBMISSION_WINDOW_SECONDS: float = 3.0

    # 최초 실행 시 users 테이블이 비어 있으면 생성되는 관리자 계정
    SEED_ADMIN_USERNAME: str = "admin"
    SEED_ADMIN_PASSWORD: str = "admin123"
    SEED_ADMIN_FULL_NAME: str = "System Administrator"

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def share_secret(self) -> str:
        # 별도 키가 없으면 세션 키를 재사용
        return self.SHARE_TOKEN_SECRET or self.SESSION_SECRET


# 애플리케이션 전역에서 import하여 사용하는 Settings 인스턴스
# 실행 시 한 번만 생성됨
settings = Settings()
