"""
security.py

비밀번호 해싱 및 문서 공유 토큰 생성/검증을 담당하는 보안 유틸리티 모음.

이 파일은 인증(auth) 로직에서 사용하는
저수준(low-level) 보안 기능만을 제공하며,
라우터나 비즈니스 로직은 포함하지 않는다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt)
- 문서 공유 링크용 JWT 생성
- 공유 토큰 디코딩 및 검증

설계 원칙:
- 평문 비밀번호는 어디에도 저장하지 않음
- 로그인 상태는 세션 쿠키로 관리하고, JWT는 공유 링크에만 사용
- 시간 기반(exp) 만료는 UTC 기준으로 처리

관련 파일:
- app.core.config        : 공유 토큰 시크릿 및 만료 설정
- app.routers.auth       : 로그인 / 비밀번호 변경 API
- app.routers.secretary  : 문서 공유 API

"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings


# bcrypt 기반 비밀번호 해싱 컨텍스트
# deprecated="auto"로 향후 알고리즘 교체 가능하도록 설정

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SHARE_TOKEN_TYPE = "document_share"


"""
비밀번호 해싱 함수

- 평문 비밀번호를 bcrypt 해시로 변환
- DB에는 해시 값만 저장

"""

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


"""
비밀번호 검증 함수

- 사용자가 입력한 평문 비밀번호와
  DB에 저장된 해시 값을 비교
- 해시 형식이 잘못된 경우에도 False 반환

"""

def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


"""
문서 공유 토큰 생성 함수

- sub: 공유 대상 문서 ID
- perm: 공유 권한 (read / edit)
- by: 공유를 생성한 사용자 ID
- exp: 만료 시각 (기본 7일)

"""

def create_share_token(
    document_id: int,
    *,
    permissions: str,
    shared_by: int,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.SHARE_TOKEN_EXPIRE_DAYS))
    payload = {
        "sub": str(document_id),
        "type": SHARE_TOKEN_TYPE,
        "perm": permissions,
        "by": shared_by,
        "exp": int(expire.timestamp()),
    }
    token = jwt.encode(payload, settings.share_secret, algorithm=settings.SHARE_TOKEN_ALGORITHM)
    return token, expire


"""
공유 토큰 디코딩 및 검증 함수

- 서명 / 만료 / 토큰 타입 확인
- (문서 ID, 권한) 반환
- 유효하지 않을 경우 JWTError 발생

"""

def decode_share_token(token: str) -> tuple[int, str]:
    payload = jwt.decode(token, settings.share_secret, algorithms=[settings.SHARE_TOKEN_ALGORITHM])
    if payload.get("type") != SHARE_TOKEN_TYPE:
        raise JWTError("Not a share token")
    try:
        document_id = int(payload["sub"])
    except (KeyError, ValueError):
        raise JWTError("Invalid subject")
    return document_id, payload.get("perm", "read")
