"""
guards.py

요청 남용 방지 의존성.

- prevent_duplicate_submission : 같은 사용자가 같은 경로로 3초 안에
  다시 제출하면 429. 생성 핸들러 본문 첫 줄에서 호출하므로
  로그인 / 역할 / 본문 검증을 통과한 요청만 창을 소비
- rate_limit(max, window)       : IP별 슬라이딩 윈도우 요청 제한, 초과 시 429
  (IP는 deps.client_ip: 신뢰 프록시가 아니면 소켓 주소)

설계 원칙:
- 상태는 프로세스 메모리에 보관 (단일 인스턴스 배포 전제)
- 스레드풀에서 동시에 호출되므로 Lock으로 보호
- 만료된 항목은 조회 시점에 정리

"""

import threading
import time
from collections import deque

from fastapi import HTTPException, Request, status

from app.core.config import settings
from app.core.deps import SessionUser, client_ip


class SubmissionGuard:
    def __init__(self, window_seconds: float):
        self.window_seconds = window_seconds
        self._last_seen: dict[tuple, float] = {}
        self._lock = threading.Lock()

    def hit(self, key: tuple, now: float | None = None) -> bool:
        """True면 통과, False면 중복 제출."""
        now = time.monotonic() if now is None else now
        with self._lock:
            self._purge(now)
            last = self._last_seen.get(key)
            if last is not None and now - last < self.window_seconds:
                return False
            self._last_seen[key] = now
            return True

    def _purge(self, now: float) -> None:
        expired = [k for k, t in self._last_seen.items() if now - t >= self.window_seconds]
        for k in expired:
            del self._last_seen[k]

    def clear(self) -> None:
        with self._lock:
            self._last_seen.clear()


class RateLimiter:
    def __init__(self, max_requests: int, window_seconds: float):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, deque] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def clear(self) -> None:
        with self._lock:
            self._hits.clear()


submission_guard = SubmissionGuard(settings.DUPLICATE_SUBMISSION_WINDOW_SECONDS)

_rate_limiters: list[RateLimiter] = []


def prevent_duplicate_submission(request: Request, user: SessionUser) -> None:
    key = (
        user.id,
        client_ip(request),
        request.method,
        request.url.path,
    )
    if not submission_guard.hit(key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Duplicate submission, please wait a moment and try again",
        )


def rate_limit(max_requests: int, window_seconds: float):
    limiter = RateLimiter(max_requests, window_seconds)
    _rate_limiters.append(limiter)

    def _checker(request: Request) -> None:
        if not limiter.hit(client_ip(request)):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests, please try again later",
            )

    return _checker


def reset_guards() -> None:
    submission_guard.clear()
    for limiter in _rate_limiters:
        limiter.clear()
