"""
errors.py

전역 예외 타입 및 예외 처리기(Exception Handler) 모음.

주요 역할:
- DB 계층 오류를 DatabaseError로 통일
- HTTPException / 검증 오류 / DB 오류 / 기타 예외를
  공통 JSON 응답 형식({success, message, errors?, timestamp})으로 변환
- API 요청이 아닌 페이지 요청은 로그인 페이지로 리다이렉트하거나
  간단한 HTML 오류 페이지를 반환

분류 규칙:
- RequestValidationError        : 400
- DatabaseError(SQLITE_CONSTRAINT) / IntegrityError : 400
- FileNotFoundError             : 404
- ConnectionRefusedError        : 503
- 그 외 예외                    : 500 (traceback 로그)

관련 파일:
- app.main               : install_exception_handlers 호출
- app.db.helper          : DatabaseError 발생
- app.core.responses     : 응답 포맷

"""

import html
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.responses import error

logger = logging.getLogger(__name__)

CONSTRAINT_CODE = "SQLITE_CONSTRAINT"


class DatabaseError(Exception):
    """DB 드라이버 오류 (문법 오류, 제약 조건 위반, 잠금 등)."""

    def __init__(self, message: str, *, code: str = "SQLITE_ERROR", original: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.original = original

    @property
    def is_constraint(self) -> bool:
        return self.code == CONSTRAINT_CODE


def wants_json(request: Request) -> bool:
    """API 요청 판별 (URL prefix / Accept / Content-Type / XHR 헤더 기준)."""
    if request.url.path.startswith("/api/"):
        return True
    accept = request.headers.get("accept", "")
    content_type = request.headers.get("content-type", "")
    if "json" in accept or "json" in content_type:
        return True
    return request.headers.get("x-requested-with", "").lower() == "xmlhttprequest"


def _error_page(status_code: int, message: str) -> HTMLResponse:
    body = (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{status_code} - {html.escape(settings.APP_NAME)}</title></head>"
        f"<body><h1>{status_code}</h1><p>{html.escape(message)}</p>"
        "<p><a href=\"/dashboard\">Back to dashboard</a></p></body></html>"
    )
    return HTMLResponse(body, status_code=status_code)


def _respond(request: Request, status_code: int, message: str, errors=None, headers=None):
    if wants_json(request):
        return error(message, status_code, errors, headers=headers)
    if status_code == 401:
        return RedirectResponse("/login", status_code=302)
    return _error_page(status_code, message)


def _debug_details(exc: Exception) -> dict | None:
    if not settings.is_development:
        return None
    return {"name": type(exc).__name__, "message": str(exc)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _respond(request, exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return _respond(request, 400, "Validation failed", errors)


async def database_exception_handler(request: Request, exc: DatabaseError):
    if exc.is_constraint:
        return _respond(request, 400, "Data constraint violated", _debug_details(exc))
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc.message)
    return _respond(request, 500, "Database error", _debug_details(exc))


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    return _respond(request, 400, "Data constraint violated", _debug_details(exc))


async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    return _respond(request, 404, "File not found")


async def connection_refused_handler(request: Request, exc: ConnectionRefusedError):
    logger.error("Upstream connection refused on %s %s", request.method, request.url.path)
    return _respond(request, 503, "Service temporarily unavailable")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _respond(request, 500, "Internal server error", _debug_details(exc))


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DatabaseError, database_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(FileNotFoundError, file_not_found_handler)
    app.add_exception_handler(ConnectionRefusedError, connection_refused_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
