"""
responses.py

공통 JSON 응답 포맷 헬퍼.

모든 API 응답은 아래 형식을 따른다.

- 성공: {success: true, message, data, timestamp}
- 실패: {success: false, message, errors?, timestamp}
- 목록: 성공 형식 + pagination {page, limit, total, totalPages}

"""

import math
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "success": True,
            "message": message,
            "data": data,
            "timestamp": _timestamp(),
        }),
    )


def error(message: str = "Request failed", status_code: int = 400, errors: Any = None, headers=None) -> JSONResponse:
    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "timestamp": _timestamp(),
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def paginated(data: Any, *, page: int, limit: int, total: int, message: str = "Query succeeded") -> JSONResponse:
    limit = limit or 10
    total = total or 0
    return JSONResponse(
        status_code=200,
        content=jsonable_encoder({
            "success": True,
            "message": message,
            "data": data,
            "pagination": {
                "page": page or 1,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
            "timestamp": _timestamp(),
        }),
    )
