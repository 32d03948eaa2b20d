"""
query.py

목록 API 공통 쿼리 파라미터 헬퍼.

모든 부서 라우터의 목록 엔드포인트가 동일한 규칙으로
페이지네이션 / 정렬 / 검색 조건을 만들도록 한 곳에 모아둔다.

주요 기능:
- get_pagination_params : page / limit / offset 계산 (limit 최대 100)
- get_sort_params       : 허용된 컬럼 / 방향만 정렬에 사용
- get_search_params     : LIKE 검색 조건(OR) 및 바인딩 값 생성
- validate_id           : 경로 파라미터 ID 검증 (양의 정수)
- sanitize_data         : 응답에서 민감 필드 제거

설계 원칙:
- 정렬/검색 컬럼명은 SQL에 직접 들어가므로 반드시 화이트리스트로 제한
- 검색어는 항상 바인딩 파라미터(:search)로 전달
- 잘못된 값은 오류 대신 기본값으로 대체

"""

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from fastapi import HTTPException, Request, status

from app.db.helper import check_identifier

MAX_LIMIT = 100

DEFAULT_SENSITIVE_FIELDS = ("password", "password_hash", "session_id")


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    offset: int


@dataclass(frozen=True)
class Sort:
    field: str
    order: str

    @property
    def clause(self) -> str:
        return f"ORDER BY {self.field} {self.order}"


@dataclass(frozen=True)
class Search:
    conditions: list[str]
    params: dict[str, Any]

    @property
    def clause(self) -> str:
        """WHERE 절에 AND로 붙일 수 있는 '(a LIKE :search OR b LIKE :search)' 형태."""
        if not self.conditions:
            return ""
        return "(" + " OR ".join(self.conditions) + ")"


def _to_int(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


"""
페이지네이션 파라미터

- page, limit 가 없거나 숫자가 아니거나 0이면 기본값 사용
- page 는 최소 1, limit 는 1 ~ 100 범위로 보정

"""

def get_pagination_params(request: Request, default_page: int = 1, default_limit: int = 10) -> Pagination:
    page = _to_int(request.query_params.get("page")) or default_page
    limit = _to_int(request.query_params.get("limit")) or default_limit

    page = max(1, page)
    limit = min(MAX_LIMIT, max(1, limit))

    return Pagination(page=page, limit=limit, offset=(page - 1) * limit)


def get_sort_params(
    request: Request,
    allowed_fields: Sequence[str],
    default_field: str = "created_at",
    default_order: str = "DESC",
) -> Sort:
    sort_by = request.query_params.get("sortBy") or default_field
    sort_order = (request.query_params.get("sortOrder") or default_order).upper()

    field = sort_by if sort_by in allowed_fields else default_field
    order = sort_order if sort_order in ("ASC", "DESC") else default_order.upper()

    return Sort(field=field, order=order)


def get_search_params(request: Request, searchable_fields: Sequence[str]) -> Search:
    term = (request.query_params.get("search") or "").strip()
    search_field = request.query_params.get("searchField")

    if not term:
        return Search(conditions=[], params={})

    params = {"search": f"%{term}%"}

    if search_field and search_field in searchable_fields:
        return Search(conditions=[f"{search_field} LIKE :search"], params=params)

    return Search(conditions=[f"{field} LIKE :search" for field in searchable_fields], params=params)


def validate_id(value: Any) -> int | None:
    parsed = _to_int(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed


def sanitize_data(data: Any, sensitive_fields: Iterable[str] = DEFAULT_SENSITIVE_FIELDS) -> Any:
    fields = frozenset(sensitive_fields)
    if isinstance(data, list):
        return [sanitize_data(item, fields) for item in data]
    if isinstance(data, dict):
        return {
            key: sanitize_data(value, fields)
            for key, value in data.items()
            if key not in fields
        }
    return data


def build_where(conditions: Iterable[str]) -> str:
    conditions = [c for c in conditions if c]
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)


def build_set_clause(data: dict[str, Any], touch_updated_at: bool = True) -> tuple[str, dict[str, Any]]:
    """
    UPDATE 문의 SET 절 생성.

    data 의 key 는 pydantic 스키마 필드명(코드에 고정된 이름)만 전달한다.
    """
    assignments = [f"{check_identifier(key)} = :{key}" for key in data]
    if touch_updated_at:
        assignments.append("updated_at = CURRENT_TIMESTAMP")
    return ", ".join(assignments), dict(data)


def require_id(value: Any, label: str = "ID") -> int:
    parsed = validate_id(value)
    if parsed is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}")
    return parsed
