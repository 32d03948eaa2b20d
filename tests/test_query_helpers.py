"""

목록 공통 쿼리 헬퍼 단위 테스트.
- 페이지네이션 보정(page 최소 1, limit 최대 100), 정렬 화이트리스트,
  검색 조건 생성, ID 검증, 민감 필드 제거를 검증한다.

"""

from urllib.parse import urlencode

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app.core.query import (
    build_set_clause,
    build_where,
    get_pagination_params,
    get_search_params,
    get_sort_params,
    require_id,
    sanitize_data,
    validate_id,
)


def make_request(**query) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [],
        "query_string": urlencode(query).encode(),
    })


def test_pagination_defaults():
    p = get_pagination_params(make_request())
    assert (p.page, p.limit, p.offset) == (1, 10, 0)


def test_pagination_clamps_limit_and_page():
    p = get_pagination_params(make_request(page="0", limit="500"))
    assert p.page == 1
    assert p.limit == 100

    p = get_pagination_params(make_request(page="3", limit="20"))
    assert p.offset == 40


def test_pagination_ignores_garbage():
    p = get_pagination_params(make_request(page="abc", limit="-5"))
    assert p.page == 1
    assert p.limit == 1


def test_sort_whitelist():
    s = get_sort_params(make_request(sortBy="password_hash; DROP TABLE users", sortOrder="asc"), ["title"])
    assert s.field == "created_at"
    assert s.order == "ASC"

    s = get_sort_params(make_request(sortBy="title", sortOrder="sideways"), ["title"])
    assert s.clause == "ORDER BY title DESC"

    s = get_sort_params(make_request(sortOrder="sideways"), ["name"], default_field="name", default_order="ASC")
    assert s.clause == "ORDER BY name ASC"


def test_search_all_fields_and_single_field():
    s = get_search_params(make_request(search="  fee "), ["title", "notes"])
    assert s.clause == "(title LIKE :search OR notes LIKE :search)"
    assert s.params == {"search": "%fee%"}

    s = get_search_params(make_request(search="fee", searchField="notes"), ["title", "notes"])
    assert s.conditions == ["notes LIKE :search"]

    s = get_search_params(make_request(search="fee", searchField="secret"), ["title"])
    assert s.conditions == ["title LIKE :search"]


def test_search_empty_term():
    s = get_search_params(make_request(search="   "), ["title"])
    assert s.clause == ""
    assert s.params == {}


@pytest.mark.parametrize("value, expected", [
    ("42", 42), (7, 7), ("0", None), ("-3", None), ("abc", None), (None, None), ("", None),
    ("42abc", None), ("1.5", None),
])
def test_validate_id(value, expected):
    assert validate_id(value) == expected


def test_require_id_raises_400():
    with pytest.raises(HTTPException) as exc:
        require_id("abc", "record ID")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid record ID"


def test_sanitize_data_nested():
    data = [{"id": 1, "password_hash": "x", "profile": {"password": "y", "name": "n"}}]
    assert sanitize_data(data) == [{"id": 1, "profile": {"name": "n"}}]
    assert sanitize_data({"token": "t", "a": 1}, ["token"]) == {"a": 1}
    assert sanitize_data("plain") == "plain"


def test_build_where_skips_empty_conditions():
    assert build_where([]) == ""
    assert build_where(["", "a = :a"]) == "WHERE a = :a"
    assert build_where(["a = :a", "b = :b"]) == "WHERE a = :a AND b = :b"


def test_build_set_clause_touches_updated_at():
    clause, params = build_set_clause({"title": "t", "amount": 3})
    assert clause == "title = :title, amount = :amount, updated_at = CURRENT_TIMESTAMP"
    assert params == {"title": "t", "amount": 3}

    with pytest.raises(ValueError):
        build_set_clause({"title = 1; --": "x"})
