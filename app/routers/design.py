"""
design.py

디자인부(Design) 작업물 API.

- 작업물 목록 / 조회 : admin / design / secretary
- 작업물 생성 / 수정 / 삭제 / 공개 전환 : admin / design (작성자 본인 또는 관리자)
- 삭제는 deleted_at 을 기록하는 Soft Delete
- tags 는 JSON 배열 문자열로 저장하고 응답 시 리스트로 변환

"""

import json

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.deps import SessionUser, ensure_owner_or_admin, get_current_user, get_helper, require_role
from app.core.guards import prevent_duplicate_submission
from app.core.query import (
    build_set_clause,
    build_where,
    get_pagination_params,
    get_search_params,
    get_sort_params,
    require_id,
)
from app.core.responses import paginated, success
from app.db.helper import DatabaseHelper
from app.models.user import Role
from app.schemas.design import DesignWorkCreate, DesignWorkUpdate
from app.services.audit import log_action

router = APIRouter(prefix="/api/design", tags=["design"])

read_access = require_role(Role.ADMIN, Role.DESIGN, Role.SECRETARY)
write_access = require_role(Role.ADMIN, Role.DESIGN)

SORT_FIELDS = ("title", "category", "status", "created_at", "updated_at")
SEARCH_FIELDS = ("title", "description", "category", "tags")

WORK_SELECT = """
    SELECT design_works.*,
           (SELECT full_name FROM users WHERE users.id = design_works.created_by) AS creator_name
    FROM design_works
"""


def _decode_tags(work: dict) -> dict:
    raw = work.get("tags")
    try:
        work["tags"] = json.loads(raw) if raw else []
    except ValueError:
        work["tags"] = [raw]
    return work


def _get_work_or_404(helper: DatabaseHelper, work_id: int) -> dict:
    work = helper.get(
        f"{WORK_SELECT} WHERE design_works.id = :id AND design_works.deleted_at IS NULL",
        {"id": work_id},
    )
    if work is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Design work not found")
    return _decode_tags(work)


@router.get("/works")
def list_works(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, SORT_FIELDS)
    search = get_search_params(request, SEARCH_FIELDS)

    conditions = ["deleted_at IS NULL", search.clause]
    params = dict(search.params)
    for key in ("category", "status"):
        if request.query_params.get(key):
            conditions.append(f"{key} = :{key}")
            params[key] = request.query_params[key]
    where = build_where(conditions)

    total = helper.count("design_works", where, params)
    works = helper.all(
        f"{WORK_SELECT} {where} {sort.clause}, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated([_decode_tags(w) for w in works], page=pagination.page, limit=pagination.limit,
                     total=total, message="Design works retrieved")


@router.get("/categories")
def list_categories(
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    rows = helper.all(
        """
        SELECT category, COUNT(*) AS count
        FROM design_works
        WHERE deleted_at IS NULL AND category IS NOT NULL AND category != ''
        GROUP BY category
        ORDER BY category
        """
    )
    return success(rows)


@router.get("/works/{work_id}")
def get_work(
    work_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(read_access),
):
    return success(_get_work_or_404(helper, require_id(work_id, "work ID")))


@router.post("/works", status_code=201)
def create_work(
    data: DesignWorkCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO design_works (title, description, category, tags, file_path, status, created_by)
        VALUES (:title, :description, :category, :tags, :file_path, :status, :created_by)
        """,
        {
            **data.model_dump(),
            "tags": json.dumps(data.tags, ensure_ascii=False) if data.tags else None,
            "created_by": current_user.id,
        },
    )
    work = _get_work_or_404(helper, result.last_insert_id)
    log_action(helper, request, "DESIGN_CREATE", f"Created design work: {data.title}",
               data={"work_id": work["id"]}, module="design")
    return success(work, "Design work created", status_code=201)


@router.put("/works/{work_id}")
def update_work(
    work_id: str,
    data: DesignWorkUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    work_id = require_id(work_id, "work ID")
    work = _get_work_or_404(helper, work_id)
    ensure_owner_or_admin(current_user, work["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if "tags" in changes:
        changes["tags"] = json.dumps(changes["tags"], ensure_ascii=False)

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE design_works SET {set_clause} WHERE id = :id", {**params, "id": work_id})
    log_action(helper, request, "DESIGN_UPDATE", f"Updated design work {work_id}",
               data=changes, module="design")
    return success(_get_work_or_404(helper, work_id), "Design work updated")


@router.delete("/works/{work_id}")
def delete_work(
    work_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    work_id = require_id(work_id, "work ID")
    work = _get_work_or_404(helper, work_id)
    ensure_owner_or_admin(current_user, work["created_by"])

    helper.run(
        "UPDATE design_works SET deleted_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"id": work_id},
    )
    log_action(helper, request, "DESIGN_DELETE", f"Deleted design work: {work['title']}",
               data={"work_id": work_id}, module="design")
    return success(None, "Design work deleted")


# 공개 상태 전환 (draft <-> published)
@router.post("/works/{work_id}/publish")
def toggle_publish(
    work_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    work_id = require_id(work_id, "work ID")
    work = _get_work_or_404(helper, work_id)
    ensure_owner_or_admin(current_user, work["created_by"])

    new_status = "draft" if work["status"] == "published" else "published"
    helper.run(
        "UPDATE design_works SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"status": new_status, "id": work_id},
    )
    log_action(helper, request, "DESIGN_PUBLISH", f"Design work {work_id} set to {new_status}",
               data={"work_id": work_id, "status": new_status}, module="design")
    return success(_get_work_or_404(helper, work_id), f"Design work {new_status}")
