"""
pr.py

홍보부(PR) API 모음.

주요 기능:
- 홍보 활동 목록 / 조회 / 생성 / 수정 / 삭제(Soft Delete) / 게시 / 게시 취소
- 협력 기관 목록 / 조회 / 생성 / 수정 / 삭제(Soft Delete) / 상태 전환
- 거래처 목록 / 조회 / 생성 / 수정 / 삭제

권한:
- 조회 : 로그인한 모든 활성 사용자
- 작성 : admin / pr (수정/삭제는 작성자 본인 또는 관리자)

"""

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
from app.schemas.pr import (
    PartnerCreate,
    PartnerUpdate,
    PrActivityCreate,
    PrActivityUpdate,
    VendorCreate,
    VendorUpdate,
)
from app.services.audit import log_action

router = APIRouter(prefix="/api/pr", tags=["pr"])

write_access = require_role(Role.ADMIN, Role.PR)

ACTIVITY_SORT_FIELDS = ("title", "start_date", "end_date", "budget", "status", "created_at")
ACTIVITY_SEARCH_FIELDS = ("title", "description", "target_audience")
PARTNER_SORT_FIELDS = ("name", "status", "created_at")
PARTNER_SEARCH_FIELDS = ("name", "description", "contact_person", "email")
VENDOR_SORT_FIELDS = ("name", "service_type", "status", "created_at")
VENDOR_SEARCH_FIELDS = ("name", "service_type", "contact_person", "notes")


def _get_activity_or_404(helper: DatabaseHelper, activity_id: int) -> dict:
    activity = helper.get(
        """
        SELECT pr_activities.*,
               (SELECT full_name FROM users WHERE users.id = pr_activities.created_by) AS creator_name
        FROM pr_activities WHERE id = :id AND deleted_at IS NULL
        """,
        {"id": activity_id},
    )
    if activity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PR activity not found")
    return activity


def _get_partner_or_404(helper: DatabaseHelper, partner_id: int) -> dict:
    partner = helper.get("SELECT * FROM partners WHERE id = :id AND deleted_at IS NULL", {"id": partner_id})
    if partner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Partner not found")
    return partner


def _get_vendor_or_404(helper: DatabaseHelper, vendor_id: int) -> dict:
    vendor = helper.get("SELECT * FROM vendors WHERE id = :id", {"id": vendor_id})
    if vendor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return vendor


def _status_filter(request: Request, conditions: list[str], params: dict) -> None:
    if request.query_params.get("status"):
        conditions.append("status = :status")
        params["status"] = request.query_params["status"]


# ---- 홍보 활동 ----------------------------------------------------------------

@router.get("/activities")
def list_activities(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, ACTIVITY_SORT_FIELDS)
    search = get_search_params(request, ACTIVITY_SEARCH_FIELDS)

    conditions = ["deleted_at IS NULL", search.clause]
    params = dict(search.params)
    _status_filter(request, conditions, params)
    where = build_where(conditions)

    total = helper.count("pr_activities", where, params)
    rows = helper.all(
        f"""
        SELECT pr_activities.*,
               (SELECT full_name FROM users WHERE users.id = pr_activities.created_by) AS creator_name
        FROM pr_activities {where} {sort.clause}, id DESC LIMIT :limit OFFSET :offset
        """,
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(rows, page=pagination.page, limit=pagination.limit, total=total,
                     message="PR activities retrieved")


@router.get("/activities/{activity_id}")
def get_activity(
    activity_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    return success(_get_activity_or_404(helper, require_id(activity_id, "activity ID")))


@router.post("/activities", status_code=201)
def create_activity(
    data: PrActivityCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO pr_activities
            (title, description, target_audience, budget, start_date, end_date, status, created_by)
        VALUES
            (:title, :description, :target_audience, :budget, :start_date, :end_date, :status, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    activity = _get_activity_or_404(helper, result.last_insert_id)
    log_action(helper, request, "PR_ACTIVITY_CREATE", f"Created PR activity: {data.title}",
               data={"activity_id": activity["id"]}, module="pr")
    return success(activity, "PR activity created", status_code=201)


@router.put("/activities/{activity_id}")
def update_activity(
    activity_id: str,
    data: PrActivityUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE pr_activities SET {set_clause} WHERE id = :id", {**params, "id": activity_id})
    log_action(helper, request, "PR_ACTIVITY_UPDATE", f"Updated PR activity {activity_id}",
               data=changes, module="pr")
    return success(_get_activity_or_404(helper, activity_id), "PR activity updated")


@router.delete("/activities/{activity_id}")
def delete_activity(
    activity_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])

    helper.run(
        "UPDATE pr_activities SET deleted_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"id": activity_id},
    )
    log_action(helper, request, "PR_ACTIVITY_DELETE", f"Deleted PR activity: {activity['title']}",
               data={"activity_id": activity_id}, module="pr")
    return success(None, "PR activity deleted")


def _set_activity_status(helper, request, current_user, activity_id: str, new_status: str, action: str):
    activity_id = require_id(activity_id, "activity ID")
    activity = _get_activity_or_404(helper, activity_id)
    ensure_owner_or_admin(current_user, activity["created_by"])

    helper.run(
        "UPDATE pr_activities SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"status": new_status, "id": activity_id},
    )
    log_action(helper, request, action, f"PR activity {activity_id} set to {new_status}",
               data={"activity_id": activity_id}, module="pr")
    return _get_activity_or_404(helper, activity_id)


@router.post("/activities/{activity_id}/publish")
def publish_activity(
    activity_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity = _set_activity_status(helper, request, current_user, activity_id, "published", "PR_ACTIVITY_PUBLISH")
    return success(activity, "PR activity published")


@router.post("/activities/{activity_id}/unpublish")
def unpublish_activity(
    activity_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    activity = _set_activity_status(helper, request, current_user, activity_id, "draft", "PR_ACTIVITY_UNPUBLISH")
    return success(activity, "PR activity unpublished")


# ---- 협력 기관 ----------------------------------------------------------------

@router.get("/partners")
def list_partners(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, PARTNER_SORT_FIELDS, default_field="name", default_order="ASC")
    search = get_search_params(request, PARTNER_SEARCH_FIELDS)

    conditions = ["deleted_at IS NULL", search.clause]
    params = dict(search.params)
    _status_filter(request, conditions, params)
    where = build_where(conditions)

    total = helper.count("partners", where, params)
    rows = helper.all(
        f"SELECT * FROM partners {where} {sort.clause}, id ASC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(rows, page=pagination.page, limit=pagination.limit, total=total,
                     message="Partners retrieved")


@router.get("/partners/{partner_id}")
def get_partner(
    partner_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    return success(_get_partner_or_404(helper, require_id(partner_id, "partner ID")))


@router.post("/partners", status_code=201)
def create_partner(
    data: PartnerCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO partners (name, description, contact_person, email, phone, website, status, created_by)
        VALUES (:name, :description, :contact_person, :email, :phone, :website, :status, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    partner = _get_partner_or_404(helper, result.last_insert_id)
    log_action(helper, request, "PARTNER_CREATE", f"Created partner: {data.name}",
               data={"partner_id": partner["id"]}, module="pr")
    return success(partner, "Partner created", status_code=201)


@router.put("/partners/{partner_id}")
def update_partner(
    partner_id: str,
    data: PartnerUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    partner_id = require_id(partner_id, "partner ID")
    partner = _get_partner_or_404(helper, partner_id)
    ensure_owner_or_admin(current_user, partner["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE partners SET {set_clause} WHERE id = :id", {**params, "id": partner_id})
    log_action(helper, request, "PARTNER_UPDATE", f"Updated partner {partner_id}", data=changes, module="pr")
    return success(_get_partner_or_404(helper, partner_id), "Partner updated")


@router.delete("/partners/{partner_id}")
def delete_partner(
    partner_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    partner_id = require_id(partner_id, "partner ID")
    partner = _get_partner_or_404(helper, partner_id)
    ensure_owner_or_admin(current_user, partner["created_by"])

    helper.run(
        "UPDATE partners SET deleted_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"id": partner_id},
    )
    log_action(helper, request, "PARTNER_DELETE", f"Deleted partner: {partner['name']}",
               data={"partner_id": partner_id}, module="pr")
    return success(None, "Partner deleted")


# 협력 기관 상태 전환 (active <-> inactive)
@router.put("/partners/{partner_id}/toggle-status")
def toggle_partner_status(
    partner_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    partner_id = require_id(partner_id, "partner ID")
    partner = _get_partner_or_404(helper, partner_id)
    ensure_owner_or_admin(current_user, partner["created_by"])

    new_status = "inactive" if partner["status"] == "active" else "active"
    helper.run(
        "UPDATE partners SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"status": new_status, "id": partner_id},
    )
    log_action(helper, request, "PARTNER_TOGGLE_STATUS", f"Partner {partner_id} set to {new_status}",
               data={"partner_id": partner_id, "status": new_status}, module="pr")
    return success(_get_partner_or_404(helper, partner_id), f"Partner {new_status}")


# ---- 거래처 -------------------------------------------------------------------

@router.get("/vendors")
def list_vendors(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, VENDOR_SORT_FIELDS, default_field="name", default_order="ASC")
    search = get_search_params(request, VENDOR_SEARCH_FIELDS)

    conditions = [search.clause]
    params = dict(search.params)
    _status_filter(request, conditions, params)
    if request.query_params.get("service_type"):
        conditions.append("service_type = :service_type")
        params["service_type"] = request.query_params["service_type"]
    where = build_where(conditions)

    total = helper.count("vendors", where, params)
    rows = helper.all(
        f"SELECT * FROM vendors {where} {sort.clause}, id ASC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(rows, page=pagination.page, limit=pagination.limit, total=total,
                     message="Vendors retrieved")


@router.get("/vendors/{vendor_id}")
def get_vendor(
    vendor_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    return success(_get_vendor_or_404(helper, require_id(vendor_id, "vendor ID")))


@router.post("/vendors", status_code=201)
def create_vendor(
    data: VendorCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO vendors (name, service_type, contact_person, phone, email, address, notes, status, created_by)
        VALUES (:name, :service_type, :contact_person, :phone, :email, :address, :notes, :status, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    vendor = _get_vendor_or_404(helper, result.last_insert_id)
    log_action(helper, request, "VENDOR_CREATE", f"Created vendor: {data.name}",
               data={"vendor_id": vendor["id"]}, module="pr")
    return success(vendor, "Vendor created", status_code=201)


@router.put("/vendors/{vendor_id}")
def update_vendor(
    vendor_id: str,
    data: VendorUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    vendor_id = require_id(vendor_id, "vendor ID")
    vendor = _get_vendor_or_404(helper, vendor_id)
    ensure_owner_or_admin(current_user, vendor["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE vendors SET {set_clause} WHERE id = :id", {**params, "id": vendor_id})
    log_action(helper, request, "VENDOR_UPDATE", f"Updated vendor {vendor_id}", data=changes, module="pr")
    return success(_get_vendor_or_404(helper, vendor_id), "Vendor updated")


@router.delete("/vendors/{vendor_id}")
def delete_vendor(
    vendor_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    vendor_id = require_id(vendor_id, "vendor ID")
    vendor = _get_vendor_or_404(helper, vendor_id)
    ensure_owner_or_admin(current_user, vendor["created_by"])

    helper.run("DELETE FROM vendors WHERE id = :id", {"id": vendor_id})
    log_action(helper, request, "VENDOR_DELETE", f"Deleted vendor: {vendor['name']}",
               data={"vendor_id": vendor_id}, module="pr")
    return success(None, "Vendor deleted")
