"""
secretary.py

사무국(Secretary) API 모음.

주요 기능:
- 문서 목록 / 조회 / 생성 / 수정 / 삭제
- 문서 공유 링크 발급 (서명된 JWT, 기본 7일) 및 공유 링크 열람
- 회의록 목록 / 조회 / 생성 / 수정 / 삭제
- 알림 목록 (내 알림 + 전체 공지) / 생성 / 읽음 처리 / 삭제

권한:
- 문서 조회, 회의록 단건 조회, 알림 조회 : 로그인한 모든 활성 사용자
- 문서/회의록 작성, 알림 생성, 공유 링크 발급 : admin / secretary
  (수정/삭제는 작성자 본인 또는 관리자)
- 공유 링크 열람 : 로그인 불필요 (토큰 자체가 권한)

관련 파일:
- app.core.security        : 공유 토큰 생성 / 검증

"""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from jose import JWTError

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
from app.core.security import create_share_token, decode_share_token
from app.db.helper import DatabaseHelper
from app.models.user import Role
from app.schemas.secretary import (
    DocumentCreate,
    DocumentUpdate,
    MeetingCreate,
    MeetingUpdate,
    NotificationCreate,
    ShareRequest,
)
from app.services.audit import log_action

router = APIRouter(prefix="/api/secretary", tags=["secretary"])

write_access = require_role(Role.ADMIN, Role.SECRETARY)

DOCUMENT_SORT_FIELDS = ("title", "document_type", "status", "created_at", "updated_at")
DOCUMENT_SEARCH_FIELDS = ("title", "content", "notes")
MEETING_SORT_FIELDS = ("title", "meeting_date", "created_at")
MEETING_SEARCH_FIELDS = ("title", "content", "location", "attendees")

DOCUMENT_SELECT = """
    SELECT secretary_documents.*,
           (SELECT full_name FROM users WHERE users.id = secretary_documents.created_by) AS creator_name
    FROM secretary_documents
"""

MEETING_SELECT = """
    SELECT meeting_records.*,
           (SELECT full_name FROM users WHERE users.id = meeting_records.created_by) AS creator_name
    FROM meeting_records
"""


def _get_document_or_404(helper: DatabaseHelper, document_id: int) -> dict:
    document = helper.get(f"{DOCUMENT_SELECT} WHERE secretary_documents.id = :id", {"id": document_id})
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


def _get_meeting_or_404(helper: DatabaseHelper, meeting_id: int) -> dict:
    meeting = helper.get(f"{MEETING_SELECT} WHERE meeting_records.id = :id", {"id": meeting_id})
    if meeting is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting record not found")
    return meeting


# ---- 문서 ---------------------------------------------------------------------

@router.get("/documents")
def list_documents(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, DOCUMENT_SORT_FIELDS)
    search = get_search_params(request, DOCUMENT_SEARCH_FIELDS)

    conditions = [search.clause]
    params = dict(search.params)
    for key in ("document_type", "status"):
        if request.query_params.get(key):
            conditions.append(f"{key} = :{key}")
            params[key] = request.query_params[key]
    where = build_where(conditions)

    total = helper.count("secretary_documents", where, params)
    documents = helper.all(
        f"{DOCUMENT_SELECT} {where} {sort.clause}, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(documents, page=pagination.page, limit=pagination.limit, total=total,
                     message="Documents retrieved")


@router.get("/documents/{document_id}")
def get_document(
    document_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    return success(_get_document_or_404(helper, require_id(document_id, "document ID")))


@router.post("/documents", status_code=201)
def create_document(
    data: DocumentCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO secretary_documents (title, document_type, content, notes, file_path, status, created_by)
        VALUES (:title, :document_type, :content, :notes, :file_path, :status, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    document = _get_document_or_404(helper, result.last_insert_id)
    log_action(helper, request, "DOCUMENT_CREATE", f"Created document: {data.title}",
               data={"document_id": document["id"]}, module="secretary")
    return success(document, "Document created", status_code=201)


@router.put("/documents/{document_id}")
def update_document(
    document_id: str,
    data: DocumentUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    document_id = require_id(document_id, "document ID")
    document = _get_document_or_404(helper, document_id)
    ensure_owner_or_admin(current_user, document["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE secretary_documents SET {set_clause} WHERE id = :id", {**params, "id": document_id})
    log_action(helper, request, "DOCUMENT_UPDATE", f"Updated document {document_id}",
               data=changes, module="secretary")
    return success(_get_document_or_404(helper, document_id), "Document updated")


@router.delete("/documents/{document_id}")
def delete_document(
    document_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    document_id = require_id(document_id, "document ID")
    document = _get_document_or_404(helper, document_id)
    ensure_owner_or_admin(current_user, document["created_by"])

    helper.run("DELETE FROM secretary_documents WHERE id = :id", {"id": document_id})
    log_action(helper, request, "DOCUMENT_DELETE", f"Deleted document: {document['title']}",
               data={"document_id": document_id}, module="secretary")
    return success(None, "Document deleted")


"""
문서 공유 링크 발급 API

- 보관(archived) 문서는 공유 불가
- 토큰에는 문서 ID / 권한(read, edit) / 발급자 / 만료 시각이 서명되어 포함
- 링크는 /api/secretary/shared/{token}

"""

@router.post("/documents/{document_id}/share")
def share_document(
    document_id: str,
    request: Request,
    data: ShareRequest | None = None,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    document_id = require_id(document_id, "document ID")
    document = _get_document_or_404(helper, document_id)
    if document["status"] == "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Archived documents cannot be shared")

    data = data or ShareRequest()
    expires_delta = timedelta(days=data.expires_days) if data.expires_days else None
    token, expires_at = create_share_token(
        document_id,
        permissions=data.permissions,
        shared_by=current_user.id,
        expires_delta=expires_delta,
    )
    share_path = f"/api/secretary/shared/{token}"

    log_action(helper, request, "DOCUMENT_SHARE", f"Shared document {document_id}",
               data={"document_id": document_id, "permissions": data.permissions}, module="secretary")
    return success(
        {
            "token": token,
            "shareUrl": str(request.base_url).rstrip("/") + share_path,
            "permissions": data.permissions,
            "expiresAt": expires_at,
        },
        "Share link created",
    )


@router.get("/shared/{token}")
def open_shared_document(token: str, helper: DatabaseHelper = Depends(get_helper)):
    try:
        document_id, permissions = decode_share_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired share link")

    document = helper.get(
        "SELECT id, title, document_type, content, file_path, status, created_at, updated_at "
        "FROM secretary_documents WHERE id = :id",
        {"id": document_id},
    )
    if document is None or document["status"] == "archived":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    return success({"document": document, "permissions": permissions})


# ---- 회의록 -------------------------------------------------------------------

@router.get("/meetings")
def list_meetings(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    pagination = get_pagination_params(request)
    sort = get_sort_params(request, MEETING_SORT_FIELDS, default_field="meeting_date")
    search = get_search_params(request, MEETING_SEARCH_FIELDS)
    where = build_where([search.clause])

    total = helper.count("meeting_records", where, search.params)
    meetings = helper.all(
        f"{MEETING_SELECT} {where} {sort.clause}, id DESC LIMIT :limit OFFSET :offset",
        {**search.params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(meetings, page=pagination.page, limit=pagination.limit, total=total,
                     message="Meeting records retrieved")


@router.get("/meetings/{meeting_id}")
def get_meeting(
    meeting_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    return success(_get_meeting_or_404(helper, require_id(meeting_id, "meeting ID")))


@router.post("/meetings", status_code=201)
def create_meeting(
    data: MeetingCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    prevent_duplicate_submission(request, current_user)
    result = helper.run(
        """
        INSERT INTO meeting_records (title, content, meeting_date, location, attendees, created_by)
        VALUES (:title, :content, :meeting_date, :location, :attendees, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    meeting = _get_meeting_or_404(helper, result.last_insert_id)
    log_action(helper, request, "MEETING_CREATE", f"Created meeting record: {data.title}",
               data={"meeting_id": meeting["id"]}, module="secretary")
    return success(meeting, "Meeting record created", status_code=201)


@router.put("/meetings/{meeting_id}")
def update_meeting(
    meeting_id: str,
    data: MeetingUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    meeting_id = require_id(meeting_id, "meeting ID")
    meeting = _get_meeting_or_404(helper, meeting_id)
    ensure_owner_or_admin(current_user, meeting["created_by"])

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE meeting_records SET {set_clause} WHERE id = :id", {**params, "id": meeting_id})
    log_action(helper, request, "MEETING_UPDATE", f"Updated meeting record {meeting_id}",
               data=changes, module="secretary")
    return success(_get_meeting_or_404(helper, meeting_id), "Meeting record updated")


@router.delete("/meetings/{meeting_id}")
def delete_meeting(
    meeting_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    meeting_id = require_id(meeting_id, "meeting ID")
    meeting = _get_meeting_or_404(helper, meeting_id)
    ensure_owner_or_admin(current_user, meeting["created_by"])

    helper.run("DELETE FROM meeting_records WHERE id = :id", {"id": meeting_id})
    log_action(helper, request, "MEETING_DELETE", f"Deleted meeting record: {meeting['title']}",
               data={"meeting_id": meeting_id}, module="secretary")
    return success(None, "Meeting record deleted")


# ---- 알림 ---------------------------------------------------------------------

# 내 알림 + 전체 공지 (unread_only=true 이면 읽지 않은 알림만)
@router.get("/notifications")
def list_notifications(
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    pagination = get_pagination_params(request, default_limit=20)

    conditions = ["(target_user_id = :user_id OR target_user_id IS NULL)"]
    if request.query_params.get("unread_only", "").lower() in ("1", "true", "yes"):
        conditions.append("is_read = 0")
    where = build_where(conditions)
    params = {"user_id": current_user.id}

    total = helper.count("notifications", where, params)
    unread = helper.count(
        "notifications",
        "WHERE (target_user_id = :user_id OR target_user_id IS NULL) AND is_read = 0",
        params,
    )
    rows = helper.all(
        f"SELECT * FROM notifications {where} ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": pagination.limit, "offset": pagination.offset},
    )
    return paginated(
        {"notifications": rows, "unread_count": unread},
        page=pagination.page,
        limit=pagination.limit,
        total=total,
        message="Notifications retrieved",
    )


@router.post("/notifications", status_code=201)
def create_notification(
    data: NotificationCreate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(write_access),
):
    if data.target_user_id is not None and not helper.get(
        "SELECT id FROM users WHERE id = :id AND is_deleted = 0", {"id": data.target_user_id}
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target user not found")

    result = helper.run(
        """
        INSERT INTO notifications (title, content, target_user_id, notification_type, created_by)
        VALUES (:title, :content, :target_user_id, :notification_type, :created_by)
        """,
        {**data.model_dump(), "created_by": current_user.id},
    )
    notification = helper.get("SELECT * FROM notifications WHERE id = :id", {"id": result.last_insert_id})
    log_action(helper, request, "NOTIFICATION_CREATE", f"Created notification: {data.title}",
               data={"notification_id": notification["id"], "target_user_id": data.target_user_id},
               module="secretary")
    return success(notification, "Notification created", status_code=201)


@router.put("/notifications/mark-all-read")
def mark_all_notifications_read(
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    result = helper.run(
        """
        UPDATE notifications SET is_read = 1, read_at = CURRENT_TIMESTAMP
        WHERE (target_user_id = :user_id OR target_user_id IS NULL) AND is_read = 0
        """,
        {"user_id": current_user.id},
    )
    return success({"updated": result.rows_affected}, "All notifications marked as read")


@router.put("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    notification_id = require_id(notification_id, "notification ID")
    result = helper.run(
        """
        UPDATE notifications SET is_read = 1, read_at = CURRENT_TIMESTAMP
        WHERE id = :id AND (target_user_id = :user_id OR target_user_id IS NULL)
        """,
        {"id": notification_id, "user_id": current_user.id},
    )
    if result.rows_affected == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return success({"id": notification_id, "is_read": True}, "Notification marked as read")


@router.delete("/notifications/{notification_id}")
def delete_notification(
    notification_id: str,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    notification_id = require_id(notification_id, "notification ID")
    notification = helper.get("SELECT * FROM notifications WHERE id = :id", {"id": notification_id})
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    # 전체 공지는 작성자 / 관리자만, 개인 알림은 수신자도 삭제 가능
    if notification["target_user_id"] != current_user.id:
        ensure_owner_or_admin(current_user, notification["created_by"])

    helper.run("DELETE FROM notifications WHERE id = :id", {"id": notification_id})
    log_action(helper, request, "NOTIFICATION_DELETE", f"Deleted notification {notification_id}",
               module="secretary")
    return success(None, "Notification deleted")
