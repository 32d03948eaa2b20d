from typing import Literal

from pydantic import BaseModel, Field

DocumentStatus = Literal["draft", "published", "archived"]


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    document_type: str = Field(default="general", max_length=30)
    content: str | None = None
    notes: str | None = None
    file_path: str | None = Field(default=None, max_length=500)
    status: DocumentStatus = "draft"


class DocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    document_type: str | None = Field(default=None, max_length=30)
    content: str | None = None
    notes: str | None = None
    file_path: str | None = Field(default=None, max_length=500)
    status: DocumentStatus | None = None


class MeetingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str | None = None
    meeting_date: str = Field(..., min_length=1, max_length=32)
    location: str | None = Field(default=None, max_length=200)
    attendees: str | None = None


class MeetingUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    meeting_date: str | None = Field(default=None, min_length=1, max_length=32)
    location: str | None = Field(default=None, max_length=200)
    attendees: str | None = None


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str | None = None
    target_user_id: int | None = Field(default=None, gt=0)
    notification_type: str = Field(default="general", max_length=30)


class ShareRequest(BaseModel):
    permissions: Literal["read", "edit"] = "read"
    expires_days: int | None = Field(default=None, ge=1, le=30)
