from typing import Literal

from pydantic import BaseModel, Field

ActivityStatus = Literal["planning", "ongoing", "completed", "cancelled"]
RegistrationStatus = Literal["pending", "approved", "rejected"]


class ActivityCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    event_date: str | None = Field(default=None, max_length=32)
    location: str | None = Field(default=None, max_length=200)
    budget: float | None = Field(default=None, ge=0)
    status: ActivityStatus = "planning"


class ActivityUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    event_date: str | None = Field(default=None, max_length=32)
    location: str | None = Field(default=None, max_length=200)
    budget: float | None = Field(default=None, ge=0)
    status: ActivityStatus | None = None


class ActivityDetailCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str | None = None
    detail_type: str = Field(default="general", max_length=30)


class ActivityDetailUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    detail_type: str | None = Field(default=None, max_length=30)


class ActivityRegisterRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=500)


class RegistrationStatusUpdate(BaseModel):
    status: RegistrationStatus
