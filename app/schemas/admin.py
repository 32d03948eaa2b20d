from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

from app.models.user import Role


class AdminUserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=100)
    role: Role = Role.USER
    email: EmailStr | None = None
    student_id: str | None = Field(default=None, max_length=20)
    is_active: bool = True


class AdminUserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    full_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: Role | None = None
    email: EmailStr | None = None
    student_id: str | None = Field(default=None, max_length=20)
    is_active: bool | None = None


class AdminPasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=128)


class BatchUserAction(BaseModel):
    action: Literal["delete", "lock", "unlock"]
    user_ids: list[int] = Field(..., min_length=1, max_length=100)


class SettingsUpdate(BaseModel):
    settings: dict[str, Any] = Field(..., min_length=1)


class SettingValue(BaseModel):
    value: Any = None
