from typing import Any

from pydantic import BaseModel, Field


class OperationCreate(BaseModel):
    operation_type: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    details: Any = None
    target_id: int | None = None
    target_type: str | None = Field(default=None, max_length=50)


class BatchDeleteRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1, max_length=500)
