from typing import Literal

from pydantic import BaseModel, Field

DesignStatus = Literal["draft", "published"]


class DesignWorkCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: str = Field(default="other", max_length=50)
    tags: list[str] = Field(default_factory=list)
    file_path: str | None = Field(default=None, max_length=500)
    status: DesignStatus = "draft"


class DesignWorkUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=50)
    tags: list[str] | None = None
    file_path: str | None = Field(default=None, max_length=500)
    status: DesignStatus | None = None
