import datetime
from typing import Literal

from pydantic import BaseModel, Field

FinanceType = Literal["income", "expense"]


class FinanceRecordCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    amount: float = Field(..., gt=0)
    type: FinanceType
    category: str = Field(default="other", max_length=50)
    date: datetime.date
    notes: str | None = None
    receipt_url: str | None = Field(default=None, max_length=500)


class FinanceRecordUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    amount: float | None = Field(default=None, gt=0)
    type: FinanceType | None = None
    category: str | None = Field(default=None, max_length=50)
    date: datetime.date | None = None
    notes: str | None = None
    receipt_url: str | None = Field(default=None, max_length=500)


class FinanceReviewRequest(BaseModel):
    decision: Literal["approved", "rejected"]
    comment: str | None = Field(default=None, max_length=1000)
