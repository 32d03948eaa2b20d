from typing import Literal

from pydantic import BaseModel, EmailStr, Field

PrStatus = Literal["planning", "draft", "published"]
PartyStatus = Literal["active", "inactive"]


class PrActivityCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    target_audience: str | None = Field(default=None, max_length=200)
    budget: float | None = Field(default=None, ge=0)
    start_date: str | None = Field(default=None, max_length=32)
    end_date: str | None = Field(default=None, max_length=32)
    status: PrStatus = "planning"


class PrActivityUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    target_audience: str | None = Field(default=None, max_length=200)
    budget: float | None = Field(default=None, ge=0)
    start_date: str | None = Field(default=None, max_length=32)
    end_date: str | None = Field(default=None, max_length=32)
    status: PrStatus | None = None


class PartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    contact_person: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=500)
    status: PartyStatus = "active"


class PartnerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    contact_person: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=500)
    status: PartyStatus | None = None


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    service_type: str | None = Field(default=None, max_length=100)
    contact_person: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    address: str | None = Field(default=None, max_length=500)
    notes: str | None = None
    status: PartyStatus = "active"


class VendorUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    service_type: str | None = Field(default=None, max_length=100)
    contact_person: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    address: str | None = Field(default=None, max_length=500)
    notes: str | None = None
    status: PartyStatus | None = None
