# quotebook/schemas/client.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .common import check_business_number, check_phone, empty_to_none, reject_null


class ClientBase(BaseModel):
    business_registration_number: Optional[str] = None
    contact_person: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(None, max_length=200)
    postal_code: Optional[str] = Field(None, max_length=10)
    website: Optional[str] = Field(None, max_length=200)
    tax_invoice_email: Optional[EmailStr] = None
    industry_type: Optional[str] = Field(None, max_length=50)
    payment_terms_days: Optional[int] = Field(None, ge=0, le=365)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("email", "tax_invoice_email", mode="before")
    @classmethod
    def blank_email(cls, v):
        return empty_to_none(v)

    @field_validator("business_registration_number")
    @classmethod
    def validate_brn(cls, v):
        return check_business_number(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return check_phone(v)


class ClientCreate(ClientBase):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)


class ClientUpdate(ClientBase):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    business_registration_number: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    website: Optional[str] = None
    tax_invoice_email: Optional[str] = None
    industry_type: Optional[str] = None
    payment_terms_days: Optional[int] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClientSummary(BaseModel):
    client_id: str
    quote_count: int
    accepted_quote_total: Decimal
    project_count: int
    completed_income: Decimal
    outstanding_receivables: Decimal
