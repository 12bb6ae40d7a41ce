# quotebook/schemas/profile.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .common import check_business_number, check_phone

Role = Literal["member", "admin", "super_admin"]


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class InviteUserIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=100)
    role: Role = "member"
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)


class UpdateUserIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Optional[Role] = None
    is_active: Optional[bool] = None
    full_name: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return check_phone(v)


class CompanySettingsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    company_name: Optional[str] = Field(None, max_length=100)
    representative: Optional[str] = Field(None, max_length=50)
    business_registration_number: Optional[str] = None
    address: Optional[str] = Field(None, max_length=300)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=200)
    bank_name: Optional[str] = Field(None, max_length=50)
    bank_account: Optional[str] = Field(None, max_length=50)
    logo_url: Optional[str] = Field(None, max_length=300)
    default_agency_fee_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    default_vat_type: Optional[Literal["exclusive", "inclusive"]] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return check_phone(v)

    @field_validator("business_registration_number")
    @classmethod
    def validate_brn(cls, v):
        return check_business_number(v)


class CompanySettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    company_name: Optional[str] = None
    representative: Optional[str] = None
    business_registration_number: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    logo_url: Optional[str] = None
    default_agency_fee_rate: Optional[Decimal] = None
    default_vat_type: Optional[str] = None
