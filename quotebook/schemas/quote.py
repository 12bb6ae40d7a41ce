# quotebook/schemas/quote.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import check_business_number

VatType = Literal["exclusive", "inclusive"]


# ---------- structure (in) ----------


class QuoteDetailIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    quantity: Decimal = Field(Decimal("1"), ge=0)
    days: Decimal = Field(Decimal("1"), ge=0)
    unit: str = Field("개", min_length=1, max_length=20)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    is_service: bool = False
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    supplier_id: Optional[str] = None
    supplier_name_snapshot: Optional[str] = Field(None, max_length=100)
    master_item_id: Optional[str] = None


class QuoteItemIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    include_in_fee: bool = True
    details: list[QuoteDetailIn] = Field(..., min_length=1)


class QuoteGroupIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    include_in_fee: bool = True
    items: list[QuoteItemIn] = Field(..., min_length=1)


class QuoteCalculateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vat_type: VatType = "exclusive"
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    agency_fee_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    groups: list[QuoteGroupIn] = Field(..., min_length=1)


class QuotePreviewIn(QuoteCalculateIn):
    """Ongesaved offerteformulier: kopvelden (titel, klant, datums) worden genegeerd."""

    model_config = ConfigDict(extra="ignore")


class QuoteCreate(QuoteCalculateIn):
    project_title: str = Field(..., min_length=1, max_length=200)
    client_id: Optional[str] = None
    customer_name_snapshot: Optional[str] = Field(None, max_length=100)
    business_registration_number: Optional[str] = None
    issue_date: Optional[date] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("business_registration_number")
    @classmethod
    def validate_brn(cls, v):
        return check_business_number(v)

    @model_validator(mode="after")
    def check_customer_and_dates(self):
        if not self.client_id and not (self.customer_name_snapshot or "").strip():
            raise ValueError("client_id or customer_name_snapshot is required")
        if self.issue_date and self.valid_until and self.valid_until < self.issue_date:
            raise ValueError("valid_until must not be before issue_date")
        return self


class QuoteUpdate(QuoteCreate):
    pass


class QuoteStatusIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str
    notes: Optional[str] = Field(None, max_length=1000)
    reason: Optional[str] = Field(None, max_length=1000)


class QuoteCopyIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_title: str = Field(..., min_length=1, max_length=200)
    client_id: Optional[str] = None
    customer_name_snapshot: Optional[str] = Field(None, max_length=100)
    copy_structure_only: bool = False


class SettlementIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Decimal = Field(..., gt=0)
    due_date: date
    description: Optional[str] = Field(None, max_length=200)


class ConvertToProjectIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    settlement_schedule: Optional[list[SettlementIn]] = None
    settlement_periods: int = Field(1, ge=1, le=36)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# ---------- structure (out) ----------


class QuoteDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    quantity: Decimal
    days: Decimal
    unit: str
    unit_price: Decimal
    is_service: bool
    cost_price: Decimal
    supplier_id: Optional[str] = None
    supplier_name_snapshot: Optional[str] = None
    master_item_id: Optional[str] = None
    sort_order: int


class QuoteItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    include_in_fee: bool
    sort_order: int
    details: list[QuoteDetailOut] = []


class QuoteGroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    include_in_fee: bool
    sort_order: int
    items: list[QuoteItemOut] = []


class StatusHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_status: Optional[str] = None
    to_status: str
    notes: Optional[str] = None
    changed_by: str
    changed_at: Optional[datetime] = None


class QuoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    quote_number: str
    project_title: str
    client_id: Optional[str] = None
    customer_name_snapshot: str
    business_registration_number: Optional[str] = None
    issue_date: date
    valid_until: Optional[date] = None
    status: str
    vat_type: str
    discount_amount: Decimal
    agency_fee_rate: Decimal
    notes: Optional[str] = None
    subtotal_amount: Decimal
    agency_fee_amount: Decimal
    vat_amount: Decimal
    supply_amount: Decimal
    total_amount: Decimal
    total_cost: Decimal
    version: int
    parent_quote_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[str] = None
    canceled_at: Optional[datetime] = None
    canceled_by: Optional[str] = None
    cancel_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuoteFullOut(QuoteOut):
    groups: list[QuoteGroupOut] = []
    status_history: list[StatusHistoryOut] = []
    calculation: dict[str, Any] = {}
    allowed_transitions: list[str] = []
    project_id: Optional[str] = None


# ---------- templates ----------


class TemplateData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vat_type: VatType = "exclusive"
    agency_fee_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    groups: list[QuoteGroupIn] = Field(..., min_length=1)


class QuoteTemplateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    template_data: TemplateData


class SaveAsTemplateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class QuoteTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    template_data: dict[str, Any]
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
