# quotebook/schemas/project.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import reject_null

ProjectStatus = Literal["active", "on_hold", "completed", "canceled"]
TxType = Literal["income", "expense"]
TxStatus = Literal["pending", "processing", "completed", "issue"]
TaxInvoiceStatus = Literal["not_issued", "issued", "received"]


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    type: str
    partner_name: str
    item_name: str
    amount: Decimal
    due_date: Optional[date] = None
    status: str
    tax_invoice_status: str
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TransactionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_id: str
    type: TxType
    partner_name: str = Field(..., min_length=1, max_length=100)
    item_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0)
    due_date: Optional[date] = None
    status: TxStatus = "pending"
    tax_invoice_status: TaxInvoiceStatus = "not_issued"
    notes: Optional[str] = Field(None, max_length=1000)


class TransactionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    partner_name: Optional[str] = Field(None, min_length=1, max_length=100)
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(None, gt=0)
    due_date: Optional[date] = None
    status: Optional[TxStatus] = None
    tax_invoice_status: Optional[TaxInvoiceStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("partner_name", "item_name", "amount", "status", "tax_invoice_status")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    client_id: Optional[str] = None
    quote_id: str
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    contract_amount: Decimal
    total_revenue: Decimal
    total_cost: Decimal
    completed_at: Optional[datetime] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FinancialSummary(BaseModel):
    contract_amount: Decimal
    recognized_revenue: Decimal
    completed_expenses: Decimal
    planned_expenses: Decimal
    receivables: Decimal
    profit: Decimal
    profit_margin: Decimal


class ProjectDetailOut(ProjectOut):
    transactions: list[TransactionOut] = []
    financials: FinancialSummary


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None

    @field_validator("name", "status")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SettlementSummary(BaseModel):
    project_id: str
    actual_income: Decimal
    actual_expense: Decimal
    profit: Decimal
    profit_margin: Decimal
    pending_transactions: int


class ConvertResult(BaseModel):
    project: ProjectOut
    transactions: list[TransactionOut]
