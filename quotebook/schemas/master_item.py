# quotebook/schemas/master_item.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import reject_null


class MasterItemCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[str] = Field(None, max_length=50)
    unit: str = Field("개", min_length=1, max_length=20)
    default_unit_price: Decimal = Field(Decimal("0"), ge=0)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    supplier_id: Optional[str] = None


class MasterItemUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[str] = Field(None, max_length=50)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    default_unit_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "unit", "default_unit_price", "cost_price", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class MasterItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    unit: str
    default_unit_price: Decimal
    cost_price: Decimal
    supplier_id: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PriceHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    unit_price: Decimal
    cost_price: Decimal
    changed_by: Optional[str] = None
    changed_at: Optional[datetime] = None
