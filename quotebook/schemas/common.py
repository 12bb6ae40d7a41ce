# quotebook/schemas/common.py
from __future__ import annotations

import re
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

BUSINESS_NUMBER_RE = re.compile(r"^\d{3}-\d{2}-\d{5}$")
PHONE_RE = re.compile(r"^[0-9\-+\s()]+$")

MAX_PER_PAGE = 100


def check_business_number(v: Optional[str]) -> Optional[str]:
    if v in (None, ""):
        return None
    if not BUSINESS_NUMBER_RE.match(v):
        raise ValueError("business registration number must look like 000-00-00000")
    return v


def check_phone(v: Optional[str]) -> Optional[str]:
    if v in (None, ""):
        return None
    if len(v) > 20 or not PHONE_RE.match(v):
        raise ValueError("invalid phone number")
    return v


def empty_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def reject_null(v):
    # PATCH: weglaten mag, expliciet null niet (NOT NULL kolommen)
    if v is None:
        raise ValueError("may be omitted but not null")
    return v


class PageParams(BaseModel):
    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1, le=MAX_PER_PAGE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    per_page: int
    total_pages: int

    @classmethod
    def build(cls, items: list, total: int, params: PageParams) -> "Page":
        pages = (total + params.per_page - 1) // params.per_page if total else 0
        return cls(
            items=items,
            total=total,
            page=params.page,
            per_page=params.per_page,
            total_pages=pages,
        )


class Message(BaseModel):
    message: str
