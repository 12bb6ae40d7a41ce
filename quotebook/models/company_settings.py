# quotebook/models/company_settings.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from quotebook.db import Base


class CompanySettings(Base):
    """Single-row table with the letterhead printed on quotes."""

    __tablename__ = "company_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    representative: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    business_registration_number: Mapped[Optional[str]] = mapped_column(
        String(12), nullable=True
    )
    address: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bank_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_account: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    default_agency_fee_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    default_vat_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="exclusive"
    )

    def __repr__(self) -> str:
        return f"<CompanySettings company_name={self.company_name!r}>"
