# quotebook/models/quote.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotebook.db import Base


class Quote(Base):
    __tablename__ = "quotes"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    quote_number: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    project_title: Mapped[str] = mapped_column(String(200), nullable=False)
    client_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), index=True, nullable=True
    )
    # snapshots, so later client edits do not rewrite issued quotes
    customer_name_snapshot: Mapped[str] = mapped_column(String(100), nullable=False)
    business_registration_number: Mapped[Optional[str]] = mapped_column(
        String(12), nullable=True
    )

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), index=True, nullable=False, default="draft"
    )
    vat_type: Mapped[str] = mapped_column(String(20), nullable=False, default="exclusive")
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    agency_fee_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # stored totals, refreshed on every save
    subtotal_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    agency_fee_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    vat_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    supply_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    parent_quote_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True
    )

    # status stamps
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    accepted_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    canceled_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_by: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    groups: Mapped[List["QuoteGroup"]] = relationship(
        "QuoteGroup",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteGroup.sort_order",
    )
    status_history: Mapped[List["QuoteStatusHistory"]] = relationship(
        "QuoteStatusHistory",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteStatusHistory.id",
    )

    def __repr__(self) -> str:
        return f"<Quote id={self.id} number={self.quote_number} status={self.status}>"


class QuoteGroup(Base):
    __tablename__ = "quote_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quote_id: Mapped[str] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"), index=True, nullable=False
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    include_in_fee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    quote: Mapped["Quote"] = relationship("Quote", back_populates="groups")
    items: Mapped[List["QuoteItem"]] = relationship(
        "QuoteItem",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="QuoteItem.sort_order",
    )


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quote_group_id: Mapped[int] = mapped_column(
        ForeignKey("quote_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    include_in_fee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    group: Mapped["QuoteGroup"] = relationship("QuoteGroup", back_populates="items")
    details: Mapped[List["QuoteDetail"]] = relationship(
        "QuoteDetail",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="QuoteDetail.sort_order",
    )


class QuoteDetail(Base):
    __tablename__ = "quote_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quote_item_id: Mapped[int] = mapped_column(
        ForeignKey("quote_items.id", ondelete="CASCADE"), index=True, nullable=False
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("1"))
    days: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=Decimal("1"))
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="개")
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    is_service: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))

    supplier_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    supplier_name_snapshot: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    master_item_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("master_items.id", ondelete="SET NULL"), nullable=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    item: Mapped["QuoteItem"] = relationship("QuoteItem", back_populates="details")


class QuoteStatusHistory(Base):
    __tablename__ = "quote_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quote_id: Mapped[str] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"), index=True, nullable=False
    )

    from_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str] = mapped_column(String(100), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    quote: Mapped["Quote"] = relationship("Quote", back_populates="status_history")
