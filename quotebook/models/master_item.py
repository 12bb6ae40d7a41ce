# quotebook/models/master_item.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
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


class MasterItem(Base):
    __tablename__ = "master_items"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)

    name: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="개")

    default_unit_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )

    supplier_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    price_history: Mapped[List["MasterItemPriceHistory"]] = relationship(
        "MasterItemPriceHistory",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="MasterItemPriceHistory.id",
    )

    def __repr__(self) -> str:
        return f"<MasterItem id={self.id} name={self.name!r}>"


class MasterItemPriceHistory(Base):
    __tablename__ = "master_item_price_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    master_item_id: Mapped[str] = mapped_column(
        ForeignKey("master_items.id", ondelete="CASCADE"), index=True, nullable=False
    )

    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    changed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    item: Mapped["MasterItem"] = relationship("MasterItem", back_populates="price_history")
