# quotebook/services/master_data_service.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Type, TypeVar
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from quotebook.core.errors import DomainValidationError, NotFoundError
from quotebook.core.logging_config import logger
from quotebook.db import Base
from quotebook.models.client import Client
from quotebook.models.master_item import MasterItem, MasterItemPriceHistory
from quotebook.models.profile import Profile
from quotebook.models.project import Project
from quotebook.models.quote import Quote
from quotebook.models.supplier import Supplier
from quotebook.models.transaction import Transaction
from quotebook.schemas.client import ClientSummary

M = TypeVar("M", bound=Base)

SORT_FIELDS = ("name", "created_at", "updated_at")


def get_or_404(db: Session, model: Type[M], obj_id: str) -> M:
    obj = db.get(model, obj_id)
    if not obj:
        raise NotFoundError(f"{model.__name__} {obj_id} not found")
    return obj


def list_records(
    db: Session,
    model: Type[M],
    *,
    search: Optional[str],
    search_fields: tuple,
    is_active: Optional[bool],
    sort_by: str,
    sort_order: str,
    offset: int,
    limit: int,
    extra_filters: tuple = (),
) -> tuple[list[M], int]:
    q = db.query(model)
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(*[getattr(model, f).ilike(term) for f in search_fields]))
    if is_active is not None:
        q = q.filter(model.is_active.is_(is_active))
    for condition in extra_filters:
        q = q.filter(condition)
    if sort_by not in SORT_FIELDS:
        raise DomainValidationError(f"Cannot sort by {sort_by}")
    column = getattr(model, sort_by)
    total = q.count()
    rows = (
        q.order_by(column.asc() if sort_order == "asc" else column.desc(), model.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def create_record(db: Session, model: Type[M], values: dict, user: Profile) -> M:
    obj = model(id=str(uuid4()), created_by=user.id, **values)
    if hasattr(obj, "updated_by"):
        obj.updated_by = user.id
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.bind(user_id=user.id).info(f"{model.__tablename__}_created", id=obj.id)
    return obj


def update_record(db: Session, model: Type[M], obj_id: str, values: dict, user: Profile) -> M:
    obj = get_or_404(db, model, obj_id)
    for key, value in values.items():
        setattr(obj, key, value)
    if hasattr(obj, "updated_by"):
        obj.updated_by = user.id
    db.commit()
    db.refresh(obj)
    return obj


def deactivate_record(db: Session, model: Type[M], obj_id: str, user: Profile) -> M:
    """Soft delete: records blijven bestaan voor historische offertes."""
    obj = get_or_404(db, model, obj_id)
    obj.is_active = False
    if hasattr(obj, "updated_by"):
        obj.updated_by = user.id
    db.commit()
    db.refresh(obj)
    logger.bind(user_id=user.id).info(f"{model.__tablename__}_deactivated", id=obj.id)
    return obj


# ---------- clients ----------


def client_summary(db: Session, client_id: str) -> ClientSummary:
    get_or_404(db, Client, client_id)

    quote_count = db.query(func.count(Quote.id)).filter(Quote.client_id == client_id).scalar()
    accepted_total = (
        db.query(func.coalesce(func.sum(Quote.total_amount), 0))
        .filter(Quote.client_id == client_id, Quote.status.in_(("accepted", "completed")))
        .scalar()
    )
    project_ids = [
        r[0] for r in db.query(Project.id).filter(Project.client_id == client_id).all()
    ]

    completed_income = Decimal("0")
    outstanding = Decimal("0")
    if project_ids:
        income = db.query(func.coalesce(func.sum(Transaction.amount), 0)).filter(
            Transaction.project_id.in_(project_ids), Transaction.type == "income"
        )
        completed_income = Decimal(
            str(income.filter(Transaction.status == "completed").scalar() or 0)
        )
        outstanding = Decimal(
            str(income.filter(Transaction.status != "completed").scalar() or 0)
        )

    return ClientSummary(
        client_id=client_id,
        quote_count=int(quote_count or 0),
        accepted_quote_total=Decimal(str(accepted_total or 0)),
        project_count=len(project_ids),
        completed_income=completed_income,
        outstanding_receivables=outstanding,
    )


# ---------- master items ----------


def _check_supplier(db: Session, supplier_id: Optional[str]) -> None:
    if supplier_id and not db.get(Supplier, supplier_id):
        raise DomainValidationError(f"Unknown supplier: {supplier_id}")


def create_master_item(db: Session, values: dict, user: Profile) -> MasterItem:
    _check_supplier(db, values.get("supplier_id"))
    item = MasterItem(id=str(uuid4()), created_by=user.id, **values)
    item.price_history.append(
        MasterItemPriceHistory(
            unit_price=item.default_unit_price or Decimal("0"),
            cost_price=item.cost_price or Decimal("0"),
            changed_by=user.id,
        )
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_master_item(db: Session, item_id: str, values: dict, user: Profile) -> MasterItem:
    item = get_or_404(db, MasterItem, item_id)
    if "supplier_id" in values:
        _check_supplier(db, values["supplier_id"])

    old_prices = (Decimal(item.default_unit_price), Decimal(item.cost_price))
    for key, value in values.items():
        setattr(item, key, value)
    new_prices = (Decimal(item.default_unit_price), Decimal(item.cost_price))

    if new_prices != old_prices:
        item.price_history.append(
            MasterItemPriceHistory(
                unit_price=new_prices[0],
                cost_price=new_prices[1],
                changed_by=user.id,
            )
        )
        logger.bind(user_id=user.id).info(
            "master_item_price_changed",
            id=item.id,
            unit_price=str(new_prices[0]),
            cost_price=str(new_prices[1]),
        )
    db.commit()
    db.refresh(item)
    return item
