from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from quotebook.core.errors import DomainValidationError, NotFoundError
from quotebook.domain.status import QUOTE_STATUSES
from quotebook.models.quote import Quote

QUOTE_SORT_FIELDS = {
    "created_at": Quote.created_at,
    "updated_at": Quote.updated_at,
    "issue_date": Quote.issue_date,
    "total_amount": Quote.total_amount,
    "project_title": Quote.project_title,
    "customer_name_snapshot": Quote.customer_name_snapshot,
}


@dataclass
class QuoteFilters:
    status: Optional[str] = None  # komma-gescheiden lijst
    client_id: Optional[str] = None
    search: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    created_by: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


def get_quote_by_id(db: Session, quote_id: str) -> Quote:
    quote = db.get(Quote, quote_id)
    if not quote:
        raise NotFoundError(f"Quote {quote_id} not found")
    return quote


def parse_statuses(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    statuses = [s.strip() for s in raw.split(",") if s.strip()]
    unknown = [s for s in statuses if s not in QUOTE_STATUSES]
    if unknown:
        raise DomainValidationError(f"Unknown status: {', '.join(unknown)}")
    return statuses


def filtered_quotes(db: Session, f: QuoteFilters) -> Query:
    q = db.query(Quote)

    statuses = parse_statuses(f.status)
    if statuses:
        q = q.filter(Quote.status.in_(statuses))
    if f.client_id:
        q = q.filter(Quote.client_id == f.client_id)
    if f.created_by:
        q = q.filter(Quote.created_by == f.created_by)
    if f.search:
        term = f"%{f.search.strip()}%"
        q = q.filter(
            or_(
                Quote.quote_number.ilike(term),
                Quote.project_title.ilike(term),
                Quote.customer_name_snapshot.ilike(term),
            )
        )
    if f.date_from:
        q = q.filter(Quote.issue_date >= f.date_from)
    if f.date_to:
        q = q.filter(Quote.issue_date <= f.date_to)
    if f.amount_min is not None:
        q = q.filter(Quote.total_amount >= f.amount_min)
    if f.amount_max is not None:
        q = q.filter(Quote.total_amount <= f.amount_max)

    if f.sort_by not in QUOTE_SORT_FIELDS:
        raise DomainValidationError(f"Cannot sort by {f.sort_by}")
    column = QUOTE_SORT_FIELDS[f.sort_by]
    q = q.order_by(column.asc() if f.sort_order == "asc" else column.desc(), Quote.id)
    return q


def list_quotes(
    db: Session, f: QuoteFilters, *, offset: int, limit: int
) -> tuple[list[Quote], int]:
    q = filtered_quotes(db, f)
    total = q.order_by(None).count()
    return q.offset(offset).limit(limit).all(), total
