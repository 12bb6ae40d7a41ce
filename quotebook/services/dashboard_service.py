# quotebook/services/dashboard_service.py
from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotebook.domain.status import QUOTE_STATUSES
from quotebook.models.project import Project
from quotebook.models.quote import Quote
from quotebook.models.transaction import RevenueRecognitionLog, Transaction
from quotebook.schemas.quote import QuoteOut


def _dec(value) -> Decimal:
    return Decimal(str(value or 0))


def dashboard_stats(db: Session, today: Optional[date] = None) -> dict:
    today = today or date.today()
    month_start = datetime.combine(today.replace(day=1), time.min, tzinfo=timezone.utc)

    counts = dict(db.query(Quote.status, func.count(Quote.id)).group_by(Quote.status).all())
    quote_counts = {s: int(counts.get(s, 0)) for s in QUOTE_STATUSES}

    won_value = (
        db.query(func.coalesce(func.sum(Quote.total_amount), 0))
        .filter(Quote.status.in_(("accepted", "completed")))
        .scalar()
    )
    active_projects = (
        db.query(func.count(Project.id)).filter(Project.status == "active").scalar()
    )
    month_revenue = (
        db.query(func.coalesce(func.sum(RevenueRecognitionLog.amount), 0))
        .filter(RevenueRecognitionLog.recognized_at >= month_start)
        .scalar()
    )
    receivables = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.type == "income", Transaction.status != "completed")
        .scalar()
    )
    overdue = (
        db.query(func.count(Transaction.id))
        .filter(Transaction.status != "completed", Transaction.due_date < today)
        .scalar()
    )
    latest = db.query(Quote).order_by(Quote.created_at.desc(), Quote.id).limit(5).all()

    return {
        "quote_counts": quote_counts,
        "total_quotes": sum(quote_counts.values()),
        "won_quote_value": _dec(won_value),
        "active_projects": int(active_projects or 0),
        "revenue_this_month": _dec(month_revenue),
        "outstanding_receivables": _dec(receivables),
        "overdue_transactions": int(overdue or 0),
        "recent_quotes": [QuoteOut.model_validate(q) for q in latest],
    }
