# quotebook/domain/quote_number.py
from __future__ import annotations

import re
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotebook.core.errors import ConflictError
from quotebook.models.quote import Quote

QUOTE_NUMBER_RE = re.compile(r"^Q(\d{8})(\d{3})$")
MAX_DAILY_SEQ = 999


def format_quote_number(day: date, seq: int) -> str:
    if seq < 1 or seq > MAX_DAILY_SEQ:
        raise ValueError("quote sequence out of range")
    return f"Q{day:%Y%m%d}{seq:03d}"


def next_quote_number(db: Session, day: date) -> str:
    """Q{YYYYMMDD}{NNN}: volgnummer per dag, op basis van het hoogste bestaande nummer."""
    prefix = f"Q{day:%Y%m%d}"
    last = (
        db.query(func.max(Quote.quote_number))
        .filter(Quote.quote_number.like(f"{prefix}%"))
        .scalar()
    )
    seq = 1
    if last:
        m = QUOTE_NUMBER_RE.match(last)
        if m:
            seq = int(m.group(2)) + 1
    if seq > MAX_DAILY_SEQ:
        raise ConflictError(f"No quote numbers left for {day.isoformat()}")
    return format_quote_number(day, seq)
