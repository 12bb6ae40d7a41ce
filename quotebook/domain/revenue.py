# quotebook/domain/revenue.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotebook.models.project import Project
from quotebook.models.transaction import RevenueRecognitionLog, Transaction


def completed_total(db: Session, project_id: str, tx_type: str) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(
            Transaction.project_id == project_id,
            Transaction.type == tx_type,
            Transaction.status == "completed",
        )
        .scalar()
    )
    return Decimal(str(total or 0))


def recognize_revenue(
    db: Session, tx: Transaction, *, actor_id: Optional[str] = None
) -> Decimal:
    """
    Boekt omzet voor een afgeronde income-transactie en herberekent
    project.total_revenue als som van alle afgeronde income.
    Geeft de nieuwe total_revenue terug.
    """
    if tx.type != "income" or tx.status != "completed":
        raise ValueError("only completed income transactions are recognised")

    db.add(
        RevenueRecognitionLog(
            project_id=tx.project_id,
            transaction_id=tx.id,
            amount=tx.amount,
            created_by=actor_id,
        )
    )
    db.flush()

    project = db.get(Project, tx.project_id)
    total = completed_total(db, tx.project_id, "income")
    if project is not None:
        project.total_revenue = total
    return total
