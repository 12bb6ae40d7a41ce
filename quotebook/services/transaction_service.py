# quotebook/services/transaction_service.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from quotebook.core.errors import ConflictError, DomainValidationError, NotFoundError
from quotebook.core.logging_config import logger
from quotebook.domain.pricing import qwon
from quotebook.domain.revenue import recognize_revenue
from quotebook.domain.status import TRANSACTION_STATUSES, TRANSACTION_TYPES
from quotebook.models.profile import Profile
from quotebook.models.project import Project
from quotebook.models.transaction import Transaction
from quotebook.observability.metrics import revenue_recognized_counter
from quotebook.schemas.project import TransactionCreate
from quotebook.services import notification_service


def get_transaction(db: Session, transaction_id: str) -> Transaction:
    tx = db.get(Transaction, transaction_id)
    if not tx:
        raise NotFoundError(f"Transaction {transaction_id} not found")
    return tx


def list_transactions(
    db: Session,
    *,
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    due_from: Optional[date] = None,
    due_to: Optional[date] = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Transaction], int]:
    q = db.query(Transaction)
    if project_id:
        q = q.filter(Transaction.project_id == project_id)
    if status:
        if status not in TRANSACTION_STATUSES:
            raise DomainValidationError(f"Unknown transaction status: {status}")
        q = q.filter(Transaction.status == status)
    if type:
        if type not in TRANSACTION_TYPES:
            raise DomainValidationError(f"Unknown transaction type: {type}")
        q = q.filter(Transaction.type == type)
    if due_from:
        q = q.filter(Transaction.due_date >= due_from)
    if due_to:
        q = q.filter(Transaction.due_date <= due_to)
    total = q.count()
    rows = q.order_by(Transaction.due_date.asc(), Transaction.id).offset(offset).limit(limit).all()
    return rows, total


def _on_completed(db: Session, tx: Transaction, user: Profile) -> None:
    tx.completed_at = datetime.now(timezone.utc)
    db.flush()
    if tx.type == "income":
        total = recognize_revenue(db, tx, actor_id=user.id)
        revenue_recognized_counter.inc(float(tx.amount))
        logger.bind(project_id=tx.project_id, transaction_id=tx.id).info(
            "revenue_recognized", amount=str(tx.amount), total_revenue=str(total)
        )


def _notify_status(db: Session, tx: Transaction, user: Profile) -> None:
    completed = tx.status == "completed"
    notification_service.create_notification(
        db,
        user_id=user.id,
        title="정산 완료" if completed else "정산 상태 변경",
        message=f"{tx.partner_name} {tx.item_name}: {tx.status}",
        type="settlement_completed" if completed else "general",
        link_url=f"/projects/{tx.project_id}",
        entity_type="transaction",
        entity_id=tx.id,
    )


def create_transaction(db: Session, data: TransactionCreate, user: Profile) -> Transaction:
    if not db.get(Project, data.project_id):
        raise NotFoundError(f"Project {data.project_id} not found")

    tx = Transaction(
        id=str(uuid4()),
        project_id=data.project_id,
        type=data.type,
        partner_name=data.partner_name,
        item_name=data.item_name,
        amount=qwon(data.amount),
        due_date=data.due_date,
        status=data.status,
        tax_invoice_status=data.tax_invoice_status,
        notes=data.notes,
        created_by=user.id,
    )
    db.add(tx)
    db.flush()
    if tx.status == "completed":
        _on_completed(db, tx, user)
    db.commit()
    db.refresh(tx)
    logger.bind(transaction_id=tx.id, project_id=tx.project_id, user_id=user.id).info(
        "transaction_created", type=tx.type, amount=str(tx.amount)
    )
    return tx


def update_transaction(
    db: Session, transaction_id: str, values: dict, user: Profile
) -> Transaction:
    """
    Afgeronde transacties zijn bevroren qua status en bedrag.
    pending/processing/issue -> completed boekt (bij income) omzet.
    """
    tx = get_transaction(db, transaction_id)
    new_status = values.pop("status", None)
    new_amount = values.pop("amount", None)

    if tx.status == "completed":
        if new_status is not None and new_status != "completed":
            raise ConflictError("Completed transactions cannot change status")
        if new_amount is not None and qwon(new_amount) != tx.amount:
            raise ConflictError("Completed transactions cannot change amount")
        new_status = None
        new_amount = None

    if new_amount is not None:
        tx.amount = qwon(new_amount)
    for key, value in values.items():
        setattr(tx, key, value)

    if new_status is not None and new_status != tx.status:
        old_status = tx.status
        tx.status = new_status
        if new_status == "completed":
            _on_completed(db, tx, user)
        _notify_status(db, tx, user)
        logger.bind(transaction_id=tx.id, user_id=user.id).info(
            "transaction_status_changed", from_status=old_status, to_status=new_status
        )

    db.commit()
    db.refresh(tx)
    return tx


def delete_transaction(db: Session, transaction_id: str, user: Profile) -> None:
    tx = get_transaction(db, transaction_id)
    if tx.status == "completed":
        raise ConflictError("Completed transactions cannot be deleted")
    db.delete(tx)
    db.commit()
    logger.bind(transaction_id=transaction_id, user_id=user.id).info("transaction_deleted")
