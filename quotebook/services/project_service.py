# quotebook/services/project_service.py
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from quotebook.core.errors import (
    ConflictError,
    DomainValidationError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from quotebook.core.logging_config import logger
from quotebook.domain.pricing import ZERO, detail_cost, qwon, split_installments
from quotebook.domain.revenue import completed_total
from quotebook.domain.status import PROJECT_STATUSES, can_change_project_status
from quotebook.models.profile import Profile
from quotebook.models.project import Project
from quotebook.models.quote import Quote
from quotebook.models.transaction import Transaction
from quotebook.repositories.quotes import get_quote_by_id
from quotebook.schemas.project import FinancialSummary, SettlementSummary
from quotebook.schemas.quote import ConvertToProjectIn
from quotebook.services import notification_service, quote_service

UNKNOWN_PARTNER = "미정"


def add_months(d: date, months: int) -> date:
    month = d.month - 1 + months
    year = d.year + month // 12
    month = month % 12 + 1
    # clamp op laatste dag van de maand
    for day in (d.day, 30, 29, 28):
        try:
            return d.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise ValueError("invalid date")


def get_project(db: Session, project_id: str) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError(f"Project {project_id} not found")
    return project


def _income_transactions(
    quote: Quote, project: Project, data: ConvertToProjectIn, first_due: date, user: Profile
) -> list[Transaction]:
    title = quote.project_title
    partner = quote.customer_name_snapshot
    rows: list[Transaction] = []

    if data.settlement_schedule:
        n = len(data.settlement_schedule)
        for idx, s in enumerate(data.settlement_schedule, start=1):
            default_name = f"{title} - settlement" if n == 1 else f"{title} - {idx}/{n} settlement"
            rows.append(
                Transaction(
                    id=str(uuid4()),
                    project_id=project.id,
                    type="income",
                    partner_name=partner,
                    item_name=s.description or default_name,
                    amount=qwon(s.amount),
                    due_date=s.due_date,
                    created_by=user.id,
                )
            )
        return rows

    periods = data.settlement_periods
    for idx, amount in enumerate(split_installments(quote.total_amount, periods), start=1):
        if amount <= 0:
            continue
        rows.append(
            Transaction(
                id=str(uuid4()),
                project_id=project.id,
                type="income",
                partner_name=partner,
                item_name=(
                    f"{title} - settlement" if periods == 1 else f"{title} - {idx}/{periods} settlement"
                ),
                amount=amount,
                due_date=add_months(first_due, idx - 1),
                created_by=user.id,
            )
        )
    return rows


def _expense_transactions(
    quote: Quote, project: Project, due: Optional[date], user: Profile
) -> list[Transaction]:
    rows: list[Transaction] = []
    for group in quote.groups:
        for item in group.items:
            for detail in item.details:
                if detail.is_service:
                    continue
                cost = qwon(detail_cost(detail))
                if cost <= 0:
                    continue
                rows.append(
                    Transaction(
                        id=str(uuid4()),
                        project_id=project.id,
                        type="expense",
                        partner_name=detail.supplier_name_snapshot or UNKNOWN_PARTNER,
                        item_name=f"{item.name} - {detail.name}",
                        amount=cost,
                        due_date=due,
                        created_by=user.id,
                    )
                )
    return rows


def convert_to_project(
    db: Session, quote_id: str, data: ConvertToProjectIn, user: Profile
) -> tuple[Project, list[Transaction]]:
    """
    Zet een accepted offerte om in een project met geplande settlements
    (income) en kosten per niet-service detail (expense).
    """
    quote = get_quote_by_id(db, quote_id)
    quote_service.ensure_can_modify(user, quote)
    if quote.status != "accepted":
        raise InvalidTransitionError("Only accepted quotes can be converted to a project")
    if db.query(Project.id).filter(Project.quote_id == quote.id).first():
        raise ConflictError("Quote has already been converted to a project")

    start = data.start_date or date.today()
    project = Project(
        id=str(uuid4()),
        name=quote.project_title,
        client_id=quote.client_id,
        quote_id=quote.id,
        status="active",
        start_date=data.start_date,
        end_date=data.end_date,
        contract_amount=quote.supply_amount,
        total_revenue=ZERO,
        total_cost=quote.total_cost,
        created_by=user.id,
    )
    db.add(project)
    db.flush()

    first_due = data.end_date or add_months(start, 1)
    transactions = _income_transactions(quote, project, data, first_due, user)
    transactions += _expense_transactions(quote, project, data.end_date, user)
    db.add_all(transactions)
    db.flush()

    notification_service.create_notification(
        db,
        user_id=user.id,
        title="프로젝트 생성",
        message=f"{quote.quote_number} 견적서로 프로젝트 {project.name}이(가) 생성되었습니다.",
        type="project_created",
        link_url=f"/projects/{project.id}",
        entity_type="project",
        entity_id=project.id,
    )
    db.commit()
    db.refresh(project)

    logger.bind(quote_id=quote.id, project_id=project.id, user_id=user.id).info(
        "quote_converted",
        transactions=len(transactions),
        contract_amount=str(project.contract_amount),
    )
    return project, transactions


def list_projects(
    db: Session,
    *,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Project], int]:
    q = db.query(Project)
    if status:
        if status not in PROJECT_STATUSES:
            raise DomainValidationError(f"Unknown project status: {status}")
        q = q.filter(Project.status == status)
    if client_id:
        q = q.filter(Project.client_id == client_id)
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(Project.name.ilike(term), Project.description.ilike(term)))
    total = q.count()
    rows = q.order_by(Project.created_at.desc(), Project.id).offset(offset).limit(limit).all()
    return rows, total


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return ZERO
    return (part / whole * 100).quantize(Decimal("0.01"))


def financial_summary(db: Session, project: Project) -> FinancialSummary:
    income = completed_total(db, project.id, "income")
    expense = completed_total(db, project.id, "expense")
    planned_expense = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.project_id == project.id, Transaction.type == "expense")
        .scalar()
    )
    open_income = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(
            Transaction.project_id == project.id,
            Transaction.type == "income",
            Transaction.status != "completed",
        )
        .scalar()
    )
    profit = income - expense
    return FinancialSummary(
        contract_amount=project.contract_amount,
        recognized_revenue=project.total_revenue,
        completed_expenses=expense,
        planned_expenses=Decimal(str(planned_expense or 0)),
        receivables=Decimal(str(open_income or 0)),
        profit=profit,
        profit_margin=_pct(profit, income),
    )


def settlement_summary(db: Session, project: Project) -> SettlementSummary:
    income = completed_total(db, project.id, "income")
    expense = completed_total(db, project.id, "expense")
    pending = (
        db.query(func.count(Transaction.id))
        .filter(Transaction.project_id == project.id, Transaction.status != "completed")
        .scalar()
    )
    profit = income - expense
    return SettlementSummary(
        project_id=project.id,
        actual_income=income,
        actual_expense=expense,
        profit=profit,
        profit_margin=_pct(profit, income),
        pending_transactions=int(pending or 0),
    )


def update_project(
    db: Session, project_id: str, values: dict, user: Profile
) -> tuple[Project, Optional[SettlementSummary]]:
    project = get_project(db, project_id)
    if not user.is_admin and project.created_by != user.id:
        raise PermissionDeniedError("You can only modify your own projects")

    new_status = values.pop("status", None)
    for key, value in values.items():
        setattr(project, key, value)
    if project.start_date and project.end_date and project.end_date < project.start_date:
        raise DomainValidationError("end_date must not be before start_date")

    summary = None
    if new_status is not None and new_status != project.status:
        if not can_change_project_status(project.status, new_status):
            raise InvalidTransitionError(
                f"Cannot change project status from {project.status} to {new_status}"
            )
        old_status = project.status
        project.status = new_status
        if new_status == "completed":
            project.completed_at = datetime.now(timezone.utc)
            quote = db.get(Quote, project.quote_id)
            if quote is not None:
                quote_service.complete_for_project(db, quote, user)
            db.flush()
            summary = settlement_summary(db, project)

        notification_service.notify_many(
            db,
            [project.created_by, user.id],
            title="프로젝트 상태 변경",
            message=f"프로젝트 {project.name}: {old_status} → {new_status}",
            type="project_status_changed",
            priority="high" if new_status == "completed" else "normal",
            link_url=f"/projects/{project.id}",
            entity_type="project",
            entity_id=project.id,
        )
        logger.bind(project_id=project.id, user_id=user.id).info(
            "project_status_changed", from_status=old_status, to_status=new_status
        )

    db.commit()
    db.refresh(project)
    return project, summary
