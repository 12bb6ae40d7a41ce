# quotebook/services/quote_service.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quotebook.core.errors import (
    ConflictError,
    DomainValidationError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from quotebook.core.logging_config import logger
from quotebook.core.settings import settings
from quotebook.domain.pricing import QuoteCalculation, calculate_quote
from quotebook.domain.quote_number import next_quote_number
from quotebook.domain.status import (
    QUOTE_STATUSES,
    allowed_transitions,
    can_delete_quote,
    can_edit_quote,
    can_transition,
)
from quotebook.models.client import Client
from quotebook.models.company_settings import CompanySettings
from quotebook.models.profile import Profile
from quotebook.models.project import Project
from quotebook.models.quote import (
    Quote,
    QuoteDetail,
    QuoteGroup,
    QuoteItem,
    QuoteStatusHistory,
)
from quotebook.models.quote_template import QuoteTemplate
from quotebook.models.supplier import Supplier
from quotebook.observability.metrics import quote_transition_counter, quotes_created_counter
from quotebook.repositories.quotes import get_quote_by_id
from quotebook.schemas.quote import (
    QuoteCalculateIn,
    QuoteCopyIn,
    QuoteCreate,
    QuoteFullOut,
    QuoteGroupOut,
    QuoteOut,
    QuoteStatusIn,
    QuoteTemplateIn,
    SaveAsTemplateIn,
    StatusHistoryOut,
)
from quotebook.services import notification_service

# type + prioriteit van de notificatie per doelstatus
STATUS_NOTIFICATIONS = {
    "accepted": ("quote_approved", "high"),
    "canceled": ("quote_rejected", "high"),
}

STATUS_LABELS = {
    "draft": "작성중",
    "sent": "발송",
    "accepted": "수주확정",
    "revised": "수정요청",
    "completed": "완료",
    "canceled": "취소",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_can_modify(user: Profile, quote: Quote) -> None:
    if not user.is_admin and quote.created_by != user.id:
        raise PermissionDeniedError("You can only modify your own quotes")


def calculate(data: QuoteCalculateIn) -> QuoteCalculation:
    try:
        return calculate_quote(
            data.groups,
            agency_fee_rate=data.agency_fee_rate,
            discount_amount=data.discount_amount,
            vat_type=data.vat_type,
            vat_rate=settings.VAT_RATE,
        )
    except ValueError as e:
        raise DomainValidationError(str(e))


def calculate_stored(quote: Quote) -> QuoteCalculation:
    return calculate_quote(
        quote.groups,
        agency_fee_rate=quote.agency_fee_rate,
        discount_amount=quote.discount_amount,
        vat_type=quote.vat_type,
        vat_rate=settings.VAT_RATE,
    )


def _apply_totals(quote: Quote, calc: QuoteCalculation) -> None:
    quote.subtotal_amount = calc.subtotal
    quote.agency_fee_amount = calc.agency_fee
    quote.discount_amount = calc.discount_amount
    quote.vat_amount = calc.vat_amount
    quote.supply_amount = calc.supply_amount
    quote.total_amount = calc.final_total
    quote.total_cost = calc.total_cost


def _supplier_names(db: Session, data: QuoteCalculateIn) -> dict[str, str]:
    ids = {
        d.supplier_id
        for g in data.groups
        for i in g.items
        for d in i.details
        if d.supplier_id
    }
    if not ids:
        return {}
    rows = db.query(Supplier.id, Supplier.name).filter(Supplier.id.in_(ids)).all()
    found = {r[0]: r[1] for r in rows}
    missing = ids - found.keys()
    if missing:
        raise DomainValidationError(f"Unknown supplier: {', '.join(sorted(missing))}")
    return found


def build_groups(db: Session, data: QuoteCalculateIn) -> list[QuoteGroup]:
    suppliers = _supplier_names(db, data)
    groups = []
    for gi, g in enumerate(data.groups):
        group = QuoteGroup(name=g.name, include_in_fee=g.include_in_fee, sort_order=gi)
        for ii, it in enumerate(g.items):
            item = QuoteItem(name=it.name, include_in_fee=it.include_in_fee, sort_order=ii)
            for di, d in enumerate(it.details):
                snapshot = d.supplier_name_snapshot
                if not snapshot and d.supplier_id:
                    snapshot = suppliers.get(d.supplier_id)
                item.details.append(
                    QuoteDetail(
                        name=d.name,
                        description=d.description,
                        quantity=d.quantity,
                        days=d.days,
                        unit=d.unit,
                        unit_price=d.unit_price,
                        is_service=d.is_service,
                        cost_price=d.cost_price,
                        supplier_id=d.supplier_id,
                        supplier_name_snapshot=snapshot,
                        master_item_id=d.master_item_id,
                        sort_order=di,
                    )
                )
            group.items.append(item)
        groups.append(group)
    return groups


def _customer_snapshot(db: Session, data: QuoteCreate) -> tuple[str, Optional[str]]:
    name = (data.customer_name_snapshot or "").strip() or None
    brn = data.business_registration_number
    if data.client_id:
        client = db.get(Client, data.client_id)
        if not client:
            raise DomainValidationError(f"Unknown client: {data.client_id}")
        name = name or client.name
        brn = brn or client.business_registration_number
    if not name:
        raise DomainValidationError("customer name is required")
    return name, brn


def _default_fee_rate(db: Session, data: QuoteCreate) -> Decimal:
    if "agency_fee_rate" in data.model_fields_set:
        return data.agency_fee_rate
    company = db.query(CompanySettings).first()
    if company is not None:
        return Decimal(company.default_agency_fee_rate)
    return data.agency_fee_rate


def _commit_new_quote(db: Session, quote: Quote) -> Quote:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Quote number already taken, please retry")
    db.refresh(quote)
    quotes_created_counter.inc()
    return quote


def create_quote(db: Session, data: QuoteCreate, user: Profile) -> Quote:
    calc = calculate(data)
    customer_name, brn = _customer_snapshot(db, data)
    issue_date = data.issue_date or date.today()

    quote = Quote(
        id=str(uuid4()),
        quote_number=next_quote_number(db, issue_date),
        project_title=data.project_title,
        client_id=data.client_id,
        customer_name_snapshot=customer_name,
        business_registration_number=brn,
        issue_date=issue_date,
        valid_until=data.valid_until
        or issue_date + timedelta(days=settings.QUOTE_VALIDITY_DAYS),
        status="draft",
        vat_type=data.vat_type,
        discount_amount=data.discount_amount,
        agency_fee_rate=_default_fee_rate(db, data),
        notes=data.notes,
        version=1,
        created_by=user.id,
        updated_by=user.id,
    )
    quote.groups = build_groups(db, data)
    if quote.agency_fee_rate != data.agency_fee_rate:
        calc = calculate_stored(quote)
    _apply_totals(quote, calc)
    db.add(quote)
    db.flush()

    notification_service.notify_many(
        db,
        notification_service.admin_ids(db),
        exclude=user.id,
        title="새 견적서",
        message=f"{quote.quote_number} {quote.project_title} 견적서가 작성되었습니다.",
        type="quote_created",
        link_url=f"/quotes/{quote.id}",
        entity_type="quote",
        entity_id=quote.id,
    )
    _commit_new_quote(db, quote)

    logger.bind(quote_id=quote.id, user_id=user.id).info(
        "quote_created", quote_number=quote.quote_number, total=str(quote.total_amount)
    )
    return quote


def update_quote(db: Session, quote_id: str, data: QuoteCreate, user: Profile) -> Quote:
    quote = get_quote_by_id(db, quote_id)
    ensure_can_modify(user, quote)
    if not can_edit_quote(quote.status):
        raise InvalidTransitionError(f"Quote in status {quote.status} cannot be edited")

    calc = calculate(data)
    customer_name, brn = _customer_snapshot(db, data)

    quote.project_title = data.project_title
    quote.client_id = data.client_id
    quote.customer_name_snapshot = customer_name
    quote.business_registration_number = brn
    if data.issue_date:
        quote.issue_date = data.issue_date
    if data.valid_until:
        quote.valid_until = data.valid_until
    elif data.issue_date:
        quote.valid_until = data.issue_date + timedelta(days=settings.QUOTE_VALIDITY_DAYS)
    if quote.valid_until and quote.valid_until < quote.issue_date:
        raise DomainValidationError("valid_until must not be before issue_date")
    quote.vat_type = data.vat_type
    quote.discount_amount = data.discount_amount
    quote.agency_fee_rate = data.agency_fee_rate
    quote.notes = data.notes

    quote.groups = build_groups(db, data)
    _apply_totals(quote, calc)
    quote.version = (quote.version or 1) + 1
    quote.updated_by = user.id
    db.commit()
    db.refresh(quote)

    logger.bind(quote_id=quote.id, user_id=user.id).info(
        "quote_updated", version=quote.version
    )
    return quote


def delete_quote(db: Session, quote_id: str, user: Profile) -> None:
    quote = get_quote_by_id(db, quote_id)
    ensure_can_modify(user, quote)
    if not can_delete_quote(quote.status):
        raise ConflictError(f"Quote in status {quote.status} cannot be deleted")
    if db.query(Project.id).filter(Project.quote_id == quote.id).first():
        raise ConflictError("Quote has a project and cannot be deleted")
    db.delete(quote)
    db.commit()
    logger.bind(quote_id=quote_id, user_id=user.id).info("quote_deleted")


def change_status(db: Session, quote_id: str, data: QuoteStatusIn, user: Profile) -> Quote:
    quote = get_quote_by_id(db, quote_id)
    target = data.status
    if target not in QUOTE_STATUSES:
        raise DomainValidationError(f"Unknown status: {target}")
    ensure_can_modify(user, quote)

    current = quote.status
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change status from {current} to {target}; "
            f"allowed: {', '.join(allowed_transitions(current)) or 'none'}"
        )

    if target == "completed":
        project = db.query(Project.id).filter(Project.quote_id == quote.id).first()
        if not project:
            raise InvalidTransitionError("Quote must be converted to a project before completing")

    now = _now()
    if target == "sent":
        quote.sent_at = now
    elif target == "accepted":
        quote.accepted_at = now
        quote.accepted_by = user.id
    elif target == "canceled":
        quote.canceled_at = now
        quote.canceled_by = user.id
        quote.cancel_reason = data.reason
    elif target == "completed":
        quote.completed_at = now

    _record_transition(db, quote, current, target, user, data.notes or data.reason)
    db.commit()
    db.refresh(quote)
    return quote


def _record_transition(
    db: Session,
    quote: Quote,
    current: str,
    target: str,
    user: Profile,
    notes: Optional[str],
) -> None:
    quote.status = target
    quote.updated_by = user.id
    quote.status_history.append(
        QuoteStatusHistory(
            from_status=current,
            to_status=target,
            notes=notes,
            changed_by=user.id,
        )
    )
    db.flush()

    ntype, priority = STATUS_NOTIFICATIONS.get(target, ("general", "normal"))
    notification_service.notify_many(
        db,
        [quote.created_by, *notification_service.admin_ids(db)],
        exclude=user.id,
        title="견적서 상태 변경",
        message=(
            f"{quote.quote_number} {quote.project_title}: "
            f"{STATUS_LABELS[current]} → {STATUS_LABELS[target]}"
        ),
        type=ntype,
        priority=priority,
        link_url=f"/quotes/{quote.id}",
        entity_type="quote",
        entity_id=quote.id,
    )
    quote_transition_counter.labels(from_status=current, to_status=target).inc()
    logger.bind(quote_id=quote.id, user_id=user.id).info(
        "quote_status_changed", from_status=current, to_status=target
    )


def complete_for_project(db: Session, quote: Quote, user: Profile) -> bool:
    """Zet een accepted offerte op completed wanneer het project klaar is. Commit niet."""
    if quote.status != "accepted":
        return False
    quote.completed_at = _now()
    _record_transition(db, quote, "accepted", "completed", user, "project completed")
    return True


def copy_quote(db: Session, quote_id: str, data: QuoteCopyIn, user: Profile) -> Quote:
    source = get_quote_by_id(db, quote_id)
    today = date.today()

    client_id = data.client_id if data.client_id is not None else source.client_id
    customer_name = data.customer_name_snapshot
    brn = source.business_registration_number
    if data.client_id and data.client_id != source.client_id:
        client = db.get(Client, data.client_id)
        if not client:
            raise DomainValidationError(f"Unknown client: {data.client_id}")
        customer_name = customer_name or client.name
        brn = client.business_registration_number

    copy = Quote(
        id=str(uuid4()),
        quote_number=next_quote_number(db, today),
        project_title=data.project_title,
        client_id=client_id,
        customer_name_snapshot=customer_name or source.customer_name_snapshot,
        business_registration_number=brn,
        issue_date=today,
        valid_until=today + timedelta(days=settings.QUOTE_VALIDITY_DAYS),
        status="draft",
        vat_type=source.vat_type,
        discount_amount=Decimal("0") if data.copy_structure_only else source.discount_amount,
        agency_fee_rate=source.agency_fee_rate,
        notes=source.notes,
        version=1,
        parent_quote_id=source.id,
        created_by=user.id,
        updated_by=user.id,
    )

    reset = data.copy_structure_only
    for g in source.groups:
        group = QuoteGroup(name=g.name, include_in_fee=g.include_in_fee, sort_order=g.sort_order)
        for it in g.items:
            item = QuoteItem(name=it.name, include_in_fee=it.include_in_fee, sort_order=it.sort_order)
            for d in it.details:
                item.details.append(
                    QuoteDetail(
                        name=d.name,
                        description=d.description,
                        quantity=Decimal("1") if reset else d.quantity,
                        days=Decimal("1") if reset else d.days,
                        unit=d.unit,
                        unit_price=Decimal("0") if reset else d.unit_price,
                        is_service=d.is_service,
                        cost_price=Decimal("0") if reset else d.cost_price,
                        supplier_id=d.supplier_id,
                        supplier_name_snapshot=d.supplier_name_snapshot,
                        master_item_id=d.master_item_id,
                        sort_order=d.sort_order,
                    )
                )
            group.items.append(item)
        copy.groups.append(group)

    _apply_totals(copy, calculate_stored(copy))
    db.add(copy)
    _commit_new_quote(db, copy)

    logger.bind(quote_id=copy.id, user_id=user.id).info(
        "quote_copied", source_id=source.id, structure_only=reset
    )
    return copy


def quote_detail(db: Session, quote: Quote) -> QuoteFullOut:
    """Volledige boom + live berekening + historie, voor GET /quotes/{id}."""
    project = db.query(Project.id).filter(Project.quote_id == quote.id).first()
    base = QuoteOut.model_validate(quote).model_dump()
    return QuoteFullOut(
        **base,
        groups=[QuoteGroupOut.model_validate(g) for g in quote.groups],
        status_history=[StatusHistoryOut.model_validate(h) for h in quote.status_history],
        calculation=calculate_stored(quote).as_dict(),
        allowed_transitions=allowed_transitions(quote.status),
        project_id=project[0] if project else None,
    )


# ---------- templates ----------


def _structure_dump(quote: Quote) -> list[dict]:
    return [
        {
            "name": g.name,
            "include_in_fee": g.include_in_fee,
            "items": [
                {
                    "name": it.name,
                    "include_in_fee": it.include_in_fee,
                    "details": [
                        {
                            "name": d.name,
                            "description": d.description,
                            "quantity": str(d.quantity),
                            "days": str(d.days),
                            "unit": d.unit,
                            "unit_price": str(d.unit_price),
                            "is_service": d.is_service,
                            "cost_price": str(d.cost_price),
                            "supplier_id": d.supplier_id,
                            "supplier_name_snapshot": d.supplier_name_snapshot,
                            "master_item_id": d.master_item_id,
                        }
                        for d in it.details
                    ],
                }
                for it in g.items
            ],
        }
        for g in quote.groups
    ]


def create_template(db: Session, data: QuoteTemplateIn, user: Profile) -> QuoteTemplate:
    template = QuoteTemplate(
        id=str(uuid4()),
        name=data.name,
        description=data.description,
        template_data=data.template_data.model_dump(mode="json"),
        created_by=user.id,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def save_as_template(
    db: Session, quote_id: str, data: SaveAsTemplateIn, user: Profile
) -> QuoteTemplate:
    quote = get_quote_by_id(db, quote_id)
    template = QuoteTemplate(
        id=str(uuid4()),
        name=data.name,
        description=data.description,
        template_data={
            "vat_type": quote.vat_type,
            "agency_fee_rate": str(quote.agency_fee_rate),
            "discount_amount": str(quote.discount_amount),
            "groups": _structure_dump(quote),
        },
        created_by=user.id,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.bind(quote_id=quote.id, user_id=user.id).info(
        "quote_saved_as_template", template_id=template.id
    )
    return template


def get_template(db: Session, template_id: str) -> QuoteTemplate:
    template = db.get(QuoteTemplate, template_id)
    if not template:
        raise NotFoundError(f"Template {template_id} not found")
    return template


def delete_template(db: Session, template_id: str, user: Profile) -> None:
    template = get_template(db, template_id)
    if not user.is_admin and template.created_by != user.id:
        raise PermissionDeniedError("You can only delete your own templates")
    db.delete(template)
    db.commit()
