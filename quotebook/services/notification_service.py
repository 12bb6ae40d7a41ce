# quotebook/services/notification_service.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotebook.core.errors import DomainValidationError, NotFoundError
from quotebook.core.logging_config import logger
from quotebook.core.settings import settings
from quotebook.models.notification import (
    NOTIFICATION_TYPES,
    PRIORITIES,
    Notification,
    NotificationSettings,
)
from quotebook.models.profile import Profile
from quotebook.models.project import Project
from quotebook.models.quote import Quote
from quotebook.models.transaction import Transaction
from quotebook.observability.metrics import notifications_counter

SETTLEMENT_REMINDER_DAYS = (1, 7)


def get_settings(db: Session, user_id: str) -> NotificationSettings:
    """Per-user switches; lazily aangemaakt met alles aan."""
    row = (
        db.query(NotificationSettings)
        .filter(NotificationSettings.user_id == user_id)
        .first()
    )
    if row is None:
        row = NotificationSettings(user_id=user_id)
        db.add(row)
        db.flush()
    return row


def update_settings(db: Session, user_id: str, values: dict) -> NotificationSettings:
    row = get_settings(db, user_id)
    for key, value in values.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def _is_duplicate(db: Session, user_id: str, ntype: str, message: str) -> bool:
    since = datetime.now(timezone.utc) - timedelta(hours=settings.NOTIFICATION_DEDUPE_HOURS)
    hit = (
        db.query(Notification.id)
        .filter(
            Notification.user_id == user_id,
            Notification.type == ntype,
            Notification.message == message,
            Notification.created_at >= since,
        )
        .first()
    )
    return hit is not None


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    type: str = "general",
    priority: str = "normal",
    link_url: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
) -> Optional[Notification]:
    """
    Maakt een notificatie aan, tenzij de gebruiker dit type heeft uitgezet
    of er binnen NOTIFICATION_DEDUPE_HOURS al een identieke is.
    Geeft None terug als er niets is aangemaakt. Commit niet.
    """
    if type not in NOTIFICATION_TYPES:
        raise DomainValidationError(f"Unknown notification type: {type}")
    if priority not in PRIORITIES:
        raise DomainValidationError(f"Unknown priority: {priority}")

    prefs = get_settings(db, user_id)
    if not prefs.allows(type):
        logger.bind(user_id=user_id, type=type).debug("notification_disabled")
        return None

    if _is_duplicate(db, user_id, type, message):
        logger.bind(user_id=user_id, type=type).debug("notification_duplicate")
        return None

    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        link_url=link_url,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(notification)
    db.flush()
    notifications_counter.labels(type=type).inc()
    return notification


def admin_ids(db: Session) -> list[str]:
    rows = (
        db.query(Profile.id)
        .filter(Profile.role.in_(("admin", "super_admin")), Profile.is_active.is_(True))
        .all()
    )
    return [r[0] for r in rows]


def notify_many(
    db: Session, user_ids: Iterable[str], *, exclude: Optional[str] = None, **kwargs
) -> int:
    created = 0
    for uid in dict.fromkeys(user_ids):
        if uid == exclude:
            continue
        if create_notification(db, user_id=uid, **kwargs) is not None:
            created += 1
    return created


def list_notifications(
    db: Session, user_id: str, *, unread_only: bool, page: int, per_page: int
) -> tuple[list[Notification], int, int]:
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    total = q.count()
    items = (
        q.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    unread = (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .scalar()
    )
    return items, total, int(unread or 0)


def _own_notification(db: Session, user_id: str, notification_id: int) -> Notification:
    n = db.get(Notification, notification_id)
    if not n or n.user_id != user_id:
        raise NotFoundError("Notification not found")
    return n


def mark_read(db: Session, user_id: str, notification_id: int) -> Notification:
    n = _own_notification(db, user_id, notification_id)
    n.is_read = True
    db.commit()
    db.refresh(n)
    return n


def mark_all_read(db: Session, user_id: str) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return int(count)


def delete_notification(db: Session, user_id: str, notification_id: int) -> None:
    n = _own_notification(db, user_id, notification_id)
    db.delete(n)
    db.commit()


# ---------- periodic checks ----------


def _won(amount) -> str:
    return f"{int(amount):,}원"


def check_expiring_quotes(db: Session, today: date) -> tuple[int, int]:
    horizon = today + timedelta(days=settings.QUOTE_EXPIRY_WARNING_DAYS)
    quotes = (
        db.query(Quote)
        .filter(
            Quote.status == "sent",
            Quote.valid_until.isnot(None),
            Quote.valid_until >= today,
            Quote.valid_until <= horizon,
        )
        .all()
    )
    created = 0
    for q in quotes:
        days_left = (q.valid_until - today).days
        created += notify_many(
            db,
            [q.created_by],
            title="견적서 만료 임박",
            message=f"견적서 {q.quote_number} ({q.project_title})이(가) {days_left}일 후 만료됩니다.",
            type="quote_expiring",
            priority="high" if days_left <= 1 else "normal",
            link_url=f"/quotes/{q.id}",
            entity_type="quote",
            entity_id=q.id,
        )
    return len(quotes), created


def check_project_deadlines(db: Session, today: date) -> tuple[int, int]:
    horizon = today + timedelta(days=settings.PROJECT_DEADLINE_WARNING_DAYS)
    projects = (
        db.query(Project)
        .filter(
            Project.status == "active",
            Project.end_date.isnot(None),
            Project.end_date >= today,
            Project.end_date <= horizon,
        )
        .all()
    )
    created = 0
    for p in projects:
        days_left = (p.end_date - today).days
        created += notify_many(
            db,
            [p.created_by],
            title="프로젝트 마감 임박",
            message=f"프로젝트 {p.name}의 마감일이 {days_left}일 남았습니다.",
            type="project_deadline_approaching",
            priority="high" if days_left <= 1 else "normal",
            link_url=f"/projects/{p.id}",
            entity_type="project",
            entity_id=p.id,
        )
    return len(projects), created


def _tx_recipients(db: Session, tx: Transaction) -> list[str]:
    project = db.get(Project, tx.project_id)
    owners = [project.created_by] if project else []
    return owners + admin_ids(db)


def check_settlements_due(db: Session, today: date) -> tuple[int, int]:
    due_days = [today + timedelta(days=d) for d in SETTLEMENT_REMINDER_DAYS]
    txs = (
        db.query(Transaction)
        .filter(Transaction.status != "completed", Transaction.due_date.in_(due_days))
        .all()
    )
    created = 0
    for tx in txs:
        days_left = (tx.due_date - today).days
        label = "입금" if tx.type == "income" else "지급"
        created += notify_many(
            db,
            _tx_recipients(db, tx),
            title=f"정산 {label} 예정",
            message=(
                f"{tx.partner_name} {tx.item_name} {_won(tx.amount)} "
                f"{label} 예정일이 {days_left}일 남았습니다."
            ),
            type="settlement_due",
            priority="high" if days_left <= 1 else "normal",
            link_url=f"/projects/{tx.project_id}",
            entity_type="transaction",
            entity_id=tx.id,
        )
    return len(txs), created


def check_settlements_overdue(db: Session, today: date) -> tuple[int, int]:
    txs = (
        db.query(Transaction)
        .filter(Transaction.status != "completed", Transaction.due_date < today)
        .all()
    )
    created = 0
    for tx in txs:
        overdue = (today - tx.due_date).days
        created += notify_many(
            db,
            _tx_recipients(db, tx),
            title="정산 연체",
            message=(
                f"{tx.partner_name} {tx.item_name} {_won(tx.amount)} "
                f"정산이 {overdue}일 연체되었습니다."
            ),
            type="settlement_overdue",
            priority="urgent" if overdue > 7 else "high",
            link_url=f"/projects/{tx.project_id}",
            entity_type="transaction",
            entity_id=tx.id,
        )
    return len(txs), created


def run_notification_checks(db: Session, today: Optional[date] = None) -> dict:
    """Dagelijkse sweep: verlopende offertes, deadlines, en (achterstallige) settlements."""
    today = today or date.today()
    quotes, n1 = check_expiring_quotes(db, today)
    projects, n2 = check_project_deadlines(db, today)
    due, n3 = check_settlements_due(db, today)
    overdue, n4 = check_settlements_overdue(db, today)
    db.commit()

    result = {
        "quotes_expiring": quotes,
        "projects_due": projects,
        "settlements_due": due,
        "settlements_overdue": overdue,
        "notifications_created": n1 + n2 + n3 + n4,
    }
    logger.info("notification_checks_finished", **result)
    return result
