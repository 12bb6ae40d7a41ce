# quotebook/domain/status.py
from __future__ import annotations

QUOTE_STATUSES = ("draft", "sent", "accepted", "revised", "completed", "canceled")

QUOTE_TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"sent", "canceled"}),
    "sent": frozenset({"accepted", "revised", "canceled"}),
    "revised": frozenset({"sent", "canceled"}),
    "accepted": frozenset({"completed", "canceled"}),
    "completed": frozenset(),
    "canceled": frozenset(),
}

QUOTE_TERMINAL = {"completed", "canceled"}
QUOTE_EDITABLE = {"draft", "revised"}
QUOTE_UNDELETABLE = {"accepted", "completed"}

PROJECT_STATUSES = ("active", "on_hold", "completed", "canceled")
PROJECT_TERMINAL = {"completed", "canceled"}

TRANSACTION_TYPES = ("income", "expense")
TRANSACTION_STATUSES = ("pending", "processing", "completed", "issue")
TAX_INVOICE_STATUSES = ("not_issued", "issued", "received")


def can_transition(current: str, target: str) -> bool:
    return target in QUOTE_TRANSITIONS.get(current, frozenset())


def allowed_transitions(current: str) -> list[str]:
    return sorted(QUOTE_TRANSITIONS.get(current, frozenset()))


def can_edit_quote(status: str) -> bool:
    return status in QUOTE_EDITABLE


def can_delete_quote(status: str) -> bool:
    return status not in QUOTE_UNDELETABLE


def can_change_project_status(current: str, target: str) -> bool:
    if target not in PROJECT_STATUSES:
        return False
    if current in PROJECT_TERMINAL:
        return False
    return current != target
