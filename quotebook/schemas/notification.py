# quotebook/schemas/notification.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    type: str
    priority: str
    link_url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None


class NotificationList(BaseModel):
    items: list[NotificationOut]
    unread_count: int
    total: int
    has_more: bool


class NotificationSettingsIO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    quote_created: bool = True
    quote_approved: bool = True
    quote_rejected: bool = True
    quote_expiring: bool = True
    project_created: bool = True
    project_status_changed: bool = True
    project_deadline_approaching: bool = True
    settlement_due: bool = True
    settlement_completed: bool = True
    settlement_overdue: bool = True
    system_user_joined: bool = True
    system_permission_changed: bool = True
    email_notifications: bool = True
    browser_notifications: bool = True


class SweepResult(BaseModel):
    quotes_expiring: int
    projects_due: int
    settlements_due: int
    settlements_overdue: int
    notifications_created: int
