# quotebook/models/notification.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from quotebook.db import Base

NOTIFICATION_TYPES = (
    "quote_created",
    "quote_approved",
    "quote_rejected",
    "quote_expiring",
    "project_created",
    "project_status_changed",
    "project_deadline_approaching",
    "settlement_due",
    "settlement_completed",
    "settlement_overdue",
    "system_user_joined",
    "system_permission_changed",
    "general",
)

PRIORITIES = ("low", "normal", "high", "urgent")


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False, default="general")
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="normal")
    link_url: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True, nullable=False
    )


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(100), unique=True, index=True, nullable=False
    )

    quote_created: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    quote_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    quote_rejected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    quote_expiring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    project_created: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    project_status_changed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    project_deadline_approaching: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    settlement_due: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    settlement_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    settlement_overdue: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_user_joined: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_permission_changed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    browser_notifications: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    def allows(self, notification_type: str) -> bool:
        # "general" has no switch
        return bool(getattr(self, notification_type, True))
