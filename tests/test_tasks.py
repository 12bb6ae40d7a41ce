from sqlalchemy.orm import sessionmaker

from quotebook import tasks
from quotebook.celery_app import celery_app


def test_beat_schedule_runs_daily_sweep():
    entry = celery_app.conf.beat_schedule["daily-notification-checks"]
    assert entry["task"] == "run_notification_checks"
    assert celery_app.conf.timezone == "Asia/Seoul"


def test_notification_task_uses_own_session(engine, monkeypatch):
    monkeypatch.setattr(tasks, "SessionLocal", sessionmaker(bind=engine))

    result = tasks.run_notification_checks_task.run()

    assert result["notifications_created"] == 0
    assert set(result) >= {
        "quotes_expiring",
        "projects_due",
        "settlements_due",
        "settlements_overdue",
    }
