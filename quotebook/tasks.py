import time

from quotebook.celery_app import celery_app, logger
from quotebook.db import SessionLocal
from quotebook.services.notification_service import run_notification_checks


@celery_app.task(bind=True, name="run_notification_checks")
def run_notification_checks_task(self) -> dict:
    """Dagelijkse notificatie-sweep (eigen DB sessie)."""
    start_time = time.time()
    db = SessionLocal()
    try:
        result = run_notification_checks(db)
    except Exception:
        db.rollback()
        logger.exception("Notification checks failed")
        raise
    finally:
        db.close()

    logger.info(
        f"Notification checks done in {time.time() - start_time:.2f}s: {result}"
    )
    return result
