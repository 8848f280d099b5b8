# backend/lessonbook/tasks.py
from celery import Celery

from .config import settings
from .db import SessionLocal
from .services.ledger import reconcile_student_progress
from .store import ScheduleStore

celery_app = Celery(
    "lessonbook_tasks",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)


@celery_app.task
def reconcile_student_progress_task(student_id: str):
    db = SessionLocal()
    try:
        student = reconcile_student_progress(ScheduleStore(db), student_id)
    finally:
        db.close()

    if student is None:
        return {"status": "not_found", "student_id": student_id}
    return {"status": "ok", "student_id": student_id, "current_session": student.current_session}
