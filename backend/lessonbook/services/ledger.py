# backend/lessonbook/services/ledger.py
import logging
from typing import List, Optional

from ..errors import StoreConflict, StoreUnavailable, ValidationError
from ..schemas import LessonOccurrence, Student, parse_stored, parse_stored_one
from ..store import LESSONS, STUDENTS, ScheduleStore

logger = logging.getLogger(__name__)


def capped_progress(current: int, added: int, total: Optional[int]) -> int:
    """current + added, never past the package size (None = open-ended)."""
    new_count = current + added
    if total is not None:
        new_count = min(new_count, total)
    # never move backwards, even if the package was shrunk below progress
    return max(current, new_count)


def find_student(store: ScheduleStore, student_id: str) -> Optional[Student]:
    for student in parse_stored(Student, store.read(STUDENTS)):
        if student.id == student_id:
            return student
    return None


def lookup_current_session(store: ScheduleStore, student_id: str) -> Optional[int]:
    """Best-effort read of a student's counter; None when unknown."""
    try:
        student = find_student(store, student_id)
    except StoreUnavailable:
        logger.warning("Could not read progress for student %s", student_id)
        return None
    return student.current_session if student else None


def _set_progress(store: ScheduleStore, student_id: str, advance) -> Optional[Student]:
    def compute(students: List[dict]):
        for idx, raw in enumerate(students):
            if raw.get("id") != student_id:
                continue
            student = parse_stored_one(Student, raw)
            new_count = advance(student)
            if new_count == student.current_session:
                return student, None
            student.current_session = new_count
            students[idx] = {**raw, **student.to_store()}
            return student, students
        return None, None

    return store.mutate(STUDENTS, compute)


def advance_student_progress(
    store: ScheduleStore,
    student_id: str,
    accepted: List[LessonOccurrence],
    lesson_type: str,
) -> Optional[Student]:
    """
    Move the student's counter forward by the number of regular occurrences
    that were actually committed. Soft: any failure is logged and skipped.
    """
    if lesson_type != "regular" or not accepted:
        return None

    added = len(accepted)
    try:
        student = _set_progress(
            store,
            student_id,
            lambda s: capped_progress(s.current_session, added, s.total_sessions),
        )
    except (StoreUnavailable, StoreConflict, ValidationError) as exc:
        logger.warning("Skipping progress update for student %s: %s", student_id, exc)
        return None

    if student is None:
        logger.warning("Student %s not found; progress not updated", student_id)
    return student


def count_booked_sessions(store: ScheduleStore, student_id: str) -> int:
    count = 0
    for lesson in parse_stored(LessonOccurrence, store.read(LESSONS)):
        if lesson.student_id == student_id and lesson.type == "regular" and not lesson.cancelled:
            count += 1
    return count


def reconcile_student_progress(store: ScheduleStore, student_id: str) -> Optional[Student]:
    """
    Raise currentSession to the number of live regular bookings (capped).
    Repairs counters that missed a soft ledger update. Never lowers them.
    """
    booked = count_booked_sessions(store, student_id)
    return _set_progress(
        store,
        student_id,
        lambda s: capped_progress(s.current_session, max(0, booked - s.current_session), s.total_sessions),
    )
