# backend/lessonbook/crud.py
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError as SchemaError

from . import schemas
from .date_utils import parse_iso_date, ensure_end_after_start, format_iso_date
from .errors import BookingConflict, NotFoundError, ValidationError
from .services.ledger import advance_student_progress, lookup_current_session
from .services.scheduler import filter_duplicates, generate_occurrences, validate_template
from .store import LESSONS, STUDENTS, TEACHERS, TIME_SLOTS, ScheduleStore

logger = logging.getLogger(__name__)


def _load_lessons(raw_lessons: List[dict]) -> List[schemas.LessonOccurrence]:
    return schemas.parse_stored(schemas.LessonOccurrence, raw_lessons)


def _find_index(items: List[dict], item_id: str) -> int:
    for idx, item in enumerate(items):
        if item.get("id") == item_id:
            return idx
    return -1


def _normalize_date(value: Optional[str], field: str) -> Optional[str]:
    try:
        d = parse_iso_date(value)
    except ValueError as exc:
        raise ValidationError(f"{field}: {exc}") from exc
    return format_iso_date(d) if d else None


# ---------- LESSON CREATE ----------
def create_lessons(store: ScheduleStore, payload: schemas.CreateLessonsPayload) -> schemas.CreateLessonsResult:
    """
    Expand the template, drop collisions, commit the rest in one write and
    then advance the student's package progress.
    """
    template = payload.lesson

    # a bad template fails before any store access
    validate_template(template)

    current_session = None
    if not (template.session_number and template.session_number > 0):
        current_session = lookup_current_session(store, template.student_id.strip())

    candidates = generate_occurrences(template, payload.repeat_weekly, payload.weeks, current_session)

    def compute(raw_lessons: List[dict]):
        accepted, outcomes = filter_duplicates(candidates, _load_lessons(raw_lessons))
        if not accepted:
            return (accepted, outcomes), None
        return (accepted, outcomes), raw_lessons + [lesson.to_store() for lesson in accepted]

    accepted, outcomes = store.mutate(LESSONS, compute)
    logger.info(
        "Created %d of %d %s lesson(s) for student %s",
        len(accepted), len(candidates), template.type, template.student_id,
    )

    advance_student_progress(store, template.student_id.strip(), accepted, template.type)

    return schemas.CreateLessonsResult(created_count=len(accepted), created=accepted, outcomes=outcomes)


# ---------- LESSON READ ----------
def list_lessons(
    store: ScheduleStore,
    teacher_id: Optional[str] = None,
    on_date: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[schemas.LessonOccurrence]:
    on_date = _normalize_date(on_date, "date")
    date_from = _normalize_date(date_from, "from")
    date_to = _normalize_date(date_to, "to")
    try:
        ensure_end_after_start(parse_iso_date(date_from), parse_iso_date(date_to))
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    lessons = _load_lessons(store.read(LESSONS))

    # ISO dates compare correctly as strings
    if date_from or date_to:
        lessons = [
            l for l in lessons
            if (not date_from or l.date >= date_from) and (not date_to or l.date <= date_to)
        ]
    elif on_date:
        lessons = [l for l in lessons if l.date == on_date]

    if teacher_id:
        lessons = [l for l in lessons if l.teacher_id == teacher_id]

    return sorted(lessons, key=lambda l: (l.date, l.time_slot, l.id))


# ---------- LESSON UPDATE / DELETE ----------
def update_lesson(store: ScheduleStore, lesson_id: str, patch: schemas.LessonPatch) -> schemas.LessonOccurrence:
    changes = patch.model_dump(exclude_unset=True, exclude={"id", "series_id"})
    for field in ("teacher_id", "student_id", "time_slot"):
        if field in changes:
            if not (changes[field] or "").strip():
                raise ValidationError(f"{field} cannot be blank")
            changes[field] = changes[field].strip()
    if "date" in changes:
        changes["date"] = _normalize_date(changes["date"], "date")
        if changes["date"] is None:
            raise ValidationError("date cannot be blank")
    changes = {k: v for k, v in changes.items() if v is not None}

    def compute(raw_lessons: List[dict]):
        idx = _find_index(raw_lessons, lesson_id)
        if idx == -1:
            raise NotFoundError("Lesson not found")

        current = schemas.parse_stored_one(schemas.LessonOccurrence, raw_lessons[idx])
        updated = current.model_copy(update=changes)
        try:
            updated = schemas.LessonOccurrence.model_validate(updated.model_dump())
        except SchemaError as exc:
            raise ValidationError(str(exc)) from exc

        if not updated.cancelled:
            others = _load_lessons(raw_lessons[:idx] + raw_lessons[idx + 1:])
            for other in others:
                if not other.cancelled and other.booking_key() == updated.booking_key():
                    raise BookingConflict(
                        f"{updated.teacher_id} already has lesson {other.id} on {updated.date} at {updated.time_slot}"
                    )

        raw_lessons[idx] = {**raw_lessons[idx], **updated.to_store()}
        return updated, raw_lessons

    return store.mutate(LESSONS, compute)


def delete_lesson(store: ScheduleStore, lesson_id: str) -> schemas.LessonOccurrence:
    """Remove one occurrence. Siblings in the same series are left alone."""

    def compute(raw_lessons: List[dict]):
        idx = _find_index(raw_lessons, lesson_id)
        if idx == -1:
            raise NotFoundError("Lesson not found")
        removed = raw_lessons.pop(idx)
        return schemas.parse_stored_one(schemas.LessonOccurrence, removed), raw_lessons

    return store.mutate(LESSONS, compute)


# ---------- STUDENT CRUD ----------
def _check_progress_bounds(student: schemas.Student) -> None:
    if student.total_sessions is not None and student.current_session > student.total_sessions:
        raise ValidationError("currentSession cannot exceed totalSessions")


def get_all_students(store: ScheduleStore) -> List[schemas.Student]:
    return schemas.parse_stored(schemas.Student, store.read(STUDENTS))


def get_student(store: ScheduleStore, student_id: str) -> schemas.Student:
    for student in get_all_students(store):
        if student.id == student_id:
            return student
    raise NotFoundError("Student not found")


def create_student(store: ScheduleStore, payload: schemas.StudentCreate) -> schemas.Student:
    student = schemas.Student(**payload.model_dump(exclude={"id"}), id=payload.id or uuid.uuid4().hex)
    _check_progress_bounds(student)

    def compute(raw_students: List[dict]):
        if _find_index(raw_students, student.id) != -1:
            raise BookingConflict(f"Student {student.id} already exists")
        return student, raw_students + [student.to_store()]

    return store.mutate(STUDENTS, compute)


def update_student(store: ScheduleStore, student_id: str, payload: schemas.StudentUpdate) -> schemas.Student:
    changes = payload.model_dump(exclude_unset=True, exclude={"id"})
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("name cannot be blank")
    for field in ("current_session", "has_paid", "makeup_lessons"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be null")

    def compute(raw_students: List[dict]):
        idx = _find_index(raw_students, student_id)
        if idx == -1:
            raise NotFoundError("Student not found")
        updated = schemas.parse_stored_one(schemas.Student, raw_students[idx]).model_copy(update=changes)
        _check_progress_bounds(updated)
        raw_students[idx] = {**raw_students[idx], **updated.to_store()}
        return updated, raw_students

    return store.mutate(STUDENTS, compute)


# ---------- TEACHER / TIME SLOT CATALOG ----------
def get_all_teachers(store: ScheduleStore) -> List[schemas.Teacher]:
    return schemas.parse_stored(schemas.Teacher, store.read(TEACHERS))


def create_teacher(store: ScheduleStore, payload: schemas.TeacherCreate) -> schemas.Teacher:
    teacher = schemas.Teacher(id=payload.id or uuid.uuid4().hex, name=payload.name)

    def compute(raw_teachers: List[dict]):
        if _find_index(raw_teachers, teacher.id) != -1:
            raise BookingConflict(f"Teacher {teacher.id} already exists")
        return teacher, raw_teachers + [teacher.model_dump(by_alias=True)]

    return store.mutate(TEACHERS, compute)


def get_time_slots(store: ScheduleStore) -> List[str]:
    return [str(slot) for slot in store.read(TIME_SLOTS)]


def replace_time_slots(store: ScheduleStore, slots: List[str]) -> List[str]:
    ordered = []
    for slot in slots:
        slot = slot.strip()
        if slot and slot not in ordered:
            ordered.append(slot)
    return store.mutate(TIME_SLOTS, lambda _current: (ordered, ordered))
