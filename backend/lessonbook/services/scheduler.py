# backend/lessonbook/services/scheduler.py
import logging
import uuid
from typing import Iterable, List, Optional, Set, Tuple

from ..config import settings
from ..date_utils import add_days, format_iso_date, parse_iso_date
from ..errors import ValidationError
from ..schemas import CandidateOutcome, LessonOccurrence, LessonTemplate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("teacher_id", "student_id", "date", "time_slot")

BookingKey = Tuple[str, str, str]


# ---------------------------------------------------------
# Validation
# ---------------------------------------------------------
def validate_template(template: LessonTemplate) -> None:
    missing = [
        name for name in REQUIRED_FIELDS
        if not (getattr(template, name) or "").strip()
    ]
    if missing:
        raise ValidationError("Missing required lesson fields: " + ", ".join(missing))
    try:
        parse_iso_date(template.date)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


# ---------------------------------------------------------
# Week count / session numbering policy
# ---------------------------------------------------------
def clamp_weeks(weeks: Optional[int]) -> int:
    if weeks is None:
        weeks = settings.DEFAULT_WEEKS
    return max(1, min(int(weeks), settings.MAX_WEEKS))


def resolve_week_count(lesson_type: str, repeat_weekly: Optional[bool], weeks: Optional[int]) -> int:
    # makeup lessons never recur
    if lesson_type == "makeup":
        return 1
    if repeat_weekly is None:
        repeat_weekly = True
    if not repeat_weekly:
        return 1
    return clamp_weeks(weeks)


def starting_session(template: LessonTemplate, current_session: Optional[int]) -> int:
    """
    Session number of the first generated occurrence.

    current_session counts sessions already booked, so a regular lesson
    starts on the next one while a makeup repeats the current one.
    """
    if template.session_number and template.session_number > 0:
        return template.session_number
    current = current_session or 0
    if template.type == "makeup":
        return current if current > 0 else 1
    return current + 1


# ---------------------------------------------------------
# Occurrence Generator
# ---------------------------------------------------------
def generate_occurrences(
    template: LessonTemplate,
    repeat_weekly: Optional[bool] = None,
    weeks: Optional[int] = None,
    current_session: Optional[int] = None,
) -> List[LessonOccurrence]:
    """
    Expand one template into weekly dated candidates, in week order.
    Nothing here looks at existing bookings; see filter_duplicates.
    """
    validate_template(template)

    total_weeks = resolve_week_count(template.type, repeat_weekly, weeks)
    repeating = template.type != "makeup" and repeat_weekly is not False

    base_id = template.id or uuid.uuid4().hex
    series_id = f"series_{base_id}" if repeating else None
    start_date = format_iso_date(parse_iso_date(template.date))
    start = starting_session(template, current_session)

    candidates = []
    for week in range(total_weeks):
        session_number = start + week if template.type == "regular" else start
        candidates.append(
            LessonOccurrence(
                id=base_id if week == 0 else f"{base_id}_{week}",
                teacher_id=template.teacher_id.strip(),
                student_id=template.student_id.strip(),
                date=start_date if week == 0 else add_days(start_date, 7 * week),
                time_slot=template.time_slot.strip(),
                type=template.type,
                session_number=session_number,
                series_id=series_id,
            )
        )
    return candidates


# ---------------------------------------------------------
# Duplicate Guard
# ---------------------------------------------------------
def booking_keys(existing: Iterable[LessonOccurrence]) -> Set[BookingKey]:
    return {lesson.booking_key() for lesson in existing}


def filter_duplicates(
    candidates: Iterable[LessonOccurrence],
    existing: Iterable[LessonOccurrence],
) -> Tuple[List[LessonOccurrence], List[CandidateOutcome]]:
    """
    Drop candidates whose (teacher, date, slot) is already booked, either in
    the store or earlier in the same batch. Returns (accepted, outcomes).
    """
    existing = list(existing)
    taken = booking_keys(existing)
    taken_ids = {lesson.id for lesson in existing}
    accepted: List[LessonOccurrence] = []
    outcomes: List[CandidateOutcome] = []

    for candidate in candidates:
        key = candidate.booking_key()
        reason = None
        if key in taken:
            reason = "slot_taken"
        elif candidate.id in taken_ids:
            reason = "id_taken"

        if reason:
            logger.info("Skipping %s on %s %s: %s", candidate.id, candidate.date, candidate.time_slot, reason)
        else:
            accepted.append(candidate)
            taken.add(key)
            taken_ids.add(candidate.id)

        outcomes.append(
            CandidateOutcome(
                id=candidate.id,
                date=candidate.date,
                time_slot=candidate.time_slot,
                session_number=candidate.session_number,
                status="skipped" if reason else "accepted",
                reason=reason,
            )
        )

    return accepted, outcomes
