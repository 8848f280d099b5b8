# backend/lessonbook/schemas.py
import logging
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

from .config import settings
from .errors import ValidationError

logger = logging.getLogger(__name__)

LessonType = Literal["regular", "makeup"]


class _WireModel(BaseModel):
    """snake_case in Python, camelCase on the wire and in the store."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class _Payload(_WireModel):
    # request bodies reject unknown fields
    class Config:
        extra = "forbid"


# --------------------------------------------
# Lesson Schema
# --------------------------------------------
class LessonOccurrence(_WireModel):
    id: str
    teacher_id: str
    student_id: str
    date: str
    time_slot: str
    type: LessonType = "regular"
    session_number: int = Field(1, ge=1)
    series_id: Optional[str] = None
    cancelled: bool = False

    @model_validator(mode="before")
    @classmethod
    def _legacy_makeup_flag(cls, data):
        # older records carry isMakeup instead of type
        if isinstance(data, dict) and "type" not in data and "isMakeup" in data:
            data = {**data, "type": "makeup" if data["isMakeup"] else "regular"}
        return data

    def booking_key(self):
        return (self.teacher_id, self.date, self.time_slot)

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True)


class LessonTemplate(_Payload):
    # required fields are checked by the service so blanks get the same 400
    id: Optional[str] = None
    teacher_id: Optional[str] = None
    student_id: Optional[str] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None
    type: LessonType = "regular"
    session_number: Optional[int] = None


class CreateLessonsPayload(_Payload):
    lesson: LessonTemplate
    repeat_weekly: Optional[bool] = None
    weeks: Optional[int] = None


class LessonPatch(_Payload):
    # id / seriesId are accepted so a client can send back a whole record,
    # but they are never applied
    id: Optional[str] = None
    series_id: Optional[str] = None
    teacher_id: Optional[str] = None
    student_id: Optional[str] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None
    type: Optional[LessonType] = None
    session_number: Optional[int] = Field(None, ge=1)
    cancelled: Optional[bool] = None


class CandidateOutcome(_WireModel):
    id: str
    date: str
    time_slot: str
    session_number: int
    status: Literal["accepted", "skipped"]
    reason: Optional[str] = None


class CreateLessonsResult(_WireModel):
    created_count: int
    created: List[LessonOccurrence] = []
    outcomes: List[CandidateOutcome] = []


# --------------------------------------------
# Student Schema
# --------------------------------------------
class Student(_WireModel):
    id: str
    name: str
    # None means an open-ended package
    total_sessions: Optional[int] = Field(None, ge=1)
    current_session: int = Field(0, ge=0)
    has_paid: bool = False
    makeup_lessons: int = Field(0, ge=0)

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True)


class StudentCreate(_Payload):
    id: Optional[str] = None
    name: str
    total_sessions: Optional[int] = Field(
        default_factory=lambda: settings.DEFAULT_TOTAL_SESSIONS, ge=1
    )
    current_session: int = Field(0, ge=0)
    has_paid: bool = False
    makeup_lessons: int = Field(0, ge=0)


class StudentUpdate(_Payload):
    id: Optional[str] = None
    name: Optional[str] = None
    total_sessions: Optional[int] = Field(None, ge=1)
    current_session: Optional[int] = Field(None, ge=0)
    has_paid: Optional[bool] = None
    makeup_lessons: Optional[int] = Field(None, ge=0)


# --------------------------------------------
# Teacher Schema
# --------------------------------------------
class Teacher(_WireModel):
    id: str
    name: str


class TeacherCreate(_Payload):
    id: Optional[str] = None
    name: str


# --------------------------------------------
# Stored documents
# --------------------------------------------
def _row_id(raw):
    return raw.get("id") if isinstance(raw, dict) else None


def parse_stored(model, raw_items) -> list:
    """Parse a stored collection, skipping rows that no longer fit the schema."""
    parsed = []
    for raw in raw_items:
        try:
            parsed.append(model.model_validate(raw))
        except SchemaError as exc:
            logger.warning("Skipping malformed %s %r: %s", model.__name__, _row_id(raw), exc)
    return parsed


def parse_stored_one(model, raw):
    try:
        return model.model_validate(raw)
    except SchemaError as exc:
        raise ValidationError(f"Stored {model.__name__} {_row_id(raw)!r} is malformed") from exc
