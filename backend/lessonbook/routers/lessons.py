# backend/lessonbook/routers/lessons.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .. import crud, schemas
from ..auth import Principal, get_principal, require_admin, scoped_teacher_id
from ..store import ScheduleStore, get_store

router = APIRouter(prefix="/lessons", tags=["Lessons"])


# =========================================================
# CREATE (single booking or weekly series)
# =========================================================
@router.post("", status_code=201, response_model=None, dependencies=[Depends(require_admin)])
@router.post("/", status_code=201, response_model=None, include_in_schema=False, dependencies=[Depends(require_admin)])
def create_lessons(
    payload: schemas.CreateLessonsPayload,
    flat: bool = Query(False, description="Return only the created list"),
    store: ScheduleStore = Depends(get_store),
):
    result = crud.create_lessons(store, payload)
    if flat:
        return result.created
    return result


# =========================================================
# READ
# =========================================================
@router.get("", response_model=List[schemas.LessonOccurrence])
@router.get("/", response_model=List[schemas.LessonOccurrence], include_in_schema=False)
def list_lessons(
    date: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    principal: Principal = Depends(get_principal),
    store: ScheduleStore = Depends(get_store),
):
    teacher_id = scoped_teacher_id(principal, teacher_id)
    return crud.list_lessons(store, teacher_id=teacher_id, on_date=date, date_from=date_from, date_to=date_to)


# =========================================================
# UPDATE / DELETE BY ID
# =========================================================
@router.put("/{lesson_id}", response_model=schemas.LessonOccurrence, dependencies=[Depends(require_admin)])
@router.patch("/{lesson_id}", response_model=schemas.LessonOccurrence, dependencies=[Depends(require_admin)])
def update_lesson(lesson_id: str, payload: schemas.LessonPatch, store: ScheduleStore = Depends(get_store)):
    return crud.update_lesson(store, lesson_id, payload)


@router.delete("/{lesson_id}", response_model=schemas.LessonOccurrence, dependencies=[Depends(require_admin)])
def delete_lesson(lesson_id: str, store: ScheduleStore = Depends(get_store)):
    return crud.delete_lesson(store, lesson_id)
