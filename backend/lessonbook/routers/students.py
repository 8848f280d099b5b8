# backend/lessonbook/routers/students.py
from fastapi import APIRouter, Depends

from .. import crud, schemas
from ..auth import require_admin
from ..errors import NotFoundError
from ..services.ledger import reconcile_student_progress
from ..store import ScheduleStore, get_store

router = APIRouter(prefix="/students", tags=["students"])


@router.get("", response_model=list[schemas.Student])
@router.get("/", response_model=list[schemas.Student], include_in_schema=False)
def list_students(store: ScheduleStore = Depends(get_store)):
    return crud.get_all_students(store)


@router.post("", status_code=201, response_model=schemas.Student, dependencies=[Depends(require_admin)])
@router.post("/", status_code=201, response_model=schemas.Student, include_in_schema=False, dependencies=[Depends(require_admin)])
def create_student(payload: schemas.StudentCreate, store: ScheduleStore = Depends(get_store)):
    return crud.create_student(store, payload)


@router.get("/{student_id}", response_model=schemas.Student)
def get_student(student_id: str, store: ScheduleStore = Depends(get_store)):
    return crud.get_student(store, student_id)


@router.put("/{student_id}", response_model=schemas.Student, dependencies=[Depends(require_admin)])
@router.patch("/{student_id}", response_model=schemas.Student, dependencies=[Depends(require_admin)])
def update_student(student_id: str, payload: schemas.StudentUpdate, store: ScheduleStore = Depends(get_store)):
    return crud.update_student(store, student_id, payload)


@router.post("/{student_id}/reconcile", response_model=schemas.Student, dependencies=[Depends(require_admin)])
def reconcile_progress(student_id: str, store: ScheduleStore = Depends(get_store)):
    student = reconcile_student_progress(store, student_id)
    if student is None:
        raise NotFoundError("Student not found")
    return student
