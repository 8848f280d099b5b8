# backend/lessonbook/routers/catalog.py
from typing import List

from fastapi import APIRouter, Depends

from .. import crud, schemas
from ..auth import require_admin
from ..store import ScheduleStore, get_store

router = APIRouter(tags=["Catalog"])


@router.get("/teachers", response_model=List[schemas.Teacher])
def list_teachers(store: ScheduleStore = Depends(get_store)):
    return crud.get_all_teachers(store)


@router.post("/teachers", status_code=201, response_model=schemas.Teacher, dependencies=[Depends(require_admin)])
def create_teacher(payload: schemas.TeacherCreate, store: ScheduleStore = Depends(get_store)):
    return crud.create_teacher(store, payload)


@router.get("/timeSlots", response_model=List[str])
def list_time_slots(store: ScheduleStore = Depends(get_store)):
    return crud.get_time_slots(store)


@router.put("/timeSlots", response_model=List[str], dependencies=[Depends(require_admin)])
def replace_time_slots(slots: List[str], store: ScheduleStore = Depends(get_store)):
    return crud.replace_time_slots(store, slots)
