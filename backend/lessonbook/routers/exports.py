# backend/lessonbook/routers/exports.py
import io
from typing import Optional

import openpyxl
from openpyxl.styles import Font
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from .. import crud
from ..auth import Principal, get_principal, scoped_teacher_id
from ..store import ScheduleStore, get_store

router = APIRouter(prefix="/export", tags=["Export"])

HEADER = ["Date", "Time", "Teacher", "Student", "Type", "Session", "Series", "Cancelled"]


def build_lessons_workbook(store: ScheduleStore, **filters) -> openpyxl.Workbook:
    lessons = crud.list_lessons(store, **filters)
    teachers = {t.id: t.name for t in crud.get_all_teachers(store)}
    students = {s.id: s for s in crud.get_all_students(store)}

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Lessons"
    ws.append(HEADER)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for lesson in lessons:
        student = students.get(lesson.student_id)
        if student and student.total_sessions:
            session = f"{lesson.session_number}/{student.total_sessions}"
        else:
            session = str(lesson.session_number)
        ws.append([
            lesson.date,
            lesson.time_slot,
            teachers.get(lesson.teacher_id, lesson.teacher_id),
            student.name if student else lesson.student_id,
            lesson.type,
            session,
            lesson.series_id or "",
            "Yes" if lesson.cancelled else "",
        ])
    return wb


@router.get("/lessons.xlsx")
def export_lessons_xlsx(
    date: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    principal: Principal = Depends(get_principal),
    store: ScheduleStore = Depends(get_store),
):
    teacher_id = scoped_teacher_id(principal, teacher_id)
    wb = build_lessons_workbook(
        store, teacher_id=teacher_id, on_date=date, date_from=date_from, date_to=date_to
    )

    stream = io.BytesIO()
    wb.save(stream)
    stream.seek(0)

    filename = f"lessons_{teacher_id}.xlsx" if teacher_id else "lessons_all.xlsx"
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
