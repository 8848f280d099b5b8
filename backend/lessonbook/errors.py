# backend/lessonbook/errors.py
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class SchedulingError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SchedulingError):
    status_code = 400
    code = "validation_error"


class PermissionDenied(SchedulingError):
    status_code = 403
    code = "forbidden"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"


class BookingConflict(SchedulingError):
    status_code = 409
    code = "booking_conflict"


class StoreConflict(SchedulingError):
    """A compare-and-swap write lost against a concurrent writer."""

    status_code = 409
    code = "store_conflict"


class StoreUnavailable(SchedulingError):
    status_code = 503
    code = "store_unavailable"


async def scheduling_error_handler(request: Request, exc: SchedulingError):
    detail = exc.detail
    if isinstance(exc, StoreUnavailable):
        # never leak driver messages to callers
        detail = "Schedule store is unavailable"
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": detail})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        fields.append({"field": loc, "message": err.get("msg", "")})
    return JSONResponse(
        status_code=400,
        content={"error": ValidationError.code, "detail": "Invalid request", "fields": fields},
    )
