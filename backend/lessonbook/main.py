import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import Base, engine
from .errors import SchedulingError, request_validation_handler, scheduling_error_handler
from .routers import catalog, exports, lessons, students

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create DB tables (single table of collections; no migrations needed)
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Lesson Scheduling API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SchedulingError, scheduling_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# --------------------------------------------------------
# ROUTES
# --------------------------------------------------------
app.include_router(lessons.router)
app.include_router(students.router)
app.include_router(catalog.router)
app.include_router(exports.router)

logger.info("Routes registered; CORS origins: %s", settings.CORS_ORIGINS)


# --------------------------------------------------------
# ROOT ENDPOINT (for testing)
# --------------------------------------------------------
@app.get("/")
def root():
    return {"message": "Backend is running!"}
