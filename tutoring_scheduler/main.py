import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tutoring_scheduler.api.routes_audit import router as audit_router
from tutoring_scheduler.api.routes_auth import router as auth_router
from tutoring_scheduler.api.routes_availability import router as availability_router
from tutoring_scheduler.api.routes_bookings import router as bookings_router
from tutoring_scheduler.api.routes_students import router as students_router
from tutoring_scheduler.api.routes_subjects import router as subjects_router
from tutoring_scheduler.api.routes_teachers import router as teachers_router
from tutoring_scheduler.core.config import settings
from tutoring_scheduler.core.exceptions import DomainException
from tutoring_scheduler.db import Base, engine
from tutoring_scheduler import models  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Tutoring Scheduler Service")
Base.metadata.create_all(bind=engine)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(bookings_router)
app.include_router(availability_router)
app.include_router(teachers_router)
app.include_router(students_router)
app.include_router(subjects_router)
app.include_router(audit_router)
