import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - register tables with Base
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.settings import router as settings_router
from .exceptions import (
    AppointmentNotFoundError,
    BookingSyncError,
    InvalidStatusTransition,
    NotAllowedError,
    SlotUnavailableError,
)
from .routes.calendar import router as calendar_router
from .routes.notifications import router as notifications_router
from .routes.reminders import router as reminders_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="BookingSync API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppointmentNotFoundError)
async def appointment_not_found_handler(request: Request, exc: AppointmentNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidStatusTransition)
async def invalid_transition_handler(request: Request, exc: InvalidStatusTransition):
    logger.warning(f"Rejected status change for {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotAllowedError)
async def not_allowed_handler(request: Request, exc: NotAllowedError):
    logger.warning(f"Forbidden request for {request.url.path}: {exc}")
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(SlotUnavailableError)
async def slot_unavailable_handler(request: Request, exc: SlotUnavailableError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(BookingSyncError)
async def booking_error_handler(request: Request, exc: BookingSyncError):
    logger.error(f"{request.method} {request.url.path} - Error: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Routes
app.include_router(appointments_router)
app.include_router(settings_router)
app.include_router(calendar_router)
app.include_router(reminders_router)
app.include_router(notifications_router)


@app.get("/health")
def health():
    return {"status": "healthy"}
