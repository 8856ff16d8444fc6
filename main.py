# main.py
import asyncio
import logging
import time
import traceback
from contextlib import asynccontextmanager

import socketio
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_connect.api.api import api_router
from campus_connect.api.auth.auth import make_socket_authenticator
from campus_connect.config import ENABLE_SCHEDULER, FRONTEND_URL, IS_PRODUCTION, LOG_LEVEL, validate_runtime_config
from campus_connect.database import Base, SessionLocal, engine
from campus_connect.exceptions import AppError, UpstreamError
from campus_connect.models import *  # noqa: F401,F403
from campus_connect.realtime.channel import channel
from campus_connect.realtime.socket_server import create_socket_server
from campus_connect.services import reminder_service
from campus_connect.services.notification_service import NotificationService

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logging.getLogger("apscheduler").setLevel(logging.INFO)
logger = logging.getLogger("campus_connect")

scheduler = AsyncIOScheduler()


async def run_appointment_reminders_task():
    """Hourly sweep for accepted appointments starting soon."""
    db = SessionLocal()
    try:
        sent = reminder_service.send_appointment_reminders(db, NotificationService(db, channel))
        logger.info(f"Reminder job finished, {sent} appointments reminded")
    except (AppError, SQLAlchemyError) as e:
        logger.error(f"Reminder job failed: {e}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_runtime_config()
    Base.metadata.create_all(bind=engine)
    channel.bind(sio, asyncio.get_running_loop())

    if ENABLE_SCHEDULER:
        scheduler.add_job(
            run_appointment_reminders_task,
            trigger=CronTrigger(minute=0),
            id="appointment_reminder_job",
            name="Send Appointment Reminders",
            replace_existing=True,
        )
        scheduler.start()
        logger.info("Scheduler started")

    yield

    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
    channel.unbind()


app = FastAPI(
    title="Campus Connect API",
    description="Appointments, availability and real-time notifications for a campus community.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


def _error_response(status_code: int, message: str, error=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, "error": error})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    error = {"code": exc.error_code}
    if exc.details is not None:
        error["details"] = exc.details
    return _error_response(exc.status_code, exc.message, error)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail), {"code": "http_error"})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return _error_response(400, "Validation failed", {"code": "validation_error", "details": details})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    wrapped = UpstreamError("Database error", details=str(exc) if not IS_PRODUCTION else None)
    return await app_error_handler(request, wrapped)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = {"code": "internal_error"}
    if not IS_PRODUCTION:
        error["details"] = str(exc)
        error["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return _error_response(500, "Internal server error", error)


app.include_router(api_router, prefix="/api")


@app.get("/")
def read_root():
    return {"success": True, "message": "Welcome to the Campus Connect API! Visit /docs for API documentation."}


@app.get("/health")
def health():
    return {"success": True, "data": {"status": "ok", "realtime": channel.is_bound}}


sio = create_socket_server(channel.registry, make_socket_authenticator(SessionLocal))

# Entry point for uvicorn: Socket.IO on /socket.io, everything else to FastAPI
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


if __name__ == "__main__":
    import uvicorn

    from campus_connect.config import PORT

    uvicorn.run("main:asgi_app", host="0.0.0.0", port=PORT)
