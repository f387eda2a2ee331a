import logging
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geoattend.api.attendance import admin_router as admin_attendance_router
from geoattend.api.attendance import router as attendance_router
from geoattend.api.locations import router as locations_router
from geoattend.api.schedules import router as schedules_router
from geoattend.core.config import settings
from geoattend.core.errors import AttendanceError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run Alembic migrations on startup."""
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        logger.info("Running Alembic migrations...")
        try:
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                capture_output=True,
                text=True,
                cwd=settings.ALEMBIC_WORKDIR,
            )
            if result.returncode != 0:
                logger.error("Alembic migration failed:\n%s", result.stderr)
            else:
                logger.info("Migrations applied successfully:\n%s", result.stdout)
        except Exception as exc:
            logger.exception("Failed to run migrations: %s", exc)

    yield

    logger.info("Shutting down GeoAttend backend.")


app = FastAPI(
    title="GeoAttend API",
    description="Geofenced employee check-in / check-out with schedule-aware attendance status.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(attendance_router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(admin_attendance_router, prefix="/api/admin/attendances", tags=["Admin"])
app.include_router(locations_router, prefix="/api/admin/locations", tags=["Admin"])
app.include_router(schedules_router, prefix="/api/admin/schedules", tags=["Admin"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
