import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Response, status
from app.core.config import LOG_FORMAT, LOG_LEVEL, OUTBOX_PROCESSOR_ENABLED, PROJECT_NAME, VERSION
from app.core.db import init_db, close_db, ping_db
from app.core.exception_handlers import setup_exception_handlers
from app.api.v1.outbox import router as outbox_router
from app.consumers.outbox_processor import OutboxProcessorService, build_outbox_processor
from app.events.outbox_store import TortoiseOutboxStore
from app.services.outbox_health import HealthStatus, OutboxHealthCheck, worst_status

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
log = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas

    processor = None
    if OUTBOX_PROCESSOR_ENABLED:
        processor = OutboxProcessorService(build_outbox_processor())
        processor.start()
    app.state.outbox_processor = processor

    yield

    # Stop claiming new batches; the tick in flight is allowed to finish.
    if processor is not None:
        await processor.stop()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure
app.include_router(outbox_router, prefix="/api/v1/outbox", tags=["Outbox Administration"])


setup_exception_handlers(app)


def get_outbox_health_check() -> OutboxHealthCheck:
    return OutboxHealthCheck(TortoiseOutboxStore())


def get_database_check():
    return ping_db


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe."""
    return {"status": "ok", "app_name": PROJECT_NAME}


@app.get("/health/ready")
async def readiness_check(
    response: Response,
    outbox_check: OutboxHealthCheck = Depends(get_outbox_health_check),
    database_check=Depends(get_database_check),
):
    """Readiness probe: database connectivity plus outbox health. 503 only when Unhealthy."""
    checks = {}

    try:
        await database_check()
        checks["database"] = {"status": HealthStatus.HEALTHY.value}
    except Exception as e:
        log.error(f"Readiness: database check failed: {e}")
        checks["database"] = {"status": HealthStatus.UNHEALTHY.value, "description": str(e)}

    try:
        result = await outbox_check.check_health()
        checks["outbox"] = {"status": result.status.value, "description": result.description, "data": result.data}
    except Exception as e:
        log.error(f"Readiness: outbox check failed: {e}")
        checks["outbox"] = {"status": HealthStatus.UNHEALTHY.value, "description": str(e)}

    overall = worst_status(*(HealthStatus(check["status"]) for check in checks.values()))
    if overall == HealthStatus.UNHEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": overall.value, "checks": checks}
