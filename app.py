import logging
import os
import uuid

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from activity import router as activity_router
from activity.runtime import build_activity_runtime
from config import ACTIVITY_SCHEDULER_ENABLED
from core.http.session import cleanup_session
from core.redis import close_shared_redis
from db import db_manager, init_database

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="FieldTrack Activity Service")

DEV_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:8080",
)


def _cors_origins() -> list[str]:
    """Dispatch dashboards allowed to call the API."""
    configured = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
    if configured:
        return configured
    logger.warning("CORS_ALLOWED_ORIGINS not set; allowing %s", ", ".join(DEV_ORIGINS))
    return list(DEV_ORIGINS)


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(activity_router)


# --- Application Lifecycle Events ---
@app.on_event("startup")
async def startup_event():
    """Initialize the database and start the activity scheduler."""
    try:
        await init_database()
        logger.info("Database initialized (Beanie models and indexes).")

        runtime = build_activity_runtime()
        app.state.activity = runtime
        if ACTIVITY_SCHEDULER_ENABLED:
            runtime.scheduler.start()
        else:
            logger.info("Activity scheduler disabled; only manual runs will occur.")

        logger.info("Application startup completed successfully.")
    except Exception as e:
        logger.critical(
            "CRITICAL: Failed to initialize application during startup: %s",
            str(e),
            exc_info=True,
        )
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background processing and release connections."""
    runtime = getattr(app.state, "activity", None)
    if runtime is not None:
        await runtime.scheduler.stop()
    await cleanup_session()
    await close_shared_redis()
    await db_manager.cleanup_connections()
    logger.info("Application shutdown completed successfully")


# --- Global Exception Handler ---
@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())
    logger.error(
        "Unhandled error %s on %s %s",
        error_id,
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "detail": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
