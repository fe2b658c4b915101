"""
Unified backend entry point.

Architecture:
- One Python process, one asyncio event loop
- Two peer services running concurrently:
  1. FastAPI (HTTP server for the web frontend)
  2. APScheduler sweep delivering due notifications (optional)

We use FastAPI's lifespan to manage startup/shutdown. The sweep can also be
triggered externally through POST /notifications/send, so the in-process
scheduler only starts when NOTIFICATION_SWEEP_MINUTES is set.

Run with: python main.py [--port PORT]
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
load_dotenv(project_root / ".env.local")
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import (
    check_required_env_vars,
    get_allowed_origins,
    get_api_port,
    get_sweep_interval_minutes,
)
from core.database import close_engine, is_configured
from core.exceptions import (
    AlreadyRegistered,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from core.notifications.scheduler import get_scheduler, init_scheduler, shutdown_scheduler
from web_api.routes.exams import router as exams_router
from web_api.routes.notifications import router as notifications_router
from web_api.routes.oauth import router as oauth_router
from web_api.routes.users import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Starts the notification sweep when configured and closes the database
    engine on shutdown.
    """
    ok, messages = check_required_env_vars()
    for message in messages:
        logger.warning(message)
    if not ok:
        logger.error("Required configuration missing; some endpoints will fail")

    interval = get_sweep_interval_minutes()
    if interval:
        init_scheduler(interval)
    else:
        logger.info("In-process notification sweep disabled")

    yield

    logger.info("Shutting down peer services...")
    shutdown_scheduler()
    await close_engine()


app = FastAPI(
    title="Exam Notification API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"message": str(exc)})


@app.exception_handler(AlreadyRegistered)
async def already_registered_handler(request: Request, exc: AlreadyRegistered):
    return JSONResponse(status_code=409, content={"message": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"message": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        problems.append(f"{field}: {error['msg']}" if field else error["msg"])
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request: " + "; ".join(problems)},
    )


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(users_router)
app.include_router(exams_router)
app.include_router(notifications_router)
app.include_router(oauth_router)


@app.get("/health")
async def health():
    """Health check endpoint with detailed status."""
    scheduler = get_scheduler()
    return {
        "status": "healthy",
        "database_configured": is_configured(),
        "scheduler_running": bool(scheduler and scheduler.running),
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Exam Notification Server")
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
