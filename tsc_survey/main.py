"""FastAPI application entry point."""
import os
import sys
import time

# Ensure console streams can emit Unicode (player names, translations) on Windows
for stream in (sys.stdout, sys.stderr):
    if hasattr(stream, "reconfigure"):
        stream.reconfigure(encoding="utf-8", errors="backslashreplace")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextlib import asynccontextmanager

from tsc_survey.config import get_settings
from tsc_survey.version import APP_VERSION
from tsc_survey.routers import health, report, submit, translations
from tsc_survey.middleware.cors import cors_middleware
from tsc_survey.utils.datetime_helpers import utc_now_iso
from tsc_survey.utils.exceptions import SurveyException

settings = get_settings()

# Create logs directory if it doesn't exist
logs_dir = Path(settings.log_dir)
logs_dir.mkdir(parents=True, exist_ok=True)

log_file = logs_dir / "tsc_survey.log"
api_log_file = logs_dir / "tsc_survey_api.log"

# General logs: 1MB per file, keep 5 backups
rotating_handler = RotatingFileHandler(
    log_file,
    maxBytes=1024 * 1024,
    backupCount=5,
    encoding='utf-8',
)
rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

# API request logs: 2MB per file, keep 15 backups
api_rotating_handler = RotatingFileHandler(api_log_file, maxBytes=2 * 1024 * 1024, backupCount=15, encoding='utf-8')
api_rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

# Force=True overrides any existing configuration (e.g., from uvicorn)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        rotating_handler,
    ],
    force=True,
)

logger = logging.getLogger(__name__)

# Dedicated API request logger
api_logger = logging.getLogger("tsc_survey.api")
api_logger.handlers.clear()
api_logger.addHandler(api_rotating_handler)
api_logger.setLevel(logging.INFO)
api_logger.propagate = False

# Uvicorn's access log also goes to the rotating general log
uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.setLevel(logging.INFO)
if rotating_handler not in uvicorn_access_logger.handlers:
    uvicorn_access_logger.addHandler(rotating_handler)

# httpx logs every request at INFO, including the GitHub URL
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("matplotlib").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Log the effective configuration on startup."""
    logger.info("=" * 60)
    logger.info("TSC Event Survey API Starting")
    logger.info(f"Environment: {settings.environment}")
    if settings.github_owner and settings.github_repo:
        logger.info(f"Issue store: {settings.github_owner}/{settings.github_repo}")
    missing = settings.missing_github_settings
    if missing:
        logger.warning(f"Submission path not configured, missing: {', '.join(missing)}")
    source = settings.report_csv_url or settings.report_csv_path or "not configured"
    logger.info(f"Report CSV source: {source}")
    logger.info(f"CORS origins: {', '.join(settings.allowed_origins) or 'any (reflected)'}")
    logger.info("=" * 60)

    try:
        yield
    finally:
        logger.info("TSC Event Survey API Shutting Down... Goodbye!")


app = FastAPI(
    title="TSC Event Survey API",
    description="Survey submissions stored as GitHub issues, plus respondent reporting",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(SurveyException)
async def survey_exception_handler(request: Request, exc: SurveyException):
    """Render taxonomy errors as the stable ``ok: false`` envelope."""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    payload = exc.to_payload()
    payload["time"] = utc_now_iso()
    return JSONResponse(status_code=exc.status_code, content=payload)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reshape request validation failures into a 400 with the offending fields."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    errors = []
    invalid = []
    body_unreadable = False
    for error in exc.errors():
        loc = list(error.get("loc", []))
        error_type = error.get("type", "unknown")
        if error_type == "json_invalid" or (loc and loc[0] == "body" and len(loc) == 1):
            body_unreadable = True
            continue

        field_path = " -> ".join(str(x) for x in loc[1:]) if len(loc) > 1 else "unknown field"
        if len(loc) > 1 and str(loc[1]) not in invalid:
            invalid.append(str(loc[1]))
        errors.append({
            "field": field_path,
            "message": error.get("msg", "Validation error"),
            "type": error_type,
        })

    content = {"ok": False, "stage": "validation", "time": utc_now_iso()}
    if body_unreadable:
        content["error"] = "Invalid JSON body"
    else:
        content.update(error="Request validation failed", invalid=invalid, errors=errors)
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap framework HTTP errors (404, 405, ...) in the ``ok: false`` envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "stage": "server", "error": str(exc.detail), "time": utc_now_iso()},
        headers=getattr(exc, "headers", None),
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with status code and timing to the dedicated API log."""
    start_time = time.time()

    client_ip = request.client.host if request.client else "unknown"
    user_agent = request.headers.get("user-agent", "unknown")
    method = request.method
    path = request.url.path
    request_id = f"{method}:{path}:{int(start_time * 1000) % 100000}"

    api_logger.info(f">> {request_id} | START | {method} {path} | IP: {client_ip} | UA: {user_agent[:50]}")
    if request.query_params:
        api_logger.info(f">> {request_id} | QUERY | {request.query_params}")

    try:
        response = await call_next(request)
    except Exception as e:
        api_logger.error(
            f"<< {request_id} | EXCEPTION | {method} {path} | "
            f"Error: {str(e)[:100]} | Time: {time.time() - start_time:.3f}s | IP: {client_ip}"
        )
        raise

    api_logger.info(
        f"<< {request_id} | COMPLETE | {method} {path} | "
        f"Status: {response.status_code} | Time: {time.time() - start_time:.3f}s | IP: {client_ip}"
    )
    return response


# Registered last so it wraps the request logger and every error response
app.middleware("http")(cors_middleware)

app.include_router(health.router)
app.include_router(submit.router)
app.include_router(translations.router)
app.include_router(report.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "TSC Event Survey API",
        "version": APP_VERSION,
        "environment": settings.environment,
        "docs": "/docs",
    }


def run() -> None:
    """Serve the app with uvicorn; host and port come from ``HOST`` / ``PORT``."""
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
