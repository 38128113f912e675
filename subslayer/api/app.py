"""FastAPI server for SubSlayer"""

from __future__ import annotations

import sqlite3
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file before settings are read
load_dotenv()

from subslayer.api.middleware.security_headers import SecurityHeadersMiddleware  # noqa: E402
from subslayer.api.routes.cron import router as cron_router  # noqa: E402
from subslayer.api.routes.health import router as health_router  # noqa: E402
from subslayer.api.routes.parse import router as parse_router  # noqa: E402
from subslayer.api.routes.subscriptions import router as subscriptions_router  # noqa: E402
from subslayer.config import APP_VERSION  # noqa: E402
from subslayer.infrastructure import settings  # noqa: E402
from subslayer.infrastructure.database import get_db_connection, init_database  # noqa: E402
from subslayer.infrastructure.database_schema import validate_schema  # noqa: E402
from subslayer.observability.logging import get_logger  # noqa: E402
from subslayer.observability.telemetry import counter, log_event  # noqa: E402

app = FastAPI(title="SubSlayer API", version=APP_VERSION)

logger = get_logger(__name__)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return field names only; validation rules stay server-side."""
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": "Invalid request format. Please check your request and try again.",
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


ALLOWED_ORIGINS = [settings.APP_URL]

if settings.is_development():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:8000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:8000",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Initialize database schema
try:
    logger.info("Initializing database schema...")
    init_database()
    with get_db_connection() as conn:
        validate_schema(conn)
    logger.info("Database initialization complete")
except (sqlite3.OperationalError, ValueError) as e:
    logger.critical("Database schema error: %s", e)
    raise RuntimeError(f"Database initialization failed: {e}") from e

app.include_router(health_router)
app.include_router(parse_router)
app.include_router(subscriptions_router)
app.include_router(cron_router)

log_event("api.startup", service="subslayer", version=APP_VERSION, env=settings.ENV)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "SubSlayer API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "parse": "/api/parse-subscription",
            "subscriptions": "/api/subscriptions",
            "summary": "/api/subscriptions/summary",
            "cancel": "/api/cancel-subscription",
            "check_renewals": "/api/cron/check-renewals",
        },
    }


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("subslayer.api.app:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    main()
