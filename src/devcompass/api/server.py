"""
FastAPI server for the DevCompass waitlist.

The server receives career-survey submissions from the frontend form, runs
them through the submission pipeline and stores accepted ones. Operators read
aggregate statistics from /api/waitlist/stats.

To run the server:
    python -m uvicorn devcompass.api.server:app --reload --app-dir src
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcompass.api.handlers.exceptions import (
    http_exception_handler,
    unhandled_exception_handler,
    waitlist_exception_handler,
)
from devcompass.api.middleware.body_limit import body_limit_middleware
from devcompass.api.middleware.logging import log_requests_middleware
from devcompass.api.middleware.rate_limiting import rate_limit_middleware
from devcompass.api.routes import health, waitlist
from devcompass.config import settings
from devcompass.utils.exceptions import WaitlistError
from devcompass.utils.logger import configure_logging, get_logger
from devcompass.utils.rate_limiter import build_rate_limiter
from devcompass.utils.submission_store import build_submission_store

configure_logging()
logger = get_logger(__name__)

# ------------- FastAPI Setup -------------

# Create the FastAPI app
app = FastAPI(
    title=settings.SERVICE_NAME,
    description="API that collects DevCompass waitlist submissions",
    version=settings.SERVICE_VERSION,
)

# Shared components; tests replace these per test
app.state.store = build_submission_store()
app.state.rate_limiter = build_rate_limiter()

# Middleware runs outermost-last-added: logging -> rate limiting -> body limit -> route
app.middleware("http")(body_limit_middleware)
app.middleware("http")(rate_limit_middleware)
app.middleware("http")(log_requests_middleware)

# CORS wraps everything so 429 and 413 responses carry CORS headers too
# In development every origin is allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if not settings.IS_PRODUCTION else settings.ALLOWED_ORIGINS,
    allow_credentials=settings.IS_PRODUCTION,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Add exception handlers
app.add_exception_handler(WaitlistError, waitlist_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Include routers
app.include_router(health.router)
app.include_router(waitlist.router)

logger.info(
    "Server initialized",
    extra={
        "extra_fields": {
            "environment": settings.ENVIRONMENT,
            "database": "connected" if app.state.store is not None else "not configured",
            "rate_limit_enabled": app.state.rate_limiter.enabled,
        }
    },
)

# For running as standalone server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
