# Load environment variables FIRST, before any module imports that need them
from dotenv import load_dotenv
load_dotenv()

import logging
import uuid
from pathlib import Path
from typing import Dict

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from . import config
from .logging_config import setup_logging
from .routes import admin_orders_router, webhook_router
from .routes.webhook import get_sender_or_ip, limiter

# Configure logging at module load time
setup_logging()

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

app = FastAPI(
    title="WhatsApp Order Bot",
    description="Conversational ordering over WhatsApp with a spreadsheet back office",
    version="1.0.0",
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Webhook", "description": "Inbound WhatsApp messages"},
        {"name": "Admin - Orders", "description": "Order dashboard endpoints"},
    ],
)


# ---------- Request ID Middleware ----------
# Adds a unique request ID to each request for debugging and log correlation


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.
    The ID is available in request.state.request_id and returned in X-Request-ID header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


app.add_middleware(RequestIDMiddleware)

# Add rate limit exception handler
app.state.limiter = limiter


def rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Throttled webhook events are dropped but still acknowledged with an empty
    200. Other routes get slowapi's regular 429.
    """
    if request.url.path == "/webhook":
        # slowapi keeps (limit, [key, scope]) of the failed check on request.state
        view_rate_limit = getattr(request.state, "view_rate_limit", None)
        key = view_rate_limit[1][0] if view_rate_limit else get_sender_or_ip(request)
        logger.warning("Rate limit exceeded for %s (%s); message dropped", key, exc.detail)
        return Response(status_code=200)
    return _rate_limit_exceeded_handler(request, exc)


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded)

# CORS configuration
# Example: CORS_ORIGINS="https://panel.mitienda.com"
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

app.include_router(webhook_router)
app.include_router(admin_orders_router)


@app.get("/", include_in_schema=False)
def dashboard() -> FileResponse:
    """Serve the order dashboard page."""
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/health", tags=["Health"])
def health() -> Dict[str, str]:
    """Health check endpoint. Returns ok if the service is running."""
    return {"status": "ok"}


if not config.is_sheets_configured():
    logger.warning("Spreadsheet store not configured: menu will be empty and orders will not be saved")
