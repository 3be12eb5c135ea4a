"""FastAPI application entry point for the Commander Tracker web client."""
import logging
import os
import time
from datetime import datetime
from urllib.parse import quote

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from edht.constants import APP_NAME, APP_VERSION
from edht.routes import auth, decks, games, players, stats, system
from edht.services.api_client import SessionExpiredError
from edht.services.session import (
    LoginRequiredError,
    clear_session_cookie,
    get_session_store,
    session_id_from_request,
)
from edht.templating import render

# Configure logging FIRST (before creating FastAPI app)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(),
    ]
)

# Set uvicorn logging level too
uvicorn_logger = logging.getLogger("uvicorn")
uvicorn_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

app = FastAPI(
    title=APP_NAME,
    description="Web client for tracking Commander (EDH) players, decks, games and statistics.",
    version=APP_VERSION,
)

SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "on",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

LOCAL_HOSTS = ("localhost", "127.0.0.1", "testserver")
JSON_PATH_PREFIXES = ("/api/", "/health")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def enforce_https_and_security_headers(request: Request, call_next):
    """Redirect plain HTTP in production and attach browser security headers."""
    host = request.headers.get("host", "")
    if (
        settings.environment == "production"
        and settings.force_https
        and request.headers.get("x-forwarded-proto") != "https"
        and not any(local in host for local in LOCAL_HOSTS)
    ):
        return RedirectResponse(str(request.url.replace(scheme="https")), status_code=307)

    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing and response status."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger = logging.getLogger("edht.access")
    client_host = request.client.host if request.client else "-"
    logger.info(
        f"{client_host} {request.method} {request.url.path} "
        f"-> {response.status_code} ({process_time:.1f}ms)"
    )

    return response


app.include_router(system.router)
app.include_router(auth.router)
app.include_router(players.router)
app.include_router(decks.router)
app.include_router(games.router)
app.include_router(stats.router)


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith(JSON_PATH_PREFIXES)


@app.exception_handler(LoginRequiredError)
async def login_required_handler(request: Request, exc: LoginRequiredError):
    """Anonymous visitors are sent to the login screen."""
    return RedirectResponse(f"/login?next={quote(exc.next_path)}", status_code=303)


@app.exception_handler(SessionExpiredError)
async def session_expired_handler(request: Request, exc: SessionExpiredError):
    """Drop the whole session when the backend rejects its token."""
    get_session_store().evict(session_id_from_request(request))
    logging.getLogger("edht.auth").info(f"Session expired on {request.url.path}: {exc.message}")
    response = RedirectResponse("/login", status_code=303)
    clear_session_cookie(response)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return consistent HTTP error responses."""
    if _wants_json(request):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.status_code,
                    "message": exc.detail,
                    "timestamp": datetime.utcnow().isoformat(),
                }
            },
        )
    session = get_session_store().get(session_id_from_request(request))
    return render(
        request,
        "error.html",
        {"status_code": exc.status_code, "message": exc.detail},
        session=session,
        status_code=exc.status_code,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler to avoid leaking stack traces."""
    logging.getLogger(__name__).exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": 500,
                "message": "Internal server error",
                "timestamp": datetime.utcnow().isoformat(),
            }
        },
    )


__all__ = ["app", "SECURITY_HEADERS"]


if __name__ == "__main__":
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", settings.port)),
        reload=False,
        log_level=settings.log_level.lower(),
    )
