"""System endpoints and static informational pages."""
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from config import settings
from edht.constants import APP_NAME, APP_VERSION
from edht.models.forms import ContactForm
from edht.services.session import Session, get_optional_session
from edht.templating import render

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)


@router.get("/api/v1/status", response_model=Dict[str, Any])
async def api_status() -> Dict[str, Any]:
    """API status endpoint."""
    return {
        "success": True,
        "status": "online",
        "timestamp": datetime.utcnow().isoformat(),
        "version": APP_VERSION,
        "backend": settings.api_base_url,
    }


@router.get("/health", response_model=Dict[str, Any])
async def health_check() -> Dict[str, Any]:
    """Health check endpoint expected by hosting environments."""
    return {
        "success": True,
        "status": "healthy",
        "message": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": APP_NAME,
    }


@router.get("/", include_in_schema=False)
async def home(request: Request, session: Optional[Session] = Depends(get_optional_session)):
    """Landing page; logged-in users go straight to their dashboard."""
    if session is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return render(request, "home.html", session=session)


@router.get("/privacy", include_in_schema=False)
async def privacy_policy(request: Request, session: Optional[Session] = Depends(get_optional_session)):
    """Privacy policy page."""
    return render(
        request,
        "privacy.html",
        {"last_updated": "January 2025"},
        session=session,
    )


@router.get("/contact", include_in_schema=False)
async def contact_page(request: Request, session: Optional[Session] = Depends(get_optional_session)):
    return render(request, "contact.html", {"form": ContactForm(), "submitted": False}, session=session)


@router.post("/contact", include_in_schema=False)
async def submit_contact(request: Request, session: Optional[Session] = Depends(get_optional_session)):
    """Accept a contact message.

    There is no backend endpoint for contact messages; the submission is
    acknowledged after a short local delay and never leaves this service.
    """
    form = ContactForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        return render(
            request,
            "contact.html",
            {"form": form, "errors": errors, "submitted": False},
            session=session,
            status_code=422,
        )

    await asyncio.sleep(settings.contact_delay_seconds)
    logger.info(f"Contact message received: subject='{form.subject.strip()}'")
    return render(request, "contact.html", {"form": ContactForm(), "submitted": True}, session=session)
