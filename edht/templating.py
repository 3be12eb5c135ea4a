"""Jinja2 environment and the page rendering helper used by every route."""
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from edht.constants import APP_NAME, APP_VERSION, COLOR_OPTIONS, COMMON_TAGS
from edht.navigation import build_navigation

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
templates.env.globals.update(
    app_name=APP_NAME,
    app_version=APP_VERSION,
    color_options=COLOR_OPTIONS,
    common_tags=COMMON_TAGS,
)


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    session: Optional[Any] = None,
    status_code: int = 200,
):
    """Render ``name`` inside the navigation shell."""
    user = session.user if session is not None else None
    page_context: Dict[str, Any] = {
        "user": user,
        "navigation": build_navigation(request.url.path, user),
        "errors": {},
    }
    if context:
        page_context.update(context)
    return templates.TemplateResponse(request, name, page_context, status_code=status_code)
