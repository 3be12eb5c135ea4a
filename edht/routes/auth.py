"""Login, registration, logout and the current user's profile."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from edht.constants import GENERIC_ERROR_MESSAGE
from edht.models.forms import LoginForm, RegisterForm
from edht.services.api_client import (
    SessionExpiredError,
    TrackerAPIClient,
    TrackerAPIError,
    fetch_optional,
    get_anonymous_api_client,
    get_api_client,
)
from edht.services.session import (
    Session,
    SessionStore,
    clear_session_cookie,
    get_optional_session,
    get_session_store,
    require_session,
    session_id_from_request,
    set_session_cookie,
)
from edht.templating import render

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)
auth_logger = logging.getLogger("edht.auth")


def safe_next_path(value: Optional[str]) -> str:
    """Only follow local redirects after login."""
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return "/dashboard"


def _start_session(store: SessionStore, payload: Any, next_path: str = "/dashboard") -> Optional[RedirectResponse]:
    """Store token and user from a login/register response and redirect."""
    if not isinstance(payload, dict) or not payload.get("token") or not isinstance(payload.get("user"), dict):
        return None
    session = store.create(payload["token"], payload["user"])
    response = RedirectResponse(next_path, status_code=303)
    set_session_cookie(response, session)
    return response


@router.get("/login", include_in_schema=False)
async def login_page(
    request: Request,
    next: Optional[str] = None,
    session: Optional[Session] = Depends(get_optional_session),
):
    if session is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return render(request, "auth/login.html", {"form": LoginForm(), "next": next or ""})


@router.post("/login", include_in_schema=False)
async def login(
    request: Request,
    client: TrackerAPIClient = Depends(get_anonymous_api_client),
    store: SessionStore = Depends(get_session_store),
):
    form_data = await request.form()
    form = LoginForm.from_form(form_data)
    next_path = safe_next_path(form_data.get("next"))
    context: Dict[str, Any] = {"form": form, "next": form_data.get("next", "")}

    errors = form.field_errors()
    if errors:
        return render(request, "auth/login.html", {**context, "errors": errors}, status_code=422)

    payload = form.to_payload()
    try:
        result = await client.login(payload["email"], payload["password"])
    except TrackerAPIError as exc:
        auth_logger.info(f"Login failed for {payload['email']}: {exc.message}")
        return render(
            request, "auth/login.html", {**context, "error": exc.message}, status_code=exc.status_code
        )

    response = _start_session(store, result, next_path)
    if response is None:
        logger.error("Login response did not contain a token and user")
        return render(request, "auth/login.html", {**context, "error": GENERIC_ERROR_MESSAGE}, status_code=502)

    auth_logger.info(f"User logged in: {payload['email']}")
    return response


@router.get("/register", include_in_schema=False)
async def register_page(request: Request, session: Optional[Session] = Depends(get_optional_session)):
    if session is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return render(request, "auth/register.html", {"form": RegisterForm()})


@router.post("/register", include_in_schema=False)
async def register(
    request: Request,
    client: TrackerAPIClient = Depends(get_anonymous_api_client),
    store: SessionStore = Depends(get_session_store),
):
    form = RegisterForm.from_form(await request.form())

    errors = form.field_errors()
    if errors:
        return render(request, "auth/register.html", {"form": form, "errors": errors}, status_code=422)

    try:
        result = await client.register(form.to_payload())
    except TrackerAPIError as exc:
        return render(
            request,
            "auth/register.html",
            {"form": form, "error": exc.message},
            status_code=exc.status_code,
        )

    if isinstance(result, dict) and result.get("convertedFromGuest"):
        auth_logger.info(f"Guest player converted to account: {form.email.strip().lower()}")

    response = _start_session(store, result)
    if response is None:
        # Account exists but the response cannot log us in; send the user to the login form.
        return RedirectResponse("/login", status_code=303)
    auth_logger.info(f"Account registered: {form.email.strip().lower()}")
    return response


@router.post("/logout", include_in_schema=False)
async def logout(
    request: Request,
    client: TrackerAPIClient = Depends(get_api_client),
    store: SessionStore = Depends(get_session_store),
):
    if client.token:
        try:
            await client.logout()
        except (TrackerAPIError, SessionExpiredError) as exc:
            logger.info(f"Backend logout failed, dropping session anyway: {exc}")

    store.evict(session_id_from_request(request))
    response = RedirectResponse("/login", status_code=303)
    clear_session_cookie(response)
    return response


@router.get("/profile", include_in_schema=False)
async def profile(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    """Current user's profile with personal statistics."""
    player = await fetch_optional(client.me(), "current user")
    stats = await fetch_optional(client.player_stats(session.user.id), "player statistics")
    return render(
        request,
        "auth/profile.html",
        {"player": player, "stats": stats},
        session=session,
    )
