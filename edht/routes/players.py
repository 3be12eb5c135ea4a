"""Player list, profile, admin creation, editing and guest players."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from edht.models.forms import GuestPlayerForm, PlayerCreateForm, PlayerEditForm
from edht.models.resources import Player
from edht.services.api_client import (
    TrackerAPIClient,
    TrackerAPIError,
    fetch_optional,
    get_api_client,
)
from edht.services.filters import filter_players, player_quick_stats
from edht.services.session import Session, SessionStore, get_session_store, require_session
from edht.templating import render

router = APIRouter(prefix="/players", tags=["players"])
logger = logging.getLogger(__name__)


def can_edit_player(session: Session, player_id: str) -> bool:
    return session.is_admin or session.user.id == player_id


def _edit_form_from_player(player: Player) -> PlayerEditForm:
    return PlayerEditForm(
        name=player.name,
        nickname=player.nickname or "",
        email=player.email or "",
        profile_image=player.profileImage or "",
    )


async def _load_player(client: TrackerAPIClient, player_id: str) -> Player:
    try:
        return await client.get_player(player_id)
    except TrackerAPIError as exc:
        status = 404 if exc.status_code in (400, 404) else exc.status_code
        raise HTTPException(status_code=status, detail=exc.message) from exc


@router.get("", include_in_schema=False)
async def list_players(
    request: Request,
    q: str = Query("", description="Filter by name or nickname"),
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    error = None
    try:
        players = await client.list_players()
    except TrackerAPIError as exc:
        logger.warning(f"Error fetching players: {exc.message}")
        players, error = [], exc.message

    return render(
        request,
        "players/list.html",
        {
            "players": filter_players(players, q),
            "search_term": q,
            "quick_stats": player_quick_stats(players),
            "has_players": bool(players),
            "error": error,
        },
        session=session,
    )


@router.get("/new", include_in_schema=False)
async def new_player_page(request: Request, session: Session = Depends(require_session)):
    if not session.is_admin:
        return render(request, "players/forbidden.html", session=session, status_code=403)
    return render(request, "players/new.html", {"form": PlayerCreateForm()}, session=session)


@router.post("/new", include_in_schema=False)
async def create_player(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    """Create an account for someone else through the register endpoint.

    The register response carries a token for the new account; it is
    discarded so the admin stays logged in as themselves.
    """
    if not session.is_admin:
        return render(request, "players/forbidden.html", session=session, status_code=403)

    form = PlayerCreateForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        return render(request, "players/new.html", {"form": form, "errors": errors}, session=session, status_code=422)

    try:
        await client.register(form.to_payload())
    except TrackerAPIError as exc:
        return render(
            request,
            "players/new.html",
            {"form": form, "error": exc.message},
            session=session,
            status_code=exc.status_code,
        )

    logger.info(f"Admin {session.user.id} created player {form.email}")
    return RedirectResponse("/players", status_code=303)


@router.post("/guest", include_in_schema=False)
async def create_guest_player(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    form = GuestPlayerForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        return render(request, "players/guest.html", {"form": form, "errors": errors}, session=session, status_code=422)

    nickname = form.to_payload()["nickname"]
    if await fetch_optional(client.check_guest_player(nickname), "guest nickname check"):
        errors = {"nickname": "A guest player with this nickname already exists"}
        return render(request, "players/guest.html", {"form": form, "errors": errors}, session=session, status_code=409)

    try:
        guest = await client.create_guest_player(nickname)
    except TrackerAPIError as exc:
        return render(
            request,
            "players/guest.html",
            {"form": form, "error": exc.message},
            session=session,
            status_code=exc.status_code,
        )

    return RedirectResponse(f"/players/{guest.id}", status_code=303)


@router.get("/guest", include_in_schema=False)
async def guest_player_page(request: Request, session: Session = Depends(require_session)):
    return render(request, "players/guest.html", {"form": GuestPlayerForm()}, session=session)


@router.get("/{player_id}", include_in_schema=False)
async def player_detail(
    player_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    player = await _load_player(client, player_id)
    stats = await fetch_optional(client.player_stats(player_id), "player statistics")
    return render(
        request,
        "players/detail.html",
        {"player": player, "stats": stats, "can_edit": can_edit_player(session, player.id)},
        session=session,
    )


@router.get("/{player_id}/edit", include_in_schema=False)
async def edit_player_page(
    player_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    player = await _load_player(client, player_id)
    if not can_edit_player(session, player.id):
        raise HTTPException(status_code=403, detail="You can only edit your own profile.")
    return render(
        request,
        "players/edit.html",
        {"player": player, "form": _edit_form_from_player(player), "editing_self": session.user.id == player.id},
        session=session,
    )


@router.post("/{player_id}/edit", include_in_schema=False)
async def update_player(
    player_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
    store: SessionStore = Depends(get_session_store),
):
    if not can_edit_player(session, player_id):
        raise HTTPException(status_code=403, detail="You can only edit your own profile.")

    editing_self = session.user.id == player_id
    form = PlayerEditForm.from_form(await request.form())
    context = {"player": None, "form": form, "editing_self": editing_self, "player_id": player_id}

    errors = form.field_errors(editing_self=editing_self)
    if errors:
        return render(request, "players/edit.html", {**context, "errors": errors}, session=session, status_code=422)

    try:
        await client.update_player(player_id, form.to_payload(editing_self=editing_self))
    except TrackerAPIError as exc:
        return render(
            request,
            "players/edit.html",
            {**context, "error": exc.message},
            session=session,
            status_code=exc.status_code,
        )

    if editing_self:
        store.update_user(
            session.sid,
            name=form.name,
            nickname=form.nickname,
            email=form.email,
            profileImage=form.profile_image,
        )

    return RedirectResponse(f"/players/{player_id}", status_code=303)


@router.post("/{player_id}/delete", include_in_schema=False)
async def delete_player(
    player_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    try:
        await client.delete_player(player_id)
    except TrackerAPIError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    logger.info(f"Admin {session.user.id} deleted player {player_id}")
    return RedirectResponse("/players", status_code=303)
