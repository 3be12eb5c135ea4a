"""Recorded games: list, detail, recording, editing and deleting results."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from edht.constants import MAX_GAME_PLAYERS
from edht.models.forms import GameForm, GameParticipantRow
from edht.models.resources import Game
from edht.services.api_client import (
    TrackerAPIClient,
    TrackerAPIError,
    fetch_optional,
    get_api_client,
)
from edht.services.session import Session, require_session
from edht.templating import render

router = APIRouter(prefix="/games", tags=["games"])
logger = logging.getLogger(__name__)


def _blank_form() -> GameForm:
    return GameForm(rows=[GameParticipantRow() for _ in range(MAX_GAME_PLAYERS)])


async def _load_game(client: TrackerAPIClient, game_id: str) -> Game:
    try:
        return await client.get_game(game_id)
    except TrackerAPIError as exc:
        status = 404 if exc.status_code in (400, 404) else exc.status_code
        raise HTTPException(status_code=status, detail=exc.message) from exc


def can_edit_game(session: Session, game: Game) -> bool:
    """Creator or admin, the same rule the backend applies to updates."""
    creator_id = game.createdBy.id if game.createdBy else None
    return session.is_admin or (creator_id is not None and creator_id == session.user.id)


def _form_from_game(game: Game) -> GameForm:
    rows = [
        GameParticipantRow(
            player=participant.player.id if participant.player and participant.player.id else "",
            deck=participant.deck.id if participant.deck and participant.deck.id else "",
            placement=str(participant.placement) if participant.placement else "",
            eliminated_by=participant.eliminatedBy.id if participant.eliminatedBy and participant.eliminatedBy.id else "",
            borrowed_from=participant.borrowedFrom.id if participant.borrowedFrom and participant.borrowedFrom.id else "",
        )
        for participant in game.ordered_players[:MAX_GAME_PLAYERS]
    ]
    rows.extend(GameParticipantRow() for _ in range(MAX_GAME_PLAYERS - len(rows)))
    return GameForm(
        rows=rows,
        date=(game.date or "")[:10],
        duration_minutes=str(game.durationMinutes) if game.durationMinutes else "",
        notes=game.notes or "",
    )


async def _form_choices(client: TrackerAPIClient):
    players = await fetch_optional(client.list_players(), "players") or []
    decks = await fetch_optional(client.list_decks(), "decks") or []
    return {"players": players, "decks": decks}


@router.get("", include_in_schema=False)
async def list_games(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    error = None
    try:
        games = await client.list_games()
    except TrackerAPIError as exc:
        logger.warning(f"Error fetching games: {exc.message}")
        games, error = [], exc.message
    return render(request, "games/list.html", {"games": games, "error": error}, session=session)


@router.get("/new", include_in_schema=False)
async def new_game_page(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    choices = await _form_choices(client)
    return render(request, "games/new.html", {"form": _blank_form(), **choices}, session=session)


@router.post("/new", include_in_schema=False)
async def create_game(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    form = GameForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        choices = await _form_choices(client)
        return render(
            request, "games/new.html", {"form": form, "errors": errors, **choices}, session=session, status_code=422
        )

    try:
        game = await client.create_game(form.to_payload())
    except TrackerAPIError as exc:
        choices = await _form_choices(client)
        return render(
            request,
            "games/new.html",
            {"form": form, "error": exc.message, **choices},
            session=session,
            status_code=exc.status_code,
        )

    logger.info(f"Game recorded: {game.id} with {len(game.players)} players")
    return RedirectResponse(f"/games/{game.id}", status_code=303)


@router.get("/{game_id}", include_in_schema=False)
async def game_detail(
    game_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    game = await _load_game(client, game_id)
    return render(
        request, "games/detail.html", {"game": game, "can_edit": can_edit_game(session, game)}, session=session
    )


@router.get("/{game_id}/edit", include_in_schema=False)
async def edit_game_page(
    game_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    game = await _load_game(client, game_id)
    if not can_edit_game(session, game):
        raise HTTPException(status_code=403, detail="Not authorized to update this game")
    choices = await _form_choices(client)
    return render(
        request, "games/new.html", {"form": _form_from_game(game), "game": game, **choices}, session=session
    )


@router.post("/{game_id}/edit", include_in_schema=False)
async def update_game(
    game_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    game = await _load_game(client, game_id)
    if not can_edit_game(session, game):
        raise HTTPException(status_code=403, detail="Not authorized to update this game")

    form = GameForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        choices = await _form_choices(client)
        return render(
            request,
            "games/new.html",
            {"form": form, "game": game, "errors": errors, **choices},
            session=session,
            status_code=422,
        )

    try:
        await client.update_game(game_id, form.to_payload())
    except TrackerAPIError as exc:
        choices = await _form_choices(client)
        return render(
            request,
            "games/new.html",
            {"form": form, "game": game, "error": exc.message, **choices},
            session=session,
            status_code=exc.status_code,
        )

    logger.info(f"Game updated: {game_id}")
    return RedirectResponse(f"/games/{game_id}", status_code=303)


@router.post("/{game_id}/delete", include_in_schema=False)
async def delete_game(
    game_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    try:
        await client.delete_game(game_id)
    except TrackerAPIError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    logger.info(f"Game deleted: {game_id}")
    return RedirectResponse("/games", status_code=303)
