"""Deck list with filters, deck detail, creation, editing and guest decks."""
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from edht.models.forms import DeckForm, GuestDeckForm
from edht.models.resources import Deck
from edht.services.api_client import (
    TrackerAPIClient,
    TrackerAPIError,
    fetch_optional,
    get_api_client,
)
from edht.services.filters import collect_tags, filter_decks, parse_csv_param, toggle_selection
from edht.services.session import Session, require_session
from edht.templating import render

router = APIRouter(prefix="/decks", tags=["decks"])
logger = logging.getLogger(__name__)


def can_manage_deck(session: Session, deck: Deck) -> bool:
    owner_id = deck.owner.id if deck.owner else None
    return session.is_admin or (owner_id is not None and owner_id == session.user.id)


def _form_from_deck(deck: Deck) -> DeckForm:
    return DeckForm(
        name=deck.name,
        commander=deck.commander,
        decklist_link=deck.decklistLink or "",
        deck_image=deck.deckImage or "",
        color_identity=list(deck.colorIdentity),
        tags=list(deck.tags),
    )


async def _load_deck(client: TrackerAPIClient, deck_id: str) -> Deck:
    try:
        return await client.get_deck(deck_id)
    except TrackerAPIError as exc:
        status = 404 if exc.status_code in (400, 404) else exc.status_code
        raise HTTPException(status_code=status, detail=exc.message) from exc


def _filter_link(search: str, colors, tags) -> str:
    params = {}
    if search:
        params["q"] = search
    if colors:
        params["colors"] = ",".join(colors)
    if tags:
        params["tags"] = ",".join(tags)
    return "/decks" + ("?" + urlencode(params) if params else "")


@router.get("", include_in_schema=False)
async def list_decks(
    request: Request,
    q: str = Query("", description="Search deck name, commander or owner"),
    colors: Optional[str] = Query(None, description="Comma-separated colors that must all be present"),
    tags: Optional[str] = Query(None, description="Comma-separated tags, any of which must be present"),
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    selected_colors = [color.upper() for color in parse_csv_param(colors)]
    selected_tags = parse_csv_param(tags)

    error = None
    try:
        decks = await client.list_decks()
    except TrackerAPIError as exc:
        logger.warning(f"Error fetching decks: {exc.message}")
        decks, error = [], exc.message

    all_tags = collect_tags(decks)
    color_links = {
        option: _filter_link(q, toggle_selection(selected_colors, option), selected_tags)
        for option in ("W", "U", "B", "R", "G")
    }
    tag_links = {
        tag: _filter_link(q, selected_colors, toggle_selection(selected_tags, tag))
        for tag in all_tags
    }
    my_decks = sum(
        1 for deck in decks if deck.owner is not None and deck.owner.id == session.user.id
    )

    return render(
        request,
        "decks/list.html",
        {
            "decks": filter_decks(decks, q, selected_colors, selected_tags),
            "search_term": q,
            "selected_colors": selected_colors,
            "selected_tags": selected_tags,
            "all_tags": all_tags,
            "color_links": color_links,
            "tag_links": tag_links,
            "has_filters": bool(q or selected_colors or selected_tags),
            "has_decks": bool(decks),
            "total_decks": len(decks),
            "my_decks": my_decks,
            "error": error,
        },
        session=session,
    )


@router.get("/new", include_in_schema=False)
async def new_deck_page(request: Request, session: Session = Depends(require_session)):
    return render(request, "decks/form.html", {"form": DeckForm(), "deck": None}, session=session)


@router.post("/new", include_in_schema=False)
async def create_deck(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    form = DeckForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        return render(
            request, "decks/form.html", {"form": form, "deck": None, "errors": errors}, session=session, status_code=422
        )

    try:
        deck = await client.create_deck(form.to_payload())
    except TrackerAPIError as exc:
        return render(
            request,
            "decks/form.html",
            {"form": form, "deck": None, "error": exc.message},
            session=session,
            status_code=exc.status_code,
        )

    logger.info(f"Deck created: {deck.id} ({deck.commander})")
    return RedirectResponse("/decks", status_code=303)


@router.get("/guest", include_in_schema=False)
async def guest_deck_page(
    request: Request,
    guest_player_id: str = Query("", description="Guest player that will own the deck"),
    session: Session = Depends(require_session),
):
    return render(
        request, "decks/guest.html", {"form": GuestDeckForm(guest_player_id=guest_player_id)}, session=session
    )


@router.post("/guest", include_in_schema=False)
async def create_guest_deck(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    form = GuestDeckForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        return render(request, "decks/guest.html", {"form": form, "errors": errors}, session=session, status_code=422)

    try:
        deck = await client.create_guest_deck(form.to_payload())
    except TrackerAPIError as exc:
        return render(
            request,
            "decks/guest.html",
            {"form": form, "error": exc.message},
            session=session,
            status_code=exc.status_code,
        )

    return RedirectResponse(f"/decks/{deck.id}", status_code=303)


@router.get("/{deck_id}", include_in_schema=False)
async def deck_detail(
    deck_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    deck = await _load_deck(client, deck_id)
    stats = await fetch_optional(client.deck_stats(deck_id), "deck statistics")
    return render(
        request,
        "decks/detail.html",
        {"deck": deck, "stats": stats, "can_manage": can_manage_deck(session, deck)},
        session=session,
    )


@router.get("/{deck_id}/edit", include_in_schema=False)
async def edit_deck_page(
    deck_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    deck = await _load_deck(client, deck_id)
    if not can_manage_deck(session, deck):
        raise HTTPException(status_code=403, detail="Not authorized to update this deck")
    return render(request, "decks/form.html", {"form": _form_from_deck(deck), "deck": deck}, session=session)


@router.post("/{deck_id}/edit", include_in_schema=False)
async def update_deck(
    deck_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    deck = await _load_deck(client, deck_id)
    if not can_manage_deck(session, deck):
        raise HTTPException(status_code=403, detail="Not authorized to update this deck")

    form = DeckForm.from_form(await request.form())
    errors = form.field_errors()
    if errors:
        return render(
            request, "decks/form.html", {"form": form, "deck": deck, "errors": errors}, session=session, status_code=422
        )

    try:
        await client.update_deck(deck_id, form.to_payload())
    except TrackerAPIError as exc:
        return render(
            request,
            "decks/form.html",
            {"form": form, "deck": deck, "error": exc.message},
            session=session,
            status_code=exc.status_code,
        )

    return RedirectResponse(f"/decks/{deck_id}", status_code=303)


@router.post("/{deck_id}/delete", include_in_schema=False)
async def delete_deck(
    deck_id: str,
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    deck = await _load_deck(client, deck_id)
    if not can_manage_deck(session, deck):
        raise HTTPException(status_code=403, detail="Not authorized to delete this deck")
    try:
        await client.delete_deck(deck_id)
    except TrackerAPIError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    logger.info(f"Deck deleted: {deck_id}")
    return RedirectResponse("/decks", status_code=303)
