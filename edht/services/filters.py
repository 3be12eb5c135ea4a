"""In-memory search and filter helpers for list screens."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from edht.models.resources import Deck, Player


def _contains(value: Optional[str], term: str) -> bool:
    return bool(value) and term in value.lower()


def toggle_selection(selected: Sequence[str], value: str) -> List[str]:
    """Remove ``value`` if selected, append it otherwise. Order is preserved."""
    if value in selected:
        return [item for item in selected if item != value]
    return [*selected, value]


def parse_csv_param(raw: Optional[str]) -> List[str]:
    """Split a comma-separated query parameter into unique, non-blank items."""
    if not raw:
        return []
    items: List[str] = []
    for part in raw.split(","):
        part = part.strip()
        if part and part not in items:
            items.append(part)
    return items


def filter_players(players: Iterable[Player], search_term: str = "") -> List[Player]:
    """Players whose name or nickname contains ``search_term`` (case-insensitive)."""
    term = (search_term or "").lower()
    if not term:
        return list(players)
    return [
        player
        for player in players
        if _contains(player.name, term) or _contains(player.nickname, term)
    ]


def player_quick_stats(players: Sequence[Player]) -> Dict[str, int]:
    return {
        "total": len(players),
        "admins": sum(1 for player in players if player.isAdmin),
        "active": sum(1 for player in players if player.stats and player.stats.gamesPlayed > 0),
    }


def deck_matches_search(deck: Deck, term: str) -> bool:
    if not term:
        return True
    owner = deck.owner
    return (
        _contains(deck.name, term)
        or _contains(deck.commander, term)
        or (owner is not None and (_contains(owner.name, term) or _contains(owner.nickname, term)))
    )


def filter_decks(
    decks: Iterable[Deck],
    search_term: str = "",
    colors: Sequence[str] = (),
    tags: Sequence[str] = (),
) -> List[Deck]:
    """Apply the deck list filters.

    A deck must match the search term (name, commander, owner name or
    nickname), contain every selected color, and carry at least one selected
    tag. Empty selections do not filter.
    """
    term = (search_term or "").lower()
    wanted_colors = [color.upper() for color in colors]
    result = []
    for deck in decks:
        if not deck_matches_search(deck, term):
            continue
        if wanted_colors and not all(color in deck.colorIdentity for color in wanted_colors):
            continue
        if tags and not any(tag in deck.tags for tag in tags):
            continue
        result.append(deck)
    return result


def collect_tags(decks: Iterable[Deck]) -> List[str]:
    """Unique tags across decks in first-seen order."""
    seen: List[str] = []
    for deck in decks:
        for tag in deck.tags:
            if tag not in seen:
                seen.append(tag)
    return seen
