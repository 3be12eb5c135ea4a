"""Thin async client for the tracker backend REST API.

Attaches the session's bearer token and turns non-2xx responses into
``TrackerAPIError``. A 401 on a request that carried a token raises
``SessionExpiredError`` instead, so the app can drop the session and send the user back
to the login screen. There is no retry or backoff.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Dict, List, Optional
from urllib.parse import quote

import httpx
from fastapi import Depends

from config import settings
from edht.constants import GENERIC_ERROR_MESSAGE
from edht.models.resources import (
    DashboardStats,
    Deck,
    EntityStats,
    Game,
    GlobalStats,
    Player,
)
from edht.services.session import Session, get_optional_session
from edht.utils.timeout_config import get_backend_timeout, get_quick_timeout

logger = logging.getLogger(__name__)


class TrackerAPIError(Exception):
    """Backend request failed; ``message`` is safe to show to the user."""

    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload


class SessionExpiredError(Exception):
    """Backend rejected the bearer token; the session must be dropped."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)
        self.message = message


def extract_error_message(payload: Any, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """Return the first error string from a backend error body, or ``fallback``."""
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list):
            for entry in errors:
                if isinstance(entry, dict) and entry.get("msg"):
                    return str(entry["msg"])
                if isinstance(entry, str) and entry:
                    return entry
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    elif isinstance(payload, str) and payload.strip():
        return payload.strip()
    return fallback


def unwrap_data(payload: Any) -> Any:
    """Strip the ``{success, data}`` envelope when present."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def unwrap_list(payload: Any) -> List[Dict[str, Any]]:
    data = unwrap_data(payload)
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    return []


class TrackerAPIClient:
    """One instance per incoming request; close it with ``aclose``."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[httpx.Timeout] = None,
    ):
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=timeout or get_backend_timeout(),
            transport=transport,
        )

    async def __aenter__(self) -> "TrackerAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        fallback: str = GENERIC_ERROR_MESSAGE,
        timeout: Optional[httpx.Timeout] = None,
    ) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        request_kwargs: Dict[str, Any] = {"json": json, "params": params, "headers": headers}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            response = await self._client.request(method, path, **request_kwargs)
        except httpx.RequestError as exc:
            logger.warning(f"Backend unreachable for {method} {path}: {exc!r}")
            raise TrackerAPIError(503, fallback) from exc

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        if response.status_code == 401 and self.token:
            logger.info(f"Backend rejected session token on {method} {path}")
            raise SessionExpiredError(extract_error_message(payload, "Session expired"))

        if response.is_error:
            message = extract_error_message(payload, fallback)
            logger.info(f"{method} {path} -> {response.status_code}: {message}")
            raise TrackerAPIError(response.status_code, message, payload)

        return payload

    # Auth

    async def register(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", "/auth/register", json=data, fallback="Failed to create account"
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            fallback=GENERIC_ERROR_MESSAGE,
        )

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout", timeout=get_quick_timeout())

    async def me(self) -> Player:
        payload = await self._request("GET", "/auth/me", fallback="Failed to load your profile")
        return Player.model_validate(unwrap_data(payload))

    # Players

    async def list_players(self, params: Optional[Dict[str, Any]] = None) -> List[Player]:
        payload = await self._request(
            "GET", "/players", params=params, fallback="Failed to load players"
        )
        return [Player.model_validate(item) for item in unwrap_list(payload)]

    async def get_player(self, player_id: str) -> Player:
        payload = await self._request(
            "GET", f"/players/{player_id}", fallback="Failed to load player data"
        )
        return Player.model_validate(unwrap_data(payload))

    async def update_player(self, player_id: str, data: Dict[str, Any]) -> Player:
        payload = await self._request(
            "PUT", f"/players/{player_id}", json=data, fallback="Failed to update player profile"
        )
        return Player.model_validate(unwrap_data(payload))

    async def delete_player(self, player_id: str) -> None:
        await self._request("DELETE", f"/players/{player_id}", fallback="Failed to delete player")

    async def create_guest_player(self, nickname: str) -> Player:
        payload = await self._request(
            "POST",
            "/players/guest",
            json={"nickname": nickname},
            fallback="Failed to create guest player",
        )
        return Player.model_validate(unwrap_data(payload))

    async def check_guest_player(self, nickname: str) -> bool:
        payload = await self._request("GET", f"/players/guest/check/{quote(nickname, safe='')}")
        return bool(isinstance(payload, dict) and payload.get("exists"))

    # Decks

    async def list_decks(self, params: Optional[Dict[str, Any]] = None) -> List[Deck]:
        payload = await self._request("GET", "/decks", params=params, fallback="Failed to load decks")
        return [Deck.model_validate(item) for item in unwrap_list(payload)]

    async def get_deck(self, deck_id: str) -> Deck:
        payload = await self._request("GET", f"/decks/{deck_id}", fallback="Failed to load deck")
        return Deck.model_validate(unwrap_data(payload))

    async def create_deck(self, data: Dict[str, Any]) -> Deck:
        payload = await self._request("POST", "/decks", json=data, fallback="Failed to create deck")
        return Deck.model_validate(unwrap_data(payload))

    async def update_deck(self, deck_id: str, data: Dict[str, Any]) -> Deck:
        payload = await self._request(
            "PUT", f"/decks/{deck_id}", json=data, fallback="Failed to update deck"
        )
        return Deck.model_validate(unwrap_data(payload))

    async def delete_deck(self, deck_id: str) -> None:
        await self._request("DELETE", f"/decks/{deck_id}", fallback="Failed to delete deck")

    async def create_guest_deck(self, data: Dict[str, Any]) -> Deck:
        payload = await self._request(
            "POST", "/decks/guest", json=data, fallback="Failed to create guest deck"
        )
        return Deck.model_validate(unwrap_data(payload))

    # Games

    async def list_games(self, params: Optional[Dict[str, Any]] = None) -> List[Game]:
        payload = await self._request("GET", "/games", params=params, fallback="Failed to load games")
        return [Game.model_validate(item) for item in unwrap_list(payload)]

    async def get_game(self, game_id: str) -> Game:
        payload = await self._request("GET", f"/games/{game_id}", fallback="Failed to load game")
        return Game.model_validate(unwrap_data(payload))

    async def create_game(self, data: Dict[str, Any]) -> Game:
        payload = await self._request("POST", "/games", json=data, fallback="Failed to record game")
        return Game.model_validate(unwrap_data(payload))

    async def update_game(self, game_id: str, data: Dict[str, Any]) -> Game:
        payload = await self._request(
            "PUT", f"/games/{game_id}", json=data, fallback="Failed to update game"
        )
        return Game.model_validate(unwrap_data(payload))

    async def delete_game(self, game_id: str) -> None:
        await self._request("DELETE", f"/games/{game_id}", fallback="Failed to delete game")

    # Stats

    async def player_stats(self, player_id: str) -> EntityStats:
        payload = await self._request(
            "GET", f"/stats/player/{player_id}", fallback="Failed to load player statistics"
        )
        return EntityStats.model_validate(unwrap_data(payload) or {})

    async def deck_stats(self, deck_id: str) -> EntityStats:
        payload = await self._request(
            "GET", f"/stats/deck/{deck_id}", fallback="Failed to load deck statistics"
        )
        return EntityStats.model_validate(unwrap_data(payload) or {})

    async def global_stats(self) -> GlobalStats:
        payload = await self._request("GET", "/stats/global", fallback="Failed to load statistics")
        return GlobalStats.model_validate(unwrap_data(payload) or {})

    async def dashboard_stats(self) -> DashboardStats:
        payload = await self._request(
            "GET", "/stats/dashboard", fallback="Failed to load dashboard"
        )
        return DashboardStats.model_validate(unwrap_data(payload) or {})


def get_backend_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport used for backend calls; ``None`` means real network I/O."""
    return None


async def get_api_client(
    session: Optional[Session] = Depends(get_optional_session),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_backend_transport),
):
    """Per-request API client carrying the session's bearer token."""
    client = TrackerAPIClient(token=session.token if session else None, transport=transport)
    try:
        yield client
    finally:
        await client.aclose()


async def get_anonymous_api_client(
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_backend_transport),
):
    """Per-request API client that never sends a bearer token.

    Used for login and registration, where a 401 is a wrong password and not
    an expired session.
    """
    client = TrackerAPIClient(transport=transport)
    try:
        yield client
    finally:
        await client.aclose()


async def fetch_optional(awaitable: Awaitable[Any], description: str) -> Any:
    """Await a secondary backend call whose failure should not break the page."""
    try:
        return await awaitable
    except TrackerAPIError as exc:
        logger.warning(f"Could not load {description}: {exc.message}")
        return None
