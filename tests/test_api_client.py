"""Backend client behaviour against a mocked transport."""
import json

import httpx
import pytest

from edht.services.api_client import (
    SessionExpiredError,
    TrackerAPIClient,
    TrackerAPIError,
    extract_error_message,
    fetch_optional,
)


def _client(handler, token=None):
    return TrackerAPIClient(
        base_url="http://backend.test/api", token=token, transport=httpx.MockTransport(handler)
    )


def test_extract_error_message_priority():
    assert extract_error_message({"errors": [{"msg": "first"}, {"msg": "second"}], "message": "m"}) == "first"
    assert extract_error_message({"message": "from message", "error": "from error"}) == "from message"
    assert extract_error_message({"success": False, "error": "Not found"}) == "Not found"
    assert extract_error_message(None, "fallback") == "fallback"
    assert extract_error_message({"errors": []}, "fallback") == "fallback"


@pytest.mark.asyncio
async def test_bearer_token_attached_when_logged_in():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json={"success": True, "data": []})

    async with _client(handler, token="abc") as client:
        assert await client.list_players() == []

    assert seen == {"auth": "Bearer abc", "path": "/api/players"}


@pytest.mark.asyncio
async def test_no_authorization_header_without_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "token": "t", "user": {"id": "1"}})

    async with _client(handler) as client:
        result = await client.login("a@b.co", "secret1")

    assert seen["auth"] is None
    assert result["token"] == "t"


@pytest.mark.asyncio
async def test_unauthorized_with_token_raises_session_expired():
    def handler(request):
        return httpx.Response(401, json={"success": False, "error": "Token expired"})

    async with _client(handler, token="stale") as client:
        with pytest.raises(SessionExpiredError) as exc:
            await client.get_deck("d1")

    assert exc.value.message == "Token expired"


@pytest.mark.asyncio
async def test_unauthorized_without_token_is_a_regular_error():
    def handler(request):
        return httpx.Response(401, json={"success": False, "error": "Invalid credentials"})

    async with _client(handler) as client:
        with pytest.raises(TrackerAPIError) as exc:
            await client.login("a@b.co", "nope")

    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_error_without_body_uses_operation_fallback():
    def handler(request):
        return httpx.Response(500)

    async with _client(handler, token="t") as client:
        with pytest.raises(TrackerAPIError) as exc:
            await client.create_deck({"name": "x"})

    assert exc.value.status_code == 500
    assert exc.value.message == "Failed to create deck"


@pytest.mark.asyncio
async def test_network_failure_becomes_503():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler, token="t") as client:
        with pytest.raises(TrackerAPIError) as exc:
            await client.list_games()

    assert exc.value.status_code == 503
    assert exc.value.message == "Failed to load games"


@pytest.mark.asyncio
async def test_deck_owner_as_bare_id_and_missing_lists():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"_id": "d1", "name": "Dragons", "commander": "Tiamat", "owner": "u7", "tags": None},
            },
        )

    async with _client(handler, token="t") as client:
        deck = await client.get_deck("d1")

    assert deck.id == "d1"
    assert deck.owner.id == "u7"
    assert deck.tags == []
    assert deck.colorIdentity == []


@pytest.mark.asyncio
async def test_create_game_sends_payload_and_parses_participants():
    sent = {}

    def handler(request):
        sent.update(json.loads(request.content))
        return httpx.Response(
            201,
            json={
                "success": True,
                "data": {
                    "_id": "g1",
                    "players": [
                        {"player": {"_id": "p2", "name": "Bob"}, "deck": "d2", "placement": 2, "eliminatedBy": "p1"},
                        {"player": {"_id": "p1", "name": "Ann"}, "deck": {"_id": "d1", "name": "Elves"}, "placement": 1},
                    ],
                },
            },
        )

    payload = {"players": [{"player": "p1", "deck": "d1", "placement": 1}]}
    async with _client(handler, token="t") as client:
        game = await client.create_game(payload)

    assert sent == payload
    assert game.winner.player.name == "Ann"
    assert [participant.placement for participant in game.ordered_players] == [1, 2]
    assert game.ordered_players[1].eliminatedBy.id == "p1"
    assert game.ordered_players[1].deck.id == "d2"


@pytest.mark.asyncio
async def test_guest_player_check():
    def handler(request):
        assert request.url.path == "/api/players/guest/check/Zed"
        return httpx.Response(200, json={"success": True, "exists": True})

    async with _client(handler, token="t") as client:
        assert await client.check_guest_player("Zed") is True


@pytest.mark.asyncio
async def test_guest_player_check_encodes_nickname():
    seen = {}

    def handler(request):
        seen["raw_path"] = request.url.raw_path
        return httpx.Response(200, json={"success": True, "exists": False, "data": None})

    async with _client(handler) as client:
        assert await client.check_guest_player("a/b?x") is False

    assert seen["raw_path"] == b"/api/players/guest/check/a%2Fb%3Fx"


@pytest.mark.asyncio
async def test_player_stats_parse_matchups_and_eliminations():
    payload = {
        "success": True,
        "data": {
            "statistics": {"totalGames": 4, "wins": 2},
            "matchups": [
                {
                    "opponent": {"_id": "p2", "name": "Bob Stone"},
                    "gamesPlayed": 3,
                    "headToHeadWins": 2,
                    "winRate": "66.7",
                    "averagePositionDifference": "-0.7",
                }
            ],
            "recentGames": [{"_id": "g1", "date": "2024-03-01T00:00:00.000Z", "placement": 1, "deck": "d1", "playerCount": 4}],
            "eliminationStats": {
                "playersEliminated": [{"player": {"_id": "p2", "nickname": "bob"}, "count": 2}],
                "eliminatedBy": [{"player": None, "count": 1}],
            },
        },
    }

    async with _client(lambda request: httpx.Response(200, json=payload), token="t") as client:
        stats = await client.player_stats("p1")

    matchup = stats.matchups[0]
    assert (matchup.won, matchup.lost) == (2, 1)
    assert matchup.winRate == pytest.approx(66.7)
    assert matchup.averagePositionDifference == pytest.approx(-0.7)
    assert stats.recentGames[0].deck.id == "d1"
    assert stats.eliminationStats.playersEliminated[0].player.display_name == "bob"
    assert stats.eliminationStats.eliminatedBy[0].player is None


@pytest.mark.asyncio
async def test_fetch_optional_swallows_backend_errors_only():
    def handler(request):
        return httpx.Response(404, json={"error": "missing"})

    async with _client(handler, token="t") as client:
        assert await fetch_optional(client.deck_stats("d1"), "deck statistics") is None


def test_backend_timeout_follows_settings(monkeypatch):
    from config import settings
    from edht.utils.timeout_config import get_backend_timeout

    monkeypatch.setattr(settings, "external_api_timeout", 30)
    monkeypatch.setattr(settings, "external_api_connect_timeout", 2)

    timeout = get_backend_timeout()

    assert timeout.read == 30
    assert timeout.connect == 2
    assert timeout.pool == 5.0
