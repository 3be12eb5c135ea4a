from bs4 import BeautifulSoup

from edht.services.session import get_session_store

PLAYERS = {
    "success": True,
    "count": 3,
    "data": [
        {"_id": "user-1", "name": "Alice Liddell", "nickname": "alice", "isAdmin": True, "stats": {"gamesPlayed": 4}},
        {"_id": "p2", "name": "Bob Stone", "stats": {"gamesPlayed": 0}},
        {"_id": "p3", "name": "Carol King", "nickname": "ck", "isGuest": True},
    ],
}


def test_player_list_with_search_and_quick_stats(client, backend, login):
    login()
    backend.add("GET", "/players", PLAYERS)

    response = client.get("/players", params={"q": "BOB"})

    assert response.status_code == 200
    assert 'data-player-id="p2"' in response.text
    assert 'data-player-id="p3"' not in response.text
    assert '<strong data-stat="total">3</strong>' in response.text
    assert '<strong data-stat="admins">1</strong>' in response.text
    assert '<strong data-stat="active">1</strong>' in response.text


def test_player_list_search_without_matches(client, backend, login):
    login()
    backend.add("GET", "/players", PLAYERS)

    response = client.get("/players", params={"q": "zzz"})

    assert "No players match your search." in response.text


def test_player_list_shows_backend_error(client, backend, login):
    login()
    backend.add("GET", "/players", {"success": False, "message": "Database unavailable"}, status_code=500)

    response = client.get("/players")

    assert response.status_code == 200
    assert "Database unavailable" in response.text


def test_add_player_link_only_for_admins(client, backend, login):
    backend.add("GET", "/players", PLAYERS)

    login(isAdmin=False)
    assert 'href="/players/new"' not in client.get("/players").text

    login(isAdmin=True)
    assert 'href="/players/new"' in client.get("/players").text


def test_non_admin_cannot_create_players(client, backend, login):
    login(isAdmin=False)

    page = client.get("/players/new")
    submit = client.post(
        "/players/new",
        data={"name": "Eve", "email": "eve@example.com", "password": "secret1", "confirm_password": "secret1"},
    )

    assert page.status_code == 403
    assert "permission to create players" in page.text
    assert submit.status_code == 403
    assert backend.calls("POST", "/auth/register") == []


def test_admin_creates_player_without_switching_session(client, backend, login):
    login(isAdmin=True, token="admin-token")
    backend.add(
        "POST",
        "/auth/register",
        {"success": True, "token": "new-user-token", "user": {"id": "p9", "name": "Eve"}},
        status_code=201,
    )

    response = client.post(
        "/players/new",
        data={
            "name": "Eve",
            "email": "eve@example.com",
            "password": "secret1",
            "confirm_password": "secret1",
            "is_admin": "on",
        },
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/players"
    assert backend.json_sent("POST", "/auth/register")["isAdmin"] is True
    assert backend.calls("POST", "/auth/register")[0].headers["Authorization"] == "Bearer admin-token"
    session = get_session_store().get(client.cookies.get("edht_session"))
    assert session.token == "admin-token"


def test_player_detail_shows_stats_and_edit_link(client, backend, login):
    login()
    backend.add("GET", "/players/user-1", {"success": True, "data": PLAYERS["data"][0]})
    backend.add(
        "GET",
        "/stats/player/user-1",
        {"success": True, "data": {"statistics": {"totalGames": 4, "wins": 2, "winRate": 50}}},
    )

    response = client.get("/players/user-1")

    assert response.status_code == 200
    assert 'href="/players/user-1/edit"' in response.text
    assert "50.0%" in response.text


def test_player_detail_renders_matchups_eliminations_and_recent_games(client, backend, login):
    login()
    backend.add("GET", "/players/user-1", {"success": True, "data": PLAYERS["data"][0]})
    backend.add(
        "GET",
        "/stats/player/user-1",
        {
            "success": True,
            "data": {
                "statistics": {"totalGames": 4, "wins": 2, "winRate": 50},
                "matchups": [
                    {
                        "opponent": {"_id": "p2", "name": "Bob Stone"},
                        "gamesPlayed": 3,
                        "headToHeadWins": 2,
                        "winRate": "66.7",
                        "averagePositionDifference": "-1.0",
                    }
                ],
                "recentGames": [
                    {"_id": "g7", "date": "2024-03-01T18:00:00.000Z", "placement": 2, "deck": {"_id": "d1", "name": "Elves"}, "playerCount": 4}
                ],
                "eliminationStats": {
                    "playersEliminated": [{"player": {"_id": "p2", "name": "Bob Stone"}, "count": 2}],
                    "eliminatedBy": [{"player": {"_id": "p3", "nickname": "ck"}, "count": 1}],
                },
            },
        },
    )

    soup = BeautifulSoup(client.get("/players/user-1").text, "html.parser")

    matchups = soup.select_one('[data-section="matchups"]').get_text(" ", strip=True)
    assert "Bob Stone" in matchups
    assert "2-1" in matchups
    assert "66.7%" in matchups
    assert "-1.0" in matchups
    eliminations = soup.select_one('[data-section="eliminations"]').get_text(" ", strip=True)
    assert "Bob Stone: 2 eliminations" in eliminations
    assert "ck: 1 time" in eliminations
    recent = soup.select_one('[data-section="recent-games"]')
    assert recent.select_one('a[href="/games/g7"]').get_text() == "2024-03-01"
    assert "Elves" in recent.get_text()


def test_player_detail_hides_edit_for_other_players(client, backend, login):
    login()
    backend.add("GET", "/players/p2", {"success": True, "data": PLAYERS["data"][1]})
    backend.add("GET", "/stats/player/p2", {"success": False, "error": "No stats"}, status_code=404)

    response = client.get("/players/p2")

    assert response.status_code == 200
    assert 'href="/players/p2/edit"' not in response.text
    assert "No statistics available yet." in response.text


def test_missing_player_is_404(client, backend, login):
    login()
    backend.add("GET", "/players/nope", {"success": False, "error": "Player not found"}, status_code=404)

    response = client.get("/players/nope")

    assert response.status_code == 404
    assert "Player not found" in response.text


def test_cannot_edit_someone_else_without_admin(client, backend, login):
    login()

    response = client.post("/players/p2/edit", data={"name": "Bob", "email": "bob@example.com"})

    assert response.status_code == 403
    assert backend.calls("PUT", "/players/p2") == []


def test_editing_self_updates_cached_user(client, backend, login):
    login()
    backend.add("PUT", "/players/user-1", {"success": True, "data": {"_id": "user-1", "name": "Alice L."}})

    response = client.post(
        "/players/user-1/edit",
        data={
            "name": "Alice L.",
            "nickname": "ali",
            "email": "alice@example.com",
            "change_password": "on",
            "current_password": "secret1",
            "new_password": "secret2",
            "confirm_password": "secret2",
        },
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/players/user-1"
    sent = backend.json_sent("PUT", "/players/user-1")
    assert sent["currentPassword"] == "secret1"
    assert sent["newPassword"] == "secret2"
    session = get_session_store().get(client.cookies.get("edht_session"))
    assert session.user.name == "Alice L."
    assert session.user.nickname == "ali"


def test_editing_self_requires_current_password(client, backend, login):
    login()

    response = client.post(
        "/players/user-1/edit",
        data={
            "name": "Alice",
            "email": "alice@example.com",
            "change_password": "on",
            "new_password": "secret2",
            "confirm_password": "secret2",
        },
    )

    assert response.status_code == 422
    assert "Current password is required" in response.text
    assert backend.calls("PUT", "/players/user-1") == []


def test_guest_player_creation(client, backend, login):
    login()
    backend.add("GET", "/players/guest/check/Zed", {"success": True, "exists": False, "data": None})
    backend.add("POST", "/players/guest", {"success": True, "data": {"_id": "g1", "nickname": "Zed", "isGuest": True}}, 201)

    short = client.post("/players/guest", data={"nickname": "Z"})
    created = client.post("/players/guest", data={"nickname": " Zed "}, follow_redirects=False)

    assert short.status_code == 422
    assert created.headers["location"] == "/players/g1"
    assert backend.json_sent("POST", "/players/guest") == {"nickname": "Zed"}


def test_guest_player_with_taken_nickname_is_refused(client, backend, login):
    login()
    backend.add(
        "GET",
        "/players/guest/check/Zed",
        {"success": True, "exists": True, "data": {"_id": "g1", "nickname": "Zed", "isGuest": True}},
    )

    response = client.post("/players/guest", data={"nickname": "Zed"}, follow_redirects=False)

    assert response.status_code == 409
    assert "A guest player with this nickname already exists" in response.text
    assert backend.calls("POST", "/players/guest") == []


def test_only_admins_delete_players(client, backend, login):
    login(isAdmin=False)
    assert client.post("/players/p2/delete", follow_redirects=False).status_code == 403

    login(isAdmin=True)
    backend.add("DELETE", "/players/p2", {"success": True, "data": {}})
    response = client.post("/players/p2/delete", follow_redirects=False)

    assert response.status_code == 303
    assert len(backend.calls("DELETE", "/players/p2")) == 1
