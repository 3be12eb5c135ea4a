"""Aggregate exports for resource and form models."""
from .forms import (
    ContactForm,
    DeckForm,
    GameForm,
    GameParticipantRow,
    GuestDeckForm,
    GuestPlayerForm,
    LoginForm,
    PlayerCreateForm,
    PlayerEditForm,
    RegisterForm,
    is_valid_url,
)
from .resources import (
    DashboardStats,
    Deck,
    DeckRef,
    EliminationCount,
    EliminationStats,
    EntityStats,
    Game,
    GameParticipant,
    GlobalStats,
    Matchup,
    PersonalStats,
    Player,
    PlayerRef,
    PlayerSummaryStats,
    RecentGame,
    SessionUser,
    Statistics,
)

__all__ = [
    "ContactForm",
    "DeckForm",
    "GameForm",
    "GameParticipantRow",
    "GuestDeckForm",
    "GuestPlayerForm",
    "LoginForm",
    "PlayerCreateForm",
    "PlayerEditForm",
    "RegisterForm",
    "is_valid_url",
    "DashboardStats",
    "Deck",
    "DeckRef",
    "EliminationCount",
    "EliminationStats",
    "EntityStats",
    "Game",
    "GameParticipant",
    "GlobalStats",
    "Matchup",
    "PersonalStats",
    "Player",
    "PlayerRef",
    "PlayerSummaryStats",
    "RecentGame",
    "SessionUser",
    "Statistics",
]
