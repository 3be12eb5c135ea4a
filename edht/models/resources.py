"""Tolerant views of records owned by the tracker backend.

The backend populates references inconsistently (an owner may be a bare id or
an embedded object) and omits optional keys, so every model here ignores
unknown keys and defaults whatever it can.
"""
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _wrap_reference(value: Any) -> Any:
    """Turn a bare object id into ``{"_id": value}`` so it parses as a reference."""
    if isinstance(value, str):
        return {"_id": value}
    return value


class PlayerRef(_Record):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    nickname: Optional[str] = None
    profileImage: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.nickname or self.name or "Unknown"


class PlayerSummaryStats(_Record):
    gamesPlayed: int = 0
    wins: int = 0
    winRate: float = 0.0
    favoriteCommander: Optional[str] = None


class Player(_Record):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    nickname: Optional[str] = None
    email: Optional[str] = None
    profileImage: Optional[str] = None
    isAdmin: bool = False
    isGuest: bool = False
    createdAt: Optional[str] = None
    stats: Optional[PlayerSummaryStats] = None
    decks: List[Any] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.nickname or self.name

    @property
    def initial(self) -> str:
        return self.name[:1].upper() if self.name else "?"


class Deck(_Record):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    commander: str = ""
    decklistLink: Optional[str] = None
    deckImage: Optional[str] = None
    colorIdentity: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    owner: Optional[PlayerRef] = None
    createdAt: Optional[str] = None

    @field_validator("owner", mode="before")
    @classmethod
    def _owner_reference(cls, value: Any) -> Any:
        return _wrap_reference(value)

    @field_validator("colorIdentity", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class DeckRef(_Record):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    commander: Optional[str] = None
    owner: Optional[PlayerRef] = None

    @field_validator("owner", mode="before")
    @classmethod
    def _owner_reference(cls, value: Any) -> Any:
        return _wrap_reference(value)

    @property
    def display_name(self) -> str:
        return self.name or "Unknown deck"


class GameParticipant(_Record):
    player: Optional[PlayerRef] = None
    deck: Optional[DeckRef] = None
    placement: int = 0
    eliminatedBy: Optional[PlayerRef] = None
    borrowedFrom: Optional[PlayerRef] = None

    @field_validator("player", "eliminatedBy", "borrowedFrom", "deck", mode="before")
    @classmethod
    def _references(cls, value: Any) -> Any:
        return _wrap_reference(value)


class Game(_Record):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    date: Optional[str] = None
    players: List[GameParticipant] = Field(default_factory=list)
    durationMinutes: Optional[int] = None
    notes: Optional[str] = None
    createdBy: Optional[PlayerRef] = None

    @field_validator("createdBy", mode="before")
    @classmethod
    def _creator_reference(cls, value: Any) -> Any:
        return _wrap_reference(value)

    @property
    def ordered_players(self) -> List[GameParticipant]:
        return sorted(self.players, key=lambda participant: participant.placement)

    @property
    def winner(self) -> Optional[GameParticipant]:
        for participant in self.players:
            if participant.placement == 1:
                return participant
        return None


class Statistics(_Record):
    totalGames: int = 0
    wins: int = 0
    winRate: float = 0.0
    averagePlacement: float = 0.0
    placementDistribution: Dict[str, int] = Field(default_factory=dict)


class Matchup(_Record):
    """Head-to-head record against one opponent player or deck.

    Player statistics fill ``opponent`` and ``headToHeadWins``; deck
    statistics fill ``opponentDeck`` with ``wins`` and ``losses``. The backend
    sends the rates as strings such as ``"50.0"``.
    """

    opponent: Optional[PlayerRef] = None
    opponentDeck: Optional[DeckRef] = None
    gamesPlayed: int = 0
    headToHeadWins: Optional[int] = None
    wins: Optional[int] = None
    losses: Optional[int] = None
    winRate: float = 0.0
    averagePositionDifference: float = 0.0

    @field_validator("opponent", "opponentDeck", mode="before")
    @classmethod
    def _references(cls, value: Any) -> Any:
        return _wrap_reference(value)

    @field_validator("winRate", "averagePositionDifference", mode="before")
    @classmethod
    def _blank_as_zero(cls, value: Any) -> Any:
        return 0.0 if value in (None, "") else value

    @property
    def won(self) -> int:
        if self.headToHeadWins is not None:
            return self.headToHeadWins
        return self.wins or 0

    @property
    def lost(self) -> int:
        if self.losses is not None:
            return self.losses
        return max(self.gamesPlayed - self.won, 0)


class RecentGame(_Record):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    date: Optional[str] = None
    placement: int = 0
    playerCount: int = 0
    deck: Optional[DeckRef] = None
    player: Optional[PlayerRef] = None

    @field_validator("deck", "player", mode="before")
    @classmethod
    def _references(cls, value: Any) -> Any:
        return _wrap_reference(value)


class EliminationCount(_Record):
    player: Optional[PlayerRef] = None
    count: int = 0

    @field_validator("player", mode="before")
    @classmethod
    def _player_reference(cls, value: Any) -> Any:
        return _wrap_reference(value)


class EliminationStats(_Record):
    playersEliminated: List[EliminationCount] = Field(default_factory=list)
    eliminatedBy: List[EliminationCount] = Field(default_factory=list)

    @field_validator("playersEliminated", "eliminatedBy", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class EntityStats(_Record):
    """Payload of ``/stats/player/:id`` and ``/stats/deck/:id``.

    Deck statistics carry no ``eliminationStats``.
    """

    statistics: Statistics = Field(default_factory=Statistics)
    matchups: List[Matchup] = Field(default_factory=list)
    deckUsage: List[Dict[str, Any]] = Field(default_factory=list)
    recentGames: List[RecentGame] = Field(default_factory=list)
    eliminationStats: Optional[EliminationStats] = None

    @field_validator("matchups", "deckUsage", "recentGames", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class GlobalStats(_Record):
    totalGames: int = 0
    totalPlayers: int = 0
    totalDecks: int = 0
    averageGameLength: Optional[float] = None
    topPlayers: List[Dict[str, Any]] = Field(default_factory=list)
    topDecks: List[Dict[str, Any]] = Field(default_factory=list)


class PersonalStats(_Record):
    totalDecks: int = 0
    totalGames: int = 0
    wins: int = 0
    winRate: float = 0.0


class DashboardStats(_Record):
    personalStats: PersonalStats = Field(default_factory=PersonalStats)
    topUserDecks: List[Dict[str, Any]] = Field(default_factory=list)
    recentUserGames: List[Dict[str, Any]] = Field(default_factory=list)


class SessionUser(_Record):
    """User object cached in the session next to the bearer token."""

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    nickname: Optional[str] = None
    email: Optional[str] = None
    profileImage: Optional[str] = None
    isAdmin: bool = False

    @property
    def display_name(self) -> str:
        return self.nickname or self.name

    @property
    def initial(self) -> str:
        return self.name[:1].upper() if self.name else "?"
