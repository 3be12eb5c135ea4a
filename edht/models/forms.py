"""Form models for every screen that submits data.

Each form parses raw submitted values and reports problems through
``field_errors()`` as a field -> message mapping. An empty mapping means the
form may be sent to the backend with ``to_payload()``.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from edht.constants import (
    MAX_GAME_DURATION,
    MAX_GAME_NOTES,
    MAX_GAME_PLAYERS,
    MAX_TAG_LENGTH,
    MIN_GAME_DURATION,
    MIN_GAME_PLAYERS,
    MIN_NAME_LENGTH,
    MIN_NICKNAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    REGISTER_EMAIL_RE,
    STRICT_EMAIL_RE,
    URL_SCHEME_RE,
    VALID_COLOR_IDS,
)

_HOST_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def is_valid_url(value: str) -> bool:
    """Return True when ``value`` parses as an absolute URL."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not URL_SCHEME_RE.match(parts.scheme):
        return False
    if parts.scheme.lower() in _HOST_SCHEMES:
        try:
            return bool(parts.hostname)
        except ValueError:
            return False
    return bool(value.partition(":")[2])


def _optional(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


class BaseForm(BaseModel):
    """Common parsing for HTML form submissions."""

    model_config = ConfigDict(extra="ignore")

    #: Fields submitted as repeated inputs (checkbox groups).
    list_fields: ClassVar[tuple] = ()

    @classmethod
    def from_form(cls, form: Any) -> "BaseForm":
        """Build the form from a Starlette ``FormData`` (or any mapping)."""
        data: Dict[str, Any] = {}
        for name in cls.model_fields:
            if name in cls.list_fields:
                getlist = getattr(form, "getlist", None)
                if getlist is not None:
                    data[name] = list(getlist(name))
                elif name in form:
                    raw = form[name]
                    data[name] = list(raw) if isinstance(raw, (list, tuple)) else [raw]
            elif name in form:
                data[name] = form[name]
        return cls.model_validate(data)

    def field_errors(self) -> Dict[str, str]:
        raise NotImplementedError

    def is_valid(self) -> bool:
        return not self.field_errors()


class LoginForm(BaseForm):
    email: str = ""
    password: str = ""

    def field_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.email.strip():
            errors["email"] = "Email is required"
        if not self.password:
            errors["password"] = "Password is required"
        return errors

    def to_payload(self) -> Dict[str, Any]:
        return {"email": self.email.strip().lower(), "password": self.password}


class RegisterForm(BaseForm):
    name: str = ""
    nickname: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    profile_image: str = ""

    def field_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        name = self.name.strip()
        if not name:
            errors["name"] = "Name is required"
        elif len(name) < MIN_NAME_LENGTH:
            errors["name"] = "Name must be at least 2 characters"

        if not self.email.strip():
            errors["email"] = "Email is required"
        elif not REGISTER_EMAIL_RE.search(self.email):
            errors["email"] = "Please enter a valid email address"

        if not self.password:
            errors["password"] = "Password is required"
        elif len(self.password) < MIN_PASSWORD_LENGTH:
            errors["password"] = "Password must be at least 6 characters"

        if not self.confirm_password:
            errors["confirm_password"] = "Please confirm your password"
        elif self.password != self.confirm_password:
            errors["confirm_password"] = "Passwords do not match"

        if self.profile_image and not is_valid_url(self.profile_image):
            errors["profile_image"] = "Please enter a valid image URL"

        return errors

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "name": self.name.strip(),
            "nickname": _optional(self.nickname),
            "email": self.email.strip().lower(),
            "password": self.password,
            "profileImage": _optional(self.profile_image),
        }
        return {key: value for key, value in payload.items() if value is not None}


class PlayerCreateForm(BaseForm):
    """Admin form that creates an account through the register endpoint."""

    name: str = ""
    nickname: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    profile_image: str = ""
    is_admin: bool = False

    @field_validator("is_admin", mode="before")
    @classmethod
    def _checkbox(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "on", "yes"}
        return bool(value)

    def field_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        if not self.name.strip():
            errors["name"] = "Name is required"

        if not self.email.strip():
            errors["email"] = "Email is required"
        elif not STRICT_EMAIL_RE.match(self.email):
            errors["email"] = "Please enter a valid email address"

        if not self.password:
            errors["password"] = "Password is required"
        elif len(self.password) < MIN_PASSWORD_LENGTH:
            errors["password"] = "Password must be at least 6 characters"

        if self.password != self.confirm_password:
            errors["confirm_password"] = "Passwords do not match"

        if self.profile_image and not is_valid_url(self.profile_image):
            errors["profile_image"] = "Please enter a valid image URL"

        return errors

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "name": self.name,
            "nickname": self.nickname or None,
            "email": self.email,
            "password": self.password,
            "profileImage": self.profile_image or None,
            "isAdmin": self.is_admin,
        }
        return {key: value for key, value in payload.items() if value is not None}


class PlayerEditForm(BaseForm):
    name: str = ""
    nickname: str = ""
    email: str = ""
    profile_image: str = ""
    change_password: bool = False
    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""

    @field_validator("change_password", mode="before")
    @classmethod
    def _checkbox(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "on", "yes"}
        return bool(value)

    def field_errors(self, editing_self: bool = False) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        if not self.name.strip():
            errors["name"] = "Name is required"

        if not self.email.strip():
            errors["email"] = "Email is required"
        elif not STRICT_EMAIL_RE.match(self.email):
            errors["email"] = "Please enter a valid email address"

        if self.profile_image and not is_valid_url(self.profile_image):
            errors["profile_image"] = "Please enter a valid image URL"

        if self.change_password:
            if editing_self and not self.current_password:
                errors["current_password"] = "Current password is required"

            if not self.new_password:
                errors["new_password"] = "New password is required"
            elif len(self.new_password) < MIN_PASSWORD_LENGTH:
                errors["new_password"] = "Password must be at least 6 characters"

            if self.new_password != self.confirm_password:
                errors["confirm_password"] = "Passwords do not match"

        return errors

    def is_valid(self, editing_self: bool = False) -> bool:
        return not self.field_errors(editing_self=editing_self)

    def to_payload(self, editing_self: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "nickname": self.nickname or None,
            "email": self.email,
            "profileImage": self.profile_image or None,
        }
        if self.change_password and self.new_password:
            if editing_self:
                payload["currentPassword"] = self.current_password
            payload["newPassword"] = self.new_password
        return {key: value for key, value in payload.items() if value is not None}


class DeckForm(BaseForm):
    list_fields: ClassVar[tuple] = ("color_identity", "tags")

    name: str = ""
    commander: str = ""
    decklist_link: str = ""
    deck_image: str = ""
    color_identity: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    custom_tag: str = ""

    @field_validator("color_identity", mode="before")
    @classmethod
    def _upper_colors(cls, value: Any) -> Any:
        if not value:
            return []
        seen: List[str] = []
        for color in value:
            color = str(color).strip().upper()
            if color and color not in seen:
                seen.append(color)
        return seen

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> Any:
        if not value:
            return []
        seen: List[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @property
    def all_tags(self) -> List[str]:
        """Selected tags plus the custom tag, when it is new and non-blank."""
        tags = list(self.tags)
        custom = self.custom_tag.strip()
        if custom and custom not in tags:
            tags.append(custom)
        return tags

    def field_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        if not self.name.strip():
            errors["name"] = "Deck name is required"

        if not self.commander.strip():
            errors["commander"] = "Commander is required"

        if self.decklist_link and not is_valid_url(self.decklist_link):
            errors["decklist_link"] = "Please enter a valid URL"

        if self.deck_image and not is_valid_url(self.deck_image):
            errors["deck_image"] = "Please enter a valid image URL"

        invalid_colors = [color for color in self.color_identity if color not in VALID_COLOR_IDS]
        if invalid_colors:
            errors["color_identity"] = "Color identity must contain valid colors (W, U, B, R, G, C)"

        if any(len(tag) > MAX_TAG_LENGTH for tag in self.all_tags):
            errors["tags"] = "Each tag must be 30 characters or less"

        return errors

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "commander": self.commander,
            "decklistLink": self.decklist_link,
            "deckImage": self.deck_image,
            "colorIdentity": list(self.color_identity),
            "tags": self.all_tags,
        }


class GuestPlayerForm(BaseForm):
    nickname: str = ""

    def field_errors(self) -> Dict[str, str]:
        nickname = self.nickname.strip()
        if not nickname:
            return {"nickname": "Nickname is required"}
        if len(nickname) < MIN_NICKNAME_LENGTH:
            return {"nickname": "Nickname must be at least 2 characters"}
        return {}

    def to_payload(self) -> Dict[str, Any]:
        return {"nickname": self.nickname.strip()}


class GuestDeckForm(BaseForm):
    guest_player_id: str = ""
    name: str = ""
    commander: str = ""

    def field_errors(self) -> Dict[str, str]:
        if not self.name.strip():
            return {"name": "Deck name is required"}
        if not self.commander.strip():
            return {"commander": "Commander is required"}
        return {}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "guestPlayerId": self.guest_player_id,
            "name": self.name.strip(),
            "commander": self.commander.strip(),
        }


class ContactForm(BaseForm):
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""

    def field_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for field in ("name", "email", "subject", "message"):
            if not getattr(self, field).strip():
                errors[field] = "This field is required"
        return errors


class GameParticipantRow(BaseModel):
    player: str = ""
    deck: str = ""
    placement: str = ""
    eliminated_by: str = ""
    borrowed_from: str = ""

    @property
    def is_blank(self) -> bool:
        return not (self.player.strip() or self.deck.strip())


class GameForm(BaseModel):
    """Game result form with a fixed number of participant rows."""

    model_config = ConfigDict(extra="ignore")

    rows: List[GameParticipantRow] = Field(default_factory=list)
    date: str = ""
    duration_minutes: str = ""
    notes: str = ""

    @classmethod
    def from_form(cls, form: Any, row_count: int = MAX_GAME_PLAYERS) -> "GameForm":
        rows = []
        for index in range(row_count):
            rows.append(
                GameParticipantRow(
                    player=str(form.get(f"player_{index}", "") or ""),
                    deck=str(form.get(f"deck_{index}", "") or ""),
                    placement=str(form.get(f"placement_{index}", "") or ""),
                    eliminated_by=str(form.get(f"eliminated_by_{index}", "") or ""),
                    borrowed_from=str(form.get(f"borrowed_from_{index}", "") or ""),
                )
            )
        return cls(
            rows=rows,
            date=str(form.get("date", "") or ""),
            duration_minutes=str(form.get("duration_minutes", "") or ""),
            notes=str(form.get("notes", "") or ""),
        )

    @property
    def participants(self) -> List[GameParticipantRow]:
        return [row for row in self.rows if not row.is_blank]

    def field_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        participants = self.participants

        if not MIN_GAME_PLAYERS <= len(participants) <= MAX_GAME_PLAYERS:
            errors["players"] = "Game must have between 2 and 6 players"

        placements: List[int] = []
        for index, row in enumerate(self.rows):
            if row.is_blank:
                continue
            if not row.player.strip():
                errors[f"row_{index}"] = "Player is required"
                continue
            if not row.deck.strip():
                errors[f"row_{index}"] = "Deck is required"
                continue
            try:
                placement = int(row.placement)
            except ValueError:
                errors[f"row_{index}"] = "Placement must be between 1 and 6"
                continue
            if not 1 <= placement <= MAX_GAME_PLAYERS:
                errors[f"row_{index}"] = "Placement must be between 1 and 6"
                continue
            if row.eliminated_by and row.eliminated_by == row.player:
                errors[f"row_{index}"] = "A player cannot eliminate themselves"
                continue
            if placement == 1 and row.eliminated_by:
                errors[f"row_{index}"] = "Winner (1st place) cannot have an eliminatedBy value"
                continue
            if row.borrowed_from and row.borrowed_from == row.player:
                errors[f"row_{index}"] = "A player cannot borrow a deck from themselves"
                continue
            placements.append(placement)

        player_ids = [row.player for row in participants if row.player.strip()]
        if "players" not in errors and len(set(player_ids)) != len(player_ids):
            errors["players"] = "Each player can only appear once per game"

        if "players" not in errors and len(placements) == len(participants):
            if len(set(placements)) != len(placements):
                errors["players"] = "Each player must have a unique placement"
            elif sorted(placements) != list(range(1, len(placements) + 1)):
                errors["players"] = "Placements must be consecutive starting from 1"

        if self.duration_minutes.strip():
            try:
                duration = int(self.duration_minutes)
            except ValueError:
                duration = None
            if duration is None or not MIN_GAME_DURATION <= duration <= MAX_GAME_DURATION:
                errors["duration_minutes"] = "Duration must be between 1 and 600 minutes"

        if len(self.notes.strip()) > MAX_GAME_NOTES:
            errors["notes"] = "Notes cannot be more than 500 characters"

        if self.date.strip():
            try:
                datetime.fromisoformat(self.date.strip())
            except ValueError:
                errors["date"] = "Date must be in ISO8601 format"

        return errors

    def is_valid(self) -> bool:
        return not self.field_errors()

    def to_payload(self) -> Dict[str, Any]:
        players = []
        for row in self.participants:
            entry: Dict[str, Any] = {
                "player": row.player,
                "deck": row.deck,
                "placement": int(row.placement),
            }
            if row.eliminated_by:
                entry["eliminatedBy"] = row.eliminated_by
            if row.borrowed_from:
                entry["borrowedFrom"] = row.borrowed_from
            players.append(entry)

        payload: Dict[str, Any] = {"players": players}
        if self.date.strip():
            payload["date"] = self.date.strip()
        if self.duration_minutes.strip():
            payload["durationMinutes"] = int(self.duration_minutes)
        if self.notes.strip():
            payload["notes"] = self.notes.strip()
        return payload
