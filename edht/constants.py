"""Shared constants and regular expressions for the Commander Tracker web client."""
from __future__ import annotations

import re
from typing import Dict, List

APP_VERSION = "1.0.0"
APP_NAME = "Commander Tracker"

COLOR_OPTIONS: List[Dict[str, str]] = [
    {"id": "W", "name": "White"},
    {"id": "U", "name": "Blue"},
    {"id": "B", "name": "Black"},
    {"id": "R", "name": "Red"},
    {"id": "G", "name": "Green"},
]

# Colorless is accepted by the backend but not offered in the picker.
VALID_COLOR_IDS = {"W", "U", "B", "R", "G", "C"}

COMMON_TAGS: List[str] = [
    "Aggro", "Control", "Combo", "Midrange", "Ramp", "Voltron",
    "Tribal", "Aristocrats", "Group Hug", "Stax", "Mill", "Burn",
    "Tokens", "Reanimator", "Storm", "Pillowfort", "Landfall", "Artifacts",
]

NAV_ITEMS: List[Dict[str, str]] = [
    {"name": "Dashboard", "href": "/dashboard"},
    {"name": "Players", "href": "/players"},
    {"name": "Decks", "href": "/decks"},
    {"name": "Games", "href": "/games"},
    {"name": "Statistics", "href": "/stats"},
]

# Register screen is lenient, admin player forms are strict.
REGISTER_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
STRICT_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MIN_NICKNAME_LENGTH = 2
MAX_TAG_LENGTH = 30
MIN_GAME_PLAYERS = 2
MAX_GAME_PLAYERS = 6
MIN_GAME_DURATION = 1
MAX_GAME_DURATION = 600
MAX_GAME_NOTES = 500

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."

__all__ = [
    "APP_VERSION",
    "APP_NAME",
    "COLOR_OPTIONS",
    "VALID_COLOR_IDS",
    "COMMON_TAGS",
    "NAV_ITEMS",
    "REGISTER_EMAIL_RE",
    "STRICT_EMAIL_RE",
    "URL_SCHEME_RE",
    "MIN_PASSWORD_LENGTH",
    "MIN_NAME_LENGTH",
    "MIN_NICKNAME_LENGTH",
    "MAX_TAG_LENGTH",
    "MIN_GAME_PLAYERS",
    "MAX_GAME_PLAYERS",
    "MIN_GAME_DURATION",
    "MAX_GAME_DURATION",
    "MAX_GAME_NOTES",
    "GENERIC_ERROR_MESSAGE",
]
