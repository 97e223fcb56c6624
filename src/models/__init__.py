"""Database model type definitions."""

from src.models.match import Match, MatchStatus, PreferencesMet
from src.models.option import Option, OptionInsert
from src.models.profile import MatchPreferences, Profile

__all__ = [
    "Match",
    "MatchStatus",
    "PreferencesMet",
    "Option",
    "OptionInsert",
    "MatchPreferences",
    "Profile",
]
