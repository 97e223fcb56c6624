"""Match model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict
from uuid import UUID


MatchStatus = Literal["pending", "active", "paused", "ended", "blocked"]
MatchedBy = Literal["mutual-like", "super-like", "admin", "algorithm"]


class PreferencesMet(TypedDict, total=False):
    """Per-criterion outcome recorded when the match is created."""

    age: bool
    gender: bool
    religion: bool
    education: bool
    children: bool
    location: bool | None


class Match(TypedDict):
    """Matches table row representation.

    The pair (user1_id, user2_id) is unique regardless of order.
    """

    id: UUID
    user1_id: UUID
    user2_id: UUID
    matched_at: datetime
    matched_by: MatchedBy
    compatibility_score: int
    status: MatchStatus
    last_message_at: datetime | None
    message_count: int
    preferences_met: PreferencesMet
    created_at: datetime
    updated_at: datetime
