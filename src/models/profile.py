"""Profile model type definitions for database operations."""

from datetime import date, datetime
from typing import TypedDict
from uuid import UUID


class AgeRange(TypedDict):
    """Preferred partner age bounds, inclusive."""

    min: int
    max: int


class MatchPreferences(TypedDict, total=False):
    """Stored as the match_preferences JSONB column."""

    gender: str | None
    age_range: AgeRange
    location_range: int
    religion: str | None
    education_level: str | None
    wants_children: str | None


class MatchReference(TypedDict):
    """Entry appended to profiles.matches when a match is created."""

    user_id: UUID
    match_id: UUID
    matched_at: datetime


class Profile(TypedDict):
    """Profile table row representation.

    Represents the public dating profile of a user (one per user).
    Maps directly to the database schema.
    """

    id: UUID
    user_id: UUID
    username: str
    bio: str
    profile_picture: dict | None
    photos: list[dict]
    date_of_birth: date | None
    gender: str | None
    country_of_origin: str | None
    current_location: dict | None
    home_language: str | None
    religion: str | None
    serving_as: str | None
    relationship_status: str | None
    looking_for: str | None
    have_children: str | None
    wants_children: bool | None
    education: str | None
    occupation: str | None
    income: str | None
    height: int | None
    match_preferences: MatchPreferences | None
    likes: list[UUID]
    matches: list[MatchReference]
    verification_badges: list[str]
    is_verified: bool
    profile_views: int
    like_count: int
    match_count: int
    profile_completion: int
    last_active: datetime | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
