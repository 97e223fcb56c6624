"""Profile Pydantic schemas for API request/response models."""

from datetime import date, datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

MIN_AGE = 18
USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"


def calculate_age(date_of_birth: date | None, today: date | None = None) -> int | None:
    """Return completed years since date_of_birth, or None when unknown."""
    if date_of_birth is None:
        return None
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def _check_adult(value: date | None) -> date | None:
    if value is not None and calculate_age(value) < MIN_AGE:
        raise ValueError(f"You must be at least {MIN_AGE} years old")
    return value


AdultBirthDate = Annotated[date | None, AfterValidator(_check_adult)]


class AgeRange(BaseModel):
    """Inclusive partner age bounds."""

    min: int = Field(default=21, ge=18, le=100, description="Minimum age")
    max: int = Field(default=50, ge=18, le=100, description="Maximum age")

    @model_validator(mode="after")
    def check_order(self) -> "AgeRange":
        """Reject ranges whose minimum exceeds their maximum."""
        if self.min > self.max:
            raise ValueError("Maximum age must be greater than or equal to minimum age")
        return self

    def contains(self, age: int | None) -> bool:
        """Check whether a known age lies within the range."""
        return age is not None and self.min <= age <= self.max


class MatchPreferences(BaseModel):
    """Viewer-side filters used for candidate search and scoring."""

    gender: str | None = Field(default=None, description="matchGender option")
    age_range: AgeRange | None = Field(default=None, description="Preferred age bounds")
    location_range: int | None = Field(default=None, ge=1, le=10000, description="Search radius in km")
    religion: str | None = Field(default=None, description="matchReligion option")
    education_level: str | None = Field(default=None, description="matchEducationLevel option")
    wants_children: str | None = Field(default=None, description="matchWantsChildren option")

    def is_set(self) -> bool:
        """Check whether any preference has been chosen."""
        return any(value is not None for value in self.model_dump().values())


class ProfilePicture(BaseModel):
    """Primary profile photo."""

    url: str | None = None
    verified: bool = False


class Photo(BaseModel):
    """Gallery photo entry."""

    url: str
    order: int = 0
    is_verified: bool = False
    caption: str | None = None


class Location(BaseModel):
    """Coarse current location."""

    city: str | None = None
    country: str | None = None


class ProfileFields(BaseModel):
    """Editable profile attributes shared by create and read models."""

    bio: str = Field(default="", max_length=2000)
    profile_picture: ProfilePicture | None = None
    photos: list[Photo] = Field(default_factory=list)
    date_of_birth: date | None = None
    gender: str | None = None
    country_of_origin: str | None = None
    current_location: Location | None = None
    home_language: str | None = None
    religion: str | None = None
    serving_as: str | None = None
    relationship_status: str | None = None
    looking_for: str | None = None
    have_children: str | None = None
    wants_children: bool | None = None
    education: str | None = None
    occupation: str | None = None
    income: str | None = None
    height: int | None = Field(default=None, ge=100, le=250, description="Height in cm")


class ProfileCreate(ProfileFields):
    """Schema for creating a profile."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    match_preferences: MatchPreferences | None = None
    date_of_birth: AdultBirthDate = None


class ProfileUpdate(BaseModel):
    """Schema for updating a profile.

    All fields are optional for partial updates. match_preferences is
    merged key by key into the stored preferences.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str | None = Field(default=None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    bio: str | None = Field(default=None, max_length=2000)
    profile_picture: ProfilePicture | None = None
    photos: list[Photo] | None = None
    date_of_birth: AdultBirthDate = None
    gender: str | None = None
    country_of_origin: str | None = None
    current_location: Location | None = None
    home_language: str | None = None
    religion: str | None = None
    serving_as: str | None = None
    relationship_status: str | None = None
    looking_for: str | None = None
    have_children: str | None = None
    wants_children: bool | None = None
    education: str | None = None
    occupation: str | None = None
    income: str | None = None
    height: int | None = Field(default=None, ge=100, le=250)
    match_preferences: MatchPreferences | None = None


class MatchReference(BaseModel):
    """Pointer to a match stored on each participant's profile."""

    user_id: UUID
    match_id: UUID
    matched_at: datetime


class Profile(ProfileFields):
    """Full profile snapshot as stored, with the derived age."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    user_id: UUID
    username: str
    match_preferences: MatchPreferences | None = None
    likes: list[UUID] = Field(default_factory=list)
    matches: list[MatchReference] = Field(default_factory=list)
    verification_badges: list[str] = Field(default_factory=list)
    is_verified: bool = False
    profile_views: int = 0
    like_count: int = 0
    match_count: int = 0
    profile_completion: int = Field(default=0, ge=0, le=100)
    last_active: datetime | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("photos", "likes", "matches", "verification_badges", mode="before")
    @classmethod
    def null_list_as_empty(cls, value: object) -> object:
        """Stored NULL arrays read as empty lists."""
        return [] if value is None else value

    @field_validator("bio", mode="before")
    @classmethod
    def null_bio_as_empty(cls, value: object) -> object:
        """Stored NULL bio reads as an empty string."""
        return "" if value is None else value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def age(self) -> int | None:
        """Age derived from date_of_birth on read."""
        return calculate_age(self.date_of_birth)

    def has_liked(self, user_id: UUID) -> bool:
        """Check whether this profile already liked user_id."""
        return user_id in self.likes


class VerificationBadge(BaseModel):
    """Verification badge with its display label."""

    value: str
    label: str
    description: str | None = None


class BadgeRequest(BaseModel):
    """Request body for adding a verification badge."""

    badge: str = Field(min_length=1, description="verificationBadge option value")


class PublicProfile(BaseModel):
    """Profile as shown to other users, with display labels."""

    user_id: UUID
    username: str
    profile_picture: ProfilePicture | None = None
    bio: str = ""
    photos: list[Photo] = Field(default_factory=list)
    age: int | None = None
    gender: str | None = None
    height: int | None = None
    country_of_origin: str | None = None
    current_location: Location | None = None
    home_language: str | None = None
    religion: str | None = None
    serving_as: str | None = None
    relationship_status: str | None = None
    looking_for: str | None = None
    have_children: str | None = None
    wants_children: bool | None = None
    education: str | None = None
    occupation: str | None = None
    income: str | None = None
    profile_completion: int = 0
    is_verified: bool = False
    verification_badges: list[VerificationBadge] = Field(default_factory=list)
    labels: dict[str, Any] = Field(default_factory=dict, description="Display labels of enumerated fields")
    last_active: datetime | None = None
    created_at: datetime | None = None


class ProfileStats(BaseModel):
    """Activity counters of the caller's profile."""

    profile_views: int
    like_count: int
    match_count: int
    profile_completion: int
    last_active: datetime | None = None
    days_since_last_active: int | None = None


class CompletionBreakdown(BaseModel):
    """Completion percentage with the fields still to fill in."""

    completion_percentage: int = Field(ge=0, le=100)
    missing_fields: list[str]
    next_steps: list[str] = Field(description="First few missing fields to suggest")
