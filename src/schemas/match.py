"""Match and candidate Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.profile import Location, Profile, ProfilePicture


class CompatibilityBreakdown(BaseModel):
    """Which viewer preferences a candidate satisfies."""

    age: bool = False
    gender: bool = False
    religion: bool = False
    children: bool = False
    education: bool = False
    location: bool | None = Field(default=None, description="Distance is not computed")


class CandidateProfile(BaseModel):
    """Public subset of a profile shown in candidate lists."""

    user_id: UUID
    username: str
    profile_picture: ProfilePicture | None = None
    age: int | None = None
    gender: str | None = None
    bio: str = ""
    current_location: Location | None = None
    religion: str | None = None
    education: str | None = None
    occupation: str | None = None
    height: int | None = None
    verification_badges: list[str] = Field(default_factory=list)
    profile_completion: int = 0
    last_active: datetime | None = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "CandidateProfile":
        """Project a full profile onto its public fields."""
        return cls.model_validate(profile.model_dump(include=set(cls.model_fields)))


class CandidateMatch(BaseModel):
    """A ranked candidate for the viewer."""

    profile: CandidateProfile
    compatibility: int = Field(ge=0, le=100)
    matches_preferences: bool


class CandidateListResponse(BaseModel):
    """Page of ranked candidates."""

    matches: list[CandidateMatch]
    count: int
    total: int


class CompatibilityResponse(BaseModel):
    """Score of one candidate from the viewer's perspective."""

    user_id: UUID
    score: int = Field(ge=0, le=100)
    breakdown: CompatibilityBreakdown


class LikeResult(BaseModel):
    """Outcome of a like."""

    matched: bool = Field(description="True when the like completed a mutual match")
    match_id: UUID | None = None
    compatibility_score: int | None = Field(default=None, ge=0, le=100)
    message: str


class MatchResponse(BaseModel):
    """Schema for match API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user1_id: UUID
    user2_id: UUID
    matched_at: datetime
    matched_by: str = "mutual-like"
    compatibility_score: int = Field(default=0, ge=0, le=100)
    status: str = "active"
    last_message_at: datetime | None = None
    message_count: int = 0
    preferences_met: CompatibilityBreakdown | None = None

    def other_user(self, current_user_id: UUID) -> UUID:
        """Return the participant that is not current_user_id."""
        return self.user2_id if self.user1_id == current_user_id else self.user1_id
