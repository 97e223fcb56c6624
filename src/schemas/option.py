"""Option Pydantic schemas for the registry and admin API."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.common import PageInfo


class OptionCategory(str, Enum):
    """Closed set of option categories.

    The permitted values inside each category are runtime data held in
    the options table, never code constants.
    """

    GENDER = "gender"
    RELIGION = "religion"
    SERVING_AS = "servingAs"
    RELATIONSHIP_STATUS = "relationshipStatus"
    LOOKING_FOR = "lookingFor"
    HAVE_CHILDREN = "haveChildren"
    EDUCATION = "education"
    INCOME = "income"
    MATCH_GENDER = "matchGender"
    MATCH_RELIGION = "matchReligion"
    MATCH_EDUCATION_LEVEL = "matchEducationLevel"
    MATCH_WANTS_CHILDREN = "matchWantsChildren"
    VERIFICATION_BADGE = "verificationBadge"


class OptionChoice(BaseModel):
    """An active option as served by the registry snapshot."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(description="Stored value")
    label: str = Field(description="Display label")
    description: str | None = Field(default=None, description="Optional description")
    is_default: bool = Field(default=False, description="Default selection for the category")
    order: int = Field(default=0, description="Sort key within the category")
    translations: dict[str, str] = Field(default_factory=dict, description="Locale to label")

    def display_text(self, locale: str | None = None) -> str:
        """Return the translated label for locale, falling back to label."""
        if locale and locale in self.translations:
            return self.translations[locale]
        return self.label


class OptionCreate(BaseModel):
    """Schema for creating an option."""

    model_config = ConfigDict(str_strip_whitespace=True)

    category: OptionCategory = Field(description="Category the option belongs to")
    value: str = Field(min_length=1, max_length=100, description="Stored value, unique within category")
    label: str = Field(min_length=1, max_length=200, description="Display label")
    description: str | None = Field(default=None, max_length=500, description="Optional description")
    order: int = Field(default=0, ge=0, description="Sort key within the category")
    is_active: bool = Field(default=True, description="Whether the option accepts new writes")
    is_default: bool = Field(default=False, description="Default selection for the category")
    translations: dict[str, str] = Field(default_factory=dict, description="Locale to label")


class OptionUpdate(BaseModel):
    """Schema for updating an option.

    All fields are optional for partial updates.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    value: str | None = Field(default=None, min_length=1, max_length=100)
    label: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=500)
    order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    is_default: bool | None = None
    translations: dict[str, str] | None = None


class OptionResponse(BaseModel):
    """Schema for option API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category: str
    value: str
    label: str
    description: str | None = None
    order: int = 0
    is_active: bool = True
    is_default: bool = False
    translations: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OptionListResponse(BaseModel):
    """Paginated option listing for administrators."""

    data: list[OptionResponse]
    pagination: PageInfo


class CategorySummary(BaseModel):
    """Number of active options in a category."""

    category: str
    count: int
    description: str
