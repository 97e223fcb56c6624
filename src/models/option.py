"""Option model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Option(TypedDict):
    """Options table row representation.

    One permitted value of an enumerated profile field. Rows are never
    hard-deleted; deactivation sets is_active to false.
    """

    id: UUID
    category: str
    value: str
    label: str
    description: str | None
    order: int
    is_active: bool
    is_default: bool
    translations: dict[str, str]
    created_by: UUID | None
    updated_by: UUID | None
    created_at: datetime
    updated_at: datetime


class OptionInsert(TypedDict, total=False):
    """Data required to insert an option."""

    category: str
    value: str
    label: str
    description: str | None
    order: int
    is_active: bool
    is_default: bool
    translations: dict[str, str]
    created_by: UUID | None
    updated_by: UUID | None
