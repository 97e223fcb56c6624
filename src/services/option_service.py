"""Administrative option management.

Writes never hard-delete rows; deactivation keeps historical values
displayable on existing profiles. Every write invalidates the registry.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import OptionNotFoundError
from src.core.supabase import get_supabase_client, storage_errors
from src.models.option import Option, OptionInsert
from src.schemas.common import PageInfo
from src.schemas.option import (
    CategorySummary,
    OptionCategory,
    OptionCreate,
    OptionListResponse,
    OptionResponse,
    OptionUpdate,
)
from src.services.option_registry import OptionRegistry, get_option_registry

logger = logging.getLogger(__name__)

CATEGORY_DESCRIPTIONS = {
    OptionCategory.GENDER.value: "Gender identity options",
    OptionCategory.RELIGION.value: "Religious affiliation",
    OptionCategory.SERVING_AS.value: "Church service role",
    OptionCategory.RELATIONSHIP_STATUS.value: "Current relationship status",
    OptionCategory.LOOKING_FOR.value: "What the user is looking for",
    OptionCategory.HAVE_CHILDREN.value: "Parental status",
    OptionCategory.EDUCATION.value: "Educational background",
    OptionCategory.INCOME.value: "Income range",
    OptionCategory.MATCH_GENDER.value: "Gender preference for matches",
    OptionCategory.MATCH_RELIGION.value: "Religion preference for matches",
    OptionCategory.MATCH_EDUCATION_LEVEL.value: "Education preference for matches",
    OptionCategory.MATCH_WANTS_CHILDREN.value: "Children preference for matches",
    OptionCategory.VERIFICATION_BADGE.value: "Types of verification badges",
}


class OptionService:
    """Service for creating, updating and deactivating options."""

    def __init__(self, registry: OptionRegistry | None = None) -> None:
        """Initialize option service with Supabase client and registry."""
        self.client = get_supabase_client()
        self.registry = registry or get_option_registry()

    async def list_options(
        self,
        category: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
        include_inactive: bool = False,
    ) -> OptionListResponse:
        """List options for administrators.

        Args:
            category: Restrict to one category.
            search: Case-insensitive match on value, label or description.
            page: 1-based page number.
            limit: Page size.
            include_inactive: Include deactivated options.

        Returns:
            OptionListResponse: Options ordered by category, order and label.
        """
        query = self.client.table("options").select("*", count="exact")
        if not include_inactive:
            query = query.eq("is_active", True)
        if category:
            query = query.eq("category", category)
        if search:
            pattern = f"%{search}%"
            query = query.or_(f"value.ilike.{pattern},label.ilike.{pattern},description.ilike.{pattern}")

        offset = (page - 1) * limit
        with storage_errors("options"):
            response = (
                query.order("category")
                .order("order")
                .order("label")
                .range(offset, offset + limit - 1)
                .execute()
            )

        rows: list[Option] = response.data or []
        total = response.count or 0
        return OptionListResponse(
            data=[OptionResponse.model_validate(row) for row in rows],
            pagination=PageInfo(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )

    async def get_option(self, option_id: UUID) -> OptionResponse:
        """Get an option by ID.

        Raises:
            OptionNotFoundError: If no option has that ID.
        """
        with storage_errors("option"):
            response = (
                self.client.table("options")
                .select("*")
                .eq("id", str(option_id))
                .maybe_single()
                .execute()
            )
        if response is None or not response.data:
            raise OptionNotFoundError(option_id)
        return OptionResponse.model_validate(response.data)

    async def create_option(self, data: OptionCreate, actor_id: UUID | None = None) -> OptionResponse:
        """Create an option.

        Raises:
            DuplicateError: If the category already has that value.
        """
        actor = str(actor_id) if actor_id else None
        record = OptionInsert(**data.model_dump(mode="json"), created_by=actor, updated_by=actor)

        with storage_errors("option", field="value", value=data.value):
            response = self.client.table("options").insert(record).execute()

        self.registry.invalidate_cache()
        logger.info("Created option %s/%s", data.category.value, data.value)
        return OptionResponse.model_validate(response.data[0])

    async def _write(self, option_id: UUID, changes: dict[str, Any], value: str | None = None) -> OptionResponse:
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()
        with storage_errors("option", field="value", value=value):
            response = (
                self.client.table("options")
                .update(changes)
                .eq("id", str(option_id))
                .execute()
            )
        if not response.data:
            raise OptionNotFoundError(option_id)

        self.registry.invalidate_cache()
        return OptionResponse.model_validate(response.data[0])

    async def update_option(
        self,
        option_id: UUID,
        data: OptionUpdate,
        actor_id: UUID | None = None,
    ) -> OptionResponse:
        """Update an option.

        Raises:
            OptionNotFoundError: If no option has that ID.
            DuplicateError: If the new value already exists in the category.
        """
        changes = data.model_dump(mode="json", exclude_unset=True)
        changes["updated_by"] = str(actor_id) if actor_id else None
        option = await self._write(option_id, changes, value=data.value)
        logger.info("Updated option %s", option_id)
        return option

    async def deactivate_option(self, option_id: UUID, actor_id: UUID | None = None) -> OptionResponse:
        """Soft-delete an option by marking it inactive.

        Raises:
            OptionNotFoundError: If no option has that ID.
        """
        changes = {"is_active": False, "updated_by": str(actor_id) if actor_id else None}
        option = await self._write(option_id, changes)
        logger.info("Deactivated option %s", option_id)
        return option

    async def get_categories(self) -> list[CategorySummary]:
        """Count active options per category, with a description of each."""
        with storage_errors("options"):
            response = (
                self.client.table("options")
                .select("category")
                .eq("is_active", True)
                .execute()
            )
        counts = Counter(row["category"] for row in response.data or [])
        return [
            CategorySummary(
                category=category,
                count=count,
                description=CATEGORY_DESCRIPTIONS.get(category, "No description available"),
            )
            for category, count in sorted(counts.items())
        ]
