"""Unit tests for OptionService."""

from unittest.mock import MagicMock
from uuid import UUID

import pytest
from postgrest.exceptions import APIError as PostgrestAPIError

from src.api.middleware.error_handler import DuplicateError, OptionNotFoundError
from src.schemas.option import OptionCategory, OptionCreate, OptionUpdate
from src.services.option_registry import get_option_registry
from src.services.option_service import OptionService
from tests.factories import ADMIN_ID, OPTION_ROWS

OPTION_ID = UUID("880e8400-e29b-41d4-a716-446655440000")


def option_response_row(**fields: object) -> dict:
    """Stored option row as returned by the admin queries."""
    row = {
        "id": str(OPTION_ID),
        "category": "income",
        "value": "over-100k",
        "label": "Over $100k",
        "description": None,
        "order": 5,
        "is_active": True,
        "is_default": False,
        "translations": {},
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(fields)
    return row


@pytest.fixture
def options_table(mock_supabase_client: MagicMock) -> MagicMock:
    """Query mock backing the options table."""
    return mock_supabase_client.table("options")


@pytest.fixture
def option_service(mock_supabase_client: MagicMock) -> OptionService:
    """Create OptionService with mocked client and the shared registry."""
    return OptionService()


class TestCreateOption:
    """Tests for create_option method."""

    @pytest.mark.asyncio
    async def test_created_option_is_valid_on_next_read(
        self, option_service: OptionService, options_table: MagicMock
    ) -> None:
        """Test that a created option is visible to validation immediately."""
        registry = get_option_registry()
        assert await registry.validate_option("income", "over-100k") is False

        options_table.execute.side_effect = [
            MagicMock(data=[option_response_row()]),
            MagicMock(data=[*OPTION_ROWS, option_response_row()]),
        ]
        await option_service.create_option(
            OptionCreate(category=OptionCategory.INCOME, value="over-100k", label="Over $100k", order=5),
            actor_id=ADMIN_ID,
        )

        assert await registry.validate_option("income", "over-100k") is True

    @pytest.mark.asyncio
    async def test_records_actor(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test that the creating admin is stored."""
        options_table.execute.return_value = MagicMock(data=[option_response_row()])

        await option_service.create_option(
            OptionCreate(category=OptionCategory.INCOME, value="over-100k", label="Over $100k"),
            actor_id=ADMIN_ID,
        )

        record = options_table.insert.call_args[0][0]
        assert record["category"] == "income"
        assert record["created_by"] == str(ADMIN_ID)

    @pytest.mark.asyncio
    async def test_duplicate_value_raises(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test that a value already in the category is rejected."""
        options_table.execute.side_effect = PostgrestAPIError(
            {"message": "duplicate key value", "code": "23505", "hint": None, "details": None}
        )

        with pytest.raises(DuplicateError) as exc_info:
            await option_service.create_option(
                OptionCreate(category=OptionCategory.GENDER, value="male", label="Male")
            )

        assert exc_info.value.details[0]["loc"] == ["value"]


class TestUpdateOption:
    """Tests for update_option and deactivate_option."""

    @pytest.mark.asyncio
    async def test_update_invalidates_cache(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test that updates drop the registry snapshot."""
        registry = get_option_registry()
        await registry.get_all_options()
        options_table.execute.return_value = MagicMock(data=[option_response_row(label="Over 100k")])

        result = await option_service.update_option(OPTION_ID, OptionUpdate(label="Over 100k"))

        assert result.label == "Over 100k"
        assert registry.get_stats()["loaded"] is False
        changes = options_table.update.call_args[0][0]
        assert changes["label"] == "Over 100k"
        assert "value" not in changes

    @pytest.mark.asyncio
    async def test_deactivated_option_no_longer_validates(
        self, option_service: OptionService, options_table: MagicMock
    ) -> None:
        """Test that soft-deleted values stop validating while labels still resolve."""
        registry = get_option_registry()
        assert await registry.validate_option("income", "under-25k") is True

        remaining = [row for row in OPTION_ROWS if row["value"] != "under-25k"]
        options_table.execute.side_effect = [
            MagicMock(data=[option_response_row(value="under-25k", is_active=False)]),
            MagicMock(data=remaining),
        ]
        await option_service.deactivate_option(OPTION_ID)

        assert options_table.update.call_args[0][0]["is_active"] is False
        assert await registry.validate_option("income", "under-25k") is False
        assert await registry.get_option_label("income", "under-25k") == "under-25k"

    @pytest.mark.asyncio
    async def test_missing_option_raises(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test that updating an unknown ID raises OptionNotFoundError."""
        options_table.execute.return_value = MagicMock(data=[])

        with pytest.raises(OptionNotFoundError):
            await option_service.update_option(OPTION_ID, OptionUpdate(label="x"))


class TestListOptions:
    """Tests for list_options, get_option and get_categories."""

    @pytest.mark.asyncio
    async def test_paginates(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test page metadata and range arguments."""
        options_table.execute.return_value = MagicMock(data=[option_response_row()], count=51)

        result = await option_service.list_options(category="income", page=2, limit=25)

        options_table.range.assert_called_once_with(25, 49)
        assert result.pagination.total == 51
        assert result.pagination.pages == 3
        assert result.data[0].value == "over-100k"

    @pytest.mark.asyncio
    async def test_get_option_not_found(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test that a missing option raises OptionNotFoundError."""
        options_table.execute.return_value = None

        with pytest.raises(OptionNotFoundError):
            await option_service.get_option(OPTION_ID)

    @pytest.mark.asyncio
    async def test_categories_counted(self, option_service: OptionService, options_table: MagicMock) -> None:
        """Test per-category counts and descriptions."""
        options_table.execute.return_value = MagicMock(data=[{"category": row["category"]} for row in OPTION_ROWS])

        categories = {summary.category: summary for summary in await option_service.get_categories()}

        assert categories["education"].count == 7
        assert categories["gender"].count == 2
        assert categories["gender"].description == "Gender identity options"
        assert categories["verificationBadge"].description == "Types of verification badges"
