"""Public option lookup routes."""

from typing import Any

from fastapi import APIRouter, Query

from src.api.deps import Registry
from src.schemas.option import OptionChoice
from src.services.option_fields import get_default_values

router = APIRouter(prefix="/options", tags=["options"])


def _localize(options: tuple[OptionChoice, ...], locale: str | None) -> list[OptionChoice]:
    if not locale:
        return list(options)
    return [option.model_copy(update={"label": option.display_text(locale)}) for option in options]


@router.get(
    "",
    response_model=dict[str, list[OptionChoice]],
    summary="List all active options",
    description="Returns every active option grouped by category, ordered by display order.",
)
async def list_options(
    registry: Registry,
    locale: str | None = Query(default=None, description="Locale for translated labels"),
) -> dict[str, list[OptionChoice]]:
    """Get all active options grouped by category.

    Args:
        registry: The shared option registry.
        locale: Optional locale for translated labels.

    Returns:
        dict: Category to ordered options.
    """
    options = await registry.get_all_options()
    return {category: _localize(choices, locale) for category, choices in options.items()}


@router.get(
    "/defaults",
    summary="Default profile values",
    description="Returns the values new profiles start with.",
)
async def get_defaults(registry: Registry) -> dict[str, Any]:
    """Get default values for new profiles."""
    return await get_default_values(registry)


@router.get(
    "/{category}",
    response_model=list[OptionChoice],
    summary="List options of a category",
    description="Returns the active options of one category. Unknown categories yield an empty list.",
)
async def list_category_options(
    category: str,
    registry: Registry,
    locale: str | None = Query(default=None, description="Locale for translated labels"),
) -> list[OptionChoice]:
    """Get the active options of one category."""
    return _localize(await registry.get_options_by_category(category), locale)
