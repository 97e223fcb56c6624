"""Administrative option management routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from src.api.deps import AdminUser, Registry
from src.schemas.option import (
    CategorySummary,
    OptionCategory,
    OptionCreate,
    OptionListResponse,
    OptionResponse,
    OptionUpdate,
)
from src.services.option_service import OptionService

router = APIRouter(prefix="/admin/options", tags=["admin"])


@router.get(
    "",
    response_model=OptionListResponse,
    summary="List options",
    description="Paginated option listing with optional category and search filters.",
)
async def list_options(
    admin: AdminUser,
    category: OptionCategory | None = Query(default=None, description="Filter by category"),
    search: str | None = Query(default=None, max_length=100, description="Search value, label or description"),
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=50, ge=1, le=100, description="Items per page"),
    include_inactive: bool = Query(default=False, description="Include deactivated options"),
) -> OptionListResponse:
    """List options for administrators."""
    service = OptionService()
    return await service.list_options(
        category=category.value if category else None,
        search=search,
        page=page,
        limit=limit,
        include_inactive=include_inactive,
    )


@router.get(
    "/categories",
    response_model=list[CategorySummary],
    summary="List categories",
    description="Returns each category with its number of active options.",
)
async def list_categories(admin: AdminUser) -> list[CategorySummary]:
    """Count active options per category."""
    service = OptionService()
    return await service.get_categories()


@router.post(
    "/cache/invalidate",
    summary="Invalidate option cache",
    description="Forces the next option read to reload from storage.",
)
async def invalidate_cache(admin: AdminUser, registry: Registry) -> dict:
    """Drop the cached option snapshot."""
    registry.invalidate_cache()
    return {"invalidated": True, "stats": registry.get_stats()}


@router.post(
    "",
    response_model=OptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create option",
    description="Creates an option. The value must be unique within its category.",
    responses={409: {"description": "Value already exists in category"}},
)
async def create_option(data: OptionCreate, admin: AdminUser) -> OptionResponse:
    """Create an option and invalidate the option cache."""
    service = OptionService()
    return await service.create_option(data, actor_id=admin.user_id)


@router.get(
    "/{option_id}",
    response_model=OptionResponse,
    summary="Get option",
    responses={404: {"description": "Option not found"}},
)
async def get_option(option_id: UUID, admin: AdminUser) -> OptionResponse:
    """Get one option by ID."""
    service = OptionService()
    return await service.get_option(option_id)


@router.put(
    "/{option_id}",
    response_model=OptionResponse,
    summary="Update option",
    responses={404: {"description": "Option not found"}, 409: {"description": "Value already exists"}},
)
async def update_option(option_id: UUID, data: OptionUpdate, admin: AdminUser) -> OptionResponse:
    """Update an option and invalidate the option cache."""
    service = OptionService()
    return await service.update_option(option_id, data, actor_id=admin.user_id)


@router.delete(
    "/{option_id}",
    response_model=OptionResponse,
    summary="Deactivate option",
    description="Soft-deletes an option. Profiles keep existing values.",
    responses={404: {"description": "Option not found"}},
)
async def deactivate_option(option_id: UUID, admin: AdminUser) -> OptionResponse:
    """Mark an option inactive and invalidate the option cache."""
    service = OptionService()
    return await service.deactivate_option(option_id, actor_id=admin.user_id)
