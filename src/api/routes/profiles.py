"""Profile API routes."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.api.deps import CurrentUser
from src.schemas.profile import (
    BadgeRequest,
    CompletionBreakdown,
    Profile,
    ProfileCreate,
    ProfileStats,
    ProfileUpdate,
    PublicProfile,
    VerificationBadge,
)
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=Profile,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile.",
    responses={404: {"description": "Profile not found"}},
)
async def get_my_profile(user: CurrentUser) -> Profile:
    """Get the authenticated user's profile.

    Args:
        user: The authenticated user context.

    Returns:
        Profile: The user's profile data.
    """
    service = ProfileService()
    return await service.require_profile(user.user_id)


@router.post(
    "/me",
    response_model=Profile,
    status_code=status.HTTP_201_CREATED,
    summary="Create current user's profile",
    description="Creates the authenticated user's profile, filling unset fields with defaults.",
    responses={409: {"description": "Profile exists or username taken"}},
)
async def create_my_profile(data: ProfileCreate, user: CurrentUser) -> Profile:
    """Create the authenticated user's profile."""
    service = ProfileService()
    return await service.create_profile(user.user_id, data)


@router.put(
    "/me",
    response_model=Profile,
    summary="Update current user's profile",
    description="Updates the authenticated user's profile with provided fields.",
)
async def update_my_profile(data: ProfileUpdate, user: CurrentUser) -> Profile:
    """Update the authenticated user's profile.

    Args:
        data: Fields to update.
        user: The authenticated user context.

    Returns:
        Profile: The updated profile data.
    """
    service = ProfileService()
    return await service.update_profile(user.user_id, data)


@router.get(
    "/me/labels",
    summary="Display labels for the current profile",
    description="Resolves enumerated profile fields to their display labels.",
)
async def get_my_labels(
    user: CurrentUser,
    locale: str | None = Query(default=None, description="Locale for translated labels"),
) -> dict[str, Any]:
    """Get display labels for the authenticated user's profile."""
    service = ProfileService()
    return await service.get_labels(user.user_id, locale)


@router.get(
    "/me/badges",
    response_model=list[VerificationBadge],
    summary="List verification badges",
)
async def get_my_badges(user: CurrentUser) -> list[VerificationBadge]:
    """Get the authenticated user's verification badges."""
    service = ProfileService()
    return await service.get_verification_badges(user.user_id)


@router.post(
    "/me/badges",
    response_model=Profile,
    summary="Add a verification badge",
    description="Adds a badge. Three or more badges mark the profile verified.",
)
async def add_my_badge(data: BadgeRequest, user: CurrentUser) -> Profile:
    """Add a verification badge to the authenticated user's profile."""
    service = ProfileService()
    return await service.add_verification_badge(user.user_id, data.badge)


@router.get(
    "/me/stats",
    response_model=ProfileStats,
    summary="Get profile stats",
    description="Returns view, like and match counters of the authenticated user's profile.",
)
async def get_my_stats(user: CurrentUser) -> ProfileStats:
    """Get activity counters for the authenticated user's profile."""
    service = ProfileService()
    return await service.get_stats(user.user_id)


@router.get(
    "/me/completion",
    response_model=CompletionBreakdown,
    summary="Get profile completion breakdown",
    description="Returns the completion percentage and the fields still missing.",
)
async def get_my_completion(user: CurrentUser) -> CompletionBreakdown:
    """Get the completion breakdown for the authenticated user's profile."""
    service = ProfileService()
    return await service.get_completion_breakdown(user.user_id)


@router.get(
    "/{user_id}",
    response_model=PublicProfile,
    summary="Get another user's profile",
    description="Returns a public profile with display labels and counts the view.",
    responses={404: {"description": "Profile not found"}},
)
async def get_public_profile(
    user_id: UUID,
    user: CurrentUser,
    locale: str | None = Query(default=None, description="Locale for translated labels"),
) -> PublicProfile:
    """Get a public profile.

    Args:
        user_id: Owner of the profile.
        user: The authenticated user context.
        locale: Optional locale for labels.

    Returns:
        PublicProfile: Public fields with labels.
    """
    service = ProfileService()
    return await service.get_public_profile(user_id, viewer_id=user.user_id, locale=locale)
