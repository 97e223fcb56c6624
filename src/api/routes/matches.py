"""Matching API routes."""

from uuid import UUID

from fastapi import APIRouter, Query

from src.api.deps import CurrentUser, PageParams
from src.models.match import MatchStatus
from src.schemas.match import CandidateListResponse, CompatibilityResponse, LikeResult, MatchResponse
from src.services.match_service import MatchService

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get(
    "",
    response_model=list[MatchResponse],
    summary="List my matches",
    description="Returns the matches the authenticated user participates in, newest first.",
)
async def list_matches(
    user: CurrentUser,
    match_status: MatchStatus | None = Query(default=None, alias="status", description="Filter by status"),
) -> list[MatchResponse]:
    """Get the authenticated user's matches."""
    service = MatchService()
    return await service.get_matches(user.user_id, status=match_status)


@router.get(
    "/candidates",
    response_model=CandidateListResponse,
    summary="Find candidates",
    description="Returns candidates passing the user's filters, ordered by compatibility.",
    responses={404: {"description": "Profile not found"}},
)
async def find_candidates(
    user: CurrentUser,
    pagination: PageParams,
) -> CandidateListResponse:
    """Find ranked candidates for the authenticated user.

    Args:
        user: The authenticated user context.
        pagination: limit and skip query parameters.

    Returns:
        CandidateListResponse: Page of scored candidates.
    """
    service = MatchService()
    return await service.find_matches(user.user_id, pagination)


@router.get(
    "/compatibility/{user_id}",
    response_model=CompatibilityResponse,
    summary="Compatibility with a user",
    responses={404: {"description": "Profile not found"}},
)
async def get_compatibility(user_id: UUID, user: CurrentUser) -> CompatibilityResponse:
    """Score another user from the authenticated user's preferences."""
    service = MatchService()
    return await service.get_compatibility(user.user_id, user_id)


@router.post(
    "/like/{user_id}",
    response_model=LikeResult,
    summary="Like a user",
    description="Records a like. A mutual like creates a match.",
    responses={
        404: {"description": "Profile not found"},
        409: {"description": "Already liked"},
        422: {"description": "Cannot like yourself"},
    },
)
async def like_user(user_id: UUID, user: CurrentUser) -> LikeResult:
    """Like another user."""
    service = MatchService()
    return await service.like(user.user_id, user_id)
