"""Match engine: candidate search, compatibility and the like lifecycle."""

import asyncio
import logging
import weakref
from datetime import date
from uuid import UUID

from src.api.middleware.error_handler import (
    DuplicateError,
    DuplicateLikeError,
    NotFoundError,
    ProfileNotFoundError,
    ValidationError,
    field_detail,
)
from src.core.config import get_settings
from src.core.supabase import get_supabase_client, storage_errors
from src.models.match import Match, PreferencesMet
from src.models.profile import Profile as ProfileRow
from src.schemas.common import Pagination
from src.schemas.match import (
    CandidateListResponse,
    CandidateMatch,
    CompatibilityResponse,
    LikeResult,
    MatchResponse,
)
from src.schemas.option import OptionCategory
from src.schemas.profile import Profile
from src.services.matching import (
    EducationRanking,
    calculate_compatibility,
    evaluate_criteria,
    find_candidates,
    rank_candidates,
    score_breakdown,
)
from src.services.option_registry import OptionRegistry, get_option_registry
from src.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


def _years_ago(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return today.replace(year=today.year - years, day=28)


class PairLocks:
    """Per user pair asyncio locks.

    Locks are keyed by the unordered pair and dropped once no caller
    holds a reference.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[frozenset[str], asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, user_a: UUID, user_b: UUID) -> asyncio.Lock:
        """Return the lock shared by both orderings of the pair."""
        key = frozenset({str(user_a), str(user_b)})
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


_pair_locks = PairLocks()


class MatchService:
    """Service implementing candidate search and mutual-like matching."""

    def __init__(
        self,
        registry: OptionRegistry | None = None,
        profiles: ProfileService | None = None,
        pair_locks: PairLocks | None = None,
    ) -> None:
        """Initialize match service with Supabase client and collaborators."""
        self.client = get_supabase_client()
        self.registry = registry or get_option_registry()
        self.profiles = profiles or ProfileService(self.registry)
        self.pair_locks = pair_locks or _pair_locks
        self.settings = get_settings()

    async def education_ranking(self) -> EducationRanking:
        """Build the education ordinal from the registry's education order."""
        ranks = await self.registry.get_option_rank(
            OptionCategory.EDUCATION.value,
            exclude=tuple(self.settings.unranked_education_list),
        )
        return EducationRanking(ranks=ranks, bachelors_value=self.settings.bachelors_education_value)

    async def calculate_compatibility(self, viewer: Profile, candidate: Profile) -> int:
        """Score candidate from the viewer's preferences."""
        return calculate_compatibility(viewer, candidate, await self.education_ranking())

    async def find_candidates(
        self,
        viewer: Profile,
        pool: list[Profile],
        pagination: Pagination | None = None,
        today: date | None = None,
    ) -> list[CandidateMatch]:
        """Filter, score and order an already loaded pool for viewer."""
        return find_candidates(viewer, pool, pagination, await self.education_ranking(), today)

    async def get_compatibility(self, viewer_id: UUID, target_id: UUID) -> CompatibilityResponse:
        """Score target for viewer with the per-criterion breakdown.

        Raises:
            ProfileNotFoundError: If either profile is missing.
        """
        viewer = await self.profiles.require_profile(viewer_id)
        target = await self.profiles.require_profile(target_id)
        breakdown = evaluate_criteria(viewer, target, await self.education_ranking())
        return CompatibilityResponse(user_id=target_id, score=score_breakdown(breakdown), breakdown=breakdown)

    def _load_pool(self, viewer: Profile, today: date) -> list[Profile]:
        """Query profiles that can pass the viewer's storage-side filters."""
        preferences = viewer.match_preferences
        query = (
            self.client.table("profiles")
            .select("*")
            .neq("user_id", str(viewer.user_id))
            .eq("is_active", True)
        )
        if preferences is not None:
            if preferences.gender and preferences.gender != "both":
                query = query.eq("gender", preferences.gender)
            if preferences.age_range is not None:
                # Born after this date means younger than max + 1
                earliest = _years_ago(today, preferences.age_range.max + 1)
                latest = _years_ago(today, preferences.age_range.min)
                query = query.gt("date_of_birth", earliest.isoformat()).lte("date_of_birth", latest.isoformat())
            if preferences.religion == "same" and viewer.religion:
                query = query.eq("religion", viewer.religion)

        with storage_errors("profiles"):
            response = (
                query.order("profile_completion", desc=True)
                .order("last_active", desc=True)
                .limit(self.settings.candidate_pool_limit)
                .execute()
            )
        rows: list[ProfileRow] = response.data or []
        return [Profile.model_validate(row) for row in rows]

    async def find_matches(
        self,
        user_id: UUID,
        pagination: Pagination | None = None,
        today: date | None = None,
    ) -> CandidateListResponse:
        """Find ranked candidates for a user.

        Args:
            user_id: The viewer's user ID.
            pagination: Page of results to return.
            today: Reference date for ages.

        Returns:
            CandidateListResponse: Page of candidates plus the total count.

        Raises:
            ProfileNotFoundError: If the viewer has no profile.
        """
        pagination = pagination or Pagination(limit=self.settings.default_page_size)
        today = today or date.today()
        viewer = await self.profiles.require_profile(user_id)
        pool = self._load_pool(viewer, today)

        ranked = rank_candidates(viewer, pool, await self.education_ranking(), today)
        page = ranked[pagination.skip : pagination.skip + pagination.limit]
        return CandidateListResponse(matches=page, count=len(page), total=len(ranked))

    async def like(self, viewer_id: UUID, target_id: UUID) -> LikeResult:
        """Record that viewer likes target, creating a match when mutual.

        The like, the like counter, the match row, both match counters and
        both match references are written by one database transaction.
        Calls for the same pair are serialised in-process as well.

        Args:
            viewer_id: The liking user.
            target_id: The liked user.

        Returns:
            LikeResult: Whether a match was created and its ID.

        Raises:
            ValidationError: If a user likes themselves.
            ProfileNotFoundError: If either profile is missing.
            DuplicateLikeError: If viewer already liked target.
        """
        if viewer_id == target_id:
            raise ValidationError(
                "You cannot like yourself",
                details=field_detail("target_id", str(target_id), "Cannot like yourself", "self_like"),
            )

        async with self.pair_locks.get(viewer_id, target_id):
            viewer = await self.profiles.require_profile(viewer_id)
            target = await self.profiles.require_profile(target_id)
            if viewer.has_liked(target_id):
                raise DuplicateLikeError(target_id)

            breakdown = evaluate_criteria(viewer, target, await self.education_ranking())
            score = score_breakdown(breakdown)
            preferences_met: PreferencesMet = breakdown.model_dump(mode="json")

            try:
                with storage_errors("like"):
                    response = self.client.rpc(
                        "record_like",
                        {
                            "p_liker": str(viewer_id),
                            "p_target": str(target_id),
                            "p_score": score,
                            "p_preferences_met": preferences_met,
                        },
                    ).execute()
            except DuplicateError as e:
                raise DuplicateLikeError(target_id) from e
            except NotFoundError as e:
                raise ProfileNotFoundError(target_id) from e

        result = response.data or {}
        if result.get("matched"):
            logger.info("Match %s created between %s and %s", result.get("match_id"), viewer_id, target_id)
            return LikeResult(
                matched=True,
                match_id=result.get("match_id"),
                compatibility_score=score,
                message="It's a match!",
            )

        logger.info("User %s liked %s", viewer_id, target_id)
        return LikeResult(matched=False, message="Like sent successfully")

    async def get_matches(self, user_id: UUID, status: str | None = None) -> list[MatchResponse]:
        """Get the matches a user participates in, newest first."""
        query = (
            self.client.table("matches")
            .select("*")
            .or_(f"user1_id.eq.{user_id},user2_id.eq.{user_id}")
        )
        if status is not None:
            query = query.eq("status", status)

        with storage_errors("matches"):
            response = query.order("matched_at", desc=True).execute()
        rows: list[Match] = response.data or []
        return [MatchResponse.model_validate(row) for row in rows]
