"""Unit tests for MatchService."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from postgrest.exceptions import APIError as PostgrestAPIError

from src.api.middleware.error_handler import (
    DuplicateLikeError,
    ProfileNotFoundError,
    ValidationError,
)
from src.schemas.common import Pagination
from src.schemas.profile import Profile
from src.services.match_service import MatchService, PairLocks
from tests.factories import OTHER_ID, VIEWER_ID, profile_row


def postgrest_error(code: str) -> PostgrestAPIError:
    return PostgrestAPIError({"message": "error", "code": code, "hint": None, "details": None})


class FakeLikeStore:
    """In-memory stand-in for the profiles table and the record_like function."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self.rows = {UUID(row["user_id"]): row for row in rows}
        self.matches: list[dict[str, Any]] = []

    async def require_profile(self, user_id: UUID) -> Profile:
        await asyncio.sleep(0)
        if user_id not in self.rows:
            raise ProfileNotFoundError(user_id)
        return Profile.model_validate(self.rows[user_id])

    def rpc(self, name: str, params: dict[str, Any]) -> MagicMock:
        call = MagicMock()
        liker = self.rows.get(UUID(params["p_liker"]))
        target = self.rows.get(UUID(params["p_target"]))
        if liker is None or target is None:
            call.execute.side_effect = postgrest_error("P0002")
            return call
        if params["p_target"] in liker["likes"]:
            call.execute.side_effect = postgrest_error("23505")
            return call

        liker["likes"].append(params["p_target"])
        target["like_count"] += 1
        match_id = None
        if params["p_liker"] in target["likes"]:
            match_id = str(uuid4())
            liker["match_count"] += 1
            target["match_count"] += 1
            self.matches.append({"id": match_id, "user1_id": params["p_liker"], "user2_id": params["p_target"]})
        call.execute.return_value = MagicMock(data={"matched": match_id is not None, "match_id": match_id})
        return call


@pytest.fixture
def store() -> FakeLikeStore:
    """Two compatible profiles that have not liked each other."""
    return FakeLikeStore(
        [
            profile_row(VIEWER_ID, gender="male", match_preferences={"gender": "female"}),
            profile_row(OTHER_ID, gender="female", match_preferences={"gender": "male"}),
        ]
    )


@pytest.fixture
def match_service(mock_supabase_client: MagicMock, store: FakeLikeStore) -> MatchService:
    """MatchService wired to the fake like store."""
    service = MatchService(pair_locks=PairLocks())
    service.profiles.require_profile = AsyncMock(side_effect=store.require_profile)
    mock_supabase_client.rpc.side_effect = store.rpc
    return service


class TestLike:
    """Tests for the like lifecycle."""

    @pytest.mark.asyncio
    async def test_one_sided_like_does_not_match(
        self, match_service: MatchService, store: FakeLikeStore
    ) -> None:
        """Test that a first like only records interest."""
        result = await match_service.like(VIEWER_ID, OTHER_ID)

        assert result.matched is False
        assert result.message == "Like sent successfully"
        assert store.rows[VIEWER_ID]["likes"] == [str(OTHER_ID)]
        assert store.rows[OTHER_ID]["like_count"] == 1
        assert store.matches == []

    @pytest.mark.asyncio
    async def test_mutual_like_creates_one_match(
        self, match_service: MatchService, store: FakeLikeStore
    ) -> None:
        """Test that the second like of a pair creates exactly one match."""
        await match_service.like(VIEWER_ID, OTHER_ID)
        result = await match_service.like(OTHER_ID, VIEWER_ID)

        assert result.matched is True
        assert result.message == "It's a match!"
        assert str(result.match_id) == store.matches[0]["id"]
        assert result.compatibility_score == 100
        assert len(store.matches) == 1
        assert store.rows[VIEWER_ID]["match_count"] == 1
        assert store.rows[OTHER_ID]["match_count"] == 1

    @pytest.mark.asyncio
    async def test_passes_score_and_breakdown_to_storage(
        self, match_service: MatchService, mock_supabase_client: MagicMock
    ) -> None:
        """Test the arguments of the record_like call."""
        await match_service.like(VIEWER_ID, OTHER_ID)

        name, params = mock_supabase_client.rpc.call_args[0]
        assert name == "record_like"
        assert params["p_liker"] == str(VIEWER_ID)
        assert params["p_target"] == str(OTHER_ID)
        assert params["p_score"] == 100
        assert params["p_preferences_met"]["gender"] is True
        assert params["p_preferences_met"]["location"] is None

    @pytest.mark.asyncio
    async def test_repeat_like_raises_duplicate(self, match_service: MatchService, store: FakeLikeStore) -> None:
        """Test that liking twice is rejected without side effects."""
        await match_service.like(VIEWER_ID, OTHER_ID)

        with pytest.raises(DuplicateLikeError):
            await match_service.like(VIEWER_ID, OTHER_ID)

        assert store.rows[VIEWER_ID]["likes"] == [str(OTHER_ID)]
        assert store.rows[OTHER_ID]["like_count"] == 1

    @pytest.mark.asyncio
    async def test_unique_violation_in_storage_is_duplicate_like(
        self, match_service: MatchService, mock_supabase_client: MagicMock
    ) -> None:
        """Test that a like recorded by another process maps to DuplicateLikeError."""
        mock_supabase_client.rpc.side_effect = None
        mock_supabase_client.rpc.return_value.execute.side_effect = postgrest_error("23505")

        with pytest.raises(DuplicateLikeError):
            await match_service.like(VIEWER_ID, OTHER_ID)

    @pytest.mark.asyncio
    async def test_missing_row_in_storage_is_profile_not_found(
        self, match_service: MatchService, mock_supabase_client: MagicMock
    ) -> None:
        """Test that a profile deleted mid-like maps to ProfileNotFoundError."""
        mock_supabase_client.rpc.side_effect = None
        mock_supabase_client.rpc.return_value.execute.side_effect = postgrest_error("P0002")

        with pytest.raises(ProfileNotFoundError):
            await match_service.like(VIEWER_ID, OTHER_ID)

    @pytest.mark.asyncio
    async def test_self_like_rejected(self, match_service: MatchService, mock_supabase_client: MagicMock) -> None:
        """Test that users cannot like themselves."""
        with pytest.raises(ValidationError):
            await match_service.like(VIEWER_ID, VIEWER_ID)

        mock_supabase_client.rpc.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_target_rejected(self, match_service: MatchService, mock_supabase_client: MagicMock) -> None:
        """Test that liking a user without a profile fails before any write."""
        with pytest.raises(ProfileNotFoundError):
            await match_service.like(VIEWER_ID, uuid4())

        mock_supabase_client.rpc.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_mutual_likes_create_one_match(
        self, match_service: MatchService, store: FakeLikeStore
    ) -> None:
        """Test that simultaneous likes in both directions match once."""
        results = await asyncio.gather(
            match_service.like(VIEWER_ID, OTHER_ID),
            match_service.like(OTHER_ID, VIEWER_ID),
        )

        assert sorted(result.matched for result in results) == [False, True]
        assert len(store.matches) == 1


class TestPairLocks:
    """Tests for PairLocks."""

    def test_same_lock_for_both_orders(self) -> None:
        """Test that a pair shares one lock regardless of direction."""
        locks = PairLocks()
        lock = locks.get(VIEWER_ID, OTHER_ID)

        assert locks.get(OTHER_ID, VIEWER_ID) is lock

    def test_different_pairs_get_different_locks(self) -> None:
        """Test that unrelated pairs do not contend."""
        locks = PairLocks()
        lock = locks.get(VIEWER_ID, OTHER_ID)

        assert locks.get(VIEWER_ID, uuid4()) is not lock


class TestFindMatches:
    """Tests for find_matches and compatibility."""

    @pytest.mark.asyncio
    async def test_returns_ranked_page_with_total(
        self, match_service: MatchService, mock_supabase_client: MagicMock
    ) -> None:
        """Test that filtering happens before pagination and total counts survivors."""
        pool = [
            profile_row(uuid4(), gender="female", profile_completion=completion)
            for completion in (30, 60, 90)
        ]
        pool.append(profile_row(uuid4(), gender="male"))
        mock_supabase_client.table("profiles").execute.return_value = MagicMock(data=pool)

        result = await match_service.find_matches(VIEWER_ID, Pagination(limit=2, skip=0))

        assert result.total == 3
        assert result.count == 2
        assert [match.profile.profile_completion for match in result.matches] == [90, 60]

    @pytest.mark.asyncio
    async def test_pushes_filters_to_storage(
        self, match_service: MatchService, mock_supabase_client: MagicMock
    ) -> None:
        """Test that the viewer and gender filters are applied in the query."""
        profiles = mock_supabase_client.table("profiles")

        await match_service.find_matches(VIEWER_ID)

        profiles.neq.assert_called_once_with("user_id", str(VIEWER_ID))
        profiles.eq.assert_any_call("is_active", True)
        profiles.eq.assert_any_call("gender", "female")
        profiles.limit.assert_called_once_with(match_service.settings.candidate_pool_limit)

    @pytest.mark.asyncio
    async def test_missing_viewer_raises(self, match_service: MatchService) -> None:
        """Test that searching without a profile fails."""
        with pytest.raises(ProfileNotFoundError):
            await match_service.find_matches(uuid4())

    @pytest.mark.asyncio
    async def test_get_compatibility(self, match_service: MatchService, store: FakeLikeStore) -> None:
        """Test the compatibility breakdown for a target."""
        store.rows[OTHER_ID]["religion"] = "islam"
        store.rows[VIEWER_ID]["match_preferences"]["religion"] = "christian-only"

        result = await match_service.get_compatibility(VIEWER_ID, OTHER_ID)

        assert result.user_id == OTHER_ID
        assert result.breakdown.religion is False
        assert result.score == 75

    @pytest.mark.asyncio
    async def test_education_ranking_skips_unranked_values(self, match_service: MatchService) -> None:
        """Test that 'other' has no education rank."""
        ranking = await match_service.education_ranking()

        assert ranking.rank("other") is None
        assert ranking.rank("phd") > ranking.rank("bachelors-degree")


class TestGetMatches:
    """Tests for get_matches."""

    @pytest.mark.asyncio
    async def test_filters_by_participant_and_status(
        self, match_service: MatchService, mock_supabase_client: MagicMock
    ) -> None:
        """Test the participant filter and optional status filter."""
        matches = mock_supabase_client.table("matches")
        matches.execute.return_value = MagicMock(
            data=[
                {
                    "id": str(uuid4()),
                    "user1_id": str(OTHER_ID),
                    "user2_id": str(VIEWER_ID),
                    "matched_at": "2024-05-01T00:00:00+00:00",
                    "compatibility_score": 80,
                    "status": "active",
                }
            ]
        )

        result = await match_service.get_matches(VIEWER_ID, status="active")

        matches.or_.assert_called_once_with(f"user1_id.eq.{VIEWER_ID},user2_id.eq.{VIEWER_ID}")
        matches.eq.assert_called_once_with("status", "active")
        assert result[0].other_user(VIEWER_ID) == OTHER_ID
