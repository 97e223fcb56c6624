"""Profile business logic service."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import pydantic

from src.api.middleware.error_handler import (
    DuplicateError,
    NotFoundError,
    ProfileNotFoundError,
    ValidationError,
    field_detail,
)
from src.core.supabase import get_supabase_client, storage_errors
from src.schemas.option import OptionCategory
from src.schemas.profile import (
    CompletionBreakdown,
    Profile,
    ProfileCreate,
    ProfileStats,
    ProfileUpdate,
    PublicProfile,
    VerificationBadge,
)
from src.services.matching import calculate_completion, missing_fields
from src.services.option_fields import get_default_values, resolve_labels, validate_option_fields
from src.services.option_registry import OptionRegistry, get_option_registry

logger = logging.getLogger(__name__)

BADGES_FOR_VERIFIED = 3

# Stored as NOT NULL, so an update cannot clear them
REQUIRED_FIELDS = ("username", "bio", "photos")

# Missing fields suggested as next steps
NEXT_STEPS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_profile(row: dict[str, Any]) -> Profile:
    """Build a profile snapshot from a stored row or merged write data.

    Raises:
        ValidationError: If the data violates a range or format constraint.
    """
    try:
        return Profile.model_validate(row)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "profile"
        raise ValidationError(
            f"Invalid value for {field}",
            details=field_detail(field, first.get("input"), first["msg"], "invalid_value"),
        ) from e


class ProfileService:
    """Service for managing dating profiles."""

    def __init__(self, registry: OptionRegistry | None = None) -> None:
        """Initialize profile service with Supabase client and option registry."""
        self.client = get_supabase_client()
        self.registry = registry or get_option_registry()

    async def get_profile(self, user_id: UUID) -> Profile | None:
        """Get a profile by user ID.

        Args:
            user_id: The owning user's ID.

        Returns:
            Profile | None: The profile or None if not found.
        """
        with storage_errors("profile"):
            response = (
                self.client.table("profiles")
                .select("*")
                .eq("user_id", str(user_id))
                .maybe_single()
                .execute()
            )

        if response is None or not response.data:
            return None
        return Profile.model_validate(response.data)

    async def require_profile(self, user_id: UUID) -> Profile:
        """Get a profile by user ID or raise ProfileNotFoundError."""
        profile = await self.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    async def _ensure_username_available(self, username: str, user_id: UUID) -> None:
        with storage_errors("profile"):
            response = (
                self.client.table("profiles")
                .select("user_id")
                .eq("username", username)
                .execute()
            )
        for row in response.data or []:
            if str(row.get("user_id")) != str(user_id):
                raise DuplicateError(
                    "Username is already taken",
                    details=field_detail("username", username, "Already taken", "duplicate"),
                )

    async def create_profile(self, user_id: UUID, data: ProfileCreate) -> Profile:
        """Create the profile of a user with registry-derived defaults.

        Args:
            user_id: The owning user's ID.
            data: Initial profile fields.

        Returns:
            Profile: The stored profile.

        Raises:
            DuplicateError: If the user already has a profile or the username is taken.
            ValidationError: If an enumerated field is not an active option.
        """
        if await self.get_profile(user_id) is not None:
            raise DuplicateError(
                "Profile already exists",
                details=field_detail("user_id", str(user_id), "Profile already exists", "duplicate"),
            )
        await self._ensure_username_available(data.username, user_id)

        defaults = await get_default_values(self.registry)
        provided = data.model_dump(mode="json", exclude_none=True, exclude_unset=True)
        preferences = {**defaults.pop("match_preferences", {}), **provided.pop("match_preferences", {})}
        record = {**defaults, **provided, "match_preferences": preferences}
        record["user_id"] = str(user_id)
        record["username"] = data.username

        await validate_option_fields(self.registry, record)
        profile = _as_profile(record)
        record["profile_completion"] = calculate_completion(profile)
        record["last_active"] = _utcnow().isoformat()

        with storage_errors("profile", field="username", value=data.username):
            response = self.client.table("profiles").insert(record).execute()

        logger.info("Created profile for user %s", user_id)
        return Profile.model_validate(response.data[0])

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> Profile:
        """Update a profile.

        Enumerated fields are validated against the option registry and
        ranges are checked on the merged result before anything is
        written. Profile completion and last activity are recomputed in
        the same write.

        Args:
            user_id: The owning user's ID.
            data: The fields to update.

        Returns:
            Profile: The updated profile.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            ValidationError: If a value is invalid.
            DuplicateError: If the new username is taken.
        """
        current = await self.require_profile(user_id)
        # Explicit nulls clear a field; omitted fields are left alone
        changes = data.model_dump(mode="json", exclude_unset=True)

        if not changes:
            return current

        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(
                    f"{field} cannot be cleared",
                    details=field_detail(field, None, "Field cannot be cleared", "required"),
                )

        if "username" in changes and changes["username"] != current.username:
            await self._ensure_username_available(changes["username"], user_id)

        # Stored values are not revalidated; only what the caller sent
        submitted_fields = dict(changes)
        if data.match_preferences is not None:
            stored = current.match_preferences.model_dump(mode="json") if current.match_preferences else {}
            submitted = data.match_preferences.model_dump(mode="json", exclude_unset=True)
            submitted_fields["match_preferences"] = submitted
            changes["match_preferences"] = {**stored, **submitted}

        await validate_option_fields(self.registry, submitted_fields)

        merged = {**current.model_dump(mode="json", exclude={"age"}), **changes}
        profile = _as_profile(merged)
        changes["profile_completion"] = calculate_completion(profile)
        changes["last_active"] = _utcnow().isoformat()

        with storage_errors("profile", field="username", value=changes.get("username")):
            response = (
                self.client.table("profiles")
                .update(changes)
                .eq("user_id", str(user_id))
                .execute()
            )

        if not response.data:
            raise ProfileNotFoundError(user_id)
        return Profile.model_validate(response.data[0])

    async def get_labels(self, user_id: UUID, locale: str | None = None) -> dict[str, Any]:
        """Get display labels for the enumerated fields of a profile."""
        profile = await self.require_profile(user_id)
        return await resolve_labels(self.registry, profile.model_dump(mode="json"), locale)

    async def get_verification_badges(self, user_id: UUID) -> list[VerificationBadge]:
        """Get the profile's verification badges with labels."""
        profile = await self.require_profile(user_id)
        return await self._labelled_badges(profile)

    async def _labelled_badges(self, profile: Profile) -> list[VerificationBadge]:
        options = {
            option.value: option
            for option in await self.registry.get_options_by_category(OptionCategory.VERIFICATION_BADGE.value)
        }
        badges = []
        for value in profile.verification_badges:
            option = options.get(value)
            badges.append(
                VerificationBadge(
                    value=value,
                    label=option.label if option else value,
                    description=option.description if option else None,
                )
            )
        return badges

    async def add_verification_badge(self, user_id: UUID, badge: str) -> Profile:
        """Add a verification badge; three or more badges verify the profile.

        Raises:
            ValidationError: If badge is not an active verificationBadge option.
        """
        profile = await self.require_profile(user_id)
        if badge in profile.verification_badges:
            return profile

        if not await self.registry.validate_option(OptionCategory.VERIFICATION_BADGE.value, badge):
            raise ValidationError(
                "Invalid verification badge",
                details=field_detail("badge", badge, "Not an active verificationBadge option", "invalid_option"),
            )

        badges = [*profile.verification_badges, badge]
        changes: dict[str, Any] = {"verification_badges": badges}
        if len(badges) >= BADGES_FOR_VERIFIED:
            changes["is_verified"] = True

        with storage_errors("profile"):
            response = (
                self.client.table("profiles")
                .update(changes)
                .eq("user_id", str(user_id))
                .execute()
            )

        if not response.data:
            raise ProfileNotFoundError(user_id)
        logger.info("Added %s badge to user %s", badge, user_id)
        return Profile.model_validate(response.data[0])

    async def _record_view(self, user_id: UUID) -> int:
        """Atomically increment the profile's view counter."""
        try:
            with storage_errors("profile"):
                response = self.client.rpc("increment_profile_views", {"p_user_id": str(user_id)}).execute()
        except NotFoundError as e:
            raise ProfileNotFoundError(user_id) from e
        return response.data

    async def get_public_profile(
        self,
        user_id: UUID,
        viewer_id: UUID | None = None,
        locale: str | None = None,
    ) -> PublicProfile:
        """Get another user's profile as shown publicly.

        Each view by a different user increments profile_views. Inactive
        profiles are only visible to their owner.

        Args:
            user_id: Owner of the profile being viewed.
            viewer_id: The user looking at the profile.
            locale: Locale for translated labels.

        Returns:
            PublicProfile: Public fields with labels and badges.

        Raises:
            ProfileNotFoundError: If the profile is missing or hidden.
        """
        profile = await self.require_profile(user_id)
        own_profile = viewer_id == user_id
        if not profile.is_active and not own_profile:
            raise ProfileNotFoundError(user_id)
        if not own_profile:
            await self._record_view(user_id)

        data = profile.model_dump(mode="json")
        public = PublicProfile.model_validate(
            {
                **data,
                "verification_badges": await self._labelled_badges(profile),
                "labels": await resolve_labels(self.registry, data, locale),
            }
        )
        logger.debug("User %s viewed profile %s", viewer_id, user_id)
        return public

    async def get_stats(self, user_id: UUID) -> ProfileStats:
        """Get view, like and match counters of a profile."""
        profile = await self.require_profile(user_id)
        days_since_last_active = None
        if profile.last_active is not None:
            last_active = profile.last_active
            if last_active.tzinfo is None:
                last_active = last_active.replace(tzinfo=timezone.utc)
            days_since_last_active = (_utcnow() - last_active).days
        return ProfileStats(
            profile_views=profile.profile_views,
            like_count=profile.like_count,
            match_count=profile.match_count,
            profile_completion=profile.profile_completion,
            last_active=profile.last_active,
            days_since_last_active=days_since_last_active,
        )

    async def get_completion_breakdown(self, user_id: UUID) -> CompletionBreakdown:
        """Get the completion percentage and the fields still missing."""
        profile = await self.require_profile(user_id)
        missing = missing_fields(profile)
        return CompletionBreakdown(
            completion_percentage=calculate_completion(profile),
            missing_fields=missing,
            next_steps=missing[:NEXT_STEPS],
        )

    async def get_default_values(self) -> dict[str, Any]:
        """Get default values for new profiles."""
        return await get_default_values(self.registry)
