"""Read-through cached registry of valid option values per category."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from supabase import Client

from src.core.supabase import get_supabase_client, storage_errors
from src.schemas.option import OptionChoice

logger = logging.getLogger(__name__)

OPTION_COLUMNS = "category,value,label,description,order,is_default,translations"


@dataclass(frozen=True)
class OptionSnapshot:
    """Immutable view of all active options, published as one unit."""

    options: Mapping[str, tuple[OptionChoice, ...]]
    loaded_at: float
    generation: int


@dataclass
class OptionRegistryConfig:
    """Configuration for option caching."""

    ttl_seconds: float = 300  # 5 minutes

    @classmethod
    def from_settings(cls) -> "OptionRegistryConfig":
        """Create config from application settings."""
        from src.core.config import get_settings

        settings = get_settings()
        return cls(ttl_seconds=settings.option_cache_ttl_seconds)


class OptionRegistry:
    """Single source of truth for enumerated profile values.

    Active options are loaded from the options table into a snapshot that
    lives for ``ttl_seconds``. Expiry is checked lazily on read. Admin
    writes call ``invalidate_cache`` so the next read reloads regardless
    of the TTL. Concurrent reloads collapse into one storage read.
    """

    def __init__(
        self,
        client: Client | None = None,
        config: OptionRegistryConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the option registry.

        Args:
            client: Supabase client; the shared client is used when omitted.
            config: Optional cache configuration.
            clock: Monotonic time source, injectable for tests.
        """
        self.client = client or get_supabase_client()
        self.config = config or OptionRegistryConfig()
        self._clock = clock
        self._snapshot: OptionSnapshot | None = None
        self._generation = 0
        self._refresh_lock = asyncio.Lock()

    def _is_fresh(self, snapshot: OptionSnapshot | None) -> bool:
        if snapshot is None or snapshot.generation != self._generation:
            return False
        return self._clock() - snapshot.loaded_at < self.config.ttl_seconds

    async def _snapshot_or_reload(self) -> OptionSnapshot:
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            logger.debug("Option cache hit")
            return snapshot

        async with self._refresh_lock:
            # Another waiter may have refreshed while we queued
            snapshot = self._snapshot
            if self._is_fresh(snapshot):
                return snapshot

            generation = self._generation
            snapshot = self._load(generation)
            if generation == self._generation:
                self._snapshot = snapshot
            return snapshot

    def _load(self, generation: int) -> OptionSnapshot:
        """Read every active option and group it by category.

        Raises:
            StorageUnavailableError: If the options table cannot be read.
        """
        logger.debug("Option cache miss, loading from storage")
        with storage_errors("options"):
            response = (
                self.client.table("options")
                .select(OPTION_COLUMNS)
                .eq("is_active", True)
                .execute()
            )

        grouped: dict[str, list[OptionChoice]] = {}
        for row in response.data or []:
            category = row.get("category")
            value = row.get("value")
            if not category or not value:
                continue
            grouped.setdefault(category, []).append(
                OptionChoice(
                    value=value,
                    label=row.get("label") or value,
                    description=row.get("description"),
                    is_default=bool(row.get("is_default")),
                    order=row.get("order") or 0,
                    translations=row.get("translations") or {},
                )
            )

        options = MappingProxyType(
            {
                category: tuple(sorted(choices, key=lambda c: (c.order, c.label)))
                for category, choices in grouped.items()
            }
        )
        logger.info("Loaded %d option categories", len(options))
        return OptionSnapshot(options=options, loaded_at=self._clock(), generation=generation)

    async def get_all_options(self) -> Mapping[str, tuple[OptionChoice, ...]]:
        """Get all active options grouped by category.

        Returns:
            Mapping of category to options ordered by (order, label).
        """
        snapshot = await self._snapshot_or_reload()
        return snapshot.options

    async def get_options_by_category(self, category: str) -> tuple[OptionChoice, ...]:
        """Get the active options of one category; unknown categories are empty."""
        options = await self.get_all_options()
        return options.get(category, ())

    async def validate_option(self, category: str, value: Any) -> bool:
        """Check that value is an active option of category."""
        options = await self.get_options_by_category(category)
        return any(option.value == value for option in options)

    async def get_option_label(self, category: str, value: Any, locale: str | None = None) -> Any:
        """Get the display label for value, or value itself when unknown."""
        options = await self.get_options_by_category(category)
        for option in options:
            if option.value == value:
                return option.display_text(locale)
        return value

    async def get_default_value(self, category: str) -> str | None:
        """Get the default value of category, if one is flagged."""
        options = await self.get_options_by_category(category)
        for option in options:
            if option.is_default:
                return option.value
        return None

    async def get_option_rank(self, category: str, exclude: tuple[str, ...] = ()) -> dict[str, int]:
        """Map each value of category to its position in registry order.

        Args:
            category: Category to rank.
            exclude: Values left out of the ranking.

        Returns:
            dict: value to zero-based rank.
        """
        options = await self.get_options_by_category(category)
        ranked = [option.value for option in options if option.value not in exclude]
        return {value: rank for rank, value in enumerate(ranked)}

    def invalidate_cache(self) -> None:
        """Drop the current snapshot so the next read reloads from storage."""
        self._generation += 1
        self._snapshot = None
        logger.info("Option cache invalidated (generation %d)", self._generation)

    def get_stats(self) -> dict:
        """Get cache statistics for monitoring."""
        snapshot = self._snapshot
        return {
            "loaded": snapshot is not None,
            "fresh": self._is_fresh(snapshot),
            "categories": len(snapshot.options) if snapshot else 0,
            "generation": self._generation,
            "ttl_seconds": self.config.ttl_seconds,
        }


# Global singleton instance
_option_registry: OptionRegistry | None = None


def get_option_registry() -> OptionRegistry:
    """Get or create the shared option registry."""
    global _option_registry
    if _option_registry is None:
        _option_registry = OptionRegistry(config=OptionRegistryConfig.from_settings())
    return _option_registry
