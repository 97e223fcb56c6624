"""Checks on the SQL migration that the storage error mapping relies on."""

import re
from pathlib import Path

import pytest

from src.core.supabase import NO_DATA_FOUND, UNIQUE_VIOLATION

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "supabase" / "migrations"


def function_body(sql: str, name: str) -> str:
    """Return the plpgsql body of a function defined in sql."""
    match = re.search(rf"function public\.{name}\(.*?\$\$(.*?)\$\$", sql, re.DOTALL)
    assert match, f"{name} not defined"
    return match.group(1)


@pytest.fixture(scope="module")
def migration_sql() -> str:
    """All migrations concatenated in file order."""
    return "\n".join(path.read_text() for path in sorted(MIGRATIONS_DIR.glob("*.sql")))


class TestRecordLike:
    """Tests for the record_like function."""

    def test_locks_both_rows_in_stable_order(self, migration_sql: str) -> None:
        """Test that concurrent likes of one pair serialise on the profile rows."""
        body = function_body(migration_sql, "record_like")

        assert re.search(r"where user_id in \(p_liker, p_target\)\s+order by user_id\s+for update", body)

    def test_raises_codes_mapped_by_storage_errors(self, migration_sql: str) -> None:
        """Test that repeat likes and missing rows use the mapped SQLSTATEs."""
        body = function_body(migration_sql, "record_like")

        assert f"errcode = '{UNIQUE_VIOLATION}'" in body
        assert f"errcode = '{NO_DATA_FOUND}'" in body

    def test_match_pair_is_unique_in_either_order(self, migration_sql: str) -> None:
        """Test that the unordered pair index backs the single-match guarantee."""
        assert re.search(
            r"unique index if not exists matches_pair_key\s+on public\.matches "
            r"\(least\(user1_id, user2_id\), greatest\(user1_id, user2_id\)\)",
            migration_sql,
        )


class TestIncrementProfileViews:
    """Tests for the increment_profile_views function."""

    def test_increments_in_a_single_update(self, migration_sql: str) -> None:
        """Test that the counter is bumped by the database, not read-modify-write."""
        body = function_body(migration_sql, "increment_profile_views")

        assert "set profile_views = profile_views + 1" in body
        assert f"errcode = '{NO_DATA_FOUND}'" in body
