"""
Repository for ``eco_profiles``: one lifestyle profile per user.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from eco_scorer.db.repositories.base import (
    BaseRepository,
    from_db_bool,
    from_db_timestamp,
    to_db_bool,
)
from eco_scorer.features.registry import PROFILE_FIELDS, get_spec
from eco_scorer.models.profile import EcoProfile

logger = logging.getLogger(__name__)

_BOOL_FIELDS = [name for name in PROFILE_FIELDS if get_spec(name).kind == "boolean"]


class ProfileRepository(BaseRepository):
    """Read/write access to ``eco_profiles``."""

    def get_by_user(self, user_id: int) -> Optional[EcoProfile]:
        """Return the user's profile, or ``None`` if they have not created one."""
        row = self.fetchone(
            "SELECT * FROM eco_profiles WHERE user_id = ?;",
            (user_id,),
        )
        return _row_to_profile(row) if row else None

    def exists(self, user_id: int) -> bool:
        row = self.fetchone(
            "SELECT 1 AS present FROM eco_profiles WHERE user_id = ?;",
            (user_id,),
        )
        return row is not None

    def upsert(self, profile: EcoProfile) -> EcoProfile:
        """Insert or replace the user's profile and return the stored row.

        Every profile column is overwritten, so a ``None`` in ``profile``
        clears a previously stored value.
        """
        columns = ", ".join(PROFILE_FIELDS)
        placeholders = ", ".join("?" for _ in PROFILE_FIELDS)
        updates = ", ".join(f"{name} = excluded.{name}" for name in PROFILE_FIELDS)
        params = tuple(
            to_db_bool(getattr(profile, name)) if name in _BOOL_FIELDS else getattr(profile, name)
            for name in PROFILE_FIELDS
        )

        self.execute(
            f"""
            INSERT INTO eco_profiles (user_id, {columns})
            VALUES (?, {placeholders})
            ON CONFLICT(user_id) DO UPDATE SET
                {updates},
                updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (profile.user_id, *params),
        )
        logger.debug("Upserted profile for user %d.", profile.user_id)
        stored = self.get_by_user(profile.user_id)
        assert stored is not None
        return stored


def _row_to_profile(row: sqlite3.Row) -> EcoProfile:
    values = {
        name: from_db_bool(row[name]) if name in _BOOL_FIELDS else row[name]
        for name in PROFILE_FIELDS
    }
    return EcoProfile(
        profile_id=row["profile_id"],
        user_id=row["user_id"],
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
        **values,
    )
