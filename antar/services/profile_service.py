"""
ProfileService - The user-editable part of a profile

Username, display name, avatar and timezone. XP, level and pet are never
written here; they follow from completions (see HabitService).
"""

import logging
from typing import Any

from antar.db.connection import Database
from antar.db.queries import profiles as profile_queries
from antar.exceptions import RecordNotFoundError, ValidationError
from antar.models.profile import Profile
from antar.utils.datetime_helpers import validate_timezone
from antar.utils.sanitize import sanitize_text, sanitize_username

logger = logging.getLogger(__name__)

MAX_FULL_NAME_LENGTH = 100
MAX_AVATAR_URL_LENGTH = 500


class ProfileService:
    """Reads and edits profiles"""

    def __init__(self, db: Database):
        self.db = db
        logger.debug("ProfileService initialized")

    async def get_profile(self, user_id: str) -> Profile:
        """
        Raises:
            RecordNotFoundError: No profile yet (one is created on first habit)
        """
        row = await profile_queries.get_profile(self.db, user_id)
        if row is None:
            raise self._not_found(user_id)
        return Profile(**row)

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> Profile:
        """
        Update username, full_name, avatar_url and timezone

        The username is lowercased and stripped to letters, digits, "_" and
        "-"; a value with nothing left is rejected. An empty full_name or
        avatar_url clears it.

        Raises:
            ValidationError: Nothing to update, empty username or unknown timezone
            ConflictError: Username taken
            RecordNotFoundError: No such profile
        """
        changes = {k: v for k, v in updates.items() if k in profile_queries.EDITABLE_PROFILE_FIELDS}
        if not changes:
            raise ValidationError("No fields to update", user_id=user_id)

        if "username" in changes:
            username = sanitize_username(changes["username"])
            if not username:
                raise ValidationError(
                    "Username must contain letters or digits",
                    field="username",
                    value=changes["username"],
                    user_id=user_id
                )
            changes["username"] = username
        if "full_name" in changes:
            changes["full_name"] = sanitize_text(changes["full_name"], MAX_FULL_NAME_LENGTH) or None
        if "avatar_url" in changes:
            changes["avatar_url"] = sanitize_text(changes["avatar_url"], MAX_AVATAR_URL_LENGTH) or None
        if "timezone" in changes:
            changes["timezone"] = validate_timezone(changes["timezone"])

        row = await profile_queries.update_profile(self.db, user_id, changes)
        if row is None:
            raise self._not_found(user_id)

        logger.info(f"Updated profile {user_id}: {sorted(changes)}")
        return Profile(**row)

    @staticmethod
    def _not_found(user_id: str) -> RecordNotFoundError:
        return RecordNotFoundError(
            f"Profile {user_id} not found",
            record_type="Profile",
            record_id=user_id,
            user_id=user_id
        )
