"""User profile service.

Users own their profile fields. ``rating`` and ``completed_tasks`` belong to the
completion settlement process and cannot be changed here.
"""

import logging
from typing import Any

from pydantic import ValidationError

from worklink.core import db_client
from worklink.core.logging import span
from worklink.domain.user import SETTLEMENT_FIELDS, User


logger = logging.getLogger(__name__)

_COLLECTION = "users"


async def create_user(*, user: User) -> User:
    """Store a newly signed-up user under the id issued by the auth collaborator."""
    with span("user_service.create_user", user_id=user.id):
        record = await db_client.create_record(collection=_COLLECTION, data=user.model_dump(mode="json"))
        logger.info("Created %s profile %s", user.role, user.id)
        return User.model_validate(record)


async def get_user(*, user_id: str) -> User:
    """Fetch a user, raising RecordNotFoundError if unknown."""
    record = await db_client.get_record(collection=_COLLECTION, record_id=user_id)
    return User.model_validate(record)


async def update_profile(*, user_id: str, changes: dict[str, Any]) -> User:
    """Apply profile edits made by the user.

    Raises:
        PermissionError: If the changes touch settlement-owned fields or the role
        ValueError: If the resulting profile is invalid
    """
    forbidden = sorted((SETTLEMENT_FIELDS | {"id", "role"}) & changes.keys())
    if forbidden:
        msg = f"Permission denied: {', '.join(forbidden)} cannot be edited by the user"
        raise PermissionError(msg)

    with span("user_service.update_profile", user_id=user_id):
        current = await get_user(user_id=user_id)
        try:
            updated = User.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            msg = f"Invalid profile update for user {user_id}: {e}"
            raise ValueError(msg) from e

        data = {key: value for key, value in updated.model_dump(mode="json").items() if key in changes}
        record = await db_client.update_record(collection=_COLLECTION, record_id=user_id, data=data)
        logger.info("Updated profile %s fields=%s", user_id, sorted(changes))
        return User.model_validate(record)


async def set_photo_url(*, user_id: str, photo_url: str) -> User:
    """Record the URL returned by the upload collaborator as the profile photo."""
    return await update_profile(user_id=user_id, changes={"photo_url": photo_url})
