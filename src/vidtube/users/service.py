"""Account management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from vidtube.auth.service import ensure_available
from vidtube.errors import bad_request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vidtube.db.models import User
    from vidtube.media.saga import MediaSaga
    from vidtube.media.storage import StoredMedia

logger = structlog.get_logger()


async def update_account(db: AsyncSession, user: User, *, full_name: str, email: str) -> User:
    """
    Update the display name and email.

    Raises:
        AppError(BAD_REQUEST): If either field is blank.
        AppError(CONFLICT): If the email belongs to someone else.
    """
    full_name = full_name.strip()
    email = email.strip().lower()
    if not full_name or not email:
        msg = "All fields are required"
        raise bad_request(msg)
    if email != user.email:
        await ensure_available(db, email=email, exclude_user_id=user.id)
    user.full_name = full_name
    user.email = email
    await db.flush()
    logger.info("account_updated", user_id=str(user.id))
    return user


async def replace_avatar(db: AsyncSession, user: User, media: StoredMedia, saga: MediaSaga) -> User:
    """Point the user at a new avatar; the old one is deleted once the saga succeeds."""
    saga.retire(user.avatar_public_id)
    user.avatar_url = media.url
    user.avatar_public_id = media.public_id
    await db.flush()
    logger.info("avatar_replaced", user_id=str(user.id))
    return user


async def replace_cover_image(db: AsyncSession, user: User, media: StoredMedia, saga: MediaSaga) -> User:
    """Point the user at a new cover image; the old one (if any) is retired."""
    saga.retire(user.cover_image_public_id)
    user.cover_image_url = media.url
    user.cover_image_public_id = media.public_id
    await db.flush()
    logger.info("cover_image_replaced", user_id=str(user.id))
    return user
