"""Comment business logic."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog

from vidtube.db.models import Comment, LikeTarget, Video
from vidtube.engagement.service import delete_likes_for
from vidtube.errors import not_found
from vidtube.validation import require_owner, require_text

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

EMPTY_COMMENT = "Comment content cannot be empty"


async def get_owned_comment(db: AsyncSession, comment_id: uuid.UUID, user_id: uuid.UUID, action: str) -> Comment:
    comment = await db.get(Comment, comment_id)
    if comment is None:
        msg = "Comment not found"
        raise not_found(msg)
    require_owner(comment.owner_id, user_id, f"You are not authorized to {action} this comment")
    return comment


async def add_comment(db: AsyncSession, video_id: uuid.UUID, owner_id: uuid.UUID, content: str | None) -> Comment:
    """
    Comment on a video.

    Raises:
        AppError(BAD_REQUEST): Blank content.
        AppError(NOT_FOUND): Unknown video.
    """
    text = require_text(content, EMPTY_COMMENT)
    if await db.get(Video, video_id) is None:
        msg = "Video not found"
        raise not_found(msg)
    comment = Comment(video_id=video_id, owner_id=owner_id, content=text)
    db.add(comment)
    await db.flush()
    logger.info("comment_added", comment_id=str(comment.id), video_id=str(video_id), owner_id=str(owner_id))
    return comment


async def update_comment(
    db: AsyncSession,
    comment_id: uuid.UUID,
    user_id: uuid.UUID,
    content: str | None,
) -> Comment:
    text = require_text(content, EMPTY_COMMENT)
    comment = await get_owned_comment(db, comment_id, user_id, "update")
    comment.content = text
    await db.flush()
    logger.info("comment_updated", comment_id=str(comment.id))
    return comment


async def delete_comment(db: AsyncSession, comment_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """Delete a comment and the likes on it."""
    comment = await get_owned_comment(db, comment_id, user_id, "delete")
    await delete_likes_for(db, LikeTarget.COMMENT, [comment.id])
    await db.delete(comment)
    await db.flush()
    logger.info("comment_deleted", comment_id=str(comment_id))
