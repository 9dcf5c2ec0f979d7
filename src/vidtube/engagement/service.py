"""
Like ledger.

A like is keyed by (target_kind, target_id, liked_by_id) and that key is
unique in the database. Toggling looks the key up and deletes or inserts; if
a concurrent request inserts the same key first, our insert violates the
constraint and the toggle still reports the target as liked.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from vidtube.db.models import Comment, Like, LikeTarget, Tweet, Video
from vidtube.errors import not_found
from vidtube.feed.pagination import Page, PageRequest, fetch_page
from vidtube.feed.projections import (
    comment_item,
    select_comments,
    select_tweets,
    select_videos,
    tweet_item,
    video_item,
)
from vidtube.feed.schemas import LikedItem

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

TARGET_MODELS: dict[LikeTarget, type[Video] | type[Comment] | type[Tweet]] = {
    LikeTarget.VIDEO: Video,
    LikeTarget.COMMENT: Comment,
    LikeTarget.TWEET: Tweet,
}


async def find_like(
    db: AsyncSession,
    kind: LikeTarget,
    target_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Like | None:
    """Fetch the like for (kind, target, user), if any."""
    result = await db.execute(
        select(Like).where(
            Like.target_kind == kind,
            Like.target_id == target_id,
            Like.liked_by_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def toggle_like(
    db: AsyncSession,
    kind: LikeTarget,
    target_id: uuid.UUID,
    user_id: uuid.UUID,
) -> bool:
    """
    Like the target if the user has not liked it yet, otherwise unlike it.

    Returns:
        The new state: True when the target is now liked.

    Raises:
        AppError(NOT_FOUND): If the target does not exist.
    """
    model = TARGET_MODELS[kind]
    if await db.get(model, target_id) is None:
        msg = f"{kind.value.capitalize()} not found"
        raise not_found(msg)

    existing = await find_like(db, kind, target_id, user_id)
    if existing is not None:
        # A concurrent unlike may already have removed it; deleting zero rows is fine
        await db.execute(delete(Like).where(Like.id == existing.id))
        await db.flush()
        logger.info("like_toggled", kind=kind.value, target_id=str(target_id), user_id=str(user_id), liked=False)
        return False

    db.add(Like(target_kind=kind, target_id=target_id, liked_by_id=user_id))
    try:
        await db.flush()
    except IntegrityError:
        # Lost the race against an identical insert; the like exists either way
        await db.rollback()
        logger.info("like_insert_raced", kind=kind.value, target_id=str(target_id), user_id=str(user_id))
        return True

    logger.info("like_toggled", kind=kind.value, target_id=str(target_id), user_id=str(user_id), liked=True)
    return True


async def delete_likes_for(
    db: AsyncSession,
    kind: LikeTarget,
    target_ids: Iterable[uuid.UUID],
) -> int:
    """Remove every like on the given targets. Returns the number deleted."""
    ids = list(target_ids)
    if not ids:
        return 0
    result = await db.execute(
        delete(Like).where(Like.target_kind == kind, Like.target_id.in_(ids))
    )
    return result.rowcount or 0  # type: ignore[attr-defined]


def _liked_statement(kind: LikeTarget, user_id: uuid.UUID) -> Any:  # noqa: ANN401
    """Likes of one kind by the user, joined with target and owner, newest like first."""
    liked_at = Like.created_at.label("liked_at")
    if kind is LikeTarget.VIDEO:
        stmt = select_videos(user_id, liked_at).join(Like, Like.target_id == Video.id)
    elif kind is LikeTarget.TWEET:
        stmt = select_tweets(user_id, liked_at).join(Like, Like.target_id == Tweet.id)
    else:
        stmt = select_comments(user_id, liked_at).join(Like, Like.target_id == Comment.id)
    stmt = stmt.where(Like.target_kind == kind, Like.liked_by_id == user_id)
    if kind is LikeTarget.VIDEO:
        # Someone else's video that went private drops out of the list
        stmt = stmt.where((Video.is_published.is_(True)) | (Video.owner_id == user_id))
    return stmt.order_by(Like.created_at.desc(), Like.id.desc())


async def list_liked_content(
    db: AsyncSession,
    user_id: uuid.UUID,
    request: PageRequest,
    kind: LikeTarget = LikeTarget.VIDEO,
) -> Page[LikedItem]:
    """Paginated content of one kind that the user has liked."""
    rows, total = await fetch_page(db, _liked_statement(kind, user_id), request)
    items: list[LikedItem] = []
    for row in rows:
        if kind is LikeTarget.VIDEO:
            items.append(LikedItem(kind=kind, liked_at=row.liked_at, video=video_item(row)))
        elif kind is LikeTarget.TWEET:
            items.append(LikedItem(kind=kind, liked_at=row.liked_at, tweet=tweet_item(row)))
        else:
            items.append(LikedItem(kind=kind, liked_at=row.liked_at, comment=comment_item(row)))
    return Page[LikedItem].build(items, total, request)
