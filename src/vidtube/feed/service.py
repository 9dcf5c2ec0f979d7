"""
Feed aggregation.

Builds the paginated, denormalized listings: comments on a video, a user's
tweets, the public video catalogue, a user's watch history and the channel
profile counters.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from pydantic.alias_generators import to_snake
from sqlalchemy import false, func, or_, select

from vidtube.db.models import Comment, Subscription, Tweet, User, Video, WatchHistoryEntry
from vidtube.errors import bad_request, not_found
from vidtube.feed.pagination import Page, PageRequest, fetch_page
from vidtube.feed.projections import (
    comment_item,
    select_comments,
    select_tweets,
    select_videos,
    tweet_item,
    video_item,
)
from vidtube.feed.schemas import (
    ChannelProfile,
    CommentFeedItem,
    TweetFeedItem,
    VideoFeedItem,
    WatchHistoryItem,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

VIDEO_SORT_FIELDS: dict[str, Any] = {
    "created_at": Video.created_at,
    "updated_at": Video.updated_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}


async def list_video_comments(
    db: AsyncSession,
    video_id: uuid.UUID,
    viewer_id: uuid.UUID | None,
    request: PageRequest,
) -> Page[CommentFeedItem]:
    """Comments on a video, newest first."""
    if await db.get(Video, video_id) is None:
        msg = "Video not found"
        raise not_found(msg)

    stmt = (
        select_comments(viewer_id)
        .where(Comment.video_id == video_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    rows, total = await fetch_page(db, stmt, request)
    return Page[CommentFeedItem].build([comment_item(r) for r in rows], total, request)


async def list_user_tweets(
    db: AsyncSession,
    owner_id: uuid.UUID,
    viewer_id: uuid.UUID | None,
    request: PageRequest,
) -> Page[TweetFeedItem]:
    """A user's tweets, newest first."""
    if await db.get(User, owner_id) is None:
        msg = "User not found"
        raise not_found(msg)

    stmt = (
        select_tweets(viewer_id)
        .where(Tweet.owner_id == owner_id)
        .order_by(Tweet.created_at.desc(), Tweet.id.desc())
    )
    rows, total = await fetch_page(db, stmt, request)
    return Page[TweetFeedItem].build([tweet_item(r) for r in rows], total, request)


def _contains_pattern(text: str) -> str:
    """Substring LIKE pattern with the user's wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _video_sort(sort_by: str | None, sort_type: str | None) -> list[Any]:
    field = to_snake(sort_by or "created_at")
    column = VIDEO_SORT_FIELDS.get(field)
    if column is None:
        msg = f"Cannot sort videos by '{sort_by}'"
        raise bad_request(msg)
    direction = (sort_type or "desc").lower()
    if direction not in ("asc", "desc"):
        msg = "sortType must be 'asc' or 'desc'"
        raise bad_request(msg)
    if direction == "asc":
        return [column.asc(), Video.id.asc()]
    return [column.desc(), Video.id.desc()]


async def list_videos(
    db: AsyncSession,
    viewer_id: uuid.UUID | None,
    request: PageRequest,
    *,
    query: str | None = None,
    owner_id: uuid.UUID | None = None,
    sort_by: str | None = None,
    sort_type: str | None = None,
) -> Page[VideoFeedItem]:
    """
    Published videos, optionally matching free text and/or a single owner.

    The text match is a case-insensitive substring match on title or description.
    """
    order = _video_sort(sort_by, sort_type)
    stmt = select_videos(viewer_id).where(Video.is_published.is_(True))
    if query and query.strip():
        pattern = _contains_pattern(query.strip())
        stmt = stmt.where(
            or_(Video.title.ilike(pattern, escape="\\"), Video.description.ilike(pattern, escape="\\"))
        )
    if owner_id is not None:
        stmt = stmt.where(Video.owner_id == owner_id)

    rows, total = await fetch_page(db, stmt.order_by(*order), request)
    return Page[VideoFeedItem].build([video_item(r) for r in rows], total, request)


async def list_watch_history(
    db: AsyncSession,
    user_id: uuid.UUID,
    request: PageRequest,
) -> Page[WatchHistoryItem]:
    """
    The user's watched videos in watch order (first watched first).

    Videos that were unpublished since are only kept when the user owns them.
    """
    stmt = (
        select_videos(user_id, WatchHistoryEntry.watched_at)
        .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
        .where(WatchHistoryEntry.user_id == user_id)
        .where(or_(Video.is_published.is_(True), Video.owner_id == user_id))
        .order_by(WatchHistoryEntry.watched_at.asc(), WatchHistoryEntry.id.asc())
    )
    rows, total = await fetch_page(db, stmt, request)
    items = [WatchHistoryItem(watched_at=r.watched_at, video=video_item(r)) for r in rows]
    return Page[WatchHistoryItem].build(items, total, request)


async def get_channel_profile(
    db: AsyncSession,
    username: str,
    viewer_id: uuid.UUID | None,
) -> ChannelProfile:
    """Public channel data plus subscription counters for a username."""
    normalized = username.strip().lower()
    if not normalized:
        msg = "Username is missing"
        raise bad_request(msg)

    subscribers = (
        select(func.count(Subscription.id)).where(Subscription.channel_id == User.id).scalar_subquery()
    )
    subscribed_to = (
        select(func.count(Subscription.id)).where(Subscription.subscriber_id == User.id).scalar_subquery()
    )
    if viewer_id is None:
        is_subscribed: Any = false()
    else:
        is_subscribed = (
            select(Subscription.id)
            .where(Subscription.channel_id == User.id, Subscription.subscriber_id == viewer_id)
            .exists()
        )

    stmt = select(
        User,
        subscribers.label("subscribers_count"),
        subscribed_to.label("channels_subscribed_to_count"),
        is_subscribed.label("is_subscribed"),
    ).where(User.username == normalized)
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        msg = "Channel does not exist"
        raise not_found(msg)

    user: User = row.User
    return ChannelProfile(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        cover_image_url=user.cover_image_url,
        created_at=user.created_at,
        subscribers_count=row.subscribers_count or 0,
        channels_subscribed_to_count=row.channels_subscribed_to_count or 0,
        is_subscribed=bool(row.is_subscribed),
    )
