"""
Select builders shared by every feed.

Each builder returns a statement selecting the content entity, the owner's
public columns and two engagement columns:

- `likes_count`: number of likes on the row;
- `is_liked`: whether the viewer has liked the row (constant false without a viewer).

Callers add their own filters, ordering and pagination.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ColumnElement, Label, Select, false, func, select
from sqlalchemy.orm import InstrumentedAttribute, aliased

from vidtube.db.models import Comment, Like, LikeTarget, Tweet, User, Video
from vidtube.feed.schemas import CommentFeedItem, OwnerSummary, TweetFeedItem, VideoFeedItem


def owner_columns() -> tuple[Label[Any], ...]:
    return (
        User.id.label("owner_id"),
        User.username.label("owner_username"),
        User.full_name.label("owner_full_name"),
        User.avatar_url.label("owner_avatar_url"),
    )


def likes_count_column(kind: LikeTarget, target_id: InstrumentedAttribute[uuid.UUID]) -> Label[int]:
    like = aliased(Like)
    return (
        select(func.count(like.id))
        .where(like.target_kind == kind, like.target_id == target_id)
        .correlate_except(like)
        .scalar_subquery()
        .label("likes_count")
    )


def is_liked_column(
    kind: LikeTarget,
    target_id: InstrumentedAttribute[uuid.UUID],
    viewer_id: uuid.UUID | None,
) -> Label[bool] | ColumnElement[bool]:
    if viewer_id is None:
        return false().label("is_liked")
    like = aliased(Like)
    return (
        select(like.id)
        .where(like.target_kind == kind, like.target_id == target_id, like.liked_by_id == viewer_id)
        .correlate_except(like)
        .exists()
        .label("is_liked")
    )


def owner_summary(row: Any) -> OwnerSummary:  # noqa: ANN401
    return OwnerSummary(
        id=row.owner_id,
        username=row.owner_username,
        full_name=row.owner_full_name,
        avatar_url=row.owner_avatar_url,
    )


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------


def select_videos(viewer_id: uuid.UUID | None, *extra: Any) -> Select[Any]:  # noqa: ANN401
    return select(
        Video,
        *owner_columns(),
        likes_count_column(LikeTarget.VIDEO, Video.id),
        is_liked_column(LikeTarget.VIDEO, Video.id, viewer_id),
        *extra,
    ).join(User, User.id == Video.owner_id)


def video_item(row: Any) -> VideoFeedItem:  # noqa: ANN401
    video: Video = row.Video
    return VideoFeedItem(
        id=video.id,
        title=video.title,
        description=video.description,
        video_url=video.video_url,
        thumbnail_url=video.thumbnail_url,
        duration=video.duration,
        views=video.views,
        is_published=video.is_published,
        created_at=video.created_at,
        updated_at=video.updated_at,
        owner=owner_summary(row),
        likes_count=row.likes_count or 0,
        is_liked=bool(row.is_liked),
    )


# ---------------------------------------------------------------------------
# Tweets
# ---------------------------------------------------------------------------


def select_tweets(viewer_id: uuid.UUID | None, *extra: Any) -> Select[Any]:  # noqa: ANN401
    return select(
        Tweet,
        *owner_columns(),
        likes_count_column(LikeTarget.TWEET, Tweet.id),
        is_liked_column(LikeTarget.TWEET, Tweet.id, viewer_id),
        *extra,
    ).join(User, User.id == Tweet.owner_id)


def tweet_item(row: Any) -> TweetFeedItem:  # noqa: ANN401
    tweet: Tweet = row.Tweet
    return TweetFeedItem(
        id=tweet.id,
        content=tweet.content,
        created_at=tweet.created_at,
        updated_at=tweet.updated_at,
        owner=owner_summary(row),
        likes_count=row.likes_count or 0,
        is_liked=bool(row.is_liked),
    )


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def select_comments(viewer_id: uuid.UUID | None, *extra: Any) -> Select[Any]:  # noqa: ANN401
    return select(
        Comment,
        *owner_columns(),
        likes_count_column(LikeTarget.COMMENT, Comment.id),
        is_liked_column(LikeTarget.COMMENT, Comment.id, viewer_id),
        *extra,
    ).join(User, User.id == Comment.owner_id)


def comment_item(row: Any) -> CommentFeedItem:  # noqa: ANN401
    comment: Comment = row.Comment
    return CommentFeedItem(
        id=comment.id,
        video_id=comment.video_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        owner=owner_summary(row),
        likes_count=row.likes_count or 0,
        is_liked=bool(row.is_liked),
    )
