"""Feed item schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from vidtube.db.models import LikeTarget
from vidtube.responses import CamelModel


class OwnerSummary(CamelModel):
    """Public projection of a content owner. Never carries credentials."""

    id: uuid.UUID
    username: str
    full_name: str
    avatar_url: str | None = None


class VideoFeedItem(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    video_url: str
    thumbnail_url: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    updated_at: datetime
    owner: OwnerSummary
    likes_count: int = 0
    is_liked: bool = False


class TweetFeedItem(CamelModel):
    id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime
    owner: OwnerSummary
    likes_count: int = 0
    is_liked: bool = False


class CommentFeedItem(CamelModel):
    id: uuid.UUID
    video_id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime
    owner: OwnerSummary
    likes_count: int = 0
    is_liked: bool = False


class LikedItem(CamelModel):
    """A like joined with its target. Exactly one of video/tweet/comment is set."""

    kind: LikeTarget
    liked_at: datetime
    video: VideoFeedItem | None = None
    tweet: TweetFeedItem | None = None
    comment: CommentFeedItem | None = None


class WatchHistoryItem(CamelModel):
    watched_at: datetime
    video: VideoFeedItem


class ChannelProfile(CamelModel):
    id: uuid.UUID
    username: str
    full_name: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
