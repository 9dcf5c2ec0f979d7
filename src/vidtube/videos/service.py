"""
Video business logic.

Ownership is checked before any mutation. Media bytes live in the object
store; callers run uploads and deletions through a MediaSaga and pass it in
where an existing asset is replaced or removed.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from vidtube.db.models import Comment, LikeTarget, Video, WatchHistoryEntry
from vidtube.engagement.service import delete_likes_for
from vidtube.errors import forbidden, not_found
from vidtube.feed.projections import select_videos, video_item
from vidtube.feed.schemas import VideoFeedItem
from vidtube.validation import require_owner

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vidtube.media.saga import MediaSaga
    from vidtube.media.storage import StoredMedia

logger = structlog.get_logger()


async def get_video(db: AsyncSession, video_id: uuid.UUID) -> Video:
    """Load a video or raise NotFound."""
    video = await db.get(Video, video_id)
    if video is None:
        msg = "Video not found"
        raise not_found(msg)
    return video


async def get_owned_video(db: AsyncSession, video_id: uuid.UUID, user_id: uuid.UUID, action: str) -> Video:
    """Load a video the user owns; Forbidden for anyone else."""
    video = await get_video(db, video_id)
    require_owner(video.owner_id, user_id, f"You are not authorized to {action} this video")
    return video


async def get_video_item(db: AsyncSession, video_id: uuid.UUID, viewer_id: uuid.UUID | None) -> VideoFeedItem:
    """Fresh feed projection of one video (owner, likes and viewer flag)."""
    stmt = select_videos(viewer_id).where(Video.id == video_id).execution_options(populate_existing=True)
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        msg = "Video not found"
        raise not_found(msg)
    return video_item(row)


async def publish_video(
    db: AsyncSession,
    owner_id: uuid.UUID,
    *,
    title: str,
    description: str,
    video: StoredMedia,
    thumbnail: StoredMedia,
) -> Video:
    """Create a video row for already uploaded media. New videos start unpublished."""
    row = Video(
        owner_id=owner_id,
        title=title,
        description=description,
        video_url=video.url,
        video_public_id=video.public_id,
        thumbnail_url=thumbnail.url,
        thumbnail_public_id=thumbnail.public_id,
        duration=video.duration or 0.0,
        views=0,
        is_published=False,
    )
    db.add(row)
    await db.flush()
    logger.info("video_uploaded", video_id=str(row.id), owner_id=str(owner_id))
    return row


async def record_watch(db: AsyncSession, user_id: uuid.UUID, video_id: uuid.UUID) -> None:
    """Append to watch history unless the video is already there."""
    dialect = db.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = (
        insert(WatchHistoryEntry)
        .values(user_id=user_id, video_id=video_id)
        .on_conflict_do_nothing(index_elements=["user_id", "video_id"])
    )
    await db.execute(stmt)


async def view_video(db: AsyncSession, video_id: uuid.UUID, viewer_id: uuid.UUID | None) -> VideoFeedItem:
    """
    Fetch a video for playback.

    Non-owners bump the view counter; signed-in viewers get a watch-history
    entry. An unpublished video is only visible to its owner.

    Raises:
        AppError(NOT_FOUND): Unknown video.
        AppError(FORBIDDEN): Unpublished and the viewer is not the owner.
    """
    video = await get_video(db, video_id)
    is_owner = viewer_id is not None and video.owner_id == viewer_id
    if not video.is_published and not is_owner:
        msg = "You are not authorized to view this video"
        raise forbidden(msg)

    if not is_owner:
        await db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(views=Video.views + 1)
            .execution_options(synchronize_session=False)
        )
    if viewer_id is not None:
        await record_watch(db, viewer_id, video_id)
    await db.flush()
    return await get_video_item(db, video_id, viewer_id)


async def update_video(
    db: AsyncSession,
    video: Video,
    *,
    title: str,
    description: str,
    thumbnail: StoredMedia | None = None,
    saga: MediaSaga | None = None,
) -> Video:
    """Change title and description, and optionally swap the thumbnail."""
    video.title = title
    video.description = description
    if thumbnail is not None:
        if saga is not None:
            saga.retire(video.thumbnail_public_id)
        video.thumbnail_url = thumbnail.url
        video.thumbnail_public_id = thumbnail.public_id
    await db.flush()
    logger.info("video_updated", video_id=str(video.id), thumbnail_replaced=thumbnail is not None)
    return video


async def toggle_publish(db: AsyncSession, video: Video) -> Video:
    video.is_published = not video.is_published
    await db.flush()
    logger.info("video_publish_toggled", video_id=str(video.id), is_published=video.is_published)
    return video


async def delete_video(db: AsyncSession, video: Video, saga: MediaSaga) -> None:
    """
    Delete a video with its comments, watch entries and every like on them.

    The video and thumbnail objects are retired on the saga, so they are only
    removed from the store once the caller's commit succeeds.
    """
    comment_ids = list((await db.execute(select(Comment.id).where(Comment.video_id == video.id))).scalars())
    await delete_likes_for(db, LikeTarget.COMMENT, comment_ids)
    await delete_likes_for(db, LikeTarget.VIDEO, [video.id])
    await db.execute(delete(Comment).where(Comment.video_id == video.id))
    await db.execute(delete(WatchHistoryEntry).where(WatchHistoryEntry.video_id == video.id))
    saga.retire(video.video_public_id)
    saga.retire(video.thumbnail_public_id)
    await db.delete(video)
    await db.flush()
    logger.info("video_deleted", video_id=str(video.id), comments_deleted=len(comment_ids))
