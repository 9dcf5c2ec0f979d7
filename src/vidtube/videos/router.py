"""Video router: listing, publishing, playback, edits and deletion."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import get_current_user, get_optional_viewer
from vidtube.database import get_session
from vidtube.db.models import User
from vidtube.dependencies import get_page_request
from vidtube.feed.pagination import Page, PageRequest
from vidtube.feed.schemas import VideoFeedItem
from vidtube.feed.service import list_videos
from vidtube.media.saga import MediaSaga, read_upload
from vidtube.media.storage import BaseObjectStore, get_object_store
from vidtube.responses import ApiResponse
from vidtube.validation import parse_id, require_text
from vidtube.videos.service import (
    delete_video,
    get_owned_video,
    get_video_item,
    publish_video,
    toggle_publish,
    update_video,
    view_video,
)

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])


def _title_and_description(title: str | None, description: str | None) -> tuple[str, str]:
    msg = "Title and description both are required"
    return require_text(title, msg), require_text(description, msg)


@router.get("", response_model=ApiResponse[Page[VideoFeedItem]])
async def get_all_videos(
    paging: PageRequest = Depends(get_page_request),
    query: str | None = Query(None),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_type: str | None = Query(None, alias="sortType"),
    user_id: str | None = Query(None, alias="userId"),
    viewer_id: uuid.UUID | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Published videos with optional search, owner filter and sorting."""
    owner_id = parse_id(user_id, "user ID") if user_id else None
    page = await list_videos(
        db,
        viewer_id,
        paging,
        query=query,
        owner_id=owner_id,
        sort_by=sort_by,
        sort_type=sort_type,
    )
    return ApiResponse.ok(page, "Videos fetched successfully")


@router.post("", response_model=ApiResponse[VideoFeedItem], status_code=201)
async def publish_a_video(
    title: str | None = Form(None),
    description: str | None = Form(None),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    store: BaseObjectStore = Depends(get_object_store),
) -> Any:  # noqa: ANN401
    """Upload a video and thumbnail. The video starts unpublished."""
    title, description = _title_and_description(title, description)
    video_data = await read_upload(video_file, "Video file")
    thumbnail_data = await read_upload(thumbnail, "Thumbnail")

    async with MediaSaga(store) as saga:
        video_media = await saga.upload(
            video_data,  # type: ignore[arg-type]
            filename=(video_file.filename if video_file else None) or "video",
            resource_type="video",
        )
        thumbnail_media = await saga.upload(
            thumbnail_data,  # type: ignore[arg-type]
            filename=(thumbnail.filename if thumbnail else None) or "thumbnail",
            resource_type="image",
        )
        video = await publish_video(
            db,
            user.id,
            title=title,
            description=description,
            video=video_media,
            thumbnail=thumbnail_media,
        )
        await db.commit()

    item = await get_video_item(db, video.id, user.id)
    return ApiResponse.ok(item, "Video published successfully", status_code=201)


@router.get("/{video_id}", response_model=ApiResponse[VideoFeedItem])
async def get_video_by_id(
    video_id: str,
    viewer_id: uuid.UUID | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Play a video: counts the view and records watch history."""
    item = await view_video(db, parse_id(video_id, "video ID"), viewer_id)
    await db.commit()
    return ApiResponse.ok(item, "Video fetched successfully")


@router.patch("/{video_id}", response_model=ApiResponse[VideoFeedItem])
async def update_video_details(
    video_id: str,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    store: BaseObjectStore = Depends(get_object_store),
) -> Any:  # noqa: ANN401
    """Edit title and description; a new thumbnail replaces the old one."""
    vid = parse_id(video_id, "video ID")
    title, description = _title_and_description(title, description)
    video = await get_owned_video(db, vid, user.id, "update")
    thumbnail_data = await read_upload(thumbnail, "Thumbnail", required=False)

    async with MediaSaga(store) as saga:
        thumbnail_media = None
        if thumbnail_data is not None:
            thumbnail_media = await saga.upload(
                thumbnail_data,
                filename=(thumbnail.filename if thumbnail else None) or "thumbnail",
                resource_type="image",
            )
        await update_video(
            db,
            video,
            title=title,
            description=description,
            thumbnail=thumbnail_media,
            saga=saga,
        )
        await db.commit()

    item = await get_video_item(db, vid, user.id)
    return ApiResponse.ok(item, "Video updated successfully")


@router.delete("/{video_id}", response_model=ApiResponse[dict[str, Any]])
async def delete_a_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    store: BaseObjectStore = Depends(get_object_store),
) -> Any:  # noqa: ANN401
    """Delete a video, its comments and likes, then its media."""
    video = await get_owned_video(db, parse_id(video_id, "video ID"), user.id, "delete")
    async with MediaSaga(store) as saga:
        await delete_video(db, video, saga)
        await db.commit()
    return ApiResponse.ok({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}", response_model=ApiResponse[VideoFeedItem])
async def toggle_publish_status(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Flip the published flag."""
    vid = parse_id(video_id, "video ID")
    video = await get_owned_video(db, vid, user.id, "toggle publish status of")
    await toggle_publish(db, video)
    await db.commit()
    item = await get_video_item(db, vid, user.id)
    return ApiResponse.ok(item, "Video publish status toggled successfully")
