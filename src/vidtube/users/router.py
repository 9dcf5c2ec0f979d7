"""Account router: profile updates, channel page, watch history."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import get_current_user, get_optional_viewer
from vidtube.auth.schemas import UserResponse
from vidtube.database import get_session
from vidtube.db.models import User
from vidtube.dependencies import get_page_request
from vidtube.errors import conflict
from vidtube.feed.pagination import Page, PageRequest
from vidtube.feed.schemas import ChannelProfile, WatchHistoryItem
from vidtube.feed.service import get_channel_profile, list_watch_history
from vidtube.media.saga import MediaSaga, read_upload
from vidtube.media.storage import BaseObjectStore, get_object_store
from vidtube.responses import ApiResponse
from vidtube.users.schemas import UpdateAccountRequest
from vidtube.users.service import replace_avatar, replace_cover_image, update_account

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.patch("/update-account", response_model=ApiResponse[UserResponse])
async def update_account_details(
    body: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Update full name and email."""
    try:
        await update_account(db, user, full_name=body.full_name, email=body.email)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        msg = "User with email or username already exists"
        raise conflict(msg) from e
    return ApiResponse.ok(UserResponse.model_validate(user), "Account details updated successfully")


@router.patch("/avatar", response_model=ApiResponse[UserResponse])
async def update_avatar(
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    store: BaseObjectStore = Depends(get_object_store),
) -> Any:  # noqa: ANN401
    """Replace the avatar. The previous image is deleted after the update commits."""
    data = await read_upload(avatar, "Avatar file")
    async with MediaSaga(store) as saga:
        media = await saga.upload(
            data,  # type: ignore[arg-type]
            filename=(avatar.filename if avatar else None) or "avatar",
            resource_type="image",
        )
        await replace_avatar(db, user, media, saga)
        await db.commit()
    return ApiResponse.ok(UserResponse.model_validate(user), "Avatar updated successfully")


@router.patch("/cover-image", response_model=ApiResponse[UserResponse])
async def update_cover_image(
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    store: BaseObjectStore = Depends(get_object_store),
) -> Any:  # noqa: ANN401
    """Replace the cover image."""
    data = await read_upload(cover_image, "Cover image")
    async with MediaSaga(store) as saga:
        media = await saga.upload(
            data,  # type: ignore[arg-type]
            filename=(cover_image.filename if cover_image else None) or "cover",
            resource_type="image",
        )
        await replace_cover_image(db, user, media, saga)
        await db.commit()
    return ApiResponse.ok(UserResponse.model_validate(user), "Cover image updated successfully")


@router.get("/c/{username}", response_model=ApiResponse[ChannelProfile])
async def channel_profile(
    username: str,
    viewer_id: uuid.UUID | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Public channel page with subscription counters."""
    profile = await get_channel_profile(db, username, viewer_id)
    return ApiResponse.ok(profile, "User channel fetched successfully")


@router.get("/history", response_model=ApiResponse[Page[WatchHistoryItem]])
async def watch_history(
    paging: PageRequest = Depends(get_page_request),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """The authenticated user's watch history, in watch order."""
    page = await list_watch_history(db, user.id, paging)
    return ApiResponse.ok(page, "Watch history fetched successfully")
