"""Like router: toggles and liked-content listings."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import get_current_user
from vidtube.database import get_session
from vidtube.db.models import LikeTarget, User
from vidtube.dependencies import get_page_request
from vidtube.engagement.schemas import LikeStatus
from vidtube.engagement.service import list_liked_content, toggle_like
from vidtube.feed.pagination import Page, PageRequest
from vidtube.feed.schemas import LikedItem
from vidtube.responses import ApiResponse
from vidtube.validation import parse_id

router = APIRouter(prefix="/api/v1/likes", tags=["Likes"])


async def _toggle(
    db: AsyncSession,
    response: Response,
    kind: LikeTarget,
    raw_id: str,
    user: User,
) -> ApiResponse[Any]:
    target_id = parse_id(raw_id, f"{kind.value} ID")
    liked = await toggle_like(db, kind, target_id, user.id)
    await db.commit()
    status_code = 201 if liked else 200
    response.status_code = status_code
    noun = kind.value.capitalize()
    message = f"{noun} liked successfully" if liked else f"{noun} unliked successfully"
    return ApiResponse.ok(LikeStatus(is_liked=liked), message, status_code=status_code)


@router.post("/toggle/v/{video_id}", response_model=ApiResponse[LikeStatus])
async def toggle_video_like(
    video_id: str,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Like or unlike a video. 201 when the video is now liked, 200 when unliked."""
    return await _toggle(db, response, LikeTarget.VIDEO, video_id, user)


@router.post("/toggle/c/{comment_id}", response_model=ApiResponse[LikeStatus])
async def toggle_comment_like(
    comment_id: str,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    return await _toggle(db, response, LikeTarget.COMMENT, comment_id, user)


@router.post("/toggle/t/{tweet_id}", response_model=ApiResponse[LikeStatus])
async def toggle_tweet_like(
    tweet_id: str,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    return await _toggle(db, response, LikeTarget.TWEET, tweet_id, user)


@router.get("/videos", response_model=ApiResponse[Page[LikedItem]])
async def get_liked_videos(
    paging: PageRequest = Depends(get_page_request),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Videos the user has liked, newest like first."""
    page = await list_liked_content(db, user.id, paging, LikeTarget.VIDEO)
    return ApiResponse.ok(page, "Liked videos fetched successfully")


@router.get("/tweets", response_model=ApiResponse[Page[LikedItem]])
async def get_liked_tweets(
    paging: PageRequest = Depends(get_page_request),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    page = await list_liked_content(db, user.id, paging, LikeTarget.TWEET)
    return ApiResponse.ok(page, "Liked tweets fetched successfully")


@router.get("/comments", response_model=ApiResponse[Page[LikedItem]])
async def get_liked_comments(
    paging: PageRequest = Depends(get_page_request),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    page = await list_liked_content(db, user.id, paging, LikeTarget.COMMENT)
    return ApiResponse.ok(page, "Liked comments fetched successfully")
