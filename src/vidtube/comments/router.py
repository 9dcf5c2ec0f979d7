"""Comment router."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import get_current_user, get_optional_viewer
from vidtube.comments.schemas import CommentContent
from vidtube.comments.service import add_comment, delete_comment, update_comment
from vidtube.database import get_session
from vidtube.db.models import Comment, User
from vidtube.dependencies import get_page_request
from vidtube.errors import not_found
from vidtube.feed.pagination import Page, PageRequest
from vidtube.feed.projections import comment_item, select_comments
from vidtube.feed.schemas import CommentFeedItem
from vidtube.feed.service import list_video_comments
from vidtube.responses import ApiResponse
from vidtube.validation import parse_id

router = APIRouter(prefix="/api/v1/comments", tags=["Comments"])


async def _comment_item(db: AsyncSession, comment_id: uuid.UUID, viewer_id: uuid.UUID) -> CommentFeedItem:
    row = (await db.execute(select_comments(viewer_id).where(Comment.id == comment_id))).one_or_none()
    if row is None:
        msg = "Comment not found"
        raise not_found(msg)
    return comment_item(row)


@router.get("/{video_id}", response_model=ApiResponse[Page[CommentFeedItem]])
async def get_video_comments(
    video_id: str,
    paging: PageRequest = Depends(get_page_request),
    viewer_id: uuid.UUID | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """Comments on a video, newest first, with like counts."""
    page = await list_video_comments(db, parse_id(video_id, "video ID"), viewer_id, paging)
    return ApiResponse.ok(page, "Comments fetched successfully")


@router.post("/{video_id}", response_model=ApiResponse[CommentFeedItem], status_code=201)
async def post_comment(
    video_id: str,
    body: CommentContent,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    comment = await add_comment(db, parse_id(video_id, "video ID"), user.id, body.content)
    await db.commit()
    item = await _comment_item(db, comment.id, user.id)
    return ApiResponse.ok(item, "Comment added successfully", status_code=201)


@router.patch("/c/{comment_id}", response_model=ApiResponse[CommentFeedItem])
async def patch_comment(
    comment_id: str,
    body: CommentContent,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    cid = parse_id(comment_id, "comment ID")
    await update_comment(db, cid, user.id, body.content)
    await db.commit()
    item = await _comment_item(db, cid, user.id)
    return ApiResponse.ok(item, "Comment updated successfully")


@router.delete("/c/{comment_id}", response_model=ApiResponse[dict[str, Any]])
async def remove_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    await delete_comment(db, parse_id(comment_id, "comment ID"), user.id)
    await db.commit()
    return ApiResponse.ok({}, "Comment deleted successfully")
