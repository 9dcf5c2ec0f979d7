"""Tweet router."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import get_current_user, get_optional_viewer
from vidtube.database import get_session
from vidtube.db.models import Tweet, User
from vidtube.dependencies import get_page_request
from vidtube.errors import not_found
from vidtube.feed.pagination import Page, PageRequest
from vidtube.feed.projections import select_tweets, tweet_item
from vidtube.feed.schemas import TweetFeedItem
from vidtube.feed.service import list_user_tweets
from vidtube.responses import ApiResponse
from vidtube.tweets.schemas import TweetContent
from vidtube.tweets.service import create_tweet, delete_tweet, update_tweet
from vidtube.validation import parse_id

router = APIRouter(prefix="/api/v1/tweets", tags=["Tweets"])


async def _tweet_item(db: AsyncSession, tweet_id: uuid.UUID, viewer_id: uuid.UUID) -> TweetFeedItem:
    row = (await db.execute(select_tweets(viewer_id).where(Tweet.id == tweet_id))).one_or_none()
    if row is None:
        msg = "Tweet not found"
        raise not_found(msg)
    return tweet_item(row)


@router.post("", response_model=ApiResponse[TweetFeedItem], status_code=201)
async def post_tweet(
    body: TweetContent,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    tweet = await create_tweet(db, user.id, body.content)
    await db.commit()
    item = await _tweet_item(db, tweet.id, user.id)
    return ApiResponse.ok(item, "Tweet created successfully", status_code=201)


@router.get("/user/{user_id}", response_model=ApiResponse[Page[TweetFeedItem]])
async def get_user_tweets(
    user_id: str,
    paging: PageRequest = Depends(get_page_request),
    viewer_id: uuid.UUID | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    """A user's tweets, newest first, with like counts."""
    page = await list_user_tweets(db, parse_id(user_id, "user ID"), viewer_id, paging)
    return ApiResponse.ok(page, "Tweets fetched successfully")


@router.patch("/{tweet_id}", response_model=ApiResponse[TweetFeedItem])
async def patch_tweet(
    tweet_id: str,
    body: TweetContent,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    tid = parse_id(tweet_id, "tweet ID")
    await update_tweet(db, tid, user.id, body.content)
    await db.commit()
    item = await _tweet_item(db, tid, user.id)
    return ApiResponse.ok(item, "Tweet updated successfully")


@router.delete("/{tweet_id}", response_model=ApiResponse[dict[str, Any]])
async def remove_tweet(
    tweet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Any:  # noqa: ANN401
    await delete_tweet(db, parse_id(tweet_id, "tweet ID"), user.id)
    await db.commit()
    return ApiResponse.ok({}, "Tweet deleted successfully")
