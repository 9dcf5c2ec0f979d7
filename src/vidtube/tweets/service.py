"""Tweet business logic."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog

from vidtube.db.models import LikeTarget, Tweet
from vidtube.engagement.service import delete_likes_for
from vidtube.errors import not_found
from vidtube.validation import require_owner, require_text

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

EMPTY_TWEET = "Tweet content cannot be empty"


async def get_owned_tweet(db: AsyncSession, tweet_id: uuid.UUID, user_id: uuid.UUID, action: str) -> Tweet:
    tweet = await db.get(Tweet, tweet_id)
    if tweet is None:
        msg = "Tweet not found"
        raise not_found(msg)
    require_owner(tweet.owner_id, user_id, f"You are not authorized to {action} this tweet")
    return tweet


async def create_tweet(db: AsyncSession, owner_id: uuid.UUID, content: str | None) -> Tweet:
    tweet = Tweet(owner_id=owner_id, content=require_text(content, EMPTY_TWEET))
    db.add(tweet)
    await db.flush()
    logger.info("tweet_created", tweet_id=str(tweet.id), owner_id=str(owner_id))
    return tweet


async def update_tweet(db: AsyncSession, tweet_id: uuid.UUID, user_id: uuid.UUID, content: str | None) -> Tweet:
    """
    Replace a tweet's content.

    Raises:
        AppError(BAD_REQUEST): Blank content.
        AppError(NOT_FOUND): Unknown tweet.
        AppError(FORBIDDEN): Not the owner.
    """
    text = require_text(content, EMPTY_TWEET)
    tweet = await get_owned_tweet(db, tweet_id, user_id, "update")
    tweet.content = text
    await db.flush()
    logger.info("tweet_updated", tweet_id=str(tweet.id))
    return tweet


async def delete_tweet(db: AsyncSession, tweet_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """Delete a tweet and the likes on it."""
    tweet = await get_owned_tweet(db, tweet_id, user_id, "delete")
    await delete_likes_for(db, LikeTarget.TWEET, [tweet.id])
    await db.delete(tweet)
    await db.flush()
    logger.info("tweet_deleted", tweet_id=str(tweet_id))
