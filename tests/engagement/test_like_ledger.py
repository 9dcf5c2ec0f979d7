"""Like toggling: uniqueness, race absorption and the like listings."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tests.seed import make_comment, make_tweet, make_user, make_video
from vidtube.db.models import Like, LikeTarget
from vidtube.engagement import service as engagement
from vidtube.errors import AppError, ErrorKind
from vidtube.feed.pagination import page_request


async def _like_count(db: AsyncSession, kind: LikeTarget, target_id: uuid.UUID) -> int:
    stmt = select(func.count(Like.id)).where(Like.target_kind == kind, Like.target_id == target_id)
    return (await db.execute(stmt)).scalar_one()


class TestToggleService:
    async def test_toggle_twice(self, db_session: AsyncSession):
        owner = await make_user(db_session, "alice")
        fan = await make_user(db_session, "bob")
        video = await make_video(db_session, owner)
        await db_session.commit()

        assert await engagement.toggle_like(db_session, LikeTarget.VIDEO, video.id, fan.id) is True
        await db_session.commit()
        assert await _like_count(db_session, LikeTarget.VIDEO, video.id) == 1

        assert await engagement.toggle_like(db_session, LikeTarget.VIDEO, video.id, fan.id) is False
        await db_session.commit()
        assert await _like_count(db_session, LikeTarget.VIDEO, video.id) == 0

    async def test_kinds_are_independent(self, db_session: AsyncSession):
        owner = await make_user(db_session, "alice")
        tweet = await make_tweet(db_session, owner)
        video = await make_video(db_session, owner)
        comment = await make_comment(db_session, video, owner)
        await db_session.commit()

        for kind, target in (
            (LikeTarget.VIDEO, video.id),
            (LikeTarget.TWEET, tweet.id),
            (LikeTarget.COMMENT, comment.id),
        ):
            assert await engagement.toggle_like(db_session, kind, target, owner.id) is True
        await db_session.commit()
        total = (await db_session.execute(select(func.count(Like.id)))).scalar_one()
        assert total == 3

    async def test_concurrent_insert_is_absorbed(self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch):
        owner = await make_user(db_session, "alice")
        fan = await make_user(db_session, "bob")
        tweet = await make_tweet(db_session, owner)
        await db_session.commit()

        assert await engagement.toggle_like(db_session, LikeTarget.TWEET, tweet.id, fan.id) is True
        await db_session.commit()

        async def _missed_lookup(*_args, **_kwargs):
            # Simulates a second request that checked before the first one committed
            return None

        monkeypatch.setattr(engagement, "find_like", _missed_lookup)
        assert await engagement.toggle_like(db_session, LikeTarget.TWEET, tweet.id, fan.id) is True
        assert await _like_count(db_session, LikeTarget.TWEET, tweet.id) == 1

    async def test_unknown_target(self, db_session: AsyncSession):
        user = await make_user(db_session, "alice")
        await db_session.commit()
        with pytest.raises(AppError) as exc_info:
            await engagement.toggle_like(db_session, LikeTarget.COMMENT, uuid.uuid4(), user.id)
        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.message == "Comment not found"

    async def test_delete_likes_for(self, db_session: AsyncSession):
        owner = await make_user(db_session, "alice")
        fan = await make_user(db_session, "bob")
        keep = await make_tweet(db_session, owner, "keep")
        drop = await make_tweet(db_session, owner, "drop")
        for tweet in (keep, drop):
            await engagement.toggle_like(db_session, LikeTarget.TWEET, tweet.id, fan.id)
            await engagement.toggle_like(db_session, LikeTarget.TWEET, tweet.id, owner.id)
        await db_session.commit()

        removed = await engagement.delete_likes_for(db_session, LikeTarget.TWEET, [drop.id])
        await db_session.commit()
        assert removed == 2
        assert await _like_count(db_session, LikeTarget.TWEET, drop.id) == 0
        assert await _like_count(db_session, LikeTarget.TWEET, keep.id) == 2
        assert await engagement.delete_likes_for(db_session, LikeTarget.TWEET, []) == 0


class TestLikedContent:
    async def test_liked_videos_newest_first(self, db_session: AsyncSession):
        owner = await make_user(db_session, "alice")
        fan = await make_user(db_session, "bob")
        first = await make_video(db_session, owner, "first")
        second = await make_video(db_session, owner, "second")
        unliked = await make_video(db_session, owner, "unliked")
        await db_session.commit()
        await engagement.toggle_like(db_session, LikeTarget.VIDEO, first.id, fan.id)
        await db_session.commit()
        await engagement.toggle_like(db_session, LikeTarget.VIDEO, second.id, fan.id)
        await db_session.commit()

        page = await engagement.list_liked_content(db_session, fan.id, page_request(1, 10))
        assert page.total_items == 2
        titles = {item.video.title for item in page.items}
        assert titles == {"first", "second"}
        assert unliked.title not in titles
        assert all(item.kind is LikeTarget.VIDEO for item in page.items)
        assert all(item.video.is_liked for item in page.items)
        assert page.items[0].liked_at >= page.items[1].liked_at
        assert page.items[0].video.owner.username == "alice"

    async def test_liked_tweets_and_comments(self, db_session: AsyncSession):
        owner = await make_user(db_session, "alice")
        fan = await make_user(db_session, "bob")
        tweet = await make_tweet(db_session, owner, "liked tweet")
        video = await make_video(db_session, owner)
        comment = await make_comment(db_session, video, owner, "liked comment")
        await engagement.toggle_like(db_session, LikeTarget.TWEET, tweet.id, fan.id)
        await engagement.toggle_like(db_session, LikeTarget.COMMENT, comment.id, fan.id)
        await db_session.commit()

        tweets = await engagement.list_liked_content(db_session, fan.id, page_request(1, 10), LikeTarget.TWEET)
        assert [item.tweet.content for item in tweets.items] == ["liked tweet"]
        assert tweets.items[0].tweet.likes_count == 1

        comments = await engagement.list_liked_content(db_session, fan.id, page_request(1, 10), LikeTarget.COMMENT)
        assert [item.comment.content for item in comments.items] == ["liked comment"]
        assert comments.items[0].video is None


class TestLikeRoutes:
    async def test_toggle_status_codes(self, client: AsyncClient, signed_in, upload_video):
        alice = await signed_in("alice")
        bob = await signed_in("bob")
        video = await upload_video(alice)

        liked = await client.post(f"/api/v1/likes/toggle/v/{video['id']}", headers=bob["headers"])
        assert liked.status_code == 201
        assert liked.json()["data"] == {"isLiked": True}
        assert liked.json()["statusCode"] == 201

        unliked = await client.post(f"/api/v1/likes/toggle/v/{video['id']}", headers=bob["headers"])
        assert unliked.status_code == 200
        assert unliked.json()["data"] == {"isLiked": False}

    async def test_invalid_id(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post("/api/v1/likes/toggle/t/not-a-uuid", headers=alice["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid tweet ID"

    async def test_unknown_tweet(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post(f"/api/v1/likes/toggle/t/{uuid.uuid4()}", headers=alice["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Tweet not found"

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.post(f"/api/v1/likes/toggle/c/{uuid.uuid4()}")
        assert response.status_code == 401

    async def test_liked_videos_route(self, client: AsyncClient, signed_in, upload_video):
        alice = await signed_in("alice")
        bob = await signed_in("bob")
        video = await upload_video(alice, "Great clip")
        await client.post(f"/api/v1/likes/toggle/v/{video['id']}", headers=bob["headers"])

        response = await client.get("/api/v1/likes/videos", headers=bob["headers"])
        assert response.status_code == 200
        page = response.json()["data"]
        assert page["totalItems"] == 1
        assert page["items"][0]["kind"] == "video"
        assert page["items"][0]["video"]["title"] == "Great clip"
        assert page["items"][0]["video"]["likesCount"] == 1

        empty = await client.get("/api/v1/likes/tweets", headers=bob["headers"])
        assert empty.json()["data"]["items"] == []
