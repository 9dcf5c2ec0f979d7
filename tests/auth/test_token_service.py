"""Token lifecycle against the database: issue, rotate, revoke."""

import dataclasses
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import event, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import ORMExecuteState

from tests.seed import make_user
from vidtube.auth.jwt import INVALID_REFRESH_TOKEN, TokenService, token_digest
from vidtube.db.models import User
from vidtube.errors import AppError, ErrorKind


async def test_issue_pair_fills_the_slot(db_session: AsyncSession, token_service: TokenService):
    user = await make_user(db_session, "alice")
    pair = await token_service.issue_pair(db_session, user)
    await db_session.commit()
    assert user.refresh_token_hash == token_digest(pair.refresh_token)
    assert token_service.verify_access(pair.access_token) == user.id
    assert pair.access_expires_in == 15 * 60


async def test_refresh_rotates_once(db_session: AsyncSession, token_service: TokenService):
    user = await make_user(db_session, "alice")
    r1 = (await token_service.issue_pair(db_session, user)).refresh_token
    await db_session.commit()

    pair, refreshed = await token_service.refresh(db_session, r1)
    await db_session.commit()
    assert refreshed.id == user.id
    assert pair.refresh_token != r1
    assert user.refresh_token_hash == token_digest(pair.refresh_token)

    with pytest.raises(AppError) as exc_info:
        await token_service.refresh(db_session, r1)
    assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
    assert exc_info.value.message == INVALID_REFRESH_TOKEN


async def test_only_the_latest_pair_refreshes(db_session: AsyncSession, token_service: TokenService):
    user = await make_user(db_session, "alice")
    stale = (await token_service.issue_pair(db_session, user)).refresh_token
    current = (await token_service.issue_pair(db_session, user)).refresh_token
    await db_session.commit()

    with pytest.raises(AppError):
        await token_service.refresh(db_session, stale)
    pair, _ = await token_service.refresh(db_session, current)
    assert pair.refresh_token


async def test_revoke_clears_the_slot(db_session: AsyncSession, token_service: TokenService):
    user = await make_user(db_session, "alice")
    r1 = (await token_service.issue_pair(db_session, user)).refresh_token
    await token_service.revoke(db_session, user.id)
    await db_session.commit()
    await db_session.refresh(user)
    assert user.refresh_token_hash is None

    with pytest.raises(AppError) as exc_info:
        await token_service.refresh(db_session, r1)
    assert exc_info.value.message == INVALID_REFRESH_TOKEN


@pytest.mark.parametrize("presented", [None, "", "garbage"])
async def test_malformed_tokens_are_unauthorized(
    db_session: AsyncSession, token_service: TokenService, presented: str | None
):
    with pytest.raises(AppError) as exc_info:
        await token_service.refresh(db_session, presented)
    assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
    assert exc_info.value.message == INVALID_REFRESH_TOKEN


async def test_unknown_user_is_unauthorized(db_session: AsyncSession, token_service: TokenService):
    orphan = token_service.create_refresh_token(uuid.uuid4())
    with pytest.raises(AppError) as exc_info:
        await token_service.refresh(db_session, orphan)
    assert exc_info.value.message == INVALID_REFRESH_TOKEN


async def test_expired_refresh_token_is_unauthorized(db_session: AsyncSession, token_service: TokenService):
    expired = TokenService(dataclasses.replace(token_service.config, refresh_ttl=timedelta(seconds=-1)))
    user = await make_user(db_session, "alice")
    presented = (await expired.issue_pair(db_session, user)).refresh_token
    await db_session.commit()

    with pytest.raises(AppError) as exc_info:
        await expired.refresh(db_session, presented)
    assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
    assert exc_info.value.message == INVALID_REFRESH_TOKEN
    assert user.refresh_token_hash == token_digest(presented)


async def test_refresh_losing_the_swap_is_unauthorized(db_session: AsyncSession, token_service: TokenService):
    user = await make_user(db_session, "alice")
    presented = (await token_service.issue_pair(db_session, user)).refresh_token
    await db_session.commit()
    winner = token_digest(token_service.create_refresh_token(user.id))
    rotated: list[bool] = []

    def _rotate_before_swap(state: ORMExecuteState) -> None:
        # A concurrent refresh with the same token commits between our read and our UPDATE
        if state.is_update and not rotated:
            rotated.append(True)
            state.session.connection().execute(
                update(User).where(User.id == user.id).values(refresh_token_hash=winner)
            )

    event.listen(db_session.sync_session, "do_orm_execute", _rotate_before_swap)
    try:
        with pytest.raises(AppError) as exc_info:
            await token_service.refresh(db_session, presented)
    finally:
        event.remove(db_session.sync_session, "do_orm_execute", _rotate_before_swap)

    assert rotated == [True]
    assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
    assert exc_info.value.message == INVALID_REFRESH_TOKEN
    stored = (await db_session.execute(select(User.refresh_token_hash).where(User.id == user.id))).scalar_one()
    assert stored == winner
