"""FastAPI authentication dependencies."""

from __future__ import annotations

import uuid

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.jwt import TokenService
from vidtube.auth.service import get_user_by_id
from vidtube.database import get_session
from vidtube.db.models import User
from vidtube.errors import AppError, unauthorized

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

_bearer = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """The TokenService built by `create_app`."""
    return request.app.state.token_service  # type: ignore[no-any-return]


def _presented_access_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_COOKIE) or None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the bearer header or accessToken cookie to a User.

    Raises 401 when the token is missing, invalid, or names an unknown user.
    """
    token = _presented_access_token(request, credentials)
    if not token:
        raise unauthorized()
    user_id = tokens.verify_access(token)
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise unauthorized("Invalid access token")
    return user


async def get_optional_viewer(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> uuid.UUID | None:
    """
    Viewer id for personalised flags, or None.

    A bad or expired token is treated as an anonymous request.
    """
    token = _presented_access_token(request, credentials)
    if not token:
        return None
    try:
        return tokens.verify_access(token)
    except AppError:
        return None
