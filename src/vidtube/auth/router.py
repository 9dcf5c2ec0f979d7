"""Authentication router: register, login, logout, token refresh, password change."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_current_user,
    get_token_service,
)
from vidtube.auth.jwt import TokenPair, TokenService
from vidtube.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenResponse,
    UserResponse,
)
from vidtube.auth.service import (
    authenticate_user,
    change_password,
    check_registration_fields,
    ensure_available,
    register_user,
)
from vidtube.config import get_settings
from vidtube.database import get_session
from vidtube.db.models import User
from vidtube.errors import conflict
from vidtube.media.saga import MediaSaga, read_upload
from vidtube.media.storage import BaseObjectStore, get_object_store
from vidtube.responses import ApiResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Authentication"])


def _set_auth_cookies(response: Response, pair: TokenPair) -> None:
    secure = get_settings().cookie_secure
    response.set_cookie(
        ACCESS_COOKIE,
        pair.access_token,
        max_age=pair.access_expires_in,
        httponly=True,
        secure=secure,
        samesite="strict",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        pair.refresh_token,
        max_age=pair.refresh_expires_in,
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def _clear_auth_cookies(response: Response) -> None:
    secure = get_settings().cookie_secure
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, httponly=True, secure=secure, samesite="strict")


def _token_response(pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.access_expires_in,
    )


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=201)
async def register(
    username: str = Form(...),
    email: str = Form(...),
    full_name: str = Form(..., alias="fullName"),
    password: str = Form(...),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: AsyncSession = Depends(get_session),
    store: BaseObjectStore = Depends(get_object_store),
) -> Any:  # noqa: ANN401
    """Register a user with an avatar and optional cover image."""
    username, email, full_name = check_registration_fields(username, email, full_name, password)
    await ensure_available(db, username=username, email=email)
    avatar_data = await read_upload(avatar, "Avatar file")
    cover_data = await read_upload(cover_image, "Cover image", required=False)

    async with MediaSaga(store) as saga:
        avatar_media = await saga.upload(
            avatar_data,  # type: ignore[arg-type]
            filename=(avatar.filename if avatar else None) or "avatar",
            resource_type="image",
        )
        cover_media = None
        if cover_data is not None:
            cover_media = await saga.upload(
                cover_data,
                filename=(cover_image.filename if cover_image else None) or "cover",
                resource_type="image",
            )
        try:
            user = await register_user(
                db,
                username=username,
                email=email,
                full_name=full_name,
                password=password,
                avatar=avatar_media,
                cover_image=cover_media,
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            msg = "User with email or username already exists"
            raise conflict(msg) from e

    return ApiResponse.ok(
        UserResponse.model_validate(user),
        "User registered successfully",
        status_code=201,
    )


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> Any:  # noqa: ANN401
    """Login with username or email. Tokens are returned and set as cookies."""
    user = await authenticate_user(db, username=body.username, email=body.email, password=body.password)
    pair = await tokens.issue_pair(db, user)
    await db.commit()
    _set_auth_cookies(response, pair)
    data = LoginResponse(
        **_token_response(pair).model_dump(),
        user=UserResponse.model_validate(user),
    )
    return ApiResponse.ok(data, "User logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict[str, Any]])
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> Any:  # noqa: ANN401
    """Revoke the refresh token slot and clear cookies."""
    await tokens.revoke(db, user.id)
    await db.commit()
    _clear_auth_cookies(response)
    logger.info("user_logged_out", user_id=str(user.id))
    return ApiResponse.ok({}, "User logged out successfully")


@router.post("/refresh-token", response_model=ApiResponse[TokenResponse])
async def refresh_token(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    db: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> Any:  # noqa: ANN401
    """Rotate the refresh token. Accepts the token in the body or the refreshToken cookie."""
    presented = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    pair, _user = await tokens.refresh(db, presented)
    await db.commit()
    _set_auth_cookies(response, pair)
    return ApiResponse.ok(_token_response(pair), "Access token refreshed")


@router.get("/current-user", response_model=ApiResponse[UserResponse])
async def current_user(user: User = Depends(get_current_user)) -> Any:  # noqa: ANN401
    """Get the authenticated user's profile."""
    return ApiResponse.ok(UserResponse.model_validate(user), "User fetched successfully")


@router.post("/change-password", response_model=ApiResponse[dict[str, Any]])
async def change_current_password(
    body: ChangePasswordRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> Any:  # noqa: ANN401
    """Change password after verifying the old one. Outstanding refresh tokens stop working."""
    await change_password(db, user, body.old_password, body.new_password)
    await tokens.revoke(db, user.id)
    await db.commit()
    _clear_auth_cookies(response)
    return ApiResponse.ok({}, "Password changed successfully")
