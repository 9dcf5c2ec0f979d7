"""
Identity store.

Handles user lookup, registration, credential checks and password changes.
Usernames and emails are stored lower-cased.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select

from vidtube.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from vidtube.db.models import User
from vidtube.errors import bad_request, conflict, unauthorized

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vidtube.media.storage import StoredMedia

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid user credentials"


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch a user by ID."""
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by username (case-insensitive)."""
    result = await db.execute(select(User).where(User.username == username.strip().lower()))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


async def ensure_available(
    db: AsyncSession,
    *,
    username: str | None = None,
    email: str | None = None,
    exclude_user_id: uuid.UUID | None = None,
) -> None:
    """
    Raise Conflict if the username or email already belongs to another user.
    """
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return
    stmt = select(User.id).where(or_(*clauses))
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    if (await db.execute(stmt.limit(1))).first() is not None:
        msg = "User with email or username already exists"
        raise conflict(msg)


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


def check_registration_fields(username: str, email: str, full_name: str, password: str) -> tuple[str, str, str]:
    """
    Normalize registration input before any upload happens.

    Returns:
        (username, email, full_name), trimmed and lower-cased where applicable.

    Raises:
        AppError(BAD_REQUEST): On a blank field or a weak password.
    """
    if any(not (v or "").strip() for v in (username, email, full_name, password)):
        msg = "All fields are required"
        raise bad_request(msg)
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise bad_request(str(e)) from e
    return username.strip().lower(), email.strip().lower(), full_name.strip()


async def register_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    full_name: str,
    password: str,
    avatar: StoredMedia,
    cover_image: StoredMedia | None = None,
) -> User:
    """
    Create a user. Input must already be normalized by `check_registration_fields`.

    Raises:
        AppError(CONFLICT): If the username or email is taken.
    """
    await ensure_available(db, username=username, email=email)
    user = User(
        username=username,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        avatar_url=avatar.url,
        avatar_public_id=avatar.public_id,
        cover_image_url=cover_image.url if cover_image else None,
        cover_image_public_id=cover_image.public_id if cover_image else None,
    )
    db.add(user)
    await db.flush()
    logger.info("user_registered", user_id=str(user.id), username=username)
    return user


async def authenticate_user(
    db: AsyncSession,
    *,
    username: str | None,
    email: str | None,
    password: str,
) -> User:
    """
    Look a user up by username or email and check the password.

    Raises:
        AppError(BAD_REQUEST): If neither username nor email is given.
        AppError(UNAUTHORIZED): Unknown user or wrong password, indistinguishably.
    """
    if not (username and username.strip()) and not (email and email.strip()):
        msg = "Username or email is required"
        raise bad_request(msg)

    user = None
    if username and username.strip():
        user = await get_user_by_username(db, username)
    if user is None and email and email.strip():
        user = await get_user_by_email(db, email)
    if user is None:
        logger.info("login_failed", reason="unknown_user")
        raise unauthorized(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        logger.info("login_failed", reason="wrong_password", user_id=str(user.id))
        raise unauthorized(INVALID_CREDENTIALS)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()

    logger.info("user_logged_in", user_id=str(user.id))
    return user


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    """
    Replace the user's password after checking the old one.

    Raises:
        AppError(BAD_REQUEST): Wrong old password or weak new password.
    """
    if not verify_password(old_password, user.password_hash):
        msg = "Invalid old password"
        raise bad_request(msg)
    try:
        validate_password_strength(new_password)
    except PasswordStrengthError as e:
        raise bad_request(str(e)) from e
    user.password_hash = hash_password(new_password)
    await db.flush()
    logger.info("password_changed", user_id=str(user.id))
