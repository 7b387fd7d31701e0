"""User service: accounts, credentials and the refresh token list."""

from datetime import timedelta
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from app.core.config import get_settings
from app.core.database import utcnow
from app.core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidRefreshTokenError,
    NotFoundError,
)
from app.core.logging import get_logger
from app.core.security import (
    TokenPair,
    generate_tokens,
    hash_password,
    verify_password,
    verify_refresh_token,
)
from app.models import RefreshToken, Roadmap, User
from app.schemas.auth import RegisterRequest
from app.schemas.user import PreferencesUpdate, ProfileUpdate

logger = get_logger(__name__)


# ============================================================================
# Lookups
# ============================================================================


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_with_password(db: AsyncSession, user_id: int) -> User | None:
    """Load a user including the deferred password hash."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(undefer(User.password_hash))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_user_by_identifier(db: AsyncSession, identifier: str) -> User | None:
    """Find a user by email (case-insensitive) or exact username, hash included."""
    result = await db.execute(
        select(User)
        .where(or_(User.email == identifier.lower(), User.username == identifier))
        .options(undefer(User.password_hash))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def find_conflicting_field(
    db: AsyncSession,
    email: str | None = None,
    username: str | None = None,
    exclude_user_id: int | None = None,
) -> str | None:
    """Return ``"email"`` or ``"username"`` if either is already taken."""
    checks: list[tuple[str, Any]] = []
    if email is not None:
        checks.append(("email", func.lower(User.email) == email.lower()))
    if username is not None:
        checks.append(("username", User.username == username))

    for field, clause in checks:
        query = select(User.id).where(clause)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        if (await db.execute(query.limit(1))).first() is not None:
            return field
    return None


def unique_violation_field(error: IntegrityError) -> str:
    """Which unique column a failed insert or update collided on."""
    return "email" if "email" in str(error.orig).lower() else "username"


# ============================================================================
# Refresh token list
# ============================================================================


async def add_refresh_token(db: AsyncSession, user_id: int, token: str) -> None:
    """Append a refresh token and drop all but the newest MAX_REFRESH_TOKENS.

    Both statements run in the caller's transaction; nothing is read back
    into Python between them.
    """
    keep = get_settings().MAX_REFRESH_TOKENS
    db.add(RefreshToken(user_id=user_id, token=token))
    await db.flush()

    newest = (
        select(RefreshToken.id)
        .where(RefreshToken.user_id == user_id)
        .order_by(RefreshToken.id.desc())
        .limit(keep)
    )
    await db.execute(
        delete(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.id.not_in(newest),
        )
    )


async def has_refresh_token(db: AsyncSession, user_id: int, token: str) -> bool:
    result = await db.execute(
        select(RefreshToken.id).where(
            RefreshToken.user_id == user_id,
            RefreshToken.token == token,
        )
    )
    return result.first() is not None


async def remove_refresh_token(db: AsyncSession, user_id: int, token: str) -> int:
    result = await db.execute(
        delete(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.token == token,
        )
    )
    return result.rowcount or 0


async def clear_refresh_tokens(db: AsyncSession, user_id: int) -> None:
    await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))


async def count_refresh_tokens(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(RefreshToken.id)).where(RefreshToken.user_id == user_id)
    )
    return result.scalar_one()


# ============================================================================
# Auth flows
# ============================================================================


async def register(db: AsyncSession, data: RegisterRequest) -> tuple[User, TokenPair]:
    """Create an account and issue its first token pair.

    Raises:
        ConflictError: Email (checked first) or username already exists.
    """
    field = await find_conflicting_field(db, email=data.email, username=data.username)
    if field:
        raise ConflictError(
            f"User with this {field} already exists", code="USER_EXISTS", field=field
        )

    user = User(
        username=data.username,
        email=data.email.lower(),
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        await db.rollback()
        field = unique_violation_field(e)
        raise ConflictError(
            f"User with this {field} already exists", code="USER_EXISTS", field=field
        ) from e

    tokens = generate_tokens(user)
    await add_refresh_token(db, user.id, tokens.refresh_token)
    await db.commit()
    await db.refresh(user)

    logger.info("User registered", user_id=user.id, username=user.username)
    return user, tokens


async def login(db: AsyncSession, identifier: str, password: str) -> tuple[User, TokenPair]:
    """Check credentials and issue a new token pair.

    Raises:
        AuthenticationError: Unknown identifier or wrong password (same message).
    """
    user = await get_user_by_identifier(db, identifier)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Login failed", identifier=identifier)
        raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")

    user.last_login_at = utcnow()
    tokens = generate_tokens(user)
    await add_refresh_token(db, user.id, tokens.refresh_token)
    await db.commit()

    logger.info("User logged in", user_id=user.id)
    return user, tokens


async def refresh_tokens(db: AsyncSession, refresh_token: str | None) -> TokenPair:
    """Rotate a stored refresh token for a fresh pair.

    Raises:
        AuthenticationError: NO_REFRESH_TOKEN or INVALID_REFRESH_TOKEN.
    """
    if not refresh_token:
        raise AuthenticationError("Refresh token is required", code="NO_REFRESH_TOKEN")

    try:
        claims = verify_refresh_token(refresh_token)
    except InvalidRefreshTokenError as e:
        raise AuthenticationError("Invalid refresh token", code="INVALID_REFRESH_TOKEN") from e

    user_id = claims.get("id")
    user = await get_user(db, user_id) if isinstance(user_id, int) else None
    if user is None or not await has_refresh_token(db, user.id, refresh_token):
        logger.warning("Refresh token rejected", user_id=user_id)
        raise AuthenticationError("Invalid refresh token", code="INVALID_REFRESH_TOKEN")

    tokens = generate_tokens(user)
    await remove_refresh_token(db, user.id, refresh_token)
    await add_refresh_token(db, user.id, tokens.refresh_token)
    await db.commit()

    logger.info("Tokens refreshed", user_id=user.id)
    return tokens


async def logout(db: AsyncSession, user: User, refresh_token: str | None = None) -> None:
    """Forget one refresh token, or every token when none is given."""
    if refresh_token:
        await remove_refresh_token(db, user.id, refresh_token)
    else:
        await clear_refresh_tokens(db, user.id)
    await db.commit()
    logger.info("User logged out", user_id=user.id, all_devices=not refresh_token)


# ============================================================================
# Profile
# ============================================================================


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    """Patch profile fields.

    Raises:
        ConflictError: USERNAME_EXISTS or EMAIL_EXISTS.
    """
    if data.username is not None and data.username != user.username:
        if await find_conflicting_field(db, username=data.username, exclude_user_id=user.id):
            raise ConflictError(
                "Username is already taken", code="USERNAME_EXISTS", field="username"
            )
        user.username = data.username

    if data.email is not None and data.email != user.email:
        if await find_conflicting_field(db, email=data.email, exclude_user_id=user.id):
            raise ConflictError("Email is already taken", code="EMAIL_EXISTS", field="email")
        user.email = data.email
        user.is_email_verified = False

    if data.first_name is not None:
        user.first_name = data.first_name
    if data.last_name is not None:
        user.last_name = data.last_name
    if data.avatar is not None:
        user.avatar = str(data.avatar)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if unique_violation_field(e) == "email":
            raise ConflictError("Email is already taken", code="EMAIL_EXISTS", field="email") from e
        raise ConflictError(
            "Username is already taken", code="USERNAME_EXISTS", field="username"
        ) from e

    await db.refresh(user)
    logger.info("Profile updated", user_id=user.id)
    return user


async def update_preferences(db: AsyncSession, user: User, data: PreferencesUpdate) -> dict:
    prefs = {**user.preferences}
    notifications = {**prefs.get("notifications", {})}

    if data.theme is not None:
        prefs["theme"] = data.theme
    if data.notifications is not None:
        if data.notifications.email is not None:
            notifications["email"] = data.notifications.email
        if data.notifications.roadmap_updates is not None:
            notifications["roadmapUpdates"] = data.notifications.roadmap_updates
    prefs["notifications"] = notifications

    user.preferences = prefs
    await db.commit()
    return prefs


async def change_password(
    db: AsyncSession, user: User, current_password: str, new_password: str
) -> None:
    """Replace the password hash and sign the user out everywhere.

    Raises:
        NotFoundError: The user vanished mid-request.
        AuthenticationError: INVALID_CURRENT_PASSWORD.
    """
    account = await get_user_with_password(db, user.id)
    if account is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    if not verify_password(current_password, account.password_hash):
        raise AuthenticationError(
            "Current password is incorrect", code="INVALID_CURRENT_PASSWORD"
        )

    account.password_hash = hash_password(new_password)
    await clear_refresh_tokens(db, account.id)
    await db.commit()
    logger.info("Password changed", user_id=account.id)


async def delete_account(db: AsyncSession, user: User, password: str) -> None:
    """Hard-delete a user; roadmaps and refresh tokens go with it.

    Raises:
        AuthenticationError: INVALID_PASSWORD (nothing is changed).
    """
    account = await get_user_with_password(db, user.id)
    if account is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    if not verify_password(password, account.password_hash):
        raise AuthenticationError("Password is incorrect", code="INVALID_PASSWORD")

    await db.execute(delete(Roadmap).where(Roadmap.created_by == account.id))
    await clear_refresh_tokens(db, account.id)
    await db.delete(account)
    await db.commit()
    logger.info("Account deleted", user_id=user.id)


async def get_user_stats(db: AsyncSession, user: User) -> dict[str, Any]:
    """Count the user's roadmaps by visibility and completion."""
    result = await db.execute(
        select(Roadmap.is_public, Roadmap.progress, Roadmap.created_at).where(
            Roadmap.created_by == user.id
        )
    )
    rows = result.all()
    since = utcnow() - timedelta(days=30)

    percentages = [(row.progress or {}).get("percentage", 0) for row in rows]
    return {
        "total_roadmaps": len(rows),
        "public_roadmaps": sum(1 for row in rows if row.is_public),
        "completed_roadmaps": sum(1 for p in percentages if p == 100),
        "in_progress_roadmaps": sum(1 for p in percentages if 0 < p < 100),
        "recent_roadmaps": sum(1 for row in rows if row.created_at >= since),
        "member_since": user.created_at,
        "last_login": user.last_login_at,
    }
