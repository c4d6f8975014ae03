"""User domain service: register, login, refresh, display-name lookup.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UserNotFoundError,
    UsernameExistsError,
)
from src.rm_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.rm_gateway.auth.password import hash_password, verify_password
from src.rm_gateway.user.db_models import UserModel


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
        display_name: str | None = None,
        role: str = "buyer",
    ) -> UserModel:
        """Register a new user. The caller must wrap this in `async with db.begin()`."""
        # DB UNIQUE constraints are the final guard
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(
            select(UserModel).where(UserModel.email == email)
        )
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            display_name=display_name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # populate user.id and server defaults
        await db.refresh(user)
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate user and return (user, access_token, refresh_token).

        Unknown user and wrong password raise the same error so usernames
        cannot be enumerated.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id), user.role),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Validate refresh token and return a new access token with the current role."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id: str = str(payload["sub"])
        user = await self.get_user(user_id, db)
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(user_id, user.role)

    async def get_user(self, user_id: str, db: AsyncSession) -> UserModel:
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user
