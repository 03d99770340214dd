"""
Drama Quotes Backend — User Service (registration & login)
==========================================================

What:  The two flows that turn credentials into a session token.
How:   Composes CredentialManager (hash / verify) and TokenService (issue)
       with the `users` table.
Who:   Auth routes.

Registration:
    1. Reject if username OR email is already taken (one generic message)
    2. Hash the password (policy checked first, hashing in the thread pool)
    3. INSERT; a unique violation here means a concurrent signup won → ConflictError
    4. Issue a token for the new user

Login:
    1. Look up by exact username
    2. Verify the password (dummy verification when the user does not exist,
       so both failure paths cost the same)
    3. Issue a token

Login failures always surface as InvalidCredentials. A corrupt stored hash is
logged as an error and reported to the caller the same way.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dramaquotes.exceptions import (
    ConflictError,
    CorruptCredential,
    DramaQuotesError,
    InvalidCredentials,
    PersistenceError,
)
from dramaquotes.models.user import User
from dramaquotes.schemas.auth import AuthResponse, UserPublic
from dramaquotes.services.credential_service import CredentialManager, credential_manager
from dramaquotes.services.token_service import TokenService, token_service

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, credentials: CredentialManager, tokens: TokenService):
        self.credentials = credentials
        self.tokens = tokens

    async def register(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
    ) -> AuthResponse:
        """
        Create a user and return it with a fresh session token.

        Raises:
            InvalidInput: password policy violated
            ConflictError: username or email already registered
            PersistenceError: storage failure
        """
        try:
            result = await db.execute(
                select(User.id).where(or_(User.username == username, User.email == email))
            )
            if result.first() is not None:
                raise ConflictError(context={"username": username})

            password_hash = await self.credentials.hash_async(password)

            user = User(username=username, email=email, password_hash=password_hash)
            db.add(user)
            try:
                await db.flush()
            except IntegrityError as e:
                raise ConflictError(context={"username": username, "race": True}) from e

        except DramaQuotesError:
            raise
        except Exception as e:
            logger.error("Database error registering user: %s", str(e), exc_info=True)
            raise PersistenceError(
                message="Could not complete registration. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Registered user %d '%s'", user.id, user.username)
        return AuthResponse(
            message="User registered successfully",
            user=UserPublic.model_validate(user),
            access_token=self.tokens.issue(user.id, user.username),
            expires_in=self.tokens.lifetime_seconds,
        )

    async def login(self, db: AsyncSession, username: str, password: str) -> AuthResponse:
        """
        Authenticate by username and password.

        Raises:
            InvalidCredentials: unknown user, wrong password or unreadable stored hash
            PersistenceError: storage failure
        """
        try:
            result = await db.execute(select(User).where(User.username == username))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise PersistenceError(
                message="Could not complete login. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        if user is None:
            await self.credentials.dummy_verify_async(password)
            raise InvalidCredentials(context={"reason": "unknown_user"})

        try:
            valid = await self.credentials.verify_async(password, user.password_hash)
        except CorruptCredential as e:
            logger.error("Stored password hash for user %d is unreadable: %s", user.id, e.context)
            raise InvalidCredentials(context={"reason": "corrupt_hash", "user_id": user.id}) from e

        if not valid:
            raise InvalidCredentials(context={"reason": "bad_password", "user_id": user.id})

        logger.info("User %d '%s' logged in", user.id, user.username)
        return AuthResponse(
            message="Login successful",
            user=UserPublic.model_validate(user),
            access_token=self.tokens.issue(user.id, user.username),
            expires_in=self.tokens.lifetime_seconds,
        )


user_service = UserService(credentials=credential_manager, tokens=token_service)
