"""
Drama Quotes Backend — User Service Tests
=========================================

What we test:
    ✅ Register stores a bcrypt hash and returns a verifiable token
    ✅ Duplicate username or email → ConflictError, no new row
    ✅ Password policy enforced at registration
    ✅ Login succeeds with the right password only
    ✅ Unknown user and wrong password fail the same way
    ✅ A corrupt stored hash fails login as InvalidCredentials
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select, update

from dramaquotes.exceptions import ConflictError, InvalidCredentials, InvalidInput
from dramaquotes.models.user import User
from dramaquotes.services.credential_service import CredentialManager
from dramaquotes.services.token_service import TokenService
from dramaquotes.services.user_service import UserService


def make_service() -> UserService:
    tokens = TokenService(
        secret_key="user-service-test-key-0123456789abcdef",
        clock=lambda: datetime.now(timezone.utc),
    )
    return UserService(credentials=CredentialManager(rounds=4), tokens=tokens)


async def count_users(session) -> int:
    return (await session.execute(select(func.count(User.id)))).scalar_one()


class TestRegister:

    def setup_method(self):
        self.service = make_service()

    @pytest.mark.asyncio
    async def test_register_returns_user_and_token(self, db_session):
        result = await self.service.register(db_session, "alice", "alice@x.com", "secret1")

        assert result.message == "User registered successfully"
        assert result.user.username == "alice"
        assert result.user.email == "alice@x.com"
        assert result.token_type == "bearer"
        assert result.expires_in == 86400

        identity = self.service.tokens.verify(result.access_token)
        assert identity.user_id == result.user.id
        assert identity.username == "alice"

    @pytest.mark.asyncio
    async def test_password_stored_hashed(self, db_session):
        await self.service.register(db_session, "alice", "alice@x.com", "secret1")

        stored = (await db_session.execute(select(User.password_hash))).scalar_one()
        assert stored != "secret1"
        assert self.service.credentials.verify("secret1", stored)

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db_session):
        await self.service.register(db_session, "alice", "alice@x.com", "secret1")

        with pytest.raises(ConflictError):
            await self.service.register(db_session, "alice2", "alice@x.com", "secret2")
        assert await count_users(db_session) == 1

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, db_session):
        await self.service.register(db_session, "alice", "alice@x.com", "secret1")

        with pytest.raises(ConflictError) as exc_info:
            await self.service.register(db_session, "alice", "other@x.com", "secret2")
        # Same wording either way
        assert exc_info.value.message == "A user with this username or email already exists"
        assert await count_users(db_session) == 1

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, db_session):
        with pytest.raises(InvalidInput):
            await self.service.register(db_session, "bob", "bob@x.com", "abc")
        assert await count_users(db_session) == 0


class TestLogin:

    def setup_method(self):
        self.service = make_service()

    @pytest.mark.asyncio
    async def test_login_success(self, db_session):
        registered = await self.service.register(db_session, "alice", "alice@x.com", "secret1")

        result = await self.service.login(db_session, "alice", "secret1")

        assert result.message == "Login successful"
        assert result.user.id == registered.user.id
        assert self.service.tokens.verify(result.access_token).username == "alice"

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session):
        await self.service.register(db_session, "alice", "alice@x.com", "secret1")

        with pytest.raises(InvalidCredentials) as exc_info:
            await self.service.login(db_session, "alice", "wrong-password")
        assert exc_info.value.context["reason"] == "bad_password"

    @pytest.mark.asyncio
    async def test_unknown_user_same_error(self, db_session):
        with pytest.raises(InvalidCredentials) as exc_info:
            await self.service.login(db_session, "nobody", "secret1")

        assert exc_info.value.message == "Invalid username or password"
        assert exc_info.value.context["reason"] == "unknown_user"

    @pytest.mark.asyncio
    async def test_corrupt_hash_fails_as_invalid_credentials(self, db_session):
        await self.service.register(db_session, "alice", "alice@x.com", "secret1")
        await db_session.execute(update(User).values(password_hash="not-a-bcrypt-hash"))

        with pytest.raises(InvalidCredentials) as exc_info:
            await self.service.login(db_session, "alice", "secret1")
        assert exc_info.value.context["reason"] == "corrupt_hash"
