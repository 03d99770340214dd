"""
Drama Quotes Backend — Credential Manager
=========================================

What:  Password hashing and verification.
How:   pwdlib with a bcrypt hasher. Each hash gets a fresh random salt; the
       work factor (`BCRYPT_ROUNDS`) is encoded in the hash string, so hashes
       made with older settings keep verifying after the factor changes.
Who:   UserService on registration and login.

Policy:
    - Minimum length (`PASSWORD_MIN_LENGTH`, default 6) is checked before any
      hashing work is done.
    - bcrypt reads at most 72 bytes of input; longer passwords are rejected
      instead of being silently truncated.

Hashing is CPU-bound. The async variants run it in Starlette's thread pool so
one slow hash never stalls the event loop.
"""

import logging
from functools import cached_property

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.bcrypt import BcryptHasher
from starlette.concurrency import run_in_threadpool

from dramaquotes.config import settings
from dramaquotes.exceptions import CorruptCredential, InvalidInput

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_BYTES


class CredentialManager:
    """
    Stateless apart from configuration: same inputs, same outcome.

    Args:
        rounds: bcrypt cost factor (4-31)
        min_length: minimum password length in characters
    """

    def __init__(self, rounds: int = 12, min_length: int = 6):
        self.min_length = min_length
        self._hasher = PasswordHash((BcryptHasher(rounds=rounds),))

    def hash(self, password: str) -> str:
        """
        Hash a clear-text password.

        Raises:
            InvalidInput: empty, shorter than the policy, or over 72 bytes
        """
        self._check_policy(password)
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Compare a clear-text password against a stored hash.

        Returns False on mismatch (including an empty password).

        Raises:
            CorruptCredential: the stored hash is unreadable
        """
        if not password:
            return False
        if _too_long(password):
            # Could never have been hashed under the policy
            return False
        try:
            return self._hasher.verify(password, password_hash)
        except UnknownHashError as e:
            raise CorruptCredential(context={"reason": "unknown_hash_scheme"}) from e
        except ValueError as e:
            # bcrypt: "Invalid salt" and friends for truncated / mangled hashes
            raise CorruptCredential(context={"reason": str(e)}) from e

    def dummy_verify(self, password: str) -> None:
        """Spend one verification's worth of CPU. Used when the user does not exist."""
        if not password or _too_long(password):
            password = "x"
        self._hasher.verify(password, self._dummy_hash)

    @cached_property
    def _dummy_hash(self) -> str:
        return self._hasher.hash("dummy-password-for-timing")

    # ── Async wrappers (thread pool) ──────────────────────────────────────

    async def hash_async(self, password: str) -> str:
        # Policy check stays on the loop: no reason to borrow a thread to reject
        self._check_policy(password)
        return await run_in_threadpool(self._hasher.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)

    async def dummy_verify_async(self, password: str) -> None:
        await run_in_threadpool(self.dummy_verify, password)

    # ── Internals ─────────────────────────────────────────────────────────

    def _check_policy(self, password: str) -> None:
        if not password:
            raise InvalidInput(message="Password is required", field="password")
        if len(password) < self.min_length:
            raise InvalidInput(
                message=f"Password must be at least {self.min_length} characters long",
                field="password",
                context={"min_length": self.min_length},
            )
        if _too_long(password):
            raise InvalidInput(
                message=f"Password must be at most {BCRYPT_MAX_BYTES} bytes long",
                field="password",
            )


credential_manager = CredentialManager(
    rounds=settings.bcrypt_rounds,
    min_length=settings.password_min_length,
)
