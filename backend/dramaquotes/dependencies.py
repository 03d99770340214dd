"""
Drama Quotes Backend — FastAPI Dependencies
===========================================

What:  Request-scoped building blocks injected into route handlers:
       the caller's identity and the service singletons.
Why getters: tests swap implementations through `app.dependency_overrides`.

Identity extraction:
    `Authorization: Bearer <token>` is read with HTTPBearer(auto_error=False)
    so a missing header, or one with another scheme such as Basic, becomes
    our TokenMissing (401) rather than FastAPI's own 403.
    Verification is stateless (TokenService.verify).
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dramaquotes.schemas.auth import TokenIdentity
from dramaquotes.services.drama_resolver import DramaResolver, drama_resolver
from dramaquotes.services.drama_service import DramaService, drama_service
from dramaquotes.services.quote_service import QuoteRepository, quote_repository
from dramaquotes.services.token_service import TokenService, token_service
from dramaquotes.services.user_service import UserService, user_service

bearer_scheme = HTTPBearer(auto_error=False)


# ── Service getters ───────────────────────────────────────────────────────

def get_token_service() -> TokenService:
    return token_service


def get_user_service() -> UserService:
    return user_service


def get_drama_resolver() -> DramaResolver:
    return drama_resolver


def get_quote_repository() -> QuoteRepository:
    return quote_repository


def get_drama_service() -> DramaService:
    return drama_service


# ── Identity ──────────────────────────────────────────────────────────────

def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # HTTPBearer yields None for a missing header and for non-Bearer schemes alike
    return credentials.credentials if credentials else None


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """Identity of the caller; TokenMissing / TokenInvalid / TokenExpired otherwise."""
    return tokens.verify(_bearer_token(credentials))


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[TokenIdentity]:
    """
    Like get_current_identity, but no token at all yields None.

    A token that is present and bad still fails: a broken token is not
    silently downgraded to an anonymous request.
    """
    token = _bearer_token(credentials)
    if not token:
        return None
    return tokens.verify(token)
