"""
Drama Quotes Backend — Quote Repository
=======================================

What:  Persists submitted quotes and serves the joined quote read models.
Who:   Quote routes. Submission receives an already resolved drama id (from
       DramaResolver) and the authenticated author id.

Submission Flow (POST /api/quotes):
    ┌──────────┐    ┌───────────────┐    ┌───────────────┐    ┌──────────────┐
    │  Token   │───▶│ DramaResolver │───▶│ INSERT quote  │───▶│ joined SELECT│
    │ identity │    │ title → id    │    │ (request tx)  │    │ title, author│
    └──────────┘    └───────────────┘    └───────────────┘    └──────────────┘

Error Handling Strategy:
    - Rule violations → InvalidInput / AuthError before touching the store
    - Drama or author id missing (pre-check or FK violation) → InvalidReference
      naming the table that lost the row
    - Any other SQLAlchemy failure → PersistenceError, logged with detail

QuoteRepository is stateless apart from the anonymous-authorship policy; the
session is passed per call, as in every other service here.
"""

import logging
from typing import Optional

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dramaquotes.config import settings
from dramaquotes.exceptions import (
    AuthError,
    DramaQuotesError,
    InvalidInput,
    InvalidReference,
    NotFoundError,
    PersistenceError,
)
from dramaquotes.models.drama import Drama
from dramaquotes.models.quote import Quote
from dramaquotes.models.user import User
from dramaquotes.schemas.quote import (
    QuoteDetailResponse,
    QuoteListResponse,
    QuoteResponse,
)

logger = logging.getLogger(__name__)


def _joined_query() -> Select:
    """Quote columns plus drama title/description and author username."""
    return (
        select(
            Quote,
            Drama.title.label("drama_title"),
            Drama.description.label("drama_description"),
            User.username.label("author_username"),
        )
        .join(Drama, Quote.drama_id == Drama.id)
        .outerjoin(User, Quote.user_id == User.id)
    )


def _to_response(row) -> QuoteResponse:
    quote = row.Quote
    return QuoteResponse(
        id=quote.id,
        text=quote.text,
        drama_id=quote.drama_id,
        drama_title=row.drama_title,
        character_name=quote.character_name,
        season=quote.season,
        episode=quote.episode,
        user_id=quote.user_id,
        author_username=row.author_username,
        created_at=quote.created_at,
    )


class QuoteRepository:
    """
    Args:
        allow_anonymous: accept quotes without an author id
    """

    def __init__(self, allow_anonymous: bool = False):
        self.allow_anonymous = allow_anonymous

    def check_author(self, author_id: Optional[int]) -> None:
        """Raise AuthError when there is no author and anonymous quotes are off."""
        if author_id is None and not self.allow_anonymous:
            raise AuthError(message="Authentication is required to submit quotes")

    async def create(
        self,
        db: AsyncSession,
        text: str,
        drama_id: int,
        character_name: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        author_id: Optional[int] = None,
    ) -> QuoteResponse:
        """
        Insert one quote and return it joined with drama title and author.

        Raises:
            InvalidInput: empty text or character name
            AuthError: no author while anonymous submission is disabled
            InvalidReference: `drama_id` or `author_id` does not exist
            PersistenceError: any other storage failure
        """
        if not text or not text.strip():
            raise InvalidInput(message="Quote text is required", field="text")
        if not character_name or not character_name.strip():
            raise InvalidInput(message="Character name is required", field="character_name")
        self.check_author(author_id)

        try:
            if await db.get(Drama, drama_id) is None:
                raise InvalidReference(resource="drama", resource_id=str(drama_id))
            # A stateless token can outlive its user row
            if author_id is not None and await db.get(User, author_id) is None:
                raise InvalidReference(resource="user", resource_id=str(author_id))

            quote = Quote(
                text=text,
                drama_id=drama_id,
                character_name=character_name,
                season=season,
                episode=episode,
                user_id=author_id,
            )
            db.add(quote)
            try:
                await db.flush()
            except IntegrityError as e:
                # FK violation: a referenced row was deleted after the pre-checks
                await db.rollback()
                reference_error = await self._vanished_reference(db, drama_id, author_id, e)
                raise reference_error from e

            result = await db.execute(_joined_query().where(Quote.id == quote.id))
            created = _to_response(result.one())
            logger.info(
                "Quote %d created for drama %d by %s",
                created.id,
                drama_id,
                created.author_username or "anonymous",
            )
            return created

        except DramaQuotesError:
            raise
        except Exception as e:
            logger.error("Database error creating quote: %s", str(e), exc_info=True)
            raise PersistenceError(
                message="Could not save the quote. Please try again.",
                context={"drama_id": drama_id, "error_type": type(e).__name__},
            ) from e

    @staticmethod
    async def _vanished_reference(
        db: AsyncSession,
        drama_id: int,
        author_id: Optional[int],
        error: IntegrityError,
    ) -> InvalidReference:
        """Work out which foreign key target disappeared between pre-check and insert."""
        if await db.get(Drama, drama_id) is None or author_id is None:
            resource, resource_id = "drama", drama_id
        else:
            resource, resource_id = "user", author_id
        logger.warning(
            "Quote insert rejected: %s %s no longer exists (%s)",
            resource,
            resource_id,
            error.orig,
        )
        return InvalidReference(
            resource=resource,
            resource_id=str(resource_id),
            context={"constraint_error": type(error.orig).__name__},
        )

    async def get_quote(self, db: AsyncSession, quote_id: int) -> QuoteDetailResponse:
        """
        Fetch one quote with drama title, drama description and author.

        Raises:
            NotFoundError: no quote with this id
        """
        try:
            result = await db.execute(_joined_query().where(Quote.id == quote_id))
            row = result.one_or_none()
        except Exception as e:
            logger.error("Database error fetching quote %s: %s", quote_id, str(e))
            raise PersistenceError(
                message="Could not retrieve the quote. Please try again.",
                context={"quote_id": quote_id},
            ) from e

        if row is None:
            raise NotFoundError(resource="quote", resource_id=str(quote_id))

        return QuoteDetailResponse(
            **_to_response(row).model_dump(),
            drama_description=row.drama_description,
        )

    async def list_quotes(self, db: AsyncSession, limit: int = 50, offset: int = 0) -> QuoteListResponse:
        """Newest quotes first (by id), with the total count for pagination."""
        try:
            result = await db.execute(
                _joined_query().order_by(Quote.id.desc()).limit(limit).offset(offset)
            )
            quotes = [_to_response(row) for row in result.all()]

            count_result = await db.execute(select(func.count(Quote.id)))
            total_count = count_result.scalar() or 0

        except Exception as e:
            logger.error("Database error listing quotes: %s", str(e), exc_info=True)
            raise PersistenceError(
                message="Could not retrieve quotes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return QuoteListResponse(
            quotes=quotes,
            total_count=total_count,
            has_more=offset + len(quotes) < total_count,
        )


quote_repository = QuoteRepository(allow_anonymous=settings.allow_anonymous_quotes)
