"""
Drama Quotes Backend — Quote Route Handlers
===========================================

What:  GET /api/quotes (list), GET /api/quotes/{id} (detail),
       POST /api/quotes (submit).
How:   Submission resolves the drama title to an id first, then hands the id
       and the caller's identity to QuoteRepository.

Caching:
    - GET /api/quotes/{id}: quotes never change after creation → private, 1 hour
    - GET /api/quotes: no caching headers (new quotes arrive at any time)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from dramaquotes.database import get_db_session
from dramaquotes.dependencies import (
    get_drama_resolver,
    get_optional_identity,
    get_quote_repository,
)
from dramaquotes.exceptions import ForbiddenError
from dramaquotes.schemas.auth import TokenIdentity
from dramaquotes.schemas.common import ErrorResponse
from dramaquotes.schemas.quote import (
    QuoteCreate,
    QuoteDetailResponse,
    QuoteListResponse,
    QuoteResponse,
)
from dramaquotes.services.drama_resolver import DramaResolver
from dramaquotes.services.quote_service import QuoteRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Quotes"])


@router.get(
    "/quotes",
    response_model=QuoteListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List quotes, newest first",
)
async def list_quotes(
    response: Response,
    limit: int = Query(default=50, ge=1, le=200, description="Items per page"),
    offset: int = Query(default=0, ge=0, description="Items to skip"),
    db: AsyncSession = Depends(get_db_session),
    quotes: QuoteRepository = Depends(get_quote_repository),
) -> QuoteListResponse:
    result = await quotes.list_quotes(db=db, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get(
    "/quotes/{quote_id}",
    response_model=QuoteDetailResponse,
    responses={
        404: {"description": "Quote not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single quote by ID",
)
async def get_quote(
    quote_id: int,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    quotes: QuoteRepository = Depends(get_quote_repository),
) -> QuoteDetailResponse:
    result = await quotes.get_quote(db=db, quote_id=quote_id)
    response.headers["Cache-Control"] = "private, max-age=3600"
    return result


@router.post(
    "/quotes",
    status_code=201,
    response_model=QuoteResponse,
    responses={
        400: {"description": "Missing or invalid field", "model": ErrorResponse},
        401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
        403: {"description": "user_id does not match the token", "model": ErrorResponse},
        409: {"description": "Drama disappeared during submission", "model": ErrorResponse},
    },
    summary="Submit a quote",
    description=(
        "Attributes a quote to a drama by title (the drama is created on first use) "
        "and to the authenticated user. Returns the stored quote with the drama title "
        "and author username."
    ),
)
async def create_quote(
    body: QuoteCreate,
    identity: Optional[TokenIdentity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db_session),
    resolver: DramaResolver = Depends(get_drama_resolver),
    quotes: QuoteRepository = Depends(get_quote_repository),
) -> QuoteResponse:
    """
    Submission steps:
        1. Check a body `user_id` (legacy clients) against the token identity
        2. Resolve `drama_title` to a drama id (find-or-create)
        3. Insert the quote and return the joined representation
    """
    author_id = identity.user_id if identity else None
    if body.user_id is not None and body.user_id != author_id:
        raise ForbiddenError(
            message="Quotes can only be submitted as the authenticated user",
            context={"body_user_id": body.user_id, "token_user_id": author_id},
        )

    # Before resolution: no drama gets created for a request that cannot succeed
    quotes.check_author(author_id)

    drama_id = await resolver.resolve(body.drama_title, description=body.drama_description)

    return await quotes.create(
        db=db,
        text=body.text,
        drama_id=drama_id,
        character_name=body.character_name,
        season=body.season,
        episode=body.episode,
        author_id=author_id,
    )
