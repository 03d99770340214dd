"""
Drama Quotes Backend — Quote Schemas
====================================

What:  Submission body and the joined read models for quotes.

The read models already carry the drama title and the author's username, so
a client never needs a second request to render a quote.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class QuoteCreate(BaseModel):
    """
    Body of POST /api/quotes.

    `drama_title` is free text and is resolved to a drama id (created on first
    use). `drama_description` is only stored when that drama is new.
    `user_id` is accepted for older clients but must match the token identity.
    """
    text: str = Field(min_length=1, description="The quote itself")
    drama_title: str = Field(min_length=1, max_length=255, description="Exact show title")
    drama_description: Optional[str] = Field(default=None, description="Used only when the drama is new")
    character_name: str = Field(min_length=1, max_length=255)
    season: Optional[int] = Field(default=None, ge=1)
    episode: Optional[int] = Field(default=None, ge=1)
    user_id: Optional[int] = Field(default=None, description="Deprecated: author comes from the token")


class QuoteResponse(BaseModel):
    """Quote joined with its drama title and author username."""
    id: int
    text: str
    drama_id: int
    drama_title: str
    character_name: str
    season: Optional[int] = None
    episode: Optional[int] = None
    user_id: Optional[int] = None
    author_username: Optional[str] = None
    created_at: datetime


class QuoteDetailResponse(QuoteResponse):
    drama_description: Optional[str] = None


class QuoteListResponse(BaseModel):
    quotes: List[QuoteResponse]
    total_count: int = Field(description="Number of quotes in the store")
    has_more: bool
