"""
Drama Quotes Backend — Quote SQLAlchemy Model
=============================================

What:  ORM model for the `quotes` table.
Who:   Inserted by QuoteRepository.create; read by list/get.

Lifecycle:
    Created only through submission, never updated or deleted.

Query Patterns:
    - Newest first: ORDER BY id DESC (primary key index)
    - Quotes of a drama: WHERE drama_id = :id → idx_quotes_drama_id
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from dramaquotes.database import Base


class Quote(Base):
    __tablename__ = "quotes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    # RESTRICT: a drama with quotes cannot disappear from under them
    drama_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("dramas.id", ondelete="RESTRICT"),
        nullable=False,
    )

    character_name: Mapped[str] = mapped_column(String(255), nullable=False)

    season: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    episode: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # NULL only when anonymous submission is enabled
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_quotes_drama_id", "drama_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Quote(id={self.id}, drama_id={self.drama_id}, "
            f"character_name='{self.character_name}')>"
        )
