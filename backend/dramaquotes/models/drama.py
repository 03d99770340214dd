"""
Drama Quotes Backend — Drama SQLAlchemy Model
=============================================

What:  ORM model for the `dramas` table: the shows quotes are attributed to.
Who:   Created only by DramaResolver; listed by DramaService; joined into
       quote read models.

Integrity:
    `title` carries the UNIQUE constraint `uq_dramas_title`. It is what makes
    find-or-create safe across processes: of two concurrent inserts for the
    same title exactly one commits, the other gets an IntegrityError and
    re-reads the winner. Titles are compared exactly (no case folding).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from dramaquotes.database import Base


class Drama(Base):
    __tablename__ = "dramas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Show title, exact-match natural key",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("title", name="uq_dramas_title"),
    )

    def __repr__(self) -> str:
        return f"<Drama(id={self.id}, title='{self.title}')>"
