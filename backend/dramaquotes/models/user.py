"""
Drama Quotes Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table.
Who:   Written by UserService on registration; read on login and when quotes
       are joined with their author.

Table Design:
    - username and email each carry a UNIQUE constraint; the service checks
      first for a friendly error, the constraint settles concurrent signups.
    - password_hash holds the full bcrypt string (algorithm, cost, salt, digest).
      The clear password is never stored and the hash is never serialized.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from dramaquotes.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Login name, unique across users",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Contact address, unique across users",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
        UniqueConstraint("email", name="uq_users_email"),
    )

    def __repr__(self) -> str:
        # password_hash deliberately left out
        return f"<User(id={self.id}, username='{self.username}')>"
