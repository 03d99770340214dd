"""ORM models. Importing this package registers every table on Base.metadata."""

from dramaquotes.models.user import User
from dramaquotes.models.drama import Drama
from dramaquotes.models.quote import Quote

__all__ = ["User", "Drama", "Quote"]
