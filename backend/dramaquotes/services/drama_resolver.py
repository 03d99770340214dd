"""
Drama Quotes Backend — Drama Resolver (find-or-create by title)
===============================================================

What:  Maps a free-text drama title to a stable drama id, creating the drama
       on first use.
Who:   QuoteService submission path, before a quote is inserted.

Resolution Flow:
    resolve(title)
      └─ per-title lock (in-process)
           └─ retry loop (tenacity, RESOLVER_MAX_ATTEMPTS)
                ├─ SELECT id FROM dramas WHERE title = :title  → hit: return id
                └─ INSERT INTO dramas (title, ...)              → commit: return new id
                     └─ IntegrityError (uq_dramas_title)
                          ├─ re-SELECT finds winner → RaceRecovered(winner id) → return it
                          └─ winner not visible yet → TitleContention → retry

Guarantees:
    - At most one drama row per distinct title. Within one process the
      per-title lock serializes same-title resolutions; across processes the
      unique constraint decides and the loser adopts the winner's id.
    - Different titles take different locks and never wait on each other.
    - A lost race is never an error for the caller.
    - Each resolution commits in its own session, independent of the caller's
      request transaction, and is shielded from the caller's cancellation so a
      disconnecting client cannot leave it half-applied.

Titles are matched exactly: no trimming, no case folding.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from dramaquotes.config import settings
from dramaquotes.database import async_session_factory
from dramaquotes.exceptions import InvalidInput, PersistenceError, RaceRecovered
from dramaquotes.models.drama import Drama

logger = logging.getLogger(__name__)


class TitleContention(Exception):
    """A create lost on the unique constraint but the winner's row was not readable yet."""


class TitleLocks:
    """
    asyncio locks keyed by title, created on demand and dropped when the last
    holder or waiter leaves, so the map only holds titles being resolved.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, title: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(title, asyncio.Lock())
        self._users[title] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[title] -= 1
            if self._users[title] == 0:
                del self._users[title]
                self._locks.pop(title, None)

    def __len__(self) -> int:
        return len(self._locks)


class DramaResolver:
    """
    Args:
        session_factory: source of short-lived sessions for resolution
        max_attempts: find-or-create cycles before giving up
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = 3,
    ):
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._locks = TitleLocks()

    async def resolve(self, title: str, description: Optional[str] = None) -> int:
        """
        Return the id of the drama titled exactly `title`, creating it if absent.

        `description` is stored only when this call creates the drama.

        Raises:
            InvalidInput: empty or whitespace-only title
            PersistenceError: the store failed, or contention outlasted the retries
        """
        if not title or not title.strip():
            raise InvalidInput(message="Drama title is required", field="drama_title")

        # The shielded task runs to completion even if this request is cancelled
        return await asyncio.shield(self._resolve_locked(title, description))

    async def _resolve_locked(self, title: str, description: Optional[str]) -> int:
        async with self._locks.hold(title):
            try:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(TitleContention),
                    stop=stop_after_attempt(self._max_attempts),
                    wait=wait_exponential(multiplier=0.05, max=1) + wait_random(0, 0.05),
                    before_sleep=before_sleep_log(logger, logging.WARNING),
                    reraise=True,
                ):
                    with attempt:
                        return await self._find_or_create(title, description)
            except RaceRecovered as race:
                logger.info(
                    "Drama '%s' was created concurrently; using id %d",
                    race.title,
                    race.drama_id,
                )
                return race.drama_id
            except TitleContention:
                logger.error(
                    "Drama '%s' still contended after %d attempts",
                    title,
                    self._max_attempts,
                )
                raise PersistenceError(
                    message="Could not save the drama. Please try again.",
                    context={"title": title, "attempts": self._max_attempts},
                )

    async def _find_or_create(self, title: str, description: Optional[str]) -> int:
        """One lookup-then-create cycle in its own session."""
        async with self._session_factory() as session:
            try:
                existing = await self._lookup(session, title)
                if existing is not None:
                    return existing

                drama = Drama(title=title, description=description)
                session.add(drama)
                try:
                    await session.flush()
                    drama_id = drama.id
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    winner = await self._lookup(session, title)
                    if winner is None:
                        raise TitleContention(title)
                    raise RaceRecovered(title=title, drama_id=winner)

                logger.info("Created drama %d '%s'", drama_id, title)
                return drama_id

            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Database error resolving drama '%s': %s", title, e, exc_info=True)
                raise PersistenceError(
                    message="Could not save the drama. Please try again.",
                    context={"title": title, "error_type": type(e).__name__},
                ) from e

    @staticmethod
    async def _lookup(session: AsyncSession, title: str) -> Optional[int]:
        result = await session.execute(select(Drama.id).where(Drama.title == title))
        return result.scalar_one_or_none()


drama_resolver = DramaResolver(
    session_factory=async_session_factory,
    max_attempts=settings.resolver_max_attempts,
)
