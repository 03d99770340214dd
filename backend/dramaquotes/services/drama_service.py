"""
Drama Quotes Backend — Drama listing
====================================

Read side of the `dramas` table. Creation goes through DramaResolver only.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dramaquotes.exceptions import PersistenceError
from dramaquotes.models.drama import Drama
from dramaquotes.schemas.drama import DramaResponse

logger = logging.getLogger(__name__)


class DramaService:
    async def list_dramas(self, db: AsyncSession) -> List[DramaResponse]:
        """All dramas ordered by title."""
        try:
            result = await db.execute(select(Drama).order_by(Drama.title))
            return [DramaResponse.model_validate(d) for d in result.scalars().all()]
        except Exception as e:
            logger.error("Database error listing dramas: %s", str(e), exc_info=True)
            raise PersistenceError(
                message="Could not retrieve dramas. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e


drama_service = DramaService()
