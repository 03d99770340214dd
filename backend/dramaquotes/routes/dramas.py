"""
Drama Quotes Backend — Drama Route Handlers
===========================================

What:  GET /api/dramas, every drama ordered by title.
       Dramas are created implicitly by quote submission; there is no POST.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dramaquotes.database import get_db_session
from dramaquotes.dependencies import get_drama_service
from dramaquotes.schemas.common import ErrorResponse
from dramaquotes.schemas.drama import DramaResponse
from dramaquotes.services.drama_service import DramaService

router = APIRouter(prefix="/api", tags=["Dramas"])


@router.get(
    "/dramas",
    response_model=List[DramaResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List dramas ordered by title",
)
async def list_dramas(
    db: AsyncSession = Depends(get_db_session),
    dramas: DramaService = Depends(get_drama_service),
) -> List[DramaResponse]:
    return await dramas.list_dramas(db)
