from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DramaResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
