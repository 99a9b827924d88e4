from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class AddPointsRequest(BaseModel):
    enrollment_id: UUID
    amount: float


class PurchaseLogOut(BaseModel):
    id: UUID
    enrollment_id: UUID
    amount_cents: int
    points_added: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
