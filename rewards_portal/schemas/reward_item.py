from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class RewardItemCreate(BaseModel):
    location_id: UUID
    name: str
    points_required: int
    image_url: Optional[str] = None


class RewardItemUpdate(BaseModel):
    name: Optional[str] = None
    points_required: Optional[int] = None
    image_url: Optional[str] = None
    is_enabled: Optional[bool] = None


class RewardItemOut(BaseModel):
    id: UUID
    location_id: UUID
    name: str
    image_url: Optional[str] = None
    points_required: Optional[int] = None
    type: str
    is_enabled: bool
    is_undeletable: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
