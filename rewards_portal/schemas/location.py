from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class LocationCreate(BaseModel):
    name: str
    address_line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


class LocationOut(BaseModel):
    id: UUID
    name: str
    slug: str
    address_line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
