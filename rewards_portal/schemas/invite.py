from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class InviteCreate(BaseModel):
    location_id: UUID
    expires_at: Optional[datetime] = None


class InviteAccept(BaseModel):
    code: str


class InviteOut(BaseModel):
    id: UUID
    code: str
    location_id: UUID
    created_at: Optional[datetime] = None
    expires_at: datetime
    used_at: Optional[datetime] = None

    class Config:
        from_attributes = True
