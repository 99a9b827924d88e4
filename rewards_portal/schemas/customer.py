from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class CustomerOut(BaseModel):
    id: UUID
    phone_e164: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CustomerRegister(BaseModel):
    location_id: UUID
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
