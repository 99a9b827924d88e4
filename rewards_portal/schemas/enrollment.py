from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel

from rewards_portal.schemas.customer import CustomerOut


class ClientCreate(BaseModel):
    location_id: UUID
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None


class ClientUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class EnrollmentOut(BaseModel):
    id: UUID
    customer_id: UUID
    location_id: UUID
    cached_points: int
    crm_contact_id: Optional[str] = None
    created_at: Optional[datetime] = None
    customer: Optional[CustomerOut] = None

    class Config:
        from_attributes = True
