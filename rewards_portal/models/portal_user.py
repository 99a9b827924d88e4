import uuid
from sqlalchemy import Column, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from rewards_portal.db import Base


class PortalUser(Base):
    __tablename__ = "portal_users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(120))

    role = Column(String(20), nullable=False, default="OWNER")  # OWNER / STAFF

    created_at = Column(TIMESTAMP, server_default=func.now())
