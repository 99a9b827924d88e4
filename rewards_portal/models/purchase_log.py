import uuid
from sqlalchemy import Column, ForeignKey, Integer, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from rewards_portal.db import Base


class PurchaseLog(Base):
    __tablename__ = "purchase_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    enrollment_id = Column(UUID(as_uuid=True), ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False)

    amount_cents = Column(Integer, nullable=False)
    points_added = Column(Integer, nullable=False)

    created_by_user_id = Column(UUID(as_uuid=True), ForeignKey("portal_users.id", ondelete="SET NULL"))

    created_at = Column(TIMESTAMP, server_default=func.now())
