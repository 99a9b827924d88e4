import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rewards_portal.db import Base

# upper bound of the 32-bit point columns
MAX_POINTS = 2_147_483_647


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(UUID(as_uuid=True), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False)

    # authoritative balance; only mutated next to its PurchaseLog / RedemptionIntent
    cached_points = Column(Integer, nullable=False, default=0)

    crm_contact_id = Column(String(100))

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    location = relationship("Location")

    __table_args__ = (
        UniqueConstraint("customer_id", "location_id", name="uq_enrollments_customer_id_location_id"),
        CheckConstraint("cached_points >= 0", name="ck_enrollments_cached_points_non_negative"),
    )
