import uuid
from sqlalchemy import Column, ForeignKey, Integer, JSON, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rewards_portal.db import Base


class RedemptionIntent(Base):
    __tablename__ = "redemption_intents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    token = Column(String(64), nullable=False, unique=True)

    enrollment_id = Column(UUID(as_uuid=True), ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False)

    # frozen copy: [{rewardItemId, name, pointsEach, qty, pointsTotal}]
    items = Column(JSON, nullable=False)
    points_spent = Column(Integer, nullable=False)

    created_at = Column(TIMESTAMP, server_default=func.now())
    expires_at = Column(TIMESTAMP, nullable=True)

    # NULL = pending, set = consumed
    used_at = Column(TIMESTAMP, nullable=True)
    redeemed_by_user_id = Column(UUID(as_uuid=True), ForeignKey("portal_users.id", ondelete="SET NULL"))

    enrollment = relationship("Enrollment")
