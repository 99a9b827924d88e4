import uuid
from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, TIMESTAMP, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from rewards_portal.db import Base

STANDARD = "STANDARD"
SIGNUP_GIFT = "SIGNUP_GIFT"


class RewardItem(Base):
    __tablename__ = "reward_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    location_id = Column(UUID(as_uuid=True), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(100), nullable=False)
    image_url = Column(String(500))

    # NULL = not redeemable right now (sign-up gift before a price is set)
    points_required = Column(Integer, nullable=True)

    type = Column(String(20), nullable=False, default=STANDARD)  # STANDARD / SIGNUP_GIFT

    is_enabled = Column(Boolean, nullable=False, default=True)
    is_undeletable = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index(
            "uq_reward_items_signup_gift_per_location",
            "location_id",
            unique=True,
            postgresql_where=text("type = 'SIGNUP_GIFT'"),
            sqlite_where=text("type = 'SIGNUP_GIFT'"),
        ),
    )
