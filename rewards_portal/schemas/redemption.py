from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class RedemptionItem(BaseModel):
    rewardItemId: str
    name: str
    pointsEach: int
    qty: int
    pointsTotal: int


class RedeemRequest(BaseModel):
    enrollment_id: UUID
    reward_item_id: UUID
    quantity: int = Field(default=1)


class RedeemTokenOut(BaseModel):
    token: str
    redemptionIntentId: UUID
    pointsSpent: int
    expiresAt: Optional[datetime] = None


class CompleteRedemptionRequest(BaseModel):
    token: Optional[str] = None


class RedemptionPreviewOut(BaseModel):
    redemptionIntentId: UUID
    customerName: str
    rewardName: str
    pointsSpent: int
    currentBalance: int
    items: list[RedemptionItem]


class RedemptionResultOut(BaseModel):
    success: bool
    customerName: str
    rewardName: str
    newBalance: int


class RedemptionIntentOut(BaseModel):
    id: UUID
    enrollment_id: UUID
    points_spent: int
    items: list[RedemptionItem]
    status: str
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    used_at: Optional[datetime] = None
