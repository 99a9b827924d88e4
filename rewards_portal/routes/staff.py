from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.crm import get_crm_client
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.schemas.redemption import (
    CompleteRedemptionRequest,
    RedemptionPreviewOut,
    RedemptionResultOut,
)
from rewards_portal.services.redemption_service import complete_redemption, verify_redemption

router = APIRouter(prefix="/staff/redeem", tags=["staff"])


@router.get("/verify", response_model=RedemptionPreviewOut)
def verify_token(
    token: str | None = None,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return verify_redemption(db, user_id, token)


@router.post("/verify", response_model=RedemptionResultOut)
def complete_token(
    payload: CompleteRedemptionRequest | None = None,
    token: str | None = None,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    crm=Depends(get_crm_client),
):
    body_token = payload.token.strip() if payload and payload.token else None
    return complete_redemption(db, crm, user_id, body_token or token)
