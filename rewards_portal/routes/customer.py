from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.crm import get_crm_client
from rewards_portal.deps.identity import get_current_customer_id
from rewards_portal.schemas.customer import CustomerRegister
from rewards_portal.schemas.redemption import RedeemRequest, RedeemTokenOut, RedemptionIntentOut
from rewards_portal.services.enrollment_service import get_customer_wallet, register_customer
from rewards_portal.services.redemption_service import list_redemptions, request_redemption

router = APIRouter(prefix="/customer", tags=["customer"])


@router.post("/register")
def register(
    payload: CustomerRegister,
    db: Session = Depends(get_db),
    crm=Depends(get_crm_client),
):
    enrollment, created = register_customer(
        db,
        crm,
        location_id=payload.location_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        email=payload.email,
    )
    return {
        "success": True,
        "enrollmentId": str(enrollment.id),
        "customerId": str(enrollment.customer_id),
        "created": created,
    }


@router.get("/wallet")
def read_wallet(
    customer_id: UUID = Depends(get_current_customer_id),
    db: Session = Depends(get_db),
):
    return get_customer_wallet(db, customer_id)


@router.post("/redeem", response_model=RedeemTokenOut)
def redeem(
    payload: RedeemRequest,
    customer_id: UUID = Depends(get_current_customer_id),
    db: Session = Depends(get_db),
):
    intent = request_redemption(db, customer_id, payload.enrollment_id, payload.reward_item_id, payload.quantity)
    return {
        "token": intent.token,
        "redemptionIntentId": intent.id,
        "pointsSpent": intent.points_spent,
        "expiresAt": intent.expires_at,
    }


@router.get("/redemptions", response_model=list[RedemptionIntentOut])
def read_redemptions(
    enrollment_id: UUID | None = None,
    customer_id: UUID = Depends(get_current_customer_id),
    db: Session = Depends(get_db),
):
    return list_redemptions(db, customer_id, enrollment_id)
