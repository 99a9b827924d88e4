from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.crm import get_crm_client
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.schemas.purchase_log import AddPointsRequest
from rewards_portal.services.accrual_service import add_points

router = APIRouter(prefix="/points", tags=["points"])


@router.post("/add")
def add_points_for_purchase(
    payload: AddPointsRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    crm=Depends(get_crm_client),
):
    new_balance = add_points(db, crm, user_id, payload.enrollment_id, payload.amount)
    return {"success": True, "newPoints": new_balance}
