from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.services.reconciliation_service import reconcile_location


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/reconcile")
def admin_reconcile_location(
    location_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return reconcile_location(db, user_id, location_id)
