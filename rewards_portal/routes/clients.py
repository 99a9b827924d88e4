from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.crm import get_crm_client
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.schemas.enrollment import ClientCreate, ClientUpdate, EnrollmentOut
from rewards_portal.schemas.purchase_log import PurchaseLogOut
from rewards_portal.services.accrual_service import list_purchases
from rewards_portal.services.enrollment_service import create_client, list_clients, unenroll, update_client


router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=list[EnrollmentOut])
def read_clients(
    location_id: UUID,
    query: str | None = None,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return list_clients(db, user_id, location_id, query)


@router.post("", response_model=EnrollmentOut)
def add_client(
    payload: ClientCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    crm=Depends(get_crm_client),
):
    return create_client(
        db,
        crm,
        user_id,
        location_id=payload.location_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        email=payload.email,
    )


@router.patch("/{enrollment_id}", response_model=EnrollmentOut)
def edit_client(
    enrollment_id: UUID,
    payload: ClientUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return update_client(db, user_id, enrollment_id, payload.model_dump(exclude_unset=True))


@router.delete("/{enrollment_id}")
def remove_client(
    enrollment_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    crm=Depends(get_crm_client),
):
    unenroll(db, crm, user_id, enrollment_id)
    return {"deleted": True}


@router.get("/{enrollment_id}/purchases", response_model=list[PurchaseLogOut])
def read_purchases(
    enrollment_id: UUID,
    limit: int = 100,
    offset: int = 0,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return list_purchases(db, user_id, enrollment_id, limit=limit, offset=offset)
