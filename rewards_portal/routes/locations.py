from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.schemas.location import LocationCreate, LocationOut
from rewards_portal.services.location_service import create_location, get_public_location, list_locations


router = APIRouter(tags=["locations"])


@router.get("/locations", response_model=list[LocationOut])
def read_locations(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return list_locations(db, user_id)


@router.post("/locations", response_model=LocationOut)
def add_location(
    payload: LocationCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    location = create_location(db, user_id, **payload.model_dump())
    db.commit()
    db.refresh(location)
    return location


@router.get("/public/locations/{location_id}")
def read_public_location(location_id: UUID, db: Session = Depends(get_db)):
    return get_public_location(db, location_id)
