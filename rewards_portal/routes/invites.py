from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.schemas.invite import InviteAccept, InviteCreate, InviteOut
from rewards_portal.services.invite_service import accept_invite, create_invite, list_invites, validate_invite


router = APIRouter(prefix="/invites", tags=["invites"])


@router.get("", response_model=list[InviteOut])
def read_invites(
    location_id: UUID | None = None,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return list_invites(db, user_id, location_id)


@router.post("", response_model=InviteOut)
def add_invite(
    payload: InviteCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    invite = create_invite(db, user_id, location_id=payload.location_id, expires_at=payload.expires_at)
    db.commit()
    db.refresh(invite)
    return invite


@router.get("/validate")
def check_invite(code: str | None = None, db: Session = Depends(get_db)):
    return validate_invite(db, code)


@router.post("/accept")
def redeem_invite(
    payload: InviteAccept,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return accept_invite(db, user_id, payload.code)
