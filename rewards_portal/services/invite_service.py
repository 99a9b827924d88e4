"""
Staff invites.

An owner issues a short code for one of their locations. Whoever redeems it
before it expires is linked to that location; a code grants access once.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from rewards_portal.config import get_settings
from rewards_portal.errors import Conflict, Forbidden, InvalidInput, InvalidOrExpired, NotFound
from rewards_portal.models.invite import Invite
from rewards_portal.models.user_location import UserLocation
from rewards_portal.services.identity_service import ensure_location_access, get_user_location_ids, has_location_access

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def _utcnow() -> datetime:
    # Keep naive UTC timestamps to match existing DB column types/semantics.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def _unique_code(db: Session) -> str:
    code = generate_code()
    while db.query(Invite.id).filter(Invite.code == code).first() is not None:
        code = generate_code()
    return code


def create_invite(db: Session, user_id, *, location_id, expires_at: datetime | None = None) -> Invite:
    ensure_location_access(db, user_id, location_id)

    now = _utcnow()
    if expires_at is None:
        expires_at = now + timedelta(days=get_settings().invite_ttl_days)
    else:
        expires_at = _as_naive_utc(expires_at)
    if expires_at <= now:
        raise InvalidInput("expires_at must be in the future")

    invite = Invite(
        code=_unique_code(db),
        location_id=location_id,
        created_by_user_id=user_id,
        expires_at=expires_at,
    )
    db.add(invite)
    db.flush()

    logger.info("invite created", extra={"invite_id": str(invite.id), "location_id": str(location_id)})
    return invite


def list_invites(db: Session, user_id, location_id=None) -> list[Invite]:
    """Open invites for the caller's locations, newest first."""
    allowed = get_user_location_ids(db, user_id)
    if location_id is not None and location_id not in allowed:
        raise Forbidden()

    scope = [location_id] if location_id is not None else allowed
    if not scope:
        return []

    return (
        db.query(Invite)
        .filter(
            Invite.location_id.in_(scope),
            Invite.used_at.is_(None),
            Invite.expires_at > _utcnow(),
        )
        .order_by(Invite.created_at.desc())
        .all()
    )


def _load_open_invite(db: Session, code: str | None, *, lock: bool = False) -> Invite:
    code = (code or "").strip().upper()
    if not code:
        raise InvalidInput("Invite code is required")

    q = db.query(Invite).filter(Invite.code == code)
    if lock:
        q = q.with_for_update()
    invite = q.first()

    if not invite:
        raise NotFound("Invalid invite code")
    if invite.used_at is not None:
        raise InvalidOrExpired("Invite already used")
    if invite.expires_at <= _utcnow():
        raise InvalidOrExpired("Invite expired")
    return invite


def validate_invite(db: Session, code: str | None) -> dict:
    invite = _load_open_invite(db, code)
    return {"valid": True, "locationName": invite.location.name}


def accept_invite(db: Session, user_id, code: str | None) -> dict:
    try:
        invite = _load_open_invite(db, code, lock=True)
        if has_location_access(db, user_id, invite.location_id):
            raise Conflict("You already have access to this location")

        result = db.execute(
            update(Invite)
            .where(Invite.id == invite.id, Invite.used_at.is_(None))
            .values(used_at=_utcnow(), used_by_user_id=user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidOrExpired("Invite already used")

        db.add(UserLocation(user_id=user_id, location_id=invite.location_id))
        db.flush()
        db.commit()
    except Exception:
        db.rollback()
        raise

    location = invite.location
    logger.info(
        "invite accepted",
        extra={"invite_id": str(invite.id), "location_id": str(location.id), "user_id": str(user_id)},
    )
    return {"success": True, "locationId": str(location.id), "locationName": location.name}
