from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.errors import InvalidInput, Unauthorized
from rewards_portal.models.portal_user import PortalUser


def _parse_identity(value: str | None, header: str) -> UUID:
    if not value or not value.strip():
        raise Unauthorized(f"Missing caller identity. Provide the {header} header.")
    try:
        return UUID(value.strip())
    except ValueError:
        raise InvalidInput(f"{header} must be a UUID")


def get_current_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> PortalUser:
    user_id = _parse_identity(x_user_id, "X-User-Id")
    user = db.query(PortalUser).filter(PortalUser.id == user_id).first()
    if not user:
        raise Unauthorized("Unknown portal user")
    return user


def get_current_user_id(user: PortalUser = Depends(get_current_user)) -> UUID:
    return user.id


def get_current_customer_id(x_customer_id: str | None = Header(default=None, alias="X-Customer-Id")) -> UUID:
    return _parse_identity(x_customer_id, "X-Customer-Id")
