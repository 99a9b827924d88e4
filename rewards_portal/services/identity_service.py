import re

from sqlalchemy.orm import Session

from rewards_portal.errors import Forbidden, InvalidInput
from rewards_portal.models.customer import Customer
from rewards_portal.models.user_location import UserLocation

_NON_DIGITS = re.compile(r"\D+")
_EMAIL_RE = re.compile(r".+@.+\..+")


def normalize_phone(value: str | None) -> str | None:
    if not value:
        return None

    digits = _NON_DIGITS.sub("", value)
    if len(digits) < 10 or len(digits) > 15:
        return None

    if len(digits) == 10:
        return f"+1{digits}"

    return f"+{digits}"


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def is_email_valid(value: str | None) -> bool:
    if not value:
        return False
    return bool(_EMAIL_RE.fullmatch(value.strip()))


def require_phone(value: str | None) -> str:
    phone = normalize_phone(value)
    if not phone:
        raise InvalidInput("Invalid phone number")
    return phone


def require_email(value: str | None) -> str | None:
    email = normalize_email(value)
    if email is not None and not is_email_valid(email):
        raise InvalidInput("Invalid email")
    return email


def get_user_location_ids(db: Session, user_id) -> list:
    rows = (
        db.query(UserLocation.location_id)
        .filter(UserLocation.user_id == user_id)
        .order_by(UserLocation.created_at.asc())
        .all()
    )
    return [row[0] for row in rows]


def has_location_access(db: Session, user_id, location_id) -> bool:
    return (
        db.query(UserLocation.id)
        .filter(UserLocation.user_id == user_id, UserLocation.location_id == location_id)
        .first()
        is not None
    )


def ensure_location_access(db: Session, user_id, location_id) -> None:
    if not has_location_access(db, user_id, location_id):
        raise Forbidden()


def upsert_customer(
    db: Session,
    *,
    phone_e164: str,
    first_name: str,
    last_name: str,
    email: str | None = None,
) -> Customer:
    customer = db.query(Customer).filter(Customer.phone_e164 == phone_e164).first()

    if not customer:
        customer = Customer(phone_e164=phone_e164, first_name=first_name, last_name=last_name, email=email)
        db.add(customer)
        db.flush()
        return customer

    customer.first_name = first_name
    customer.last_name = last_name
    customer.email = email
    db.flush()
    return customer
