import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rewards_portal.config import get_settings
from rewards_portal.errors import Conflict, InvalidInput, NotFound
from rewards_portal.models.customer import Customer
from rewards_portal.models.enrollment import Enrollment
from rewards_portal.models.location import Location
from rewards_portal.models.purchase_log import PurchaseLog
from rewards_portal.models.redemption_intent import RedemptionIntent
from rewards_portal.models.reward_item import RewardItem, SIGNUP_GIFT
from rewards_portal.services import crm_sync
from rewards_portal.services.identity_service import (
    ensure_location_access,
    normalize_phone,
    require_email,
    require_phone,
    upsert_customer,
)
from rewards_portal.services.location_service import get_active_location
from rewards_portal.services.notification_service import build_welcome_message, send_welcome_message

logger = logging.getLogger(__name__)


def _required(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidInput(f"{field} is required")
    return value


def _find_enrollment(db: Session, customer_id, location_id):
    return (
        db.query(Enrollment)
        .filter(Enrollment.customer_id == customer_id, Enrollment.location_id == location_id)
        .first()
    )


def _get_or_create_enrollment(db: Session, customer: Customer, location: Location) -> tuple[Enrollment, bool]:
    existing = _find_enrollment(db, customer.id, location.id)
    if existing:
        return existing, False

    try:
        with db.begin_nested():
            enrollment = Enrollment(customer_id=customer.id, location_id=location.id, cached_points=0)
            db.add(enrollment)
    except IntegrityError:
        existing = _find_enrollment(db, customer.id, location.id)
        if existing is None:
            raise
        return existing, False

    return enrollment, True


def _sync_new_contact(db: Session, crm, enrollment: Enrollment, customer: Customer, location: Location) -> None:
    if enrollment.crm_contact_id:
        return
    contact_id = crm_sync.create_contact_for_enrollment(crm, enrollment, customer, location)
    if contact_id:
        enrollment.crm_contact_id = contact_id
        db.commit()


def _enroll(db: Session, location: Location, *, first_name, last_name, phone, email) -> tuple[Enrollment, bool]:
    customer = upsert_customer(
        db,
        phone_e164=require_phone(phone),
        first_name=_required(first_name, "first_name"),
        last_name=_required(last_name, "last_name"),
        email=require_email(email),
    )
    return _get_or_create_enrollment(db, customer, location)


def register_customer(
    db: Session,
    crm,
    *,
    location_id,
    first_name: str,
    last_name: str,
    phone: str,
    email: str | None = None,
) -> tuple[Enrollment, bool]:
    """Public QR-code enrolment: upsert the customer, enroll them, welcome them."""
    location = get_active_location(db, location_id)
    enrollment, created = _enroll(
        db, location, first_name=first_name, last_name=last_name, phone=phone, email=email
    )

    gift = (
        db.query(RewardItem)
        .filter(
            RewardItem.location_id == location.id,
            RewardItem.type == SIGNUP_GIFT,
            RewardItem.is_enabled.is_(True),
        )
        .first()
    )
    gift_name = gift.name if gift else None
    db.commit()

    customer = enrollment.customer
    logger.info(
        "customer registered",
        extra={"enrollment_id": str(enrollment.id), "location_id": str(location.id), "enrollment_created": created},
    )

    _sync_new_contact(db, crm, enrollment, customer, location)

    link = f"{get_settings().portal_public_url}/portal?location={location.id}"
    send_welcome_message(customer.phone_e164, build_welcome_message(location.name, gift_name, link))
    return enrollment, created


def create_client(
    db: Session,
    crm,
    user_id,
    *,
    location_id,
    first_name: str,
    last_name: str,
    phone: str,
    email: str | None,
) -> Enrollment:
    """Staff enrolment from the dashboard; an existing enrollment is returned unchanged."""
    _required(email, "email")
    ensure_location_access(db, user_id, location_id)
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise NotFound("Location not found")

    enrollment, created = _enroll(
        db, location, first_name=first_name, last_name=last_name, phone=phone, email=email
    )
    db.commit()

    if created:
        _sync_new_contact(db, crm, enrollment, enrollment.customer, location)
    return enrollment


def list_clients(db: Session, user_id, location_id, query: str | None = None) -> list[Enrollment]:
    ensure_location_access(db, user_id, location_id)

    q = (
        db.query(Enrollment)
        .join(Customer, Customer.id == Enrollment.customer_id)
        .filter(Enrollment.location_id == location_id)
    )
    query = (query or "").strip()
    if query:
        pattern = f"%{query}%"
        q = q.filter(
            or_(
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone_e164.ilike(pattern),
            )
        )
    return q.order_by(Enrollment.created_at.desc()).all()


def get_authorized_enrollment(db: Session, user_id, enrollment_id) -> Enrollment:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFound("Enrollment not found")
    ensure_location_access(db, user_id, enrollment.location_id)
    return enrollment


def update_client(db: Session, user_id, enrollment_id, data: dict) -> Enrollment:
    enrollment = get_authorized_enrollment(db, user_id, enrollment_id)
    customer = enrollment.customer

    first_name = (data.get("first_name") or "").strip()
    last_name = (data.get("last_name") or "").strip()
    phone = (data.get("phone") or "").strip()
    email = (data.get("email") or "").strip()

    if not any([first_name, last_name, phone, email]):
        raise InvalidInput("No updates provided")

    if first_name:
        customer.first_name = first_name
    if last_name:
        customer.last_name = last_name

    if phone:
        phone_e164 = normalize_phone(phone)
        if not phone_e164:
            raise InvalidInput("Invalid phone number")
        if phone_e164 != customer.phone_e164:
            other = db.query(Customer).filter(Customer.phone_e164 == phone_e164).first()
            if other and other.id != customer.id:
                raise Conflict("Phone number already in use")
            customer.phone_e164 = phone_e164

    if email:
        customer.email = require_email(email)

    db.commit()
    db.refresh(enrollment)
    return enrollment


def unenroll(db: Session, crm, user_id, enrollment_id) -> None:
    enrollment = get_authorized_enrollment(db, user_id, enrollment_id)
    contact_id = enrollment.crm_contact_id

    db.query(RedemptionIntent).filter(RedemptionIntent.enrollment_id == enrollment.id).delete(synchronize_session=False)
    db.query(PurchaseLog).filter(PurchaseLog.enrollment_id == enrollment.id).delete(synchronize_session=False)
    db.delete(enrollment)
    db.commit()

    logger.info("enrollment removed", extra={"enrollment_id": str(enrollment_id)})
    crm_sync.delete_contact(crm, contact_id)


def get_customer_wallet(db: Session, customer_id) -> dict:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer not found")

    rows = (
        db.query(Enrollment, Location)
        .join(Location, Location.id == Enrollment.location_id)
        .filter(Enrollment.customer_id == customer.id)
        .order_by(Location.name.asc())
        .all()
    )
    return {
        "customerId": str(customer.id),
        "customerName": customer.display_name,
        "enrollments": [
            {
                "enrollmentId": str(enrollment.id),
                "locationId": str(location.id),
                "locationName": location.name,
                "pointsBalance": enrollment.cached_points,
            }
            for enrollment, location in rows
        ],
    }
