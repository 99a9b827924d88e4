import logging
import math
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP

from sqlalchemy import update
from sqlalchemy.orm import Session

from rewards_portal.errors import InvalidAmount, NotFound
from rewards_portal.models.enrollment import MAX_POINTS, Enrollment
from rewards_portal.models.purchase_log import PurchaseLog
from rewards_portal.services import crm_sync
from rewards_portal.services.identity_service import ensure_location_access

logger = logging.getLogger(__name__)

# keeps amount_cents inside its 32-bit column
MAX_PURCHASE_AMOUNT = Decimal("1000000")


def _to_decimal(amount) -> Decimal:
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmount()
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidAmount()
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidAmount()
    if not value.is_finite() or value <= 0:
        raise InvalidAmount()
    if value > MAX_PURCHASE_AMOUNT:
        raise InvalidAmount(f"Amount must not exceed {MAX_PURCHASE_AMOUNT}")
    return value


def points_for_amount(amount) -> tuple[int, int]:
    """
    Convert a purchase amount into (amount_cents, points).

    One point per whole currency unit; fractional units are discarded.
    """
    value = _to_decimal(amount)
    amount_cents = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if amount_cents <= 0:
        raise InvalidAmount("Amount must be greater than 0")
    points = int(value.to_integral_value(rounding=ROUND_FLOOR))
    return amount_cents, points


def add_points(db: Session, crm, user_id, enrollment_id, amount) -> int:
    amount_cents, points = points_for_amount(amount)

    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFound("Enrollment not found")
    ensure_location_access(db, user_id, enrollment.location_id)

    try:
        db.add(
            PurchaseLog(
                enrollment_id=enrollment.id,
                amount_cents=amount_cents,
                points_added=points,
                created_by_user_id=user_id,
            )
        )
        result = db.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment.id, Enrollment.cached_points <= MAX_POINTS - points)
            .values(cached_points=Enrollment.cached_points + points)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidAmount("Balance limit reached for this enrollment")
        db.flush()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    new_balance = enrollment.cached_points

    logger.info(
        "points added",
        extra={
            "enrollment_id": str(enrollment.id),
            "amount_cents": amount_cents,
            "points": points,
            "new_balance": new_balance,
        },
    )

    crm_sync.push_balance(crm, enrollment, new_balance)
    return new_balance


def list_purchases(db: Session, user_id, enrollment_id, limit: int = 100, offset: int = 0) -> list[PurchaseLog]:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFound("Enrollment not found")
    ensure_location_access(db, user_id, enrollment.location_id)

    limit = max(1, min(limit, 500))
    offset = max(0, offset)

    return (
        db.query(PurchaseLog)
        .filter(PurchaseLog.enrollment_id == enrollment.id)
        .order_by(PurchaseLog.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
