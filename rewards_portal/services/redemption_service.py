"""
Two-step reward redemption.

A customer first requests a redemption, which snapshots the reward price into
a ``RedemptionIntent`` and hands back an opaque token. Points are not
reserved: several pending intents may together exceed the balance, and the
balance is checked again when staff complete the redemption. Completion
consumes the intent and debits the enrollment in one transaction, then pushes
the outcome to the CRM on a best-effort basis.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from rewards_portal.config import get_settings
from rewards_portal.errors import (
    AlreadyConsumed,
    InsufficientBalance,
    InvalidInput,
    InvalidOrExpired,
    NotFound,
    RewardNotRedeemable,
)
from rewards_portal.models.enrollment import Enrollment
from rewards_portal.models.redemption_intent import RedemptionIntent
from rewards_portal.models.reward_item import RewardItem
from rewards_portal.services import crm_sync
from rewards_portal.services.identity_service import ensure_location_access

logger = logging.getLogger(__name__)

PENDING = "PENDING"
USED = "USED"
EXPIRED = "EXPIRED"

_ITEM_FIELDS = {"rewardItemId": str, "name": str, "pointsEach": int, "qty": int, "pointsTotal": int}


def _utcnow() -> datetime:
    # Keep naive UTC timestamps to match existing DB column types/semantics.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_token() -> str:
    return secrets.token_urlsafe(get_settings().redemption_token_bytes)


def parse_items(items) -> list[dict]:
    if not isinstance(items, list):
        return []

    parsed = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if all(isinstance(item.get(k), t) and not isinstance(item.get(k), bool) for k, t in _ITEM_FIELDS.items()):
            parsed.append({k: item[k] for k in _ITEM_FIELDS})
    return parsed


def intent_status(intent: RedemptionIntent, now: datetime | None = None) -> str:
    if intent.used_at is not None:
        return USED
    now = now or _utcnow()
    if intent.expires_at is not None and intent.expires_at <= now:
        return EXPIRED
    return PENDING


def _require_token(token: str | None) -> str:
    token = (token or "").strip()
    if not token:
        raise InvalidInput("Missing token")
    return token


def request_redemption(db: Session, customer_id, enrollment_id, reward_item_id, quantity) -> RedemptionIntent:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInput("quantity must be a positive integer")

    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment or enrollment.customer_id != customer_id:
        raise NotFound("Enrollment not found")

    reward = db.query(RewardItem).filter(RewardItem.id == reward_item_id).first()
    if not reward or reward.location_id != enrollment.location_id:
        raise NotFound("Reward not found")

    if not reward.is_enabled or reward.points_required is None:
        raise RewardNotRedeemable()

    total = reward.points_required * quantity
    if enrollment.cached_points < total:
        raise InsufficientBalance("Insufficient points")

    settings = get_settings()
    now = _utcnow()
    expires_at = None
    if settings.redemption_intent_ttl_minutes:
        expires_at = now + timedelta(minutes=settings.redemption_intent_ttl_minutes)

    intent = RedemptionIntent(
        enrollment_id=enrollment.id,
        token=generate_token(),
        items=[
            {
                "rewardItemId": str(reward.id),
                "name": reward.name,
                "pointsEach": reward.points_required,
                "qty": quantity,
                "pointsTotal": total,
            }
        ],
        points_spent=total,
        created_at=now,
        expires_at=expires_at,
    )
    db.add(intent)
    db.commit()
    db.refresh(intent)

    logger.info(
        "redemption requested",
        extra={"intent_id": str(intent.id), "enrollment_id": str(enrollment.id), "points": total},
    )
    return intent


def _load_pending_intent(db: Session, token: str, now: datetime, *, lock: bool = False) -> RedemptionIntent:
    q = db.query(RedemptionIntent).filter(RedemptionIntent.token == token)
    if lock:
        q = q.with_for_update()
    intent = q.first()
    if not intent:
        raise InvalidOrExpired()

    status = intent_status(intent, now)
    if status == USED:
        raise AlreadyConsumed()
    if status != PENDING:
        raise InvalidOrExpired()
    return intent


def _summary(intent: RedemptionIntent) -> tuple[list[dict], str, int]:
    items = parse_items(intent.items)
    primary = items[0] if items else {}
    return items, primary.get("name") or "Reward", primary.get("qty") or 1


def verify_redemption(db: Session, user_id, token: str) -> dict:
    """Staff pre-check before completing; reads only."""
    intent = _load_pending_intent(db, _require_token(token), _utcnow())
    enrollment = intent.enrollment
    ensure_location_access(db, user_id, enrollment.location_id)

    items, reward_name, _ = _summary(intent)
    return {
        "redemptionIntentId": intent.id,
        "customerName": enrollment.customer.display_name,
        "rewardName": reward_name,
        "pointsSpent": intent.points_spent,
        "currentBalance": enrollment.cached_points,
        "items": items,
    }


def _consume_intent(db: Session, intent_id, now: datetime, user_id=None) -> None:
    result = db.execute(
        update(RedemptionIntent)
        .where(RedemptionIntent.id == intent_id, RedemptionIntent.used_at.is_(None))
        .values(used_at=now, redeemed_by_user_id=user_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise AlreadyConsumed()


def _debit_enrollment(db: Session, enrollment_id, points: int) -> None:
    result = db.execute(
        update(Enrollment)
        .where(Enrollment.id == enrollment_id, Enrollment.cached_points >= points)
        .values(cached_points=Enrollment.cached_points - points)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientBalance("Insufficient points now; the redemption was not completed")


def complete_redemption(db: Session, crm, user_id, token: str) -> dict:
    token = _require_token(token)
    now = _utcnow()

    try:
        intent = _load_pending_intent(db, token, now, lock=True)
        enrollment = (
            db.query(Enrollment)
            .filter(Enrollment.id == intent.enrollment_id)
            .with_for_update()
            .one()
        )
        ensure_location_access(db, user_id, enrollment.location_id)

        if enrollment.cached_points < intent.points_spent:
            raise InsufficientBalance("Insufficient points now; the redemption was not completed")

        _consume_intent(db, intent.id, now, user_id)
        _debit_enrollment(db, enrollment.id, intent.points_spent)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    db.refresh(intent)
    new_balance = enrollment.cached_points
    _, reward_name, quantity = _summary(intent)
    customer_name = enrollment.customer.display_name

    logger.info(
        "redemption completed",
        extra={
            "intent_id": str(intent.id),
            "enrollment_id": str(enrollment.id),
            "points": -intent.points_spent,
            "new_balance": new_balance,
        },
    )

    crm_sync.record_redemption(
        crm,
        enrollment,
        new_balance=new_balance,
        reward_name=reward_name,
        quantity=quantity,
        points_spent=intent.points_spent,
    )

    return {
        "success": True,
        "customerName": customer_name,
        "rewardName": reward_name,
        "newBalance": new_balance,
    }


def list_redemptions(db: Session, customer_id, enrollment_id=None) -> list[dict]:
    q = (
        db.query(RedemptionIntent)
        .join(Enrollment, Enrollment.id == RedemptionIntent.enrollment_id)
        .filter(Enrollment.customer_id == customer_id)
    )
    if enrollment_id is not None:
        q = q.filter(RedemptionIntent.enrollment_id == enrollment_id)

    now = _utcnow()
    return [
        {
            "id": intent.id,
            "enrollment_id": intent.enrollment_id,
            "points_spent": intent.points_spent,
            "items": parse_items(intent.items),
            "status": intent_status(intent, now),
            "created_at": intent.created_at,
            "expires_at": intent.expires_at,
            "used_at": intent.used_at,
        }
        for intent in q.order_by(RedemptionIntent.created_at.desc()).all()
    ]
