import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rewards_portal.errors import Conflict, InvalidInput, NotFound
from rewards_portal.models.enrollment import MAX_POINTS
from rewards_portal.models.reward_item import RewardItem, SIGNUP_GIFT, STANDARD
from rewards_portal.services.identity_service import ensure_location_access

logger = logging.getLogger(__name__)

SIGNUP_GIFT_NAME = "Sign-up gift"


def _find_signup_gift(db: Session, location_id):
    return (
        db.query(RewardItem)
        .filter(RewardItem.location_id == location_id, RewardItem.type == SIGNUP_GIFT)
        .first()
    )


def ensure_signup_gift(db: Session, location_id) -> RewardItem:
    """
    Find-or-create the location's sign-up gift.

    The partial unique index on (location_id) for SIGNUP_GIFT rows makes a
    concurrent creator fail here; in that case the savepoint is rolled back
    and the winner's row is returned.
    """
    existing = _find_signup_gift(db, location_id)
    if existing:
        return existing

    try:
        with db.begin_nested():
            gift = RewardItem(
                location_id=location_id,
                type=SIGNUP_GIFT,
                name=SIGNUP_GIFT_NAME,
                points_required=None,
                is_enabled=True,
                is_undeletable=True,
            )
            db.add(gift)
    except IntegrityError:
        existing = _find_signup_gift(db, location_id)
        if existing is None:
            raise
        return existing

    logger.info("created sign-up gift", extra={"location_id": str(location_id)})
    return gift


def _validate_points(value, *, allow_none: bool):
    if value is None:
        if allow_none:
            return None
        raise InvalidInput("points_required must be an integer")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidInput("points_required must be a non-negative integer")
    if value > MAX_POINTS:
        raise InvalidInput(f"points_required must not exceed {MAX_POINTS}")
    return value


def _clean_name(value) -> str:
    name = (value or "").strip()
    if not name:
        raise InvalidInput("name is required")
    return name


def list_rewards(db: Session, user_id, location_id) -> list[RewardItem]:
    ensure_location_access(db, user_id, location_id)
    ensure_signup_gift(db, location_id)
    return (
        db.query(RewardItem)
        .filter(RewardItem.location_id == location_id)
        .order_by(RewardItem.created_at.asc())
        .all()
    )


def list_enabled_rewards(db: Session, location_id) -> list[RewardItem]:
    return (
        db.query(RewardItem)
        .filter(RewardItem.location_id == location_id, RewardItem.is_enabled.is_(True))
        .order_by(RewardItem.created_at.asc())
        .all()
    )


def create_reward(db: Session, user_id, *, location_id, name: str, points_required, image_url: str | None = None):
    ensure_location_access(db, user_id, location_id)

    reward = RewardItem(
        location_id=location_id,
        name=_clean_name(name),
        points_required=_validate_points(points_required, allow_none=False),
        image_url=image_url,
        type=STANDARD,
        is_enabled=True,
        is_undeletable=False,
    )
    db.add(reward)
    db.flush()
    return reward


def get_authorized_reward(db: Session, user_id, reward_id) -> RewardItem:
    reward = db.query(RewardItem).filter(RewardItem.id == reward_id).first()
    if not reward:
        raise NotFound("Reward not found")
    ensure_location_access(db, user_id, reward.location_id)
    return reward


def update_reward(db: Session, user_id, reward_id, data: dict) -> RewardItem:
    reward = get_authorized_reward(db, user_id, reward_id)

    if "name" in data and data["name"] is not None:
        reward.name = _clean_name(data["name"])
    if "image_url" in data:
        reward.image_url = data["image_url"]
    if "is_enabled" in data and data["is_enabled"] is not None:
        reward.is_enabled = bool(data["is_enabled"])
    if "points_required" in data:
        reward.points_required = _validate_points(data["points_required"], allow_none=reward.type == SIGNUP_GIFT)

    db.flush()
    return reward


def delete_reward(db: Session, user_id, reward_id) -> None:
    reward = get_authorized_reward(db, user_id, reward_id)

    if reward.type == SIGNUP_GIFT or reward.is_undeletable:
        raise Conflict("Cannot delete this reward")

    db.delete(reward)
    db.flush()
