import re

from sqlalchemy.orm import Session

from rewards_portal.errors import InvalidInput, NotFound
from rewards_portal.models.location import Location
from rewards_portal.models.user_location import UserLocation
from rewards_portal.services.catalog_service import ensure_signup_gift, list_enabled_rewards
from rewards_portal.services.identity_service import get_user_location_ids

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_SEPARATORS.sub("-", (name or "").lower().strip())
    return slug.strip("-")[:50]


def generate_unique_slug(db: Session, name: str) -> str:
    base = slugify(name) or "location"
    candidate = base
    suffix = 1
    while db.query(Location.id).filter(Location.slug == candidate).first() is not None:
        suffix += 1
        candidate = f"{base}-{suffix}"
    return candidate


def create_location(db: Session, user_id, *, name: str, **address) -> Location:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Name is required")

    location = Location(
        name=name,
        slug=generate_unique_slug(db, name),
        address_line1=address.get("address_line1"),
        city=address.get("city"),
        state=address.get("state"),
        postal_code=address.get("postal_code"),
        is_active=True,
    )
    db.add(location)
    db.flush()

    db.add(UserLocation(user_id=user_id, location_id=location.id))
    db.flush()

    ensure_signup_gift(db, location.id)
    return location


def list_locations(db: Session, user_id) -> list[Location]:
    """Locations the caller belongs to, in the order they joined them."""
    location_ids = get_user_location_ids(db, user_id)
    if not location_ids:
        return []

    by_id = {loc.id: loc for loc in db.query(Location).filter(Location.id.in_(location_ids)).all()}
    return [by_id[location_id] for location_id in location_ids if location_id in by_id]


def get_active_location(db: Session, location_id) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location or not location.is_active:
        raise NotFound("Location not found")
    return location


def get_public_location(db: Session, location_id) -> dict:
    location = get_active_location(db, location_id)
    return {
        "id": str(location.id),
        "name": location.name,
        "rewards": [
            {
                "id": str(r.id),
                "name": r.name,
                "type": r.type,
                "pointsRequired": r.points_required,
                "imageUrl": r.image_url,
            }
            for r in list_enabled_rewards(db, location.id)
        ],
    }
