from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from rewards_portal.errors import NotFound
from rewards_portal.models.enrollment import Enrollment
from rewards_portal.models.purchase_log import PurchaseLog
from rewards_portal.models.redemption_intent import RedemptionIntent
from rewards_portal.services.identity_service import ensure_location_access


@dataclass
class BalanceDrift:
    enrollment_id: str
    cached_points: int
    expected_points: int

    @property
    def drift(self) -> int:
        return self.cached_points - self.expected_points


def expected_balance(db: Session, enrollment_id) -> int:
    earned = (
        db.query(func.coalesce(func.sum(PurchaseLog.points_added), 0))
        .filter(PurchaseLog.enrollment_id == enrollment_id)
        .scalar()
    )
    spent = (
        db.query(func.coalesce(func.sum(RedemptionIntent.points_spent), 0))
        .filter(
            RedemptionIntent.enrollment_id == enrollment_id,
            RedemptionIntent.used_at.isnot(None),
        )
        .scalar()
    )
    return int(earned or 0) - int(spent or 0)


def reconcile_enrollment(db: Session, enrollment_id) -> BalanceDrift:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFound("Enrollment not found")

    return BalanceDrift(
        enrollment_id=str(enrollment.id),
        cached_points=enrollment.cached_points,
        expected_points=expected_balance(db, enrollment.id),
    )


def reconcile_location(db: Session, user_id, location_id) -> dict:
    """Compare every cached balance of a location with its event history. Reads only."""
    ensure_location_access(db, user_id, location_id)

    enrollment_ids = [
        row[0] for row in db.query(Enrollment.id).filter(Enrollment.location_id == location_id).all()
    ]
    drifted = [
        report
        for report in (reconcile_enrollment(db, enrollment_id) for enrollment_id in enrollment_ids)
        if report.drift != 0
    ]
    return {
        "locationId": str(location_id),
        "checked": len(enrollment_ids),
        "drifted": [
            {
                "enrollmentId": r.enrollment_id,
                "cachedPoints": r.cached_points,
                "expectedPoints": r.expected_points,
                "drift": r.drift,
            }
            for r in drifted
        ],
    }
