"""
Best-effort push of ledger changes to the CRM.

Every helper runs after the owning transaction has committed. Each CRM call
is attempted once and independently; failures are logged and reported as
``False``, never raised.
"""

import logging

from rewards_portal.config import get_settings

logger = logging.getLogger(__name__)


def _attempt(action: str, fn, *args, **extra_log) -> bool:
    try:
        fn(*args)
        return True
    except Exception:
        logger.exception("crm sync failed", extra={"action": action, **extra_log})
        return False


def push_balance(crm, enrollment, new_balance: int) -> bool:
    field_id = get_settings().crm_points_field_id
    if crm is None or not field_id or not enrollment.crm_contact_id:
        logger.warning(
            "crm sync skipped: missing client, points field or contact id",
            extra={"action": "push_balance", "enrollment_id": str(enrollment.id)},
        )
        return False

    return _attempt(
        "push_balance",
        crm.update_contact_field,
        enrollment.crm_contact_id,
        field_id,
        new_balance,
        enrollment_id=str(enrollment.id),
    )


def record_redemption(crm, enrollment, *, new_balance: int, reward_name: str, quantity: int, points_spent: int) -> dict:
    results = {"balance": push_balance(crm, enrollment, new_balance), "note": False, "tag": False}
    if crm is None or not enrollment.crm_contact_id:
        return results

    contact_id = enrollment.crm_contact_id
    note = f"Redeemed {quantity} of {reward_name} for {points_spent} points."
    results["note"] = _attempt("add_note", crm.add_note, contact_id, note, enrollment_id=str(enrollment.id))
    results["tag"] = _attempt(
        "add_tag",
        crm.add_tag,
        contact_id,
        [get_settings().crm_redeemed_tag],
        enrollment_id=str(enrollment.id),
    )
    return results


def create_contact_for_enrollment(crm, enrollment, customer, location) -> str | None:
    if crm is None:
        logger.warning(
            "crm sync skipped: no client configured",
            extra={"action": "create_contact", "enrollment_id": str(enrollment.id)},
        )
        return None

    try:
        return crm.create_contact(
            location.slug,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
            phone=customer.phone_e164,
        )
    except Exception:
        logger.exception("crm sync failed", extra={"action": "create_contact", "enrollment_id": str(enrollment.id)})
        return None


def delete_contact(crm, contact_id: str | None) -> bool:
    if crm is None or not contact_id:
        return False
    return _attempt("delete_contact", crm.delete_contact, contact_id, contact_id=contact_id)
