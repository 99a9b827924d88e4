import logging
import uuid

import pytest

from conftest import make_enrollment
from rewards_portal.errors import Conflict, Forbidden, InvalidInput, NotFound
from rewards_portal.models.customer import Customer
from rewards_portal.models.enrollment import Enrollment
from rewards_portal.models.purchase_log import PurchaseLog
from rewards_portal.models.reward_item import RewardItem, SIGNUP_GIFT
from rewards_portal.services.accrual_service import add_points
from rewards_portal.services.enrollment_service import (
    create_client,
    get_customer_wallet,
    list_clients,
    register_customer,
    unenroll,
    update_client,
)
from rewards_portal.services.identity_service import normalize_email, normalize_phone
from rewards_portal.services.location_service import create_location
from rewards_portal.services.notification_service import build_welcome_message


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("(512) 555-0100", "+15125550100"),
        ("1 512 555 0100", "+15125550100"),
        ("+44 20 7946 0958", "+442079460958"),
        ("555-0100", None),
        ("1234567890123456", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_email():
    assert normalize_email("  Ada@Example.COM ") == "ada@example.com"
    assert normalize_email("   ") is None


def test_register_creates_customer_enrollment_and_contact(db, crm, location):
    enrollment, created = register_customer(
        db,
        crm,
        location_id=location.id,
        first_name="Grace",
        last_name="Hopper",
        phone="512-555-0199",
        email="Grace@Example.com",
    )

    assert created is True
    assert enrollment.cached_points == 0
    assert enrollment.crm_contact_id == "contact-1"
    customer = db.get(Customer, enrollment.customer_id)
    assert customer.phone_e164 == "+15125550199"
    assert customer.email == "grace@example.com"
    assert crm.calls[0][0] == "create_contact"
    assert crm.calls[0][2]["phone"] == "+15125550199"


def test_register_again_reuses_enrollment_and_updates_profile(db, crm, location):
    first, _ = register_customer(
        db, crm, location_id=location.id, first_name="Grace", last_name="Hopper", phone="5125550199"
    )
    second, created = register_customer(
        db, crm, location_id=location.id, first_name="Amazing", last_name="Grace", phone="+1 512 555 0199"
    )

    assert created is False
    assert second.id == first.id
    assert db.query(Enrollment).count() == 1
    assert db.get(Customer, second.customer_id).first_name == "Amazing"
    assert crm.actions() == ["create_contact"]


def test_one_customer_across_locations(db, crm, owner, location):
    other = create_location(db, owner.id, name="Burger Barn")
    db.commit()

    a, _ = register_customer(db, crm, location_id=location.id, first_name="Grace", last_name="Hopper", phone="5125550199")
    b, _ = register_customer(db, crm, location_id=other.id, first_name="Grace", last_name="Hopper", phone="5125550199")

    assert a.customer_id == b.customer_id
    assert a.id != b.id
    assert db.query(Customer).count() == 1


def test_register_survives_crm_failure(db, failing_crm, location):
    enrollment, created = register_customer(
        db, failing_crm, location_id=location.id, first_name="Grace", last_name="Hopper", phone="5125550199"
    )

    assert created is True
    assert enrollment.crm_contact_id is None
    assert db.query(Enrollment).count() == 1


def test_register_rejects_inactive_location(db, crm, location):
    location.is_active = False
    db.commit()

    with pytest.raises(NotFound):
        register_customer(db, crm, location_id=location.id, first_name="G", last_name="H", phone="5125550199")


@pytest.mark.parametrize(
    "fields",
    [
        {"first_name": "", "last_name": "Hopper", "phone": "5125550199"},
        {"first_name": "Grace", "last_name": "Hopper", "phone": "12"},
        {"first_name": "Grace", "last_name": "Hopper", "phone": "5125550199", "email": "not-an-email"},
    ],
)
def test_register_validates_input(db, crm, location, fields):
    with pytest.raises(InvalidInput):
        register_customer(db, crm, location_id=location.id, **fields)
    db.rollback()
    assert db.query(Enrollment).count() == 0


def test_register_logs_welcome_message_with_gift(db, crm, location, caplog):
    gift = db.query(RewardItem).filter(RewardItem.location_id == location.id, RewardItem.type == SIGNUP_GIFT).one()
    gift.name = "Free churro"
    db.commit()

    with caplog.at_level(logging.INFO, logger="rewards_portal.services.notification_service"):
        register_customer(db, crm, location_id=location.id, first_name="Grace", last_name="Hopper", phone="5125550199")

    sms = [r for r in caplog.records if r.getMessage() == "outbound sms"]
    assert len(sms) == 1
    assert sms[0].to == "+15125550199"
    assert "free Free churro" in sms[0].body


def test_welcome_message_without_gift():
    message = build_welcome_message(None, None, "https://portal/x")
    assert message == "Thanks for enrolling in our restaurant! View your rewards here: https://portal/x"


def test_staff_create_client_returns_existing_enrollment(db, crm, owner, location):
    first = create_client(
        db, crm, owner.id, location_id=location.id, first_name="Grace", last_name="Hopper",
        phone="5125550199", email="grace@example.com",
    )
    second = create_client(
        db, crm, owner.id, location_id=location.id, first_name="Grace", last_name="Hopper",
        phone="5125550199", email="grace@example.com",
    )

    assert first.id == second.id
    assert crm.actions() == ["create_contact"]


def test_staff_create_client_requires_access_and_email(db, crm, owner, outsider, location):
    with pytest.raises(Forbidden):
        create_client(
            db, crm, outsider.id, location_id=location.id, first_name="G", last_name="H",
            phone="5125550199", email="g@example.com",
        )
    with pytest.raises(InvalidInput):
        create_client(
            db, crm, owner.id, location_id=location.id, first_name="G", last_name="H",
            phone="5125550199", email=None,
        )


def test_list_clients_search(db, owner, location):
    make_enrollment(db, location, phone="+15555550101", first_name="Grace", last_name="Hopper")
    make_enrollment(db, location, phone="+15555550102", first_name="Alan", last_name="Turing")

    assert len(list_clients(db, owner.id, location.id)) == 2
    found = list_clients(db, owner.id, location.id, "hop")
    assert [e.customer.last_name for e in found] == ["Hopper"]
    assert [e.customer.first_name for e in list_clients(db, owner.id, location.id, "0102")] == ["Alan"]


def test_update_client_rejects_phone_of_another_customer(db, owner, location):
    grace = make_enrollment(db, location, phone="+15555550101", first_name="Grace")
    make_enrollment(db, location, phone="+15555550102", first_name="Alan")

    with pytest.raises(Conflict):
        update_client(db, owner.id, grace.id, {"phone": "555-555-0102"})


def test_update_client_fields(db, owner, location):
    grace = make_enrollment(db, location, phone="+15555550101", first_name="Grace")

    updated = update_client(db, owner.id, grace.id, {"first_name": "Rear Admiral", "email": "RA@Navy.mil", "phone": "5555550109"})

    assert updated.customer.first_name == "Rear Admiral"
    assert updated.customer.email == "ra@navy.mil"
    assert updated.customer.phone_e164 == "+15555550109"

    with pytest.raises(InvalidInput):
        update_client(db, owner.id, grace.id, {})


def test_unenroll_removes_history_and_contact(db, crm, owner, location):
    enrollment = make_enrollment(db, location, contact_id="contact-5")
    add_points(db, crm, owner.id, enrollment.id, 10)
    enrollment_id = enrollment.id

    unenroll(db, crm, owner.id, enrollment_id)

    assert db.get(Enrollment, enrollment_id) is None
    assert db.query(PurchaseLog).count() == 0
    assert crm.calls[-1] == ("delete_contact", "contact-5")


def test_unenroll_scoped_to_location_access(db, crm, outsider, enrollment):
    with pytest.raises(Forbidden):
        unenroll(db, crm, outsider.id, enrollment.id)
    with pytest.raises(NotFound):
        unenroll(db, crm, outsider.id, uuid.uuid4())


def test_customer_wallet_lists_balances(db, owner, location):
    other = create_location(db, owner.id, name="Burger Barn")
    db.commit()
    a = make_enrollment(db, location, points=12)
    make_enrollment(db, other, points=3)

    wallet = get_customer_wallet(db, a.customer_id)

    assert wallet["customerName"] == "Ada Lovelace"
    assert {e["locationName"]: e["pointsBalance"] for e in wallet["enrollments"]} == {"Taco Town": 12, "Burger Barn": 3}


def test_register_is_logged_with_enrollment_outcome(db, crm, location, caplog):
    with caplog.at_level(logging.INFO, logger="rewards_portal.services"):
        enrollment, _ = register_customer(
            db, crm, location_id=location.id, first_name="Grace", last_name="Hopper", phone="5125550199"
        )
        register_customer(db, crm, location_id=location.id, first_name="Grace", last_name="Hopper", phone="5125550199")

    registered = [r for r in caplog.records if r.getMessage() == "customer registered"]
    assert [r.enrollment_created for r in registered] == [True, False]
    assert {r.enrollment_id for r in registered} == {str(enrollment.id)}
    assert len([r for r in caplog.records if r.getMessage() == "outbound sms"]) == 2
    assert crm.actions() == ["create_contact"]
