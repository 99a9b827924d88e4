import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rewards_portal.config import get_settings
from rewards_portal.db import Base, get_db
from rewards_portal.deps.crm import get_crm_client
from rewards_portal.errors import ExternalSyncFailure
from rewards_portal.main import app
from rewards_portal.models.customer import Customer
from rewards_portal.models.enrollment import Enrollment
from rewards_portal.models.portal_user import PortalUser
from rewards_portal.models.reward_item import RewardItem, STANDARD
from rewards_portal.services.location_service import create_location


class RecordingCrm:
    def __init__(self):
        self.calls = []
        self._contacts = 0

    def update_contact_field(self, contact_id, field_id, value):
        self.calls.append(("update_contact_field", contact_id, field_id, value))
        return {}

    def add_note(self, contact_id, text):
        self.calls.append(("add_note", contact_id, text))
        return {}

    def add_tag(self, contact_id, tags):
        self.calls.append(("add_tag", contact_id, tags))
        return {}

    def create_contact(self, crm_location_id, **fields):
        self.calls.append(("create_contact", crm_location_id, fields))
        self._contacts += 1
        return f"contact-{self._contacts}"

    def delete_contact(self, contact_id):
        self.calls.append(("delete_contact", contact_id))
        return {}

    def actions(self):
        return [call[0] for call in self.calls]


class FailingCrm(RecordingCrm):
    """Records every attempt, then fails it the way an unreachable CRM would."""

    def update_contact_field(self, *args):
        super().update_contact_field(*args)
        raise ExternalSyncFailure("timed out")

    def add_note(self, *args):
        super().add_note(*args)
        raise ExternalSyncFailure("timed out")

    def add_tag(self, *args):
        super().add_tag(*args)
        raise ExternalSyncFailure("timed out")

    def create_contact(self, crm_location_id, **fields):
        super().create_contact(crm_location_id, **fields)
        raise ExternalSyncFailure("timed out")

    def delete_contact(self, contact_id):
        super().delete_contact(contact_id)
        raise ExternalSyncFailure("timed out")


@pytest.fixture(autouse=True)
def crm_settings(monkeypatch):
    monkeypatch.setenv("CRM_POINTS_FIELD_ID", "points-field")
    monkeypatch.setenv("CRM_REDEEMED_TAG", "loyalty-redeemed-reward")
    monkeypatch.setenv("REDEMPTION_INTENT_TTL_MINUTES", "60")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite: let SQLAlchemy own BEGIN so SAVEPOINTs behave
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def crm():
    return RecordingCrm()


@pytest.fixture
def failing_crm():
    return FailingCrm()


@pytest.fixture
def client(db, crm):
    def override_get_db():
        yield db

    def override_get_crm_client():
        yield crm

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_crm_client] = override_get_crm_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, email=None, role="OWNER"):
    user = PortalUser(email=email or f"{uuid.uuid4().hex[:8]}@example.com", name="Owner", role=role)
    db.add(user)
    db.commit()
    return user


def make_enrollment(db, location, *, points=0, phone="+15555550100", first_name="Ada", last_name="Lovelace", contact_id="contact-a"):
    customer = db.query(Customer).filter(Customer.phone_e164 == phone).first()
    if customer is None:
        customer = Customer(phone_e164=phone, first_name=first_name, last_name=last_name, email="ada@example.com")
        db.add(customer)
        db.flush()

    enrollment = Enrollment(
        customer_id=customer.id,
        location_id=location.id,
        cached_points=points,
        crm_contact_id=contact_id,
    )
    db.add(enrollment)
    db.commit()
    return enrollment


def make_reward(db, location, *, name="Taco", points_required=30, is_enabled=True):
    reward = RewardItem(
        location_id=location.id,
        name=name,
        points_required=points_required,
        type=STANDARD,
        is_enabled=is_enabled,
    )
    db.add(reward)
    db.commit()
    return reward


@pytest.fixture
def owner(db):
    return make_user(db, "owner@example.com")


@pytest.fixture
def outsider(db):
    return make_user(db, "outsider@example.com")


@pytest.fixture
def location(db, owner):
    location = create_location(db, owner.id, name="Taco Town", city="Austin")
    db.commit()
    return location


@pytest.fixture
def enrollment(db, location):
    return make_enrollment(db, location)
