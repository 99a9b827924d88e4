import pytest

from rewards_portal.errors import InvalidInput, NotFound
from rewards_portal.services.identity_service import get_user_location_ids
from rewards_portal.services.invite_service import accept_invite, create_invite
from rewards_portal.services.location_service import (
    create_location,
    get_active_location,
    list_locations,
    slugify,
)


def test_slugify():
    assert slugify("  Taco Town! ") == "taco-town"
    assert slugify("Café & Grill") == "caf-grill"
    assert slugify("!!!") == ""


def test_slugs_stay_unique(db, owner, location):
    second = create_location(db, owner.id, name="Taco Town")
    third = create_location(db, owner.id, name="!!!")
    db.commit()

    assert location.slug == "taco-town"
    assert second.slug == "taco-town-2"
    assert third.slug == "location"


def test_location_requires_name(db, owner):
    with pytest.raises(InvalidInput):
        create_location(db, owner.id, name="  ")


def test_list_locations_follows_membership(db, owner, outsider, location):
    other = create_location(db, owner.id, name="Burrito Barn")
    db.commit()

    assert {loc.id for loc in list_locations(db, owner.id)} == {location.id, other.id}
    assert set(get_user_location_ids(db, owner.id)) == {location.id, other.id}
    assert list_locations(db, outsider.id) == []
    assert get_user_location_ids(db, outsider.id) == []

    invite = create_invite(db, owner.id, location_id=other.id)
    db.commit()
    accept_invite(db, outsider.id, invite.code)

    assert [loc.id for loc in list_locations(db, outsider.id)] == [other.id]


def test_inactive_location_is_hidden(db, location):
    location.is_active = False
    db.commit()

    with pytest.raises(NotFound):
        get_active_location(db, location.id)
