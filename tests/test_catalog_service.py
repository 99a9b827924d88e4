import pytest

from conftest import make_reward
from rewards_portal.errors import Conflict, Forbidden, InvalidInput, NotFound
from rewards_portal.models.enrollment import MAX_POINTS
from rewards_portal.models.location import Location
from rewards_portal.models.reward_item import RewardItem, SIGNUP_GIFT, STANDARD
from rewards_portal.services import catalog_service
from rewards_portal.services.catalog_service import (
    create_reward,
    delete_reward,
    ensure_signup_gift,
    list_rewards,
    update_reward,
)


def _gifts(db, location_id):
    return db.query(RewardItem).filter(RewardItem.location_id == location_id, RewardItem.type == SIGNUP_GIFT).all()


def test_new_location_gets_exactly_one_signup_gift(db, location):
    gifts = _gifts(db, location.id)

    assert len(gifts) == 1
    assert gifts[0].points_required is None
    assert gifts[0].is_undeletable is True


def test_ensure_signup_gift_is_idempotent(db, location):
    first = ensure_signup_gift(db, location.id)
    second = ensure_signup_gift(db, location.id)
    db.commit()

    assert first.id == second.id
    assert len(_gifts(db, location.id)) == 1


def test_list_rewards_materialises_missing_gift(db, owner, location):
    db.query(RewardItem).filter(RewardItem.location_id == location.id).delete()
    db.commit()

    rewards = list_rewards(db, owner.id, location.id)
    db.commit()

    assert [r.type for r in rewards] == [SIGNUP_GIFT]


def test_concurrent_gift_creation_returns_the_existing_row(db, location, monkeypatch):
    existing = _gifts(db, location.id)[0]
    real_find = catalog_service._find_signup_gift
    calls = {"n": 0}

    def find_missing_the_first_time(session, location_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_find(session, location_id)

    monkeypatch.setattr(catalog_service, "_find_signup_gift", find_missing_the_first_time)

    gift = ensure_signup_gift(db, location.id)
    db.commit()

    assert gift.id == existing.id
    assert len(_gifts(db, location.id)) == 1
    assert db.get(Location, location.id) is not None


def test_create_standard_reward(db, owner, location):
    reward = create_reward(db, owner.id, location_id=location.id, name="  Nachos ", points_required=40)
    db.commit()

    assert reward.type == STANDARD
    assert reward.name == "Nachos"
    assert reward.points_required == 40
    assert reward.is_undeletable is False


@pytest.mark.parametrize("points", [None, -1, 2.5, True])
def test_create_reward_requires_non_negative_integer_price(db, owner, location, points):
    with pytest.raises(InvalidInput):
        create_reward(db, owner.id, location_id=location.id, name="Nachos", points_required=points)


def test_create_reward_requires_name(db, owner, location):
    with pytest.raises(InvalidInput):
        create_reward(db, owner.id, location_id=location.id, name="   ", points_required=10)


def test_catalog_is_scoped_to_location_access(db, outsider, location):
    with pytest.raises(Forbidden):
        list_rewards(db, outsider.id, location.id)
    with pytest.raises(Forbidden):
        create_reward(db, outsider.id, location_id=location.id, name="Nachos", points_required=10)


def test_signup_gift_price_can_be_set_and_cleared(db, owner, location):
    gift = _gifts(db, location.id)[0]

    update_reward(db, owner.id, gift.id, {"points_required": 0})
    assert gift.points_required == 0

    update_reward(db, owner.id, gift.id, {"points_required": None})
    assert gift.points_required is None


def test_standard_reward_price_cannot_be_cleared(db, owner, location):
    reward = make_reward(db, location, points_required=10)

    with pytest.raises(InvalidInput):
        update_reward(db, owner.id, reward.id, {"points_required": None})
    with pytest.raises(InvalidInput):
        update_reward(db, owner.id, reward.id, {"points_required": -3})


def test_update_reward_fields(db, owner, location):
    reward = make_reward(db, location, points_required=10)

    update_reward(db, owner.id, reward.id, {"name": "Big taco", "is_enabled": False, "image_url": "https://img/1.png"})
    db.commit()

    db.refresh(reward)
    assert (reward.name, reward.is_enabled, reward.image_url, reward.points_required) == (
        "Big taco",
        False,
        "https://img/1.png",
        10,
    )


def test_signup_gift_cannot_be_deleted(db, owner, location):
    gift = _gifts(db, location.id)[0]

    with pytest.raises(Conflict):
        delete_reward(db, owner.id, gift.id)


def test_delete_standard_reward(db, owner, location):
    reward = make_reward(db, location, points_required=10)
    reward_id = reward.id

    delete_reward(db, owner.id, reward_id)
    db.commit()

    assert db.get(RewardItem, reward_id) is None
    with pytest.raises(NotFound):
        delete_reward(db, owner.id, reward_id)


@pytest.mark.parametrize("points", [MAX_POINTS + 1, 10**20])
def test_price_above_column_range_is_rejected(db, owner, location, points):
    with pytest.raises(InvalidInput):
        create_reward(db, owner.id, location_id=location.id, name="Nachos", points_required=points)

    reward = make_reward(db, location)
    with pytest.raises(InvalidInput):
        update_reward(db, owner.id, reward.id, {"points_required": points})
    db.rollback()
    db.refresh(reward)
    assert reward.points_required == 30
