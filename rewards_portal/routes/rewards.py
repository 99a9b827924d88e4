from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rewards_portal.db import get_db
from rewards_portal.deps.identity import get_current_user_id
from rewards_portal.schemas.reward_item import RewardItemCreate, RewardItemOut, RewardItemUpdate
from rewards_portal.services.catalog_service import create_reward, delete_reward, list_rewards, update_reward


router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("", response_model=list[RewardItemOut])
def read_rewards(
    location_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    rewards = list_rewards(db, user_id, location_id)
    db.commit()
    return rewards


@router.post("", response_model=RewardItemOut)
def add_reward(
    payload: RewardItemCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    reward = create_reward(
        db,
        user_id,
        location_id=payload.location_id,
        name=payload.name,
        points_required=payload.points_required,
        image_url=payload.image_url,
    )
    db.commit()
    db.refresh(reward)
    return reward


@router.patch("/{reward_id}", response_model=RewardItemOut)
def edit_reward(
    reward_id: UUID,
    payload: RewardItemUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    reward = update_reward(db, user_id, reward_id, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(reward)
    return reward


@router.delete("/{reward_id}")
def remove_reward(
    reward_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    delete_reward(db, user_id, reward_id)
    db.commit()
    return {"deleted": True}
