# farms.py
import logging
from typing import List

from basemodel_dto.farm_dto import Farm, FarmCreate
from firebase_client import get_db
from store.documents import get_owned, list_owned

logger = logging.getLogger(__name__)

FARMS_COLLECTION = "farms"


def create_farm(user_id: str, farm: FarmCreate) -> Farm:
    data = {**farm.model_dump(), "userId": user_id}
    _, ref = get_db().collection(FARMS_COLLECTION).add(data)
    logger.info("Farm %s created for user %s", ref.id, user_id)
    return Farm(id=ref.id, **data)


def list_farms(user_id: str) -> List[Farm]:
    return [Farm(**doc) for doc in list_owned(FARMS_COLLECTION, user_id)]


def get_farm(user_id: str, farm_id: str) -> Farm:
    _, snapshot = get_owned(FARMS_COLLECTION, farm_id, user_id)
    return Farm(id=snapshot.id, **snapshot.to_dict())


def update_farm(user_id: str, farm_id: str, farm: FarmCreate) -> Farm:
    ref, _ = get_owned(FARMS_COLLECTION, farm_id, user_id)
    data = {**farm.model_dump(), "userId": user_id}
    ref.set(data)
    return Farm(id=farm_id, **data)


def delete_farm(user_id: str, farm_id: str) -> None:
    ref, _ = get_owned(FARMS_COLLECTION, farm_id, user_id)
    ref.delete()
    logger.info("Farm %s deleted by user %s", farm_id, user_id)
