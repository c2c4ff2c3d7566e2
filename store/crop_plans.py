# crop_plans.py
import logging
from typing import List

from basemodel_dto.recommendation_dto import CropPlan, CropPlanCreate
from firebase_client import get_db
from store.documents import get_owned, list_owned, now_iso

logger = logging.getLogger(__name__)

CROP_PLANS_COLLECTION = "cropPlans"


def create_crop_plan(user_id: str, plan: CropPlanCreate) -> CropPlan:
    if plan.profitSummary is not None:
        summary = plan.profitSummary
        summary.netProfit = summary.totalRevenue - summary.totalCost

    data = {**plan.model_dump(), "userId": user_id, "createdAt": now_iso()}
    _, ref = get_db().collection(CROP_PLANS_COLLECTION).add(data)
    logger.info("Crop plan %s (%s) saved for user %s", ref.id, plan.cropName, user_id)
    return CropPlan(id=ref.id, **data)


def list_crop_plans(user_id: str) -> List[CropPlan]:
    return [CropPlan(**doc) for doc in list_owned(CROP_PLANS_COLLECTION, user_id, sort_key="createdAt")]


def get_crop_plan(user_id: str, plan_id: str) -> CropPlan:
    _, snapshot = get_owned(CROP_PLANS_COLLECTION, plan_id, user_id)
    return CropPlan(id=snapshot.id, **snapshot.to_dict())


def delete_crop_plan(user_id: str, plan_id: str) -> None:
    ref, _ = get_owned(CROP_PLANS_COLLECTION, plan_id, user_id)
    ref.delete()
