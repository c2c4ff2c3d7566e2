# alerts.py
import logging
from typing import List, Optional

from firebase_admin import firestore

from basemodel_dto.market_dto import MarketAlert, MarketAlertCreate
from errors import InvalidTransitionError
from firebase_client import get_db
from store.documents import check_owner, get_owned, list_owned, now_iso

logger = logging.getLogger(__name__)

ALERTS_COLLECTION = "marketAlerts"

# cancelled and acknowledged are terminal
ALERT_TRANSITIONS = {
    "active": {"triggered", "cancelled"},
    "triggered": {"acknowledged"},
    "cancelled": set(),
    "acknowledged": set(),
}


def check_transition(current: str, target: str):
    if target not in ALERT_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Alert cannot move from '{current}' to '{target}'.")


def create_alert(user_id: str, alert: MarketAlertCreate) -> MarketAlert:
    data = {**alert.model_dump(), "userId": user_id, "status": "active", "createdAt": now_iso()}
    _, ref = get_db().collection(ALERTS_COLLECTION).add(data)
    logger.info("Price alert %s created: %s above %s", ref.id, alert.crop, alert.priceThreshold)
    return MarketAlert(id=ref.id, **data)


def list_alerts(user_id: str, status: Optional[str] = None) -> List[MarketAlert]:
    docs = list_owned(ALERTS_COLLECTION, user_id, sort_key="createdAt")
    if status:
        docs = [d for d in docs if d.get("status") == status]
    return [MarketAlert(**doc) for doc in docs]


def _transition_in_transaction(transaction, ref, user_id: str, target: str) -> dict:
    snapshot = ref.get(transaction=transaction)
    check_owner(snapshot, ALERTS_COLLECTION, user_id)
    data = snapshot.to_dict()
    check_transition(data["status"], target)
    transaction.update(ref, {"status": target})
    return {**data, "status": target, "id": snapshot.id}


def _transition(user_id: str, alert_id: str, target: str) -> MarketAlert:
    db = get_db()
    ref = db.collection(ALERTS_COLLECTION).document(alert_id)
    data = firestore.transactional(_transition_in_transaction)(db.transaction(), ref, user_id, target)
    logger.info("Alert %s moved to %s", alert_id, target)
    return MarketAlert(**data)


def cancel_alert(user_id: str, alert_id: str) -> MarketAlert:
    return _transition(user_id, alert_id, "cancelled")


def acknowledge_alert(user_id: str, alert_id: str) -> MarketAlert:
    return _transition(user_id, alert_id, "acknowledged")


def delete_alert(user_id: str, alert_id: str) -> None:
    ref, _ = get_owned(ALERTS_COLLECTION, alert_id, user_id)
    ref.delete()


def _trigger_in_transaction(transaction, ref, price: float) -> bool:
    snapshot = ref.get(transaction=transaction)
    if not snapshot.exists or (snapshot.to_dict() or {}).get("status") != "active":
        return False
    transaction.update(ref, {"status": "triggered", "triggeredAt": now_iso(), "triggeredPrice": price})
    return True


def mark_triggered(alert_id: str, price: float) -> bool:
    """
    Moves an alert from active to triggered.
    Returns True only for the caller that performed the transition; a concurrent
    or repeated check sees the new status and gets False.
    """
    db = get_db()
    ref = db.collection(ALERTS_COLLECTION).document(alert_id)
    return firestore.transactional(_trigger_in_transaction)(db.transaction(), ref, price)
