# documents.py
"""Helpers shared by the Firestore stores."""
from datetime import datetime, timezone

from google.cloud.firestore_v1.base_query import FieldFilter

from errors import ForbiddenError, NotFoundError
from firebase_client import get_db


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def user_filter(user_id: str):
    return FieldFilter("userId", "==", user_id)


def with_id(snapshot) -> dict:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


def get_owned(collection: str, doc_id: str, user_id: str, transaction=None):
    """
    Returns (reference, snapshot) of a document the user owns.
    Raises NotFoundError when it does not exist and ForbiddenError when another user owns it.
    """
    ref = get_db().collection(collection).document(doc_id)
    snapshot = ref.get(transaction=transaction) if transaction is not None else ref.get()
    check_owner(snapshot, collection, user_id)
    return ref, snapshot


def check_owner(snapshot, collection: str, user_id: str):
    if not snapshot.exists:
        raise NotFoundError(f"{collection}/{snapshot.id} not found.")
    if (snapshot.to_dict() or {}).get("userId") != user_id:
        raise ForbiddenError(f"{collection}/{snapshot.id} belongs to another user.")


def list_owned(collection: str, user_id: str, sort_key: str = None, descending: bool = True) -> list:
    """All documents of a user; sorted in memory so no composite index is needed."""
    query = get_db().collection(collection).where(filter=user_filter(user_id))
    docs = [with_id(snapshot) for snapshot in query.stream()]
    if sort_key:
        docs.sort(key=lambda d: d.get(sort_key) or "", reverse=descending)
    return docs
