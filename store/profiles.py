# profiles.py
import logging

from basemodel_dto.farm_dto import Profile, ProfileUpdate
from firebase_client import get_db

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
DEFAULT_AVATAR_URL = "https://placehold.co/100x100.png"


def get_or_create_profile(user_id: str) -> Profile:
    """Reads users/{uid}, creating a default profile on first login."""
    ref = get_db().collection(USERS_COLLECTION).document(user_id)
    snapshot = ref.get()
    if snapshot.exists:
        return Profile(**snapshot.to_dict())

    profile = Profile(name="New Farmer", location="", language="en", avatarUrl=DEFAULT_AVATAR_URL)
    ref.set(profile.model_dump())
    logger.info("Created default profile for user %s", user_id)
    return profile


def update_profile(user_id: str, changes: ProfileUpdate) -> Profile:
    get_or_create_profile(user_id)
    ref = get_db().collection(USERS_COLLECTION).document(user_id)
    ref.set(changes.model_dump(exclude_none=True), merge=True)
    return Profile(**ref.get().to_dict())
