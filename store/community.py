# community.py
import logging
from typing import List, Optional

from firebase_admin import firestore

from basemodel_dto.community_dto import CommentCreate, CommunityComment, CommunityPost
from errors import NotFoundError
from firebase_client import get_db
from store.documents import get_owned, now_iso, with_id
from store.profiles import DEFAULT_AVATAR_URL, get_or_create_profile

logger = logging.getLogger(__name__)

POSTS_COLLECTION = "communityPosts"
COMMENTS_COLLECTION = "comments"


def _author(user_id: str) -> dict:
    profile = get_or_create_profile(user_id)
    return {"userId": user_id, "userName": profile.name, "userAvatar": profile.avatarUrl or DEFAULT_AVATAR_URL}


def _post_ref(post_id: str):
    return get_db().collection(POSTS_COLLECTION).document(post_id)


def create_post(user_id: str, content: str, image_url: Optional[str] = None) -> CommunityPost:
    if not content.strip() and not image_url:
        raise ValueError("A post needs text or an image.")

    data = {
        **_author(user_id),
        "content": content.strip(),
        "imageUrl": image_url,
        "timestamp": now_iso(),
        "likesCount": 0,
        "commentsCount": 0,
        "likedBy": [],
    }
    _, ref = get_db().collection(POSTS_COLLECTION).add(data)
    logger.info("Community post %s created by %s", ref.id, user_id)
    return CommunityPost(id=ref.id, **data)


def list_posts(limit: int = 50) -> List[CommunityPost]:
    query = get_db().collection(POSTS_COLLECTION).order_by("timestamp", direction=firestore.Query.DESCENDING).limit(limit)
    return [CommunityPost(**with_id(snapshot)) for snapshot in query.stream()]


def get_post(post_id: str) -> CommunityPost:
    snapshot = _post_ref(post_id).get()
    if not snapshot.exists:
        raise NotFoundError(f"{POSTS_COLLECTION}/{post_id} not found.")
    return CommunityPost(**with_id(snapshot))


def delete_post(user_id: str, post_id: str) -> None:
    ref, _ = get_owned(POSTS_COLLECTION, post_id, user_id)
    for comment in ref.collection(COMMENTS_COLLECTION).stream():
        comment.reference.delete()
    ref.delete()
    logger.info("Community post %s deleted by %s", post_id, user_id)


def _toggle_like_in_transaction(transaction, ref, user_id: str) -> dict:
    snapshot = ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError(f"{POSTS_COLLECTION}/{ref.id} not found.")
    data = snapshot.to_dict()
    liked_by = list(data.get("likedBy") or [])
    if user_id in liked_by:
        liked_by.remove(user_id)
    else:
        liked_by.append(user_id)
    changes = {"likedBy": liked_by, "likesCount": len(liked_by)}
    transaction.update(ref, changes)
    return {**data, **changes, "id": snapshot.id}


def toggle_like(user_id: str, post_id: str) -> CommunityPost:
    """Likes the post, or removes the like when the user already liked it."""
    db = get_db()
    data = firestore.transactional(_toggle_like_in_transaction)(db.transaction(), _post_ref(post_id), user_id)
    return CommunityPost(**data)


def _add_comment_in_transaction(transaction, post_ref, comment_ref, comment: dict):
    snapshot = post_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError(f"{POSTS_COLLECTION}/{post_ref.id} not found.")
    comments_count = (snapshot.to_dict().get("commentsCount") or 0) + 1
    transaction.update(post_ref, {"commentsCount": comments_count})
    transaction.set(comment_ref, comment)


def add_comment(user_id: str, post_id: str, comment: CommentCreate) -> CommunityComment:
    db = get_db()
    post_ref = _post_ref(post_id)
    comment_ref = post_ref.collection(COMMENTS_COLLECTION).document()
    data = {**_author(user_id), "content": comment.content.strip(), "timestamp": now_iso()}
    firestore.transactional(_add_comment_in_transaction)(db.transaction(), post_ref, comment_ref, data)
    return CommunityComment(id=comment_ref.id, **data)


def list_comments(post_id: str) -> List[CommunityComment]:
    post_ref = _post_ref(post_id)
    if not post_ref.get().exists:
        raise NotFoundError(f"{POSTS_COLLECTION}/{post_id} not found.")
    query = post_ref.collection(COMMENTS_COLLECTION).order_by("timestamp", direction=firestore.Query.ASCENDING)
    return [CommunityComment(**with_id(snapshot)) for snapshot in query.stream()]
