# firebase_client.py
import logging
import os
import uuid

import firebase_admin
from firebase_admin import auth, credentials, firestore, storage

import config

logger = logging.getLogger(__name__)

_db = None
_bucket = None

MIME_TYPE_MAPPING = {'jpg': 'image/jpeg', 'jpeg': 'image/jpeg', 'png': 'image/png', 'gif': 'image/gif', 'webp': 'image/webp'}


def init_firebase():
    """Initializes the Firebase Admin SDK once per process."""
    if firebase_admin._apps:
        return

    service_account_path = config.FIREBASE_CREDENTIALS_PATH
    if not os.path.exists(service_account_path):
        raise FileNotFoundError(f"Firebase service account file not found at mounted path: {service_account_path}")

    cred = credentials.Certificate(service_account_path)
    options = {}
    if config.FIREBASE_STORAGE_BUCKET:
        options['storageBucket'] = config.FIREBASE_STORAGE_BUCKET

    firebase_admin.initialize_app(cred, options)
    logger.info("Firebase Admin SDK initialized (bucket: %s)", config.FIREBASE_STORAGE_BUCKET)


def get_db():
    global _db
    if _db is None:
        init_firebase()
        _db = firestore.client()
        logger.info("Firestore client initialized.")
    return _db


def get_bucket():
    global _bucket
    if _bucket is None:
        init_firebase()
        _bucket = storage.bucket()
        logger.info("Firebase Storage bucket initialized: %s", _bucket.name)
    return _bucket


def verify_id_token(token: str) -> dict:
    """Validates a Firebase ID token and returns its decoded claims ('uid', 'phone_number', ...)."""
    init_firebase()
    return auth.verify_id_token(token)


def guess_mime_type(filename: str | None, content_type: str | None = None) -> str:
    if content_type:
        return content_type
    file_extension = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else ''
    return MIME_TYPE_MAPPING.get(file_extension, 'image/jpeg')


def upload_image(user_id: str, image_bytes: bytes, filename: str | None, content_type: str | None = None) -> str:
    """Uploads a user image to Firebase Storage and returns its public URL."""
    if not image_bytes:
        raise ValueError("Uploaded image file is empty.")

    mime_type = guess_mime_type(filename, content_type)
    file_extension = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else 'bin'
    destination_blob_name = f"artifacts/{config.APP_ID}/users/{user_id}/images/{uuid.uuid4()}.{file_extension}"

    blob = get_bucket().blob(destination_blob_name)
    blob.upload_from_string(image_bytes, content_type=mime_type)
    blob.make_public()
    logger.info("Image uploaded to Firebase Storage: %s", blob.public_url)
    return blob.public_url
