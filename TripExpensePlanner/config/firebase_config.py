"""
Firebase Config Module

Lazily initialises the Firebase Admin SDK and hands out a Firestore client.

get_db() returns None when credentials are missing or initialisation fails;
every caller checks for that and raises RuntimeError("Firestore is not available").
"""

from pathlib import Path

import firebase_admin
import structlog
from firebase_admin import credentials, firestore

from config.settings import get_settings

logger = structlog.get_logger(__name__)

_db = None


def get_db():
    """
    Get the shared Firestore client.

    Returns:
        google.cloud.firestore.Client | None: Client, or None if Firestore
        cannot be initialised.
    """
    global _db
    if _db is not None:
        return _db

    # Without a credentials file there is no Firestore to talk to
    credentials_path = get_settings().firebase_credentials_path
    if not credentials_path or not Path(credentials_path).exists():
        logger.warning("firestore_credentials_missing", path=credentials_path)
        return None

    try:
        # Initialise the default app only once per process
        if not firebase_admin._apps:
            firebase_admin.initialize_app(credentials.Certificate(credentials_path))
        _db = firestore.client()
    except (ValueError, OSError) as e:
        logger.error("firestore_init_failed", error=str(e))
        return None

    logger.info("firestore_connected", path=credentials_path)
    return _db
