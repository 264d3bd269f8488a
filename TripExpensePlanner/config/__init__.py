"""
Configuration package for the trip expense planner.

Exposes the settings object, the Firestore client accessor and the
logging setup used by every other module.
"""

from config.settings import Settings, get_settings
from config.firebase_config import get_db
from config.logging_config import configure_logging

__all__ = ["Settings", "get_settings", "get_db", "configure_logging"]
