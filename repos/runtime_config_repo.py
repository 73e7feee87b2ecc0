from __future__ import annotations

from typing import Any, Dict, Optional

from google.cloud.firestore import Client

from config.settings import settings
from storage.firestore_client import get_firestore_client


class RuntimeConfigRepository:
    """
    Read-only access to runtime configuration documents in Firestore.

    Documents live at {RUNTIME_CONFIG_COLLECTION}/{name} and hold flat
    string fields, e.g. runtime_config/twilio = {sid, token, number}.
    """

    def __init__(self, db: Optional[Client] = None, collection: Optional[str] = None):
        self.db = db or get_firestore_client()
        self.collection = collection or settings.RUNTIME_CONFIG_COLLECTION

    def get(self, name: str) -> Dict[str, Any]:
        snap = self.db.collection(self.collection).document(name).get()
        if not snap.exists:
            return {}
        return snap.to_dict() or {}
