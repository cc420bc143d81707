"""Firestore helper for generation history.

Each generated cover is stored as its own document:

/profiles/{uid}/covers/{cover_id}

Entries are validated with the ``PromptData`` model before being written or
returned.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, List

import firebase_admin
from firebase_admin import credentials, firestore

from imagegen.config import get_settings
from imagegen.models import PromptData

logger = logging.getLogger(__name__)


def init_firebase() -> None:
    """Initialise the Firebase Admin SDK exactly once."""

    if firebase_admin._apps:  # type: ignore[attr-defined]
        return

    settings = get_settings()
    try:
        if settings.firebase_credentials_json:
            # Accept path or JSON string
            cred_obj: credentials.Base = (
                credentials.Certificate(settings.firebase_credentials_json)
                if settings.firebase_credentials_json.endswith(".json")
                else credentials.Certificate(json.loads(settings.firebase_credentials_json))
            )
        else:
            # Attempt default credentials (useful on Cloud Run with workload identity)
            cred_obj = credentials.ApplicationDefault()

        options = {"projectId": settings.project_id} if settings.project_id else None
        firebase_admin.initialize_app(cred_obj, options)
        logger.info("Firebase Admin SDK initialised.")
    except Exception as exc:  # pragma: no cover
        logger.exception("Failed to initialise Firebase Admin SDK: %s", exc)
        raise


def _validate_entry_dict(data: dict[str, Any]) -> dict[str, Any]:
    entry = PromptData.model_validate(data)
    return entry.model_dump(by_alias=True)


class HistoryStore:  # pylint: disable=too-few-public-methods
    """Wrapper around the per-user covers collection."""

    def __init__(self, client: Any | None = None) -> None:
        if client is None:
            init_firebase()
            client = firestore.client()
        self._db = client

    def _covers_ref(self, uid: str):
        return self._db.collection("profiles").document(uid).collection("covers")

    def save_cover(self, uid: str, entry: PromptData) -> PromptData:
        """Write *entry* under a new generated id and return the stored copy."""

        doc_ref = self._covers_ref(uid).document()
        saved = entry.model_copy(
            update={
                "id": doc_ref.id,
                "timestamp": entry.timestamp or datetime.now(timezone.utc),
            }
        )
        doc_ref.set(_validate_entry_dict(saved.model_dump(by_alias=True)))
        logger.debug("Saved cover id=%s for uid=%s", doc_ref.id, uid)
        return saved

    def list_covers(self, uid: str, limit: int = 20) -> List[PromptData]:
        query = (
            self._covers_ref(uid)
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [PromptData.model_validate(snap.to_dict()) for snap in query.stream()]


@lru_cache()
def get_history_store() -> HistoryStore:  # pragma: no cover
    return HistoryStore()
