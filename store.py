"""
Document store used by the MindfulMe backend.

Two backends share one small interface:
- InMemoryStore: default for local runs and tests.
- FirestoreStore: Cloud Firestore through firebase-admin.

Documents are plain dicts. Results of get/query always carry the document id
under "id".
"""

import copy
import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from config import Settings

logger = logging.getLogger(__name__)

# Collection names
MEALS = "meals"
JOURNAL_ENTRIES = "journalEntries"
MEDITATION_SESSIONS = "meditationSessions"
DAILY_GOALS = "dailyGoals"
CHAT_MESSAGES = "chatMessages"
EMOTIONAL_SNAPSHOTS = "emotionalSnapshots"
GAMIFICATION = "gamification"
GAME_SETTINGS = "gameSettings"
DIET_SETTINGS = "dietSettings"
WORDFLOW_STATS = "wordflowStats"
PREDICTIONS = "predictions"


class NotFoundError(LookupError):
    """A document the caller asked for by id does not exist."""


UpdateFn = Callable[[Optional[Dict[str, Any]]], Dict[str, Any]]


class DocumentStore:
    """Interface for the document database."""

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    def transact(self, collection: str, doc_id: str, fn: UpdateFn) -> Dict[str, Any]:
        """
        Atomic read-modify-write of one document.

        fn gets the current data (None when missing, never with "id") and returns
        the full replacement. It may run more than once, so it must not have
        side effects. Returns what was written.
        """
        raise NotImplementedError


class InMemoryStore(DocumentStore):
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _bucket(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    @staticmethod
    def _strip_id(data: Dict[str, Any]) -> Dict[str, Any]:
        return {k: copy.deepcopy(v) for k, v in data.items() if k != "id"}

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        with self._lock:
            self._bucket(collection)[doc_id] = self._strip_id(data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        with self._lock:
            bucket = self._bucket(collection)
            if merge and doc_id in bucket:
                bucket[doc_id].update(self._strip_id(data))
            else:
                bucket[doc_id] = self._strip_id(data)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._bucket(collection).get(doc_id)
            if doc is None:
                return None
            return {**copy.deepcopy(doc), "id": doc_id}

    def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {**copy.deepcopy(doc), "id": doc_id}
                for doc_id, doc in self._bucket(collection).items()
                if all(doc.get(field) == value for field, value in equals.items())
            ]

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            bucket = self._bucket(collection)
            if doc_id not in bucket:
                raise NotFoundError(f"{collection}/{doc_id} not found")
            bucket[doc_id].update(self._strip_id(data))

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._bucket(collection).pop(doc_id, None)

    def transact(self, collection: str, doc_id: str, fn: UpdateFn) -> Dict[str, Any]:
        with self._lock:
            bucket = self._bucket(collection)
            current = bucket.get(doc_id)
            data = self._strip_id(fn(copy.deepcopy(current) if current is not None else None))
            bucket[doc_id] = data
            return copy.deepcopy(data)


class FirestoreStore(DocumentStore):
    """Cloud Firestore backend (firebase-admin)."""

    def __init__(self, credentials_path: str):
        if not firebase_admin._apps:
            cred = credentials.Certificate(credentials_path)
            firebase_admin.initialize_app(cred)
        self._db = firestore.client()

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        _, doc_ref = self._db.collection(collection).add(
            {k: v for k, v in data.items() if k != "id"}
        )
        return doc_ref.id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._db.collection(collection).document(doc_id).set(
            {k: v for k, v in data.items() if k != "id"},
            merge=merge,
        )

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return {**snapshot.to_dict(), "id": snapshot.id}

    def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        ref = self._db.collection(collection)
        for field, value in equals.items():
            ref = ref.where(field, "==", value)
        return [{**doc.to_dict(), "id": doc.id} for doc in ref.stream()]

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        doc_ref = self._db.collection(collection).document(doc_id)
        if not doc_ref.get().exists:
            raise NotFoundError(f"{collection}/{doc_id} not found")
        doc_ref.update({k: v for k, v in data.items() if k != "id"})

    def delete(self, collection: str, doc_id: str) -> None:
        self._db.collection(collection).document(doc_id).delete()

    def transact(self, collection: str, doc_id: str, fn: UpdateFn) -> Dict[str, Any]:
        doc_ref = self._db.collection(collection).document(doc_id)

        @firestore.transactional
        def run(transaction) -> Dict[str, Any]:
            snapshot = doc_ref.get(transaction=transaction)
            current = snapshot.to_dict() if snapshot.exists else None
            data = {k: v for k, v in fn(current).items() if k != "id"}
            transaction.set(doc_ref, data)
            return data

        return run(self._db.transaction())


def get_store(settings: Settings) -> DocumentStore:
    backend = (settings.store_backend or "memory").strip().lower()

    if backend == "firestore":
        if not settings.firebase_credentials:
            raise RuntimeError("STORE_BACKEND=firestore requires FIREBASE_CREDENTIALS")
        logger.info("Using Firestore document store")
        return FirestoreStore(settings.firebase_credentials)

    if backend != "memory":
        raise RuntimeError(f"Unknown STORE_BACKEND: {settings.store_backend!r}")

    logger.info("Using in-memory document store")
    return InMemoryStore()
