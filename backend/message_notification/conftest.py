from __future__ import annotations

from types import SimpleNamespace
from typing import Optional

import pytest

from message_notification.config import Settings
from message_notification.dispatcher import NotificationDispatcher
from utils.logging_utils import create_logger


class FakeSnapshot:
    def __init__(self, data: Optional[dict]) -> None:
        self._data = data
        self.exists = data is not None

    def to_dict(self) -> Optional[dict]:
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, store: "FakeFirestore", collection: str, document_id: str) -> None:
        self.store = store
        self.path = f"{collection}/{document_id}"

    def get(self) -> FakeSnapshot:
        self.store.reads.append(self.path)
        return FakeSnapshot(self.store.documents.get(self.path))


class FakeCollection:
    def __init__(self, store: "FakeFirestore", name: str) -> None:
        self.store = store
        self.name = name

    def document(self, document_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self.store, self.name, document_id)


class FakeFirestore:
    def __init__(self, documents: Optional[dict] = None) -> None:
        self.documents: dict[str, dict] = dict(documents or {})
        self.reads: list[str] = []

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)


class FakeMessenger:
    """Records multicast messages and fails the tokens listed in ``failing``."""

    def __init__(self, failing: Optional[dict] = None) -> None:
        self.failing: dict[str, str] = dict(failing or {})
        self.sent: list = []

    def send_each_for_multicast(self, message):
        self.sent.append(message)
        responses = []
        for token in message.tokens:
            if token in self.failing:
                responses.append(SimpleNamespace(
                    success=False, message_id=None, exception=Exception(self.failing[token])))
            else:
                responses.append(SimpleNamespace(
                    success=True, message_id=f"projects/demo/messages/{token}", exception=None))
        failure_count = sum(1 for response in responses if not response.success)
        return SimpleNamespace(
            responses=responses,
            success_count=len(responses) - failure_count,
            failure_count=failure_count,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(audio_placeholder="New audio message")


@pytest.fixture
def firestore_db() -> FakeFirestore:
    return FakeFirestore({
        "matches/m1": {"users": ["u1", "u2"]},
        "users/u2": {"pushTokens": ["tokA", "tokB"]},
    })


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def dispatcher(firestore_db, messenger, settings) -> NotificationDispatcher:
    return NotificationDispatcher(firestore_db, messenger, settings, create_logger("test"))
