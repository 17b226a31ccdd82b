"""Dual-mode question history: server store for durable accounts, local for guests."""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from config import HISTORY_NAMESPACE
from models.conversation import HistoryEntry
from models.principal import Principal
from services.identity import HistoryBackend, history_backend_for
from services.chat_api import ChatAPIClient, ChatAPIError
from services.local_storage import LocalStorage

logger = logging.getLogger(__name__)


class HistoryStore(ABC):
    """Append-only per-user log of asked questions, listed newest first."""

    #: True when the list must be re-fetched after a chat exchange instead of patched
    refetch_after_chat = False

    @abstractmethod
    def append(self, question: str) -> bool:
        """Record a question. Returns True if the visible list should gain an entry."""

    @abstractmethod
    def list(self) -> List[HistoryEntry]:
        """Return entries, most recently asked first."""

    @abstractmethod
    def clear(self) -> bool:
        """Delete all entries. Returns True only if the deletion took effect."""


class DurableHistoryStore(HistoryStore):
    """History kept by the server, keyed by account id."""

    refetch_after_chat = True

    def __init__(self, api: ChatAPIClient):
        self.api = api

    def append(self, question: str) -> bool:
        # The server records the turn as part of a successful chat exchange
        return False

    def list(self) -> List[HistoryEntry]:
        try:
            entries = self.api.fetch_history()
        except ChatAPIError as e:
            logger.warning(f"Failed to load server history: {e}")
            return []
        return sorted(entries, key=lambda entry: entry.created_at or datetime.min, reverse=True)

    def clear(self) -> bool:
        try:
            self.api.clear_history()
        except ChatAPIError as e:
            logger.error(f"Failed to clear server history: {e}")
            return False
        logger.info("Cleared server history")
        return True


class LocalHistoryStore(HistoryStore):
    """History kept in client-local storage as an ordered list of question strings."""

    def __init__(self, storage: LocalStorage, namespace: str = HISTORY_NAMESPACE):
        self.storage = storage
        self.namespace = namespace

    def _questions(self) -> List[str]:
        saved = self.storage.get_item(self.namespace, [])
        return [q for q in saved if isinstance(q, str)] if isinstance(saved, list) else []

    def append(self, question: str) -> bool:
        questions = self._questions()
        if question in questions:
            return False
        questions.append(question)
        self.storage.set_item(self.namespace, questions)
        return True

    def list(self) -> List[HistoryEntry]:
        return [HistoryEntry(question=q) for q in reversed(self._questions())]

    def clear(self) -> bool:
        self.storage.remove_item(self.namespace)
        return True


def history_store_for(principal: Principal, api: ChatAPIClient, storage: LocalStorage) -> HistoryStore:
    """Select the history backend for a principal's kind."""
    backend = history_backend_for(principal.kind)
    if backend is HistoryBackend.SERVER:
        return DurableHistoryStore(api)
    return LocalHistoryStore(storage)
