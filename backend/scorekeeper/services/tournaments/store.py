"""Document stores holding one tournament document per passcode.

Both stores expose the same four calls: ``get``, ``set``, ``delete`` and
``subscribe``. Writes replace the whole document (last write wins) and push
the new document to every subscriber of that key; a delete pushes ``None``.
"""
import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from scorekeeper import db
from scorekeeper.exceptions import PersistenceFailure
from scorekeeper.models import Tournament

Callback = Callable[[Optional[dict]], Any]


class DocumentStore:
    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self._subscribers: Dict[str, Dict[int, Callback]] = {}
        self._next_token = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[dict]:
        raise NotImplementedError

    def set(self, key: str, document: dict) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def subscribe(self, key: str, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` for changes to ``key``; returns an unsubscribe handle."""
        with self._lock:
            self._next_token += 1
            token = self._next_token
            self._subscribers.setdefault(key, {})[token] = callback

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(key)
                if callbacks is None:
                    return
                callbacks.pop(token, None)
                if not callbacks:
                    self._subscribers.pop(key, None)

        return unsubscribe

    def subscriber_count(self, key: str) -> int:
        with self._lock:
            return len(self._subscribers.get(key, {}))

    def _notify(self, key: str, document: Optional[dict]) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(key, {}).values())
        for callback in callbacks:
            try:
                callback(copy.deepcopy(document))
            except Exception as exc:
                # A broken listener must not undo a committed write
                self.logger.warning(f"[notify-error] passcode={key} error={exc!r}")


class MemoryDocumentStore(DocumentStore):
    """Process-local store; documents are deep-copied in and out."""

    def __init__(self, logger=None):
        super().__init__(logger)
        self._documents: Dict[str, dict] = {}

    def get(self, key):
        with self._lock:
            document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def set(self, key, document):
        with self._lock:
            self._documents[key] = copy.deepcopy(document)
        self._notify(key, document)

    def delete(self, key):
        with self._lock:
            self._documents.pop(key, None)
        self._notify(key, None)


class SqlDocumentStore(DocumentStore):
    """Store backed by the ``tournament`` table through Flask-SQLAlchemy.

    Must be used inside an application context.
    """

    def get(self, key):
        try:
            row = db.session.get(Tournament, key)
            return row.load() if row else None
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceFailure(f'Could not read tournament {key}') from exc
        except ValueError as exc:
            raise PersistenceFailure(f'Stored tournament {key} is not valid JSON') from exc

    def set(self, key, document):
        try:
            row = db.session.get(Tournament, key)
            if row is None:
                row = Tournament(passcode=key)
            row.dump(document)
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceFailure(f'Could not save tournament {key}') from exc
        self._notify(key, document)

    def delete(self, key):
        try:
            Tournament.query.filter_by(passcode=key).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceFailure(f'Could not delete tournament {key}') from exc
        self._notify(key, None)


@contextmanager
def watching(store: DocumentStore, key: str, callback: Callback):
    """Subscribe for the duration of a ``with`` block; always unsubscribes."""
    unsubscribe = store.subscribe(key, callback)
    try:
        yield unsubscribe
    finally:
        unsubscribe()
