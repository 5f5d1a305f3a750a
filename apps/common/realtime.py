"""Path-addressed access to the hosted realtime database.

Records live under slash-separated paths (``users/<cnpj>``,
``products/<cnpj>/<id>``). Views and services only talk to the store through
``get_store()`` so the backend can be swapped in tests.
"""
from __future__ import annotations

from typing import Any, Optional

from firebase_admin import db

from .firebase import get_app


class FirebaseStore:
    def _ref(self, path: str):
        return db.reference(path, app=get_app())

    def get(self, path: str) -> Any:
        """Value at ``path`` or None when nothing is stored there."""
        return self._ref(path).get()

    def set(self, path: str, value: Any) -> None:
        self._ref(path).set(value)

    def update(self, path: str, values: dict) -> None:
        """Merge ``values`` into the children of ``path``; other children stay."""
        self._ref(path).update(values)

    def push(self, path: str, value: Any) -> str:
        return self._ref(path).push(value).key

    def create(self, path: str, value: Any) -> bool:
        """Write ``value`` at ``path`` only if nothing is stored there.

        Runs as a database transaction, so of two concurrent callers exactly
        one gets True.
        """
        won = []

        def _txn(current):
            # May run more than once; the last run is the committed one
            won[:] = [current is None]
            return value if current is None else current

        self._ref(path).transaction(_txn)
        return won[-1]

    def delete(self, path: str) -> None:
        self._ref(path).delete()

    def listen(self, path: str, callback):
        """Call ``callback(event)`` on every change under ``path``.

        The first event carries the current value. Returns a registration
        whose ``close()`` stops the stream.
        """
        return self._ref(path).listen(callback)


_store: Optional[Any] = None


def get_store():
    global _store
    if _store is None:
        _store = FirebaseStore()
    return _store
