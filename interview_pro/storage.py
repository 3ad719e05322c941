"""Session storage backing the analysis and practice flows.

Records live only in process memory, keyed by ``session-{handle}`` and held as
JSON text so every read hands back an independent copy. Writes replace the
whole record; callers read, modify a copy and put it back. Each write restarts
the record's expiry window, and expired records are dropped on the next read
or prune.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Dict, List

from flask import current_app

SESSION_KEY_PREFIX = "session-"

# Session expiry window (seconds).
SESSION_TTL_SECONDS = 24 * 60 * 60


class SessionNotFoundError(KeyError):
    """Raised when no record exists for a session handle."""


class SessionDataError(ValueError):
    """Raised when a stored record can no longer be decoded."""


def session_key(handle: str) -> str:
    """Return the storage key used for a session handle."""
    return f"{SESSION_KEY_PREFIX}{handle}"


class SessionStore:
    """Interface shared by the orchestrator, results view and practice loop."""

    def put(self, handle: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def get(self, handle: str) -> Dict[str, Any]:
        raise NotImplementedError

    def prune_expired(self) -> List[str]:
        """Drop expired records and return their handles."""
        return []

    def __contains__(self, handle: str) -> bool:
        try:
            self.get(handle)
        except SessionNotFoundError:
            return False
        return True


class MemorySessionStore(SessionStore):
    """Last-writer-wins store over a plain dictionary of serialized records."""

    def __init__(
        self,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # key -> {"handle", "value", "expires_at"}
        self._items: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def put(self, handle: str, record: Dict[str, Any]) -> None:
        serialized = json.dumps(record)
        with self._lock:
            self._items[session_key(handle)] = {
                "handle": handle,
                "value": serialized,
                "expires_at": self._clock() + self.ttl_seconds,
            }

    def get(self, handle: str) -> Dict[str, Any]:
        key = session_key(handle)
        with self._lock:
            entry = self._items.get(key)
            if entry is not None and entry["expires_at"] <= self._clock():
                self._items.pop(key, None)
                entry = None

        if entry is None:
            raise SessionNotFoundError(handle)

        try:
            return json.loads(entry["value"])
        except json.JSONDecodeError as exc:
            raise SessionDataError(f"Stored session {handle} is not valid JSON") from exc

    def prune_expired(self) -> List[str]:
        current = self._clock()
        removed: List[str] = []
        with self._lock:
            for key, entry in list(self._items.items()):
                if entry["expires_at"] <= current:
                    self._items.pop(key, None)
                    removed.append(entry["handle"])
        return removed


def get_session_store() -> SessionStore:
    """Return the store bound to the active Flask application."""
    return current_app.extensions["session_store"]
