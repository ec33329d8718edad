"""Session storage package.

``SessionStore`` owns analyses and chat sessions on top of a
key/value backend; ``SessionDispatcher`` orders async work per
session.  :func:`create_session_store` builds the store the
settings ask for.
"""

from __future__ import annotations

from script_sentinel import settings as settings_mod
from script_sentinel.storage.backends import JsonFileBackend, MemoryBackend
from script_sentinel.storage.dispatcher import SessionDispatcher
from script_sentinel.storage.session_store import SessionStore


def create_session_store(settings: settings_mod.SentinelSettings) -> SessionStore:
    """Build a ``SessionStore`` on the configured backend."""
    if settings.store_backend == "file":
        return SessionStore(JsonFileBackend(settings.store_dir))
    return SessionStore(MemoryBackend())


__all__ = ["SessionDispatcher", "SessionStore", "create_session_store"]
