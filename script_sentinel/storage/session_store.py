"""Persistence for analysis results and chat sessions.

Key layout:

- ``analysis:<url>:<timestamp-ms>`` → ``AnalysisResult``.  An
  append-only log: every store adds a new key and nothing is ever
  overwritten or pruned.
- ``chat:<sessionId>`` → ``ChatSession``.  Created (or reset) by
  ``init_chat_session`` and otherwise changed only by appends.

Every method is synchronous and completes without yielding to the
event loop.  Ordering across the awaits of a whole chat turn is the
job of ``SessionDispatcher``.
"""

from __future__ import annotations

from collections.abc import Callable

import pydantic

from script_sentinel.models import analysis, chat
from script_sentinel.storage import backends
from script_sentinel.utils import errors, logger
from script_sentinel.utils.serialization import epoch_ms, utc_now_iso

log = logger.create_logger("SessionStore")

ANALYSIS_PREFIX = "analysis:"
CHAT_PREFIX = "chat:"


def analysis_key(url: str, timestamp_ms: int) -> str:
    """Build the log key for an analysis of *url* stored at *timestamp_ms*."""
    return f"{ANALYSIS_PREFIX}{url}:{timestamp_ms}"


def chat_key(session_id: str) -> str:
    """Build the key holding the chat session *session_id*."""
    return f"{CHAT_PREFIX}{session_id}"


def _timestamp_of(key: str) -> int:
    try:
        return int(key.rsplit(":", 1)[1])
    except (IndexError, ValueError):
        return 0


class SessionStore:
    """Owns every persisted analysis and chat session.

    Read operations return freshly validated models, never the
    stored objects themselves.

    Args:
        backend: Storage backend; in-memory when omitted.
        clock: Millisecond clock used for analysis keys.
    """

    def __init__(
        self,
        backend: backends.KeyValueBackend | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        self._backend = backend if backend is not None else backends.MemoryBackend()
        self._clock = clock
        self._last_timestamp = 0

    # ── Analysis log ────────────────────────────────────────────

    def store_analysis(self, result: analysis.AnalysisResult) -> str:
        """Append *result* to the analysis log.

        The key's timestamp is strictly increasing within this
        store and skips any key already present, so two stores in
        the same millisecond still get distinct keys.

        Returns:
            The assigned key.

        Raises:
            errors.StorageError: When the backend write fails.
        """
        timestamp = max(self._clock(), self._last_timestamp + 1)
        key = analysis_key(result.url, timestamp)
        while self._backend.contains(key):
            timestamp += 1
            key = analysis_key(result.url, timestamp)
        self._last_timestamp = timestamp

        self._backend.put(key, result.model_dump(mode="json", by_alias=True))
        log.info("Analysis stored", {"key": key, "analyses": len(result.analyses)})
        return key

    def retrieve_analyses(self) -> list[analysis.StoredAnalysis]:
        """Return every stored analysis, oldest first.

        Performs a full prefix scan with no pagination.

        Raises:
            errors.StorageError: When the backend scan fails or a
                stored document is corrupt.
        """
        entries = sorted(
            self._backend.scan(ANALYSIS_PREFIX),
            key=lambda item: (_timestamp_of(item[0]), item[0]),
        )
        try:
            return [
                analysis.StoredAnalysis(key=key, result=analysis.AnalysisResult.model_validate(value))
                for key, value in entries
            ]
        except pydantic.ValidationError as exc:
            raise errors.StorageError(f"Corrupt analysis entry: {exc}") from exc

    # ── Chat sessions ───────────────────────────────────────────

    def get_session(self, session_id: str) -> chat.ChatSession | None:
        """Load the session for *session_id*, or ``None`` when absent."""
        raw = self._backend.get(chat_key(session_id))
        if raw is None:
            return None
        try:
            return chat.ChatSession.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise errors.StorageError(f"Corrupt chat session {session_id!r}: {exc}") from exc

    def has_session(self, session_id: str) -> bool:
        """Whether a session exists for *session_id*."""
        return self._backend.contains(chat_key(session_id))

    def _save_session(self, session: chat.ChatSession) -> None:
        self._backend.put(chat_key(session.session_id), session.model_dump(mode="json", by_alias=True))

    def init_chat_session(
        self,
        session_id: str,
        analysis_data: analysis.AnalysisResult | None,
    ) -> chat.ChatSession:
        """Create the session, discarding any previous state for the id.

        Args:
            session_id: Session identity.
            analysis_data: Snapshot the chat will be grounded in.

        Returns:
            The new, empty session.
        """
        if self.has_session(session_id):
            log.warn("Re-initialising chat session; prior messages discarded", {"sessionId": session_id})
        now = utc_now_iso()
        session = chat.ChatSession(
            session_id=session_id,
            messages=[],
            analysis_data=analysis_data,
            created_at=now,
            last_active_at=now,
        )
        self._save_session(session)
        return session

    def append_message(self, session_id: str, message: chat.ChatMessage) -> chat.ChatSession:
        """Append *message* to an existing session.

        Raises:
            errors.SessionNotFound: When no session exists for the id.
        """
        session = self.get_session(session_id)
        if session is None:
            raise errors.SessionNotFound(session_id)

        updated = session.model_copy(
            update={
                "messages": [*session.messages, message],
                "last_active_at": utc_now_iso(),
            }
        )
        self._save_session(updated)
        return updated

    def get_history(self, session_id: str) -> chat.ChatHistory:
        """Messages and snapshot for *session_id*.

        An unknown id yields an empty history with no snapshot
        rather than an error.
        """
        session = self.get_session(session_id)
        if session is None:
            return chat.ChatHistory(messages=[], analysis_data=None)
        return chat.ChatHistory(messages=session.messages, analysis_data=session.analysis_data)
