"""Per-session serialization of async operations.

Each session id gets a mailbox: a FIFO of pending operations drained
by a single worker task.  Operations for the same session run one at
a time in submission order, including every await inside them, while
different sessions proceed concurrently.  A mailbox is discarded as
soon as its queue drains, so idle sessions hold no resources.
"""

from __future__ import annotations

import asyncio
import collections
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from script_sentinel.utils import logger

log = logger.create_logger("Dispatcher")

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


class _Mailbox:
    """Pending operations for one session and the task draining them."""

    def __init__(self, session_id: str, on_idle: Callable[[_Mailbox], None]) -> None:
        self.session_id = session_id
        self._pending: collections.deque[tuple[Operation[Any], asyncio.Future[Any]]] = collections.deque()
        self._worker: asyncio.Task[None] | None = None
        self._on_idle = on_idle

    def post(self, operation: Operation[Any]) -> asyncio.Future[Any]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._pending.append((operation, future))
        if self._worker is None:
            self._worker = loop.create_task(self._drain(), name=f"session:{self.session_id}")
        return future

    async def _drain(self) -> None:
        current: asyncio.Future[Any] | None = None
        try:
            while self._pending:
                operation, current = self._pending.popleft()
                if current.cancelled():
                    continue
                try:
                    result = await operation()
                except Exception as exc:
                    if not current.done():
                        current.set_exception(exc)
                else:
                    if not current.done():
                        current.set_result(result)
        finally:
            # Only reached with work left when the worker itself was cancelled.
            if current is not None and not current.done():
                current.cancel()
            while self._pending:
                _, future = self._pending.popleft()
                future.cancel()
            self._worker = None
            self._on_idle(self)


class SessionDispatcher:
    """Routes operations to their session's mailbox."""

    def __init__(self) -> None:
        self._mailboxes: dict[str, _Mailbox] = {}

    @property
    def active_sessions(self) -> int:
        """Number of sessions with queued or running work."""
        return len(self._mailboxes)

    async def submit(self, session_id: str, operation: Operation[T]) -> T:
        """Run *operation* after every earlier submission for *session_id*.

        Args:
            session_id: Session whose order the operation joins.
            operation: Zero-argument coroutine function to run.

        Returns:
            Whatever *operation* returns; its exceptions propagate.
        """
        mailbox = self._mailboxes.get(session_id)
        if mailbox is None:
            mailbox = _Mailbox(session_id, self._release)
            self._mailboxes[session_id] = mailbox
        return await mailbox.post(operation)

    def _release(self, mailbox: _Mailbox) -> None:
        if self._mailboxes.get(mailbox.session_id) is mailbox:
            del self._mailboxes[mailbox.session_id]
            log.debug("Session mailbox drained", {"sessionId": mailbox.session_id})
