"""
Sentinel service: the analyze and chat flows behind the HTTP layer.

Only ``ValidationError``, ``RenderError`` and ``SessionNotFound``
leave this module.  Oracle trouble is absorbed by the agents and
storage trouble is logged here.
"""

from __future__ import annotations

from typing import Any

from script_sentinel import agents, settings as settings_mod
from script_sentinel.agents import chat_agent as chat_agent_mod
from script_sentinel.analysis import classifier as classifier_mod
from script_sentinel.analysis import context as context_mod
from script_sentinel.analysis import scripts as scripts_mod
from script_sentinel.browser import renderer as renderer_mod
from script_sentinel.models import analysis, chat
from script_sentinel.storage import dispatcher as dispatcher_mod
from script_sentinel.storage import session_store
from script_sentinel.utils import errors, logger
from script_sentinel.utils import url as url_mod

log = logger.create_logger("Sentinel")


def _require(value: str | None, what: str) -> str:
    text = (value or "").strip()
    if not text:
        raise errors.ValidationError(f"{what} is required")
    return text


class Sentinel:
    """Coordinates rendering, classification, storage and chat.

    Args:
        renderer: Page renderer used by ``analyze``.
        store: Persistence for analyses and chat sessions.
        classifier: Tiered resolver; a default one is built when
            omitted.
        chat_agent: Oracle for chat turns; the shared singleton is
            fetched on first use when omitted.
        dispatcher: Per-session serializer for chat operations.
        settings: Tunables; read from the environment when omitted.
    """

    def __init__(
        self,
        *,
        renderer: renderer_mod.Renderer,
        store: session_store.SessionStore,
        classifier: classifier_mod.ScriptClassifier | None = None,
        chat_agent: chat_agent_mod.SentinelChatAgent | None = None,
        dispatcher: dispatcher_mod.SessionDispatcher | None = None,
        settings: settings_mod.SentinelSettings | None = None,
    ) -> None:
        self._renderer = renderer
        self._store = store
        self._classifier = classifier or classifier_mod.ScriptClassifier()
        self._chat_agent = chat_agent
        self._dispatcher = dispatcher or dispatcher_mod.SessionDispatcher()
        self._settings = settings or settings_mod.SentinelSettings()

    def _get_chat_agent(self) -> chat_agent_mod.SentinelChatAgent:
        if self._chat_agent is None:
            self._chat_agent = agents.get_chat_agent()
        return self._chat_agent

    # ==========================================================================
    # Analyze
    # ==========================================================================

    async def analyze(self, url: str) -> analysis.AnalysisResult:
        """Render *url*, classify its third-party scripts and store the result.

        Raises:
            errors.ValidationError: Empty URL, non-http(s) scheme or no host.
            errors.RenderError: The page could not be loaded.
        """
        url = _require(url, "URL")
        if not url_mod.is_web_url(url):
            raise errors.ValidationError("Invalid URL format")

        host = url_mod.extract_host(url) or url
        log_path = logger.start_log_file(host)
        log.section(f"Analyzing: {url}")
        if log_path:
            log.debug("Writing log file", {"path": log_path})
        log.start_timer("total-analysis")
        try:
            try:
                rendered = await self._renderer.render(url)
            except errors.SentinelError:
                raise
            except Exception as exc:
                raise errors.RenderError(
                    f"Failed to render {url}", url=url, detail=errors.get_error_message(exc)
                ) from exc

            result = await scripts_mod.analyze_scripts(
                url,
                rendered.page_host,
                rendered.scripts,
                classifier=self._classifier,
                max_scripts=self._settings.max_third_party_scripts,
            )

            try:
                self._store.store_analysis(result)
            except errors.StorageError as exc:
                log.error("Failed to store analysis", {"url": url, "error": errors.get_error_message(exc)})

            log.end_timer("total-analysis", "Analysis complete")
            log.success(
                "Analysis finished",
                {"totalScripts": result.total_scripts, "analyzed": len(result.analyses)},
            )
            return result
        except errors.RenderError as exc:
            log.error("Render failed", {"url": url, "error": str(exc), "detail": exc.detail})
            raise
        finally:
            logger.end_log_file()

    # ==========================================================================
    # Chat
    # ==========================================================================

    async def init_chat_session(
        self,
        session_id: str,
        analysis_data: analysis.AnalysisResult | None = None,
    ) -> dict[str, Any]:
        """Create (or reset) the session *session_id* grounded in *analysis_data*."""
        session_id = _require(session_id, "Session ID")

        async def _init() -> dict[str, Any]:
            try:
                self._store.init_chat_session(session_id, analysis_data)
            except errors.StorageError as exc:
                log.error("Failed to initialise chat session", {"sessionId": session_id, "error": str(exc)})
                return {"success": False, "sessionId": session_id}
            log.info("Chat session initialised", {"sessionId": session_id, "hasAnalysis": analysis_data is not None})
            return {"success": True, "sessionId": session_id}

        return await self._dispatcher.submit(session_id, _init)

    async def chat(
        self,
        message: str,
        session_id: str,
        analysis_context: analysis.AnalysisResult | None = None,
    ) -> chat.ChatReply:
        """Answer one user message within the session.

        The whole turn, from reading the session to appending the
        reply, runs as one item of the session's mailbox.

        Raises:
            errors.ValidationError: Empty message or session id.
            errors.SessionNotFound: The session was never initialised.
        """
        message = _require(message, "Message")
        session_id = _require(session_id, "Session ID")

        async def _turn() -> chat.ChatReply:
            try:
                session = self._store.get_session(session_id)
            except errors.StorageError as exc:
                log.error("Failed to load chat session", {"sessionId": session_id, "error": str(exc)})
                session = None
            if session is None:
                raise errors.SessionNotFound(session_id)

            source = analysis_context if analysis_context is not None else session.analysis_data
            context = context_mod.build_analysis_context(source, self._settings.context_max_scripts)
            limit = self._settings.chat_history_messages
            history = session.messages[-limit:] if limit else []

            user_message = chat.ChatMessage(role="user", content=message)
            log.info("Chat turn", {"sessionId": session_id, "historyLength": len(history)})
            reply = await self._get_chat_agent().answer(message, context, history)
            assistant_message = chat.ChatMessage(role="assistant", content=reply)

            try:
                self._store.append_message(session_id, user_message)
                self._store.append_message(session_id, assistant_message)
            except errors.StorageError as exc:
                log.error("Failed to persist chat turn", {"sessionId": session_id, "error": str(exc)})

            return chat.ChatReply(reply=reply, timestamp=assistant_message.timestamp)

        return await self._dispatcher.submit(session_id, _turn)

    async def get_history(self, session_id: str) -> chat.ChatHistory:
        """Messages and snapshot of *session_id*; empty when it does not exist."""
        session_id = _require(session_id, "Session ID")

        async def _read() -> chat.ChatHistory:
            try:
                return self._store.get_history(session_id)
            except errors.StorageError as exc:
                log.error("Failed to read chat history", {"sessionId": session_id, "error": str(exc)})
                return chat.ChatHistory()

        return await self._dispatcher.submit(session_id, _read)

    # ==========================================================================
    # Analysis log
    # ==========================================================================

    def list_analyses(self) -> list[analysis.StoredAnalysis]:
        """Every stored analysis, oldest first."""
        try:
            return self._store.retrieve_analyses()
        except errors.StorageError as exc:
            log.error("Failed to list analyses", {"error": str(exc)})
            return []
