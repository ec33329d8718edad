"""
Headless page rendering for script discovery.
Loads one URL in Chromium and records every script request the page
makes, blocking heavy resources that cannot carry scripts.
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Literal, Protocol

from playwright import async_api

from script_sentinel.models import analysis
from script_sentinel.utils import errors, logger
from script_sentinel.utils import url as url_mod
from script_sentinel.utils.serialization import utc_now_iso

log = logger.create_logger("Renderer")

# ============================================================================
# Constants
# ============================================================================

MAX_TRACKED_SCRIPTS = 1000
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

# Extra wait after a successful load for late-injected scripts.
POST_LOAD_SETTLE_MS = 3000


@dataclasses.dataclass(frozen=True)
class LoadStrategy:
    """One navigation attempt: wait condition, timeout and settle time."""

    wait_until: Literal["domcontentloaded", "load", "networkidle"]
    timeout_ms: int
    settle_ms: int = 0


LOAD_STRATEGIES: tuple[LoadStrategy, ...] = (
    LoadStrategy("networkidle", 45000),
    LoadStrategy("domcontentloaded", 30000, settle_ms=5000),
)


class Renderer(Protocol):
    """Anything that can turn a URL into observed script requests."""

    async def render(self, url: str) -> analysis.RenderResult: ...


# ============================================================================
# Script collection
# ============================================================================


class ScriptCollector:
    """Route handler that records scripts and aborts heavy resources."""

    def __init__(self, limit: int = MAX_TRACKED_SCRIPTS) -> None:
        self._limit = limit
        self._seen: set[str] = set()
        self.scripts: list[analysis.ScriptRecord] = []
        self.dropped = 0

    def record(self, request_url: str) -> None:
        """Add *request_url* unless it is a ``blob:`` URL, a duplicate, or over the cap."""
        # blob: URLs are browser-internal inline scripts.
        if request_url.startswith("blob:") or request_url in self._seen:
            return
        if len(self.scripts) >= self._limit:
            if not self.dropped:
                log.debug("Script tracking limit reached", {"limit": self._limit})
            self.dropped += 1
            return
        self._seen.add(request_url)
        self.scripts.append(analysis.ScriptRecord(url=request_url, discovered_at=utc_now_iso()))

    async def handle_route(self, route: async_api.Route) -> None:
        request = route.request
        resource_type = request.resource_type
        if resource_type == "script":
            self.record(request.url)
        if resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()


# ============================================================================
# Renderer
# ============================================================================


class PageRenderer:
    """Playwright-backed ``Renderer`` using a fresh browser per call.

    Args:
        strategies: Load attempts, tried in order until one succeeds.
        settle_ms: Wait after a successful load.
    """

    def __init__(
        self,
        strategies: tuple[LoadStrategy, ...] = LOAD_STRATEGIES,
        settle_ms: int = POST_LOAD_SETTLE_MS,
    ) -> None:
        self._strategies = strategies
        self._settle_ms = settle_ms

    async def render(self, url: str) -> analysis.RenderResult:
        """Load *url* and return the scripts it requested.

        Raises:
            errors.LoadTimeout: Every strategy timed out.
            errors.LoadBlocked: Every strategy failed and the last
                failure was not a timeout.
        """
        page_host = url_mod.extract_host(url)
        if page_host is None:
            raise errors.ValidationError(f"Invalid URL format: {url!r}")

        collector = ScriptCollector()
        log.start_timer("render")
        async with async_api.async_playwright() as pw:
            browser = await pw.chromium.launch(headless=True)
            try:
                page = await browser.new_page()
                await page.route("**/*", collector.handle_route)
                await load_page(page, url, self._strategies)
                await asyncio.sleep(self._settle_ms / 1000)
            finally:
                try:
                    await browser.close()
                except Exception as exc:
                    log.debug("Browser close error (non-fatal)", {"error": str(exc)})
        log.end_timer("render", f"Rendered {page_host}")
        log.info("Scripts observed", {"count": len(collector.scripts), "overCap": collector.dropped})

        return analysis.RenderResult(scripts=collector.scripts, page_host=page_host)


async def load_page(page: async_api.Page, url: str, strategies: tuple[LoadStrategy, ...]) -> LoadStrategy:
    """Navigate *page* to *url*, falling back through *strategies*.

    Returns:
        The strategy that succeeded.

    Raises:
        errors.LoadTimeout: The last attempt timed out.
        errors.LoadBlocked: The last attempt failed another way.
    """
    last_error: Exception | None = None
    for strategy in strategies:
        log.debug("Navigating", {"url": url, "waitUntil": strategy.wait_until, "timeout": strategy.timeout_ms})
        try:
            await page.goto(url, wait_until=strategy.wait_until, timeout=strategy.timeout_ms)
        except async_api.Error as exc:
            last_error = exc
            log.warn("Load attempt failed", {"waitUntil": strategy.wait_until, "error": str(exc)})
            continue
        if strategy.settle_ms:
            await asyncio.sleep(strategy.settle_ms / 1000)
        return strategy

    detail = errors.get_error_message(last_error) if last_error else "no load strategies configured"
    if isinstance(last_error, async_api.TimeoutError):
        raise errors.LoadTimeout(f"Timed out loading {url}", url=url, detail=detail)
    raise errors.LoadBlocked(f"Failed to load {url}", url=url, detail=detail)
