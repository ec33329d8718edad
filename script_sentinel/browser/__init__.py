"""Browser package — Playwright page rendering."""

from __future__ import annotations

from script_sentinel.browser.renderer import PageRenderer, Renderer

__all__ = ["PageRenderer", "Renderer"]
