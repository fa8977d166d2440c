"""Computed-style typography pass.

The declared-style pass in ``style_grabber`` cannot resolve the cascade. This
module renders the captured markup in a throwaway headless Chromium document,
waits a fixed settle window for external fonts and stylesheets, and reads
``getComputedStyle`` for every element under ``<body>``. The result replaces
the declared fonts and sizes; on any failure the declared values stand.
"""

from __future__ import annotations

import dataclasses
import html
import logging
import re
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from playwright.sync_api import Page, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from style_grabber import AnalysisResult, RenderTimeoutError, clean_font_families, sort_font_sizes

SETTLE_MS = 1000
RENDER_TIMEOUT_MS = 15000

COMPUTED_TYPOGRAPHY_JS = """() => {
  if (!document.body) return [];
  return Array.from(document.body.querySelectorAll('*')).map((el) => {
    const style = window.getComputedStyle(el);
    return [style.getPropertyValue('font-family'), style.getPropertyValue('font-size')];
  });
}"""

logger = logging.getLogger(__name__)


def with_base_href(markup: str, base_url: Optional[str]) -> str:
    if not base_url or re.search(r"<base\b", markup, flags=re.I):
        return markup
    tag = f'<base href="{html.escape(base_url, quote=True)}">'
    head = re.search(r"<head\b[^>]*>", markup, flags=re.I)
    if head:
        return markup[: head.end()] + tag + markup[head.end() :]
    return tag + markup


@contextmanager
def rendered_page(markup: str, timeout_ms: int = RENDER_TIMEOUT_MS) -> Iterator[Page]:
    """Yield a page with ``markup`` loaded in a fresh browser.

    The browser is closed on every exit path, including timeouts raised
    while the markup is still loading.
    """
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=True)
        try:
            context = browser.new_context()
            page = context.new_page()
            page.set_default_timeout(timeout_ms)
            page.set_content(markup, wait_until="domcontentloaded")
            yield page
        finally:
            browser.close()


def computed_typography(page: Page, settle_ms: int = SETTLE_MS) -> Tuple[List[str], List[str]]:
    page.wait_for_timeout(settle_ms)
    rows = page.evaluate(COMPUTED_TYPOGRAPHY_JS) or []

    fonts: dict = {}
    sizes: dict = {}
    for family, size in rows:
        for font in clean_font_families(family):
            fonts.setdefault(font)
        if size and size.strip():
            sizes.setdefault(size.strip())
    return list(fonts), sort_font_sizes(sizes)


def render_typography(
    markup: str, settle_ms: int = SETTLE_MS, timeout_ms: int = RENDER_TIMEOUT_MS
) -> Tuple[List[str], List[str]]:
    try:
        with rendered_page(markup, timeout_ms=timeout_ms) as page:
            return computed_typography(page, settle_ms=settle_ms)
    except PlaywrightTimeoutError as exc:
        raise RenderTimeoutError(f"Rendering did not finish within {timeout_ms} ms") from exc


def refine_typography(
    result: AnalysisResult,
    base_url: Optional[str] = None,
    settle_ms: int = SETTLE_MS,
    timeout_ms: int = RENDER_TIMEOUT_MS,
) -> AnalysisResult:
    """Return ``result`` with fonts and sizes taken from computed styles.

    Never raises: if rendering fails or times out the original result is
    returned untouched.
    """
    try:
        fonts, font_sizes = render_typography(
            with_base_href(result.html, base_url), settle_ms=settle_ms, timeout_ms=timeout_ms
        )
    except RenderTimeoutError as exc:
        logger.warning("Typography refinement abandoned: %s", exc)
        return result
    except Exception as exc:
        logger.warning("Typography refinement failed, keeping declared values: %s", exc, exc_info=True)
        return result

    logger.debug("Refined typography: %d fonts, %d sizes", len(fonts), len(font_sizes))
    return dataclasses.replace(result, fonts=fonts, font_sizes=font_sizes)
