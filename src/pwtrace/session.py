"""Traced Playwright browser sessions.

Every session records a Playwright trace (screenshots, DOM snapshots and
sources) into ``<traces_dir>/<slug>-<epoch-ms>.zip``; when the session is
stopped the archive is renamed with its PASS/FAIL outcome so the report can
pick it up.

Usage::

    from pwtrace.session import step, traced_page

    def test_homepage():
        with traced_page("homepage test") as page:
            with step("Navigate to example.com"):
                page.goto("https://example.com")
            with step("Verify heading"):
                assert page.locator("h1").text_content() == "Example Domain"

View a trace with ``npx playwright show-trace target/pw-traces/<name>.zip``.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from pwtrace.config import get_config
from pwtrace.naming import TraceStatus, build_path, now_ms, tag_with_status

logger = logging.getLogger(__name__)

# Page of the innermost active traced session; read by step() and screenshot().
current_page: ContextVar[Optional[Any]] = ContextVar("pwtrace_current_page", default=None)


@dataclass
class BrowserOptions:
    """Launch options for a traced session.

    Unset values fall back to the active configuration (PW_HEADLESS,
    PW_OUTPUT_DIR, PW_SLOW_MO).
    """

    test_name: str = "test"
    headless: Optional[bool] = None
    output_dir: Optional[Path] = None
    slow_mo_ms: Optional[int] = None
    ignore_https_errors: bool = False


@dataclass
class BrowserSession:
    """Handles for one running traced browser."""

    playwright: Any
    browser: Any
    context: Any
    page: Any
    trace_path: Path
    test_name: str
    closed: bool = False
    final_path: Optional[Path] = None


def _resolve_options(options: BrowserOptions) -> tuple[bool, Path, int]:
    config = get_config()
    headless = config.headless if options.headless is None else options.headless
    output_dir = Path(options.output_dir) if options.output_dir is not None else config.traces_dir
    if options.slow_mo_ms is not None:
        slow_mo = options.slow_mo_ms
    elif config.slow_mo_ms is not None:
        slow_mo = config.slow_mo_ms
    else:
        slow_mo = 0 if headless else 80
    return headless, output_dir, slow_mo


def start_browser(options: Optional[BrowserOptions] = None) -> BrowserSession:
    """Launch Chromium with tracing enabled and open a page.

    Returns:
        BrowserSession whose ``trace_path`` is where the archive will be
        written by ``stop_browser``.
    """
    options = options or BrowserOptions()
    headless, output_dir, slow_mo = _resolve_options(options)
    output_dir.mkdir(parents=True, exist_ok=True)
    trace_path = build_path(options.test_name, output_dir, now_ms())

    pw = sync_playwright().start()
    try:
        browser = pw.chromium.launch(headless=headless, slow_mo=slow_mo)
        context = browser.new_context(ignore_https_errors=options.ignore_https_errors)
        context.tracing.start(screenshots=True, snapshots=True, sources=True)
        page = context.new_page()
    except Exception:
        pw.stop()
        raise

    if not headless:
        logger.info("Browser launched in headed mode")
    logger.info("Trace recording started -> %s", trace_path)

    return BrowserSession(
        playwright=pw,
        browser=browser,
        context=context,
        page=page,
        trace_path=trace_path,
        test_name=options.test_name,
    )


def stop_browser(
    session: BrowserSession,
    status: Union[TraceStatus, str] = TraceStatus.PASS,
) -> Optional[Path]:
    """Stop tracing, close the browser and tag the archive with status.

    Calling it again on a stopped session does nothing and returns the
    previous result.

    Returns:
        Path of the saved (and tagged) archive, or None if closing failed
        or no archive was written.
    """
    if session.closed:
        return session.final_path
    session.closed = True

    try:
        session.page.close()
        session.context.tracing.stop(path=str(session.trace_path))
        session.context.close()
        session.browser.close()
    except PlaywrightError as exc:
        logger.warning("Error closing browser for %s: %s", session.test_name, exc)
        return None
    finally:
        session.playwright.stop()

    if session.trace_path.exists():
        session.final_path = tag_with_status(session.trace_path, status)
        logger.info("Trace saved: %s", session.final_path)
    return session.final_path


@contextmanager
def traced_page(test_name: str, **options: Any) -> Iterator[Any]:
    """Run a block against a traced page.

    The archive is tagged FAIL if the block raises (assertion failures
    included) and PASS otherwise. Keyword options are those of
    ``BrowserOptions``.
    """
    session = start_browser(BrowserOptions(test_name=test_name, **options))
    token = current_page.set(session.page)
    status = TraceStatus.FAIL
    try:
        yield session.page
        status = TraceStatus.PASS
    finally:
        current_page.reset(token)
        path = stop_browser(session, status)
        logger.info("%s: %s", "PASSED" if status is TraceStatus.PASS else "FAILED", test_name)
        if path is not None:
            logger.info("View -> npx playwright show-trace %s", path)


def _require_page(page: Optional[Any]) -> Any:
    page = page if page is not None else current_page.get()
    if page is None:
        raise RuntimeError("No active traced page; use traced_page() or pass page explicitly")
    return page


@contextmanager
def step(description: str, page: Optional[Any] = None) -> Iterator[None]:
    """Group the actions of a block under a named step in the trace.

    The group shows up as a collapsible entry in the Trace Viewer action
    list. Failures to open or close the group are logged; exceptions from
    the block propagate.
    """
    tracing = _require_page(page).context.tracing
    start = time.monotonic()
    logger.info("=> %s", description)
    try:
        tracing.group(description)
    except PlaywrightError as exc:
        logger.warning("Could not open trace group %r: %s", description, exc)

    try:
        yield
    except Exception as exc:
        logger.info("   FAILED: %s", exc)
        raise
    else:
        logger.info("   ok (%dms)", (time.monotonic() - start) * 1000)
    finally:
        try:
            tracing.group_end()
        except PlaywrightError as exc:
            logger.warning("Could not close trace group %r: %s", description, exc)


def screenshot(label: str, page: Optional[Any] = None) -> Optional[bytes]:
    """Take a labelled viewport screenshot; returns the PNG bytes or None."""
    try:
        data = _require_page(page).screenshot(full_page=False)
    except PlaywrightError as exc:
        logger.warning("Screenshot %r failed: %s", label, exc)
        return None
    logger.info("[screenshot] %s (%d bytes)", label, len(data))
    return data


@contextmanager
def api_client(
    page: Optional[Any] = None,
    *,
    test_name: str = "api-test",
    **options: Any,
) -> Iterator[Any]:
    """Provide a Playwright APIRequestContext.

    Inside a traced session (or with an explicit page) the context's own
    request client is returned, so HTTP calls land in that session's trace.
    Otherwise a standalone headless session is started just to record the
    calls, and its archive is tagged like ``traced_page``.
    """
    attached = page if page is not None else current_page.get()
    if attached is not None:
        yield attached.context.request
        return

    ignore_https_errors = options.pop("ignore_https_errors", False)
    session = start_browser(
        BrowserOptions(test_name=test_name, ignore_https_errors=ignore_https_errors, **options)
    )
    token = current_page.set(session.page)
    status = TraceStatus.FAIL
    try:
        yield session.context.request
        status = TraceStatus.PASS
    finally:
        current_page.reset(token)
        stop_browser(session, status)
