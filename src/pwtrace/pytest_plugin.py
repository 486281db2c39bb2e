"""pytest integration for traced Playwright tests.

Enable it from a conftest.py::

    pytest_plugins = ["pwtrace.pytest_plugin"]

Then request the ``pw_page`` fixture. Each test gets its own traced
Chromium page and its archive is tagged FAIL when setup or the test body
failed, PASS otherwise. Pass ``--pw-report`` to regenerate the HTML report
once the session finishes.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Optional

import pytest

from pwtrace.naming import TraceStatus

PHASE_REPORT_KEY = pytest.StashKey[dict]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("pwtrace", "Playwright trace archives")
    group.addoption(
        "--pw-traces-dir",
        dest="pw_traces_dir",
        default=None,
        help="Directory for trace archives (default: PW_OUTPUT_DIR or target/pw-traces)",
    )
    group.addoption(
        "--pw-report",
        action="store_true",
        dest="pw_report",
        default=False,
        help="Generate index.html from the trace archives after the run",
    )
    group.addoption(
        "--pw-project",
        dest="pw_project",
        default=None,
        help="Project name shown in the generated report",
    )


@pytest.hookimpl(wrapper=True, tryfirst=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo) -> Any:
    """Keep each phase report on the item so fixtures can see the outcome."""
    rep = yield
    item.stash.setdefault(PHASE_REPORT_KEY, {})[rep.when] = rep
    return rep


def outcome_status(item: pytest.Item) -> TraceStatus:
    """FAIL if any recorded phase of the test failed, else PASS."""
    reports = item.stash.get(PHASE_REPORT_KEY, {})
    if any(rep.failed for rep in reports.values()):
        return TraceStatus.FAIL
    return TraceStatus.PASS


def _traces_dir(config: pytest.Config) -> Optional[Path]:
    value = config.getoption("pw_traces_dir")
    return Path(value) if value else None


@pytest.fixture
def pw_page(request: pytest.FixtureRequest) -> Iterator[Any]:
    """A traced Playwright page whose archive is tagged with the test outcome."""
    from pwtrace.session import BrowserOptions, current_page, start_browser, stop_browser

    session = start_browser(
        BrowserOptions(test_name=request.node.name, output_dir=_traces_dir(request.config))
    )
    token = current_page.set(session.page)
    try:
        yield session.page
    finally:
        current_page.reset(token)
        stop_browser(session, outcome_status(request.node))


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    config = session.config
    if not config.getoption("pw_report"):
        return

    from pwtrace.report.aggregate import generate_report

    report_path = generate_report(
        traces_dir=_traces_dir(config),
        project_name=config.getoption("pw_project"),
    )
    reporter = config.pluginmanager.get_plugin("terminalreporter")
    if reporter is not None:
        reporter.write_line(f"Trace report: {report_path.resolve()}")
