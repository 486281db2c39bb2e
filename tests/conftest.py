"""pwtrace test configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from pwtrace.config import ENV_KEYS, Config, set_config  # noqa: E402


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch):
    """Isolate every test from PW_* variables and the module-level config."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    set_config(Config())
    yield
    set_config(None)


@pytest.fixture
def traces_dir(tmp_path: Path) -> Path:
    """An empty traces directory."""
    d = tmp_path / "pw-traces"
    d.mkdir()
    return d


@pytest.fixture
def make_archive(traces_dir: Path):
    """Factory writing a fake archive of the given size under traces_dir."""

    def _make(name: str, size: int = 16, subdir: str | None = None) -> Path:
        parent = traces_dir / subdir if subdir else traces_dir
        parent.mkdir(parents=True, exist_ok=True)
        path = parent / name
        path.write_bytes(b"x" * size)
        return path

    return _make


@pytest.fixture
def viewer_assets(tmp_path: Path) -> Path:
    """A minimal Trace Viewer bundle."""
    d = tmp_path / "traceViewer"
    (d / "assets").mkdir(parents=True)
    (d / "index.html").write_text("<html>viewer</html>", encoding="utf-8")
    (d / "assets" / "app.js").write_text("console.log('viewer')", encoding="utf-8")
    return d


# Fake Playwright driver: records calls and writes a stub archive on tracing.stop
class FakeTracing:
    def __init__(self, log: list) -> None:
        self.log = log
        self.fail_stop = False

    def start(self, **kwargs) -> None:
        self.log.append(("tracing.start", kwargs))

    def stop(self, path: str) -> None:
        if self.fail_stop:
            from playwright.sync_api import Error as PlaywrightError

            raise PlaywrightError("browser has been closed")
        self.log.append(("tracing.stop", path))
        Path(path).write_bytes(b"PK\x03\x04")

    def group(self, name: str) -> None:
        self.log.append(("group", name))

    def group_end(self) -> None:
        self.log.append(("group_end",))


class FakePage:
    def __init__(self, context: "FakeContext") -> None:
        self.context = context

    def close(self) -> None:
        self.context.log.append(("page.close",))

    def screenshot(self, full_page: bool = False) -> bytes:
        return b"\x89PNG"


class FakeContext:
    def __init__(self, log: list, **kwargs) -> None:
        self.log = log
        self.kwargs = kwargs
        self.tracing = FakeTracing(log)
        self.request = SimpleNamespace(name="request-context")

    def new_page(self) -> FakePage:
        return FakePage(self)

    def close(self) -> None:
        self.log.append(("context.close",))


class FakeBrowser:
    def __init__(self, log: list, **launch_kwargs) -> None:
        self.log = log
        self.launch_kwargs = launch_kwargs
        self.contexts: list[FakeContext] = []

    def new_context(self, **kwargs) -> FakeContext:
        context = FakeContext(self.log, **kwargs)
        self.contexts.append(context)
        return context

    def close(self) -> None:
        self.log.append(("browser.close",))


class FakePlaywright:
    def __init__(self, log: list) -> None:
        self.log = log
        self.browsers: list[FakeBrowser] = []
        self.chromium = SimpleNamespace(launch=self._launch)

    def _launch(self, **kwargs) -> FakeBrowser:
        browser = FakeBrowser(self.log, **kwargs)
        self.browsers.append(browser)
        return browser

    def stop(self) -> None:
        self.log.append(("playwright.stop",))


@pytest.fixture
def fake_pw(monkeypatch: pytest.MonkeyPatch, traces_dir: Path) -> FakePlaywright:
    """Replace sync_playwright with a fake driver writing into traces_dir."""
    pytest.importorskip("playwright")
    from pwtrace import session as session_mod

    pw = FakePlaywright([])
    monkeypatch.setattr(session_mod, "sync_playwright", lambda: SimpleNamespace(start=lambda: pw))
    set_config(Config(traces_dir=traces_dir))
    return pw
