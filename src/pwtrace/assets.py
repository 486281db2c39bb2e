"""Locate and copy the Playwright Trace Viewer static assets.

The report links every archive into ``trace/index.html?trace=../<zip>``,
which only works once the viewer bundle sits next to the report. The bundle
ships with Playwright itself, so it is looked up in (in order):

1. an explicit ``PWTRACE_VIEWER_DIR`` override
2. the driver bundled with the ``playwright`` Python package
3. ``playwright-core`` resolved through Node.js
4. the npx cache under ``~/.npm/_npx``
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from pwtrace.config import get_config

logger = logging.getLogger(__name__)

VIEWER_SUBPATH = Path("lib") / "vite" / "traceViewer"

_NODE_RESOLVE_SCRIPT = (
    "try{"
    "const p=require.resolve('playwright-core/package.json');"
    "const path=require('path');"
    "console.log(path.join(path.dirname(p),'lib','vite','traceViewer'));"
    "}catch(e){process.exit(1)}"
)


def is_viewer_dir(path: Optional[Path]) -> bool:
    """A usable viewer bundle is a directory containing index.html."""
    return path is not None and path.is_dir() and (path / "index.html").is_file()


def _from_config() -> Optional[Path]:
    return get_config().viewer_dir


def _from_python_package() -> Optional[Path]:
    try:
        import playwright
    except ImportError:
        return None
    return Path(playwright.__file__).parent / "driver" / "package" / VIEWER_SUBPATH


def _from_node() -> Optional[Path]:
    try:
        proc = subprocess.run(
            ["node", "-e", _NODE_RESOLVE_SCRIPT],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("Node.js lookup of playwright-core failed: %s", exc)
        return None
    out = proc.stdout.strip()
    if proc.returncode != 0 or not out:
        return None
    return Path(out)


def _from_npx_cache() -> Optional[Path]:
    npx_dir = Path.home() / ".npm" / "_npx"
    if not npx_dir.is_dir():
        return None
    for candidate in sorted(npx_dir.rglob("traceViewer")):
        if is_viewer_dir(candidate):
            return candidate
    return None


STRATEGIES: tuple[Callable[[], Optional[Path]], ...] = (
    _from_config,
    _from_python_package,
    _from_node,
    _from_npx_cache,
)


def find_trace_viewer_dir(
    strategies: Iterable[Callable[[], Optional[Path]]] = STRATEGIES,
) -> Optional[Path]:
    """Return the first Trace Viewer asset directory found, or None."""
    for strategy in strategies:
        candidate = strategy()
        if is_viewer_dir(candidate):
            logger.debug("Trace Viewer assets found via %s: %s", strategy.__name__, candidate)
            return candidate
    return None


def copy_tree(source: Path, dest: Path) -> Path:
    """Copy every file under source into dest, merging over existing files."""
    shutil.copytree(source, dest, dirs_exist_ok=True)
    return dest


def copy_trace_viewer(
    output_dir: Union[str, Path],
    source: Optional[Path] = None,
) -> Optional[Path]:
    """Copy the Trace Viewer assets into ``<output_dir>/trace/``.

    Returns the destination directory, or None if the assets could not be
    located or copied. Neither case is fatal: the report is still written,
    only its offline viewer links will not work.
    """
    src = source if source is not None else find_trace_viewer_dir()
    if not is_viewer_dir(src):
        logger.warning(
            "Could not locate Playwright Trace Viewer assets; offline viewer will not be embedded"
        )
        return None

    dest = Path(output_dir) / "trace"
    try:
        copy_tree(src, dest)
    except (OSError, shutil.Error) as exc:
        logger.warning("Could not copy Trace Viewer assets to %s: %s", dest, exc)
        return None

    logger.info("Trace Viewer assets copied to %s", dest)
    return dest
