"""Report pipeline: copy viewer assets, scan archives, write index.html."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pwtrace import assets
from pwtrace.config import get_config
from pwtrace.errors import ErrorCode, ReportError
from pwtrace.report.collect import collect_artifacts
from pwtrace.report.html_report import render_report, write_report

logger = logging.getLogger(__name__)


def ensure_output_dir(out_dir: Path) -> Path:
    """Create out_dir (and parents) if missing.

    Raises:
        ReportError: If the directory cannot be created (E300).
    """
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReportError(ErrorCode.E300, f"{out_dir}: {exc}") from exc
    return out_dir


def generate_report(
    traces_dir: Optional[Union[str, Path]] = None,
    output_dir: Optional[Union[str, Path]] = None,
    project_name: Optional[str] = None,
    *,
    copy_assets: bool = True,
    generated_at: Optional[datetime] = None,
) -> Path:
    """Scan traces_dir for archives and write ``output_dir/index.html``.

    Args:
        traces_dir: Directory to scan (default: configured traces dir).
        output_dir: Where to write the report (default: configured report
            dir, which itself defaults to traces_dir).
        project_name: Name shown in the header (default: configured name).
        copy_assets: Copy the Trace Viewer bundle into ``output_dir/trace``.
        generated_at: Generation time to embed (default: now).

    Returns:
        Path of the written index.html.

    Raises:
        ReportError: If the output directory cannot be created or the
            report cannot be written.
    """
    config = get_config()
    td = Path(traces_dir) if traces_dir is not None else config.traces_dir
    if output_dir is not None:
        od = Path(output_dir)
    elif traces_dir is not None:
        od = td
    else:
        od = config.report_dir
    project = project_name if project_name is not None else config.project_name

    ensure_output_dir(od)

    if copy_assets:
        assets.copy_trace_viewer(od)

    if not td.is_dir():
        logger.warning("Traces directory %s does not exist; writing an empty report", td)

    artifacts = collect_artifacts(td)
    html_content = render_report(
        artifacts,
        project_name=project,
        traces_dir=td,
        generated_at=generated_at or datetime.now(),
    )
    return write_report(html_content, od)
