"""HTML report generator for trace archives.

Generates a self-contained index.html with:
- Summary statistics (total / passed / failed / untagged)
- One row per archive with status, test name, timestamp and size
- A copyable ``npx playwright show-trace`` command per archive
- Links into the offline Trace Viewer copied under ``trace/``
"""
from __future__ import annotations

import html
import logging
import shlex
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union
from urllib.parse import quote

from pwtrace.errors import ErrorCode, ReportError
from pwtrace.naming import TraceStatus
from pwtrace.report import TraceArtifact, TraceReport

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MISSING = "—"
VIEWER_DIR = "trace"
REPORT_FILENAME = "index.html"

# Status colors and labels
STATUS_STYLES = {
    TraceStatus.PASS: {"color": "#ffffff", "bg": "#2da44e", "label": "PASS"},
    TraceStatus.FAIL: {"color": "#ffffff", "bg": "#cf222e", "label": "FAIL"},
    TraceStatus.UNKNOWN: {"color": "#ffffff", "bg": "#888888", "label": "?"},
}


def human_bytes(n: int) -> str:
    """Format a byte count as B, KB (one decimal) or MB (two decimals)."""
    if n < 1024:
        return f"{n} B"
    elif n < 1048576:
        return f"{n / 1024:.1f} KB"
    else:
        return f"{n / 1048576:.2f} MB"


def format_timestamp(ms: Optional[int]) -> Optional[str]:
    """Format epoch milliseconds as local ``yyyy-MM-dd HH:mm:ss``."""
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000).strftime(TIMESTAMP_FORMAT)


def show_trace_command(traces_dir: str, filename: str) -> str:
    """CLI command that opens one archive in the Playwright Trace Viewer."""
    archive = f"{traces_dir.rstrip('/')}/{filename}" if traces_dir else filename
    return f"npx playwright show-trace {shlex.quote(archive)}"


def offline_viewer_url(filename: str) -> str:
    """Link into the Trace Viewer assets copied next to the report."""
    return f"{VIEWER_DIR}/index.html?trace=../{quote(filename)}"


def _status_badge(status: TraceStatus) -> str:
    style = STATUS_STYLES[status]
    return (
        f'<span class="status-badge" style="background: {style["bg"]}; color: {style["color"]}">'
        f'{style["label"]}</span>'
    )


def _render_trace_row(artifact: TraceArtifact, traces_dir: str) -> str:
    """Render a single <tr> for one archive."""
    ts_str = format_timestamp(artifact.created_at_ms) or MISSING
    command = show_trace_command(traces_dir, artifact.filename)

    return f'''
        <tr class="trace-row" data-status="{artifact.status.value}">
            <td class="col-status">{_status_badge(artifact.status)}</td>
            <td class="col-name">{html.escape(artifact.display_name or "Unknown")}</td>
            <td class="col-timestamp">{ts_str}</td>
            <td class="col-size">{human_bytes(artifact.size_bytes)}</td>
            <td class="col-command"><code class="cli-command" title="Click to copy">{html.escape(command)}</code></td>
            <td class="col-actions">
                <a href="{html.escape(offline_viewer_url(artifact.filename))}" class="view-btn">Open Trace Viewer &#8599;</a>
            </td>
        </tr>'''


def _render_empty_row() -> str:
    return '''
        <tr class="empty-state">
            <td colspan="6">No trace archives found. Run your Playwright tests first.</td>
        </tr>'''


def render_report(
    artifacts: Sequence[TraceArtifact],
    project_name: str,
    traces_dir: Union[str, Path],
    generated_at: datetime,
) -> str:
    """Render the HTML report for a sequence of archives.

    Rows appear in the order given; callers pass the sorted output of
    ``collect_artifacts``. Pure function, no I/O.

    Args:
        artifacts: Archives to list.
        project_name: Name shown in the header.
        traces_dir: Directory shown in the show-trace commands.
        generated_at: Generation time shown in the header.

    Returns:
        Complete HTML document as string.
    """
    report = TraceReport(
        project_name=project_name,
        traces_dir=Path(traces_dir).as_posix(),
        artifacts=list(artifacts),
    )
    title = html.escape(report.project_name)
    generated = generated_at.strftime(TIMESTAMP_FORMAT)

    if report.artifacts:
        rows = "\n".join(_render_trace_row(a, report.traces_dir) for a in report.artifacts)
    else:
        rows = _render_empty_row()

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} — Playwright Trace Report</title>
    <style>
        :root {{
            --bg-color: #fafafa;
            --text-color: #1a1a1a;
            --border-color: #e0e0e0;
            --panel-bg: #ffffff;
            --header-bg: #0d1117;
            --accent-color: #0078d4;
            --success-color: #2da44e;
            --error-color: #cf222e;
            --muted-color: #888888;
        }}

        * {{ box-sizing: border-box; }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
            margin: 0;
            background: var(--bg-color);
            color: var(--text-color);
        }}

        header {{
            background: var(--header-bg);
            color: #ffffff;
            padding: 20px 32px;
        }}

        header h1 {{ margin: 0; font-size: 22px; font-weight: 600; }}
        header p {{ margin: 4px 0 0; font-size: 13px; color: #8b949e; }}

        .container {{ max-width: 1200px; margin: 24px auto; padding: 0 24px; }}

        .card {{
            background: var(--panel-bg);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.06);
            overflow: hidden;
            margin-bottom: 24px;
        }}

        .card-header {{
            padding: 14px 20px;
            border-bottom: 1px solid var(--border-color);
            font-weight: 600;
            font-size: 14px;
            background: #f8f8f8;
        }}

        .summary {{ padding: 20px; }}
        .stat {{ display: inline-block; margin: 0 12px; text-align: center; }}
        .stat-value {{ font-size: 32px; font-weight: 700; color: var(--accent-color); }}
        .stat-label {{ font-size: 12px; color: var(--muted-color); margin-top: 4px; }}
        .stat-passed .stat-value {{ color: var(--success-color); }}
        .stat-failed .stat-value {{ color: var(--error-color); }}
        .stat-unknown .stat-value {{ color: var(--muted-color); }}

        table {{ width: 100%; border-collapse: collapse; font-size: 13px; }}

        th {{
            padding: 10px 12px;
            text-align: left;
            font-size: 12px;
            font-weight: 600;
            color: #555555;
            border-bottom: 2px solid var(--border-color);
            background: #f8f8f8;
        }}

        td {{ padding: 8px 12px; border-bottom: 1px solid var(--border-color); }}
        tr:hover td {{ background: #f5f8ff; }}

        .status-badge {{
            display: inline-block;
            padding: 2px 8px;
            border-radius: 4px;
            font-size: 11px;
            font-weight: 600;
        }}

        .col-name {{ font-weight: 500; }}
        .col-timestamp {{ color: #666666; }}
        .col-size {{ color: var(--muted-color); font-size: 12px; white-space: nowrap; }}

        .cli-command {{
            font-size: 11px;
            background: #f4f4f4;
            padding: 2px 6px;
            border-radius: 3px;
            display: block;
            white-space: nowrap;
            overflow: auto;
            cursor: pointer;
        }}

        .view-btn {{
            font-size: 12px;
            color: var(--accent-color);
            text-decoration: none;
            font-weight: 500;
            white-space: nowrap;
        }}

        .empty-state td {{ text-align: center; padding: 32px; color: var(--muted-color); }}

        footer {{ text-align: center; padding: 20px; font-size: 12px; color: #999999; }}
    </style>
</head>
<body>
    <header>
        <h1>{title}</h1>
        <p>Playwright Trace Report &mdash; generated <span class="generated-at">{generated}</span></p>
    </header>

    <div class="container">
        <div class="card">
            <div class="card-header">Summary</div>
            <div class="summary">
                <div class="stat stat-total"><div class="stat-value">{report.total}</div><div class="stat-label">Total</div></div>
                <div class="stat stat-passed"><div class="stat-value">{report.passed}</div><div class="stat-label">Passed</div></div>
                <div class="stat stat-failed"><div class="stat-value">{report.failed}</div><div class="stat-label">Failed</div></div>
                <div class="stat stat-unknown"><div class="stat-value">{report.unknown}</div><div class="stat-label">Untagged</div></div>
            </div>
        </div>

        <div class="card">
            <div class="card-header">Traces ({report.total})</div>
            <table class="traces-table">
                <thead>
                    <tr>
                        <th class="col-status">Status</th>
                        <th class="col-name">Test Name</th>
                        <th class="col-timestamp">Recorded At</th>
                        <th class="col-size">Size</th>
                        <th class="col-command">CLI Command</th>
                        <th class="col-actions">Offline Viewer</th>
                    </tr>
                </thead>
                <tbody>
                    {rows}
                </tbody>
            </table>
        </div>
    </div>

    <footer>
        Generated by <strong>pwtrace</strong> &mdash;
        <a href="https://playwright.dev/docs/trace-viewer" target="_blank">Playwright Trace Viewer docs</a>
    </footer>

    <script>
    // Copy CLI command on click
    document.querySelectorAll('.cli-command').forEach(el => {{
        el.addEventListener('click', function() {{
            if (navigator.clipboard) {{
                navigator.clipboard.writeText(this.textContent);
            }}
        }});
    }});
    </script>
</body>
</html>
'''


def write_report(html_content: str, out_dir: Path) -> Path:
    """Write index.html into out_dir, replacing any previous report.

    Raises:
        ReportError: If the file cannot be written (E303).
    """
    report_path = Path(out_dir) / REPORT_FILENAME
    try:
        report_path.write_text(html_content, encoding="utf-8")
    except OSError as exc:
        raise ReportError(ErrorCode.E303, f"{report_path}: {exc}") from exc
    logger.info("Wrote trace report %s", report_path)
    return report_path
