from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pwtrace import __version__
from pwtrace.config import Config, load_config, set_config
from pwtrace.errors import (
    ErrorCode,
    ReportError,
    handle_exception,
    is_verbose,
    make_error,
    set_verbose,
)
from pwtrace.naming import tag_with_status
from pwtrace.report.aggregate import generate_report


def _build_config(args: argparse.Namespace) -> Config:
    """Resolve configuration from CLI arguments, .env and the environment."""
    config = load_config(
        traces_dir=getattr(args, "traces_dir", None),
        output_dir=getattr(args, "out", None),
        project_name=getattr(args, "project", None),
        server_port=getattr(args, "port", None),
        env_file=Path(args.env_file) if getattr(args, "env_file", None) else None,
    )
    set_config(config)
    return config


def _cmd_report(args: argparse.Namespace) -> int:
    """Generate index.html from the trace archives."""
    config = _build_config(args)

    if not config.traces_dir.is_dir():
        make_error(ErrorCode.E301, str(config.traces_dir)).print()

    report_path = generate_report(
        traces_dir=config.traces_dir,
        output_dir=config.report_dir,
        project_name=config.project_name,
        copy_assets=not args.no_assets,
    )

    print(f"Report: {report_path.resolve()}")
    return 0


def _cmd_aggregate(args: argparse.Namespace) -> int:
    """Copy viewer assets and write the report next to the archives."""
    config = _build_config(args)

    report_path = generate_report(
        traces_dir=config.traces_dir,
        output_dir=config.traces_dir,
        project_name=config.project_name,
    )

    print(f"Report: {report_path.resolve()}")
    print(f"View  : pwtrace serve {config.traces_dir}")
    return 0


def _cmd_tag(args: argparse.Namespace) -> int:
    """Tag one archive with a PASS/FAIL status."""
    path = Path(args.path)
    if not path.exists():
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        return 1

    # Best-effort: prints the original path when the name is not taggable
    print(str(tag_with_status(path, args.status)))
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    """Serve the report directory over HTTP for previewing."""
    import errno
    import time
    import webbrowser

    from pwtrace.server import create_server

    config = _build_config(args)
    directory = Path(args.directory) if args.directory else config.serve_dir
    directory = directory.resolve()
    port = config.server_port

    if not directory.exists():
        print(f"WARNING: Serve directory does not exist: {directory}", file=sys.stderr)
        print("         Run 'pwtrace report' first to generate the report.", file=sys.stderr)

    # Try to find an available port
    for _attempt in range(10):
        try:
            httpd = create_server(directory, port=port)
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                print(f"Port {port} in use, trying {port + 1}...")
                port += 1
                continue
            raise

        with httpd:
            url = f"http://localhost:{port}"
            print()
            print("Trace report HTTP server started.")
            print(f"  Serving : {directory}")
            print(f"  URL     : {url}")
            print("  Press Ctrl+C to stop.")
            print()

            if not args.no_browser:
                webbrowser.open(url)

            try:
                httpd.serve_forever()
            except KeyboardInterrupt:
                print("\nStopping server...")
                time.sleep(0.1)
        return 0

    print("ERROR: Could not find an available port", file=sys.stderr)
    return 1


def _cmd_show_config(args: argparse.Namespace) -> int:
    """Print the resolved configuration."""
    config = _build_config(args)
    data = config.to_dict()

    if args.json:
        print(json.dumps(data, indent=2))
        return 0

    print("pwtrace configuration")
    print("=" * 40)
    for key, value in data.items():
        print(f"  {key:<14} {value if value is not None else '(not set)'}")
    return 0


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--traces-dir",
        dest="traces_dir",
        help="Directory containing trace archives (default: target/pw-traces)",
    )
    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to .env file (default: nearest ./.env)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pwtrace",
        description="Playwright trace archives: status tagging and static HTML reports",
    )

    # Global flags
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging and full tracebacks on errors",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    # report
    p_report = sub.add_parser(
        "report",
        help="Generate index.html from trace archives",
    )
    _add_common_options(p_report)
    p_report.add_argument(
        "--out",
        help="Directory for index.html (default: the traces directory)",
    )
    p_report.add_argument(
        "--project",
        help="Project name shown in the report header",
    )
    p_report.add_argument(
        "--no-assets",
        action="store_true",
        dest="no_assets",
        help="Skip copying the offline Trace Viewer assets",
    )
    p_report.set_defaults(func=_cmd_report)

    # aggregate
    p_agg = sub.add_parser(
        "aggregate",
        help="Copy Trace Viewer assets and write the report into the traces directory",
    )
    _add_common_options(p_agg)
    p_agg.add_argument(
        "--project",
        help="Project name shown in the report header",
    )
    p_agg.set_defaults(func=_cmd_aggregate)

    # tag
    p_tag = sub.add_parser(
        "tag",
        help="Rename an archive with a PASS/FAIL status",
    )
    p_tag.add_argument("path", help="Archive to tag (<slug>-<epoch-ms>.zip)")
    p_tag.add_argument(
        "--status",
        required=True,
        choices=["pass", "fail"],
        help="Outcome to record",
    )
    p_tag.set_defaults(func=_cmd_tag)

    # serve
    p_serve = sub.add_parser(
        "serve",
        help="Serve the report directory with an HTTP server for preview",
    )
    p_serve.add_argument(
        "directory",
        nargs="?",
        default=None,
        help="Directory to serve (default: PW_SERVER_DIR or the report directory)",
    )
    p_serve.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port to serve on (default: PW_SERVER_PORT or 8080)",
    )
    p_serve.add_argument(
        "--no-browser",
        action="store_true",
        dest="no_browser",
        help="Don't open browser automatically",
    )
    p_serve.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to .env file (default: nearest ./.env)",
    )
    p_serve.set_defaults(func=_cmd_serve)

    # show-config
    p_show = sub.add_parser(
        "show-config",
        help="Show the resolved configuration",
    )
    _add_common_options(p_show)
    p_show.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    p_show.set_defaults(func=_cmd_show_config)

    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    set_verbose(args.verbose)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        rc = args.func(args)
        raise SystemExit(rc)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        raise SystemExit(130)
    except ReportError as e:
        handle_exception(e, e.code, e.details)
        raise SystemExit(1)
    except ValueError as e:
        handle_exception(e, ErrorCode.E002, str(e))
        raise SystemExit(1)
    except Exception as e:
        if is_verbose():
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
            print("Run with --verbose for full traceback", file=sys.stderr)
        raise SystemExit(1)
