"""pwtrace error codes.

Fatal problems are reported as ``PWT-EXXX`` messages that carry a next step,
for example::

    PWT-E300: Output directory not writable: site/report: [Errno 13] ...
      Next step: Check permissions or use a different --out path

Everything recoverable (missing viewer assets, failed renames, unreadable
archives) is only logged and never gets a code.
"""
from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TextIO


class ErrorCode(Enum):
    # Configuration (E0xx)
    E002 = "E002"  # Invalid setting value

    # Filesystem (E3xx)
    E300 = "E300"  # Output directory not writable
    E301 = "E301"  # Traces directory not found
    E303 = "E303"  # Report file not writable


# code -> (message, next step); "{details}" is filled in when given
ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.E002: (
        "Invalid setting: {details}",
        "Fix the value in .env or the environment; 'pwtrace show-config' shows what was read",
    ),
    ErrorCode.E300: (
        "Output directory not writable: {details}",
        "Check permissions or use a different --out path",
    ),
    ErrorCode.E301: (
        "Traces directory not found: {details}",
        "Run the traced tests first, or point --traces-dir / PW_OUTPUT_DIR at the archives",
    ),
    ErrorCode.E303: (
        "Cannot write report: {details}",
        "Check that index.html in the output directory is a writable file",
    ),
}


@dataclass
class PwTraceError:
    """A rendered error: code, message and the suggested next step."""

    code: ErrorCode
    message: str
    next_step: str

    def __str__(self) -> str:
        return f"PWT-{self.code.value}: {self.message}\n  Next step: {self.next_step}"

    def print(self, file: Optional[TextIO] = None) -> None:
        print(str(self), file=file or sys.stderr)


def make_error(code: ErrorCode, details: Optional[str] = None) -> PwTraceError:
    """Fill the template for code with details."""
    template, next_step = ERROR_TEMPLATES[code]
    if details:
        message = template.format(details=details)
    else:
        message = template.replace(": {details}", "")
    return PwTraceError(code=code, message=message, next_step=next_step)


class ReportError(Exception):
    """Fatal report-generation failure (output directory or report file)."""

    def __init__(self, code: ErrorCode, details: Optional[str] = None) -> None:
        self.code = code
        self.details = details
        super().__init__(str(make_error(code, details)))


# Set by the CLI's --verbose flag
_verbose_mode = False


def set_verbose(verbose: bool) -> None:
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Print exc as a coded error, followed by its traceback when verbose."""
    make_error(code, details or str(exc)).print()
    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__)
