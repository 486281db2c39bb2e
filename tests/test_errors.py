"""Tests for pwtrace.errors."""
from __future__ import annotations

import pytest

from pwtrace.errors import (
    ERROR_TEMPLATES,
    ErrorCode,
    ReportError,
    handle_exception,
    make_error,
    set_verbose,
)


class TestMakeError:
    """Tests for make_error."""

    def test_every_code_has_a_template(self) -> None:
        assert set(ERROR_TEMPLATES) == set(ErrorCode)

    def test_with_details(self) -> None:
        err = make_error(ErrorCode.E300, "site/report")

        assert err.message == "Output directory not writable: site/report"
        assert str(err).startswith("PWT-E300: Output directory not writable: site/report\n")
        assert "Next step:" in str(err)

    def test_without_details(self) -> None:
        assert make_error(ErrorCode.E303).message == "Cannot write report"


class TestReportError:
    """Tests for ReportError."""

    def test_carries_code_and_message(self) -> None:
        exc = ReportError(ErrorCode.E303, "index.html: is a directory")

        assert exc.code is ErrorCode.E303
        assert exc.details == "index.html: is a directory"
        assert str(exc).startswith("PWT-E303: Cannot write report: index.html")


class TestHandleException:
    """Tests for handle_exception."""

    def test_prints_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_verbose(False)

        handle_exception(ValueError("PW_SLOW_MO must be an integer"), ErrorCode.E002)

        err = capsys.readouterr().err
        assert "PWT-E002: Invalid setting: PW_SLOW_MO must be an integer" in err
        assert "Traceback" not in err

    def test_verbose_includes_traceback(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_verbose(True)
        try:
            try:
                raise ValueError("bad")
            except ValueError as exc:
                handle_exception(exc, ErrorCode.E002)
        finally:
            set_verbose(False)

        err = capsys.readouterr().err
        assert "--- Full Traceback ---" in err
        assert "ValueError: bad" in err
