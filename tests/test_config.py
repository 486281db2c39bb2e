"""Tests for pwtrace.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from pwtrace.config import (
    DEFAULT_PROJECT_NAME,
    DEFAULT_TRACES_DIR,
    Config,
    get_config,
    load_config,
    parse_bool,
    parse_env_file,
    set_config,
)


@pytest.fixture
def no_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from a directory tree without any .env file."""
    work = tmp_path / "work"
    work.mkdir()
    (work / ".git").mkdir()
    monkeypatch.chdir(work)
    return work


class TestConfig:
    """Tests for Config dataclass."""

    def test_defaults(self) -> None:
        config = Config()
        assert config.traces_dir == Path(DEFAULT_TRACES_DIR)
        assert config.report_dir == Path(DEFAULT_TRACES_DIR)
        assert config.serve_dir == Path(DEFAULT_TRACES_DIR)
        assert config.project_name == DEFAULT_PROJECT_NAME
        assert config.headless is True
        assert config.server_port == 8080

    def test_report_dir_override(self, tmp_path: Path) -> None:
        config = Config(traces_dir=tmp_path / "t", output_dir=tmp_path / "o")
        assert config.report_dir == tmp_path / "o"
        assert config.serve_dir == tmp_path / "o"

    def test_slow_mo_depends_on_headless(self) -> None:
        assert Config(headless=True).effective_slow_mo() == 0
        assert Config(headless=False).effective_slow_mo() == 80
        assert Config(headless=False, slow_mo_ms=10).effective_slow_mo() == 10

    def test_to_dict(self) -> None:
        data = Config().to_dict()
        assert data["traces_dir"] == DEFAULT_TRACES_DIR
        assert data["viewer_dir"] is None


class TestParseEnvFile:
    """Tests for parse_env_file."""

    def test_formats(self, tmp_path: Path) -> None:
        env = tmp_path / ".env"
        env.write_text(
            "# comment\n"
            "\n"
            "PW_OUTPUT_DIR=out/traces\n"
            'PW_PROJECT_NAME="My Project"\n'
            "export PW_HEADLESS='false'\n"
            "not a setting\n",
            encoding="utf-8",
        )

        assert parse_env_file(env) == {
            "PW_OUTPUT_DIR": "out/traces",
            "PW_PROJECT_NAME": "My Project",
            "PW_HEADLESS": "false",
        }

    def test_missing_file(self, tmp_path: Path) -> None:
        assert parse_env_file(tmp_path / ".env") == {}


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults_without_sources(self, no_env_file: Path) -> None:
        config = load_config(environ={})
        assert config.traces_dir == Path(DEFAULT_TRACES_DIR)
        assert config.env_file_path is None

    def test_environment_variables(self, no_env_file: Path) -> None:
        config = load_config(
            environ={
                "PW_OUTPUT_DIR": "ci/traces",
                "PW_PROJECT_NAME": "CI",
                "PW_HEADLESS": "false",
                "PW_SERVER_PORT": "9000",
                "PW_SLOW_MO": "25",
            }
        )
        assert config.traces_dir == Path("ci/traces")
        assert config.project_name == "CI"
        assert config.headless is False
        assert config.server_port == 9000
        assert config.slow_mo_ms == 25

    def test_env_file_overrides_environment(self, no_env_file: Path) -> None:
        (no_env_file / ".env").write_text("PW_PROJECT_NAME=From File\n", encoding="utf-8")

        config = load_config(environ={"PW_PROJECT_NAME": "From Env"})

        assert config.project_name == "From File"
        assert config.env_file_path == no_env_file / ".env"

    def test_env_file_found_in_parent(self, no_env_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (no_env_file / ".env").write_text("PW_OUTPUT_DIR=parent/traces\n", encoding="utf-8")
        child = no_env_file / "sub" / "dir"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)

        assert load_config(environ={}).traces_dir == Path("parent/traces")

    def test_arguments_override_everything(self, no_env_file: Path) -> None:
        (no_env_file / ".env").write_text("PW_OUTPUT_DIR=file/traces\n", encoding="utf-8")

        config = load_config(
            traces_dir="cli/traces",
            output_dir="cli/report",
            project_name="CLI",
            server_port=1234,
            environ={"PW_OUTPUT_DIR": "env/traces"},
        )

        assert config.traces_dir == Path("cli/traces")
        assert config.report_dir == Path("cli/report")
        assert config.project_name == "CLI"
        assert config.server_port == 1234

    def test_explicit_env_file(self, tmp_path: Path, no_env_file: Path) -> None:
        env = tmp_path / "custom.env"
        env.write_text("PWTRACE_VIEWER_DIR=/opt/viewer\n", encoding="utf-8")

        config = load_config(env_file=env, environ={})

        assert config.viewer_dir == Path("/opt/viewer")
        assert config.env_file_path == env

    def test_invalid_integer(self, no_env_file: Path) -> None:
        with pytest.raises(ValueError, match="PW_SERVER_PORT"):
            load_config(environ={"PW_SERVER_PORT": "eighty"})

    def test_invalid_boolean(self, no_env_file: Path) -> None:
        with pytest.raises(ValueError, match="PW_HEADLESS"):
            load_config(environ={"PW_HEADLESS": "maybe"})


class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize("value", ["1", "true", "YES", "On"])
    def test_true(self, value: str) -> None:
        assert parse_bool(value, "X") is True

    @pytest.mark.parametrize("value", ["0", "false", "No", "OFF"])
    def test_false(self, value: str) -> None:
        assert parse_bool(value, "X") is False


class TestCurrentConfig:
    """Tests for get_config/set_config."""

    def test_set_and_get(self, tmp_path: Path) -> None:
        config = Config(traces_dir=tmp_path)
        set_config(config)
        assert get_config() is config

    def test_lazy_load(self, no_env_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PW_PROJECT_NAME", "Lazy")
        set_config(None)
        assert get_config().project_name == "Lazy"
