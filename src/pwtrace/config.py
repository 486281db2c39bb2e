"""pwtrace configuration management.

Handles:
- Trace/report directories and the project display name
- Browser launch defaults for traced sessions
- .env file loading with precedence: CLI > .env > env vars > defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_TRACES_DIR = "target/pw-traces"
DEFAULT_PROJECT_NAME = "Playwright Tests"
DEFAULT_SERVER_PORT = 8080

# Environment variable -> Config field
ENV_KEYS: dict[str, str] = {
    "PW_OUTPUT_DIR": "traces_dir",
    "PW_REPORT_DIR": "output_dir",
    "PW_PROJECT_NAME": "project_name",
    "PW_HEADLESS": "headless",
    "PW_SLOW_MO": "slow_mo_ms",
    "PW_SERVER_PORT": "server_port",
    "PW_SERVER_DIR": "server_dir",
    "PWTRACE_VIEWER_DIR": "viewer_dir",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class Config:
    """pwtrace runtime configuration."""

    traces_dir: Path = Path(DEFAULT_TRACES_DIR)
    output_dir: Path | None = None
    project_name: str = DEFAULT_PROJECT_NAME
    headless: bool = True
    slow_mo_ms: int | None = None
    server_port: int = DEFAULT_SERVER_PORT
    server_dir: Path | None = None
    viewer_dir: Path | None = None
    env_file_path: Path | None = None

    @property
    def report_dir(self) -> Path:
        """Directory that receives index.html (defaults to the traces dir)."""
        return self.output_dir or self.traces_dir

    @property
    def serve_dir(self) -> Path:
        """Directory served by the preview server."""
        return self.server_dir or self.report_dir

    def effective_slow_mo(self) -> int:
        """Slow-mo delay, defaulting to 80ms only when headed."""
        if self.slow_mo_ms is not None:
            return self.slow_mo_ms
        return 0 if self.headless else 80

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "traces_dir": str(self.traces_dir),
            "output_dir": str(self.report_dir),
            "project_name": self.project_name,
            "headless": self.headless,
            "slow_mo_ms": self.effective_slow_mo(),
            "server_port": self.server_port,
            "server_dir": str(self.serve_dir),
            "viewer_dir": str(self.viewer_dir) if self.viewer_dir else None,
            "env_file": str(self.env_file_path) if self.env_file_path else None,
        }


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_env_file(env_file: Path) -> dict[str, str]:
    """Read ``KEY=value`` pairs from a .env file.

    Blank lines, ``#`` comments and lines without ``=`` are ignored. A
    leading ``export`` is dropped and one level of matching quotes is
    stripped from the value. A missing file reads as empty.
    """
    if not env_file.exists():
        return {}

    result: dict[str, str] = {}
    for raw in env_file.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.removeprefix("export ").partition("=")
        if sep:
            result[key.strip()] = _unquote(value.strip())
    return result


def _find_env_file(start: Path | None = None) -> Path | None:
    """Nearest .env from start (default cwd) upwards.

    The search stops after the git root, the home directory or the
    filesystem root.
    """
    home = Path.home()
    directory = (start or Path.cwd()).resolve()
    for directory in (directory, *directory.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
        if directory == home or (directory / ".git").exists():
            return None
    return None


def parse_bool(value: str, name: str) -> bool:
    """Parse a boolean setting such as PW_HEADLESS."""
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


def parse_int(value: str, name: str) -> int:
    """Parse a non-negative integer setting such as PW_SERVER_PORT."""
    try:
        number = int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if number < 0:
        raise ValueError(f"{name} must not be negative, got {number}")
    return number


def _apply_setting(config: Config, key: str, value: str) -> None:
    attr = ENV_KEYS[key]
    if attr in ("traces_dir", "output_dir", "server_dir", "viewer_dir"):
        setattr(config, attr, Path(value) if value else None)
    elif attr == "headless":
        config.headless = parse_bool(value, key)
    elif attr in ("slow_mo_ms", "server_port"):
        setattr(config, attr, parse_int(value, key))
    else:
        setattr(config, attr, value)


def load_config(
    *,
    traces_dir: str | Path | None = None,
    output_dir: str | Path | None = None,
    project_name: str | None = None,
    headless: bool | None = None,
    server_port: int | None = None,
    env_file: Path | None = None,
    environ: dict[str, str] | None = None,
) -> Config:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. Explicit arguments (CLI)
    2. .env file values
    3. Environment variables
    4. Defaults

    Raises:
        ValueError: If a boolean or integer setting cannot be parsed.
    """
    config = Config()
    env = os.environ if environ is None else environ

    for key in ENV_KEYS:
        if env.get(key):
            _apply_setting(config, key, env[key])

    env_path = env_file or _find_env_file()
    if env_path and env_path.exists():
        config.env_file_path = env_path
        for key, value in parse_env_file(env_path).items():
            if key in ENV_KEYS:
                _apply_setting(config, key, value)

    if traces_dir is not None:
        config.traces_dir = Path(traces_dir)
    if output_dir is not None:
        config.output_dir = Path(output_dir)
    if project_name is not None:
        config.project_name = project_name
    if headless is not None:
        config.headless = headless
    if server_port is not None:
        config.server_port = server_port

    if config.traces_dir is None:
        config.traces_dir = Path(DEFAULT_TRACES_DIR)

    return config


# Module-level current configuration
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config | None) -> None:
    """Set (or reset with None) the current configuration."""
    global _config
    _config = config
