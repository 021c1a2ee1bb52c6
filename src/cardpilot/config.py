"""CardPilot configuration management."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cardpilot.models import (
    DEFAULT_ACCOUNT_URL,
    DEFAULT_CLICK_TIMEOUT,
    DEFAULT_BILLING_PATH,
    DEFAULT_BILLING_URL,
    DEFAULT_FIELD_TIMEOUT,
    DEFAULT_HOME_URL,
    DEFAULT_NAVIGATION_TIMEOUT,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_RESOLVER_CANDIDATE_TIMEOUT,
    DEFAULT_RESOLVER_FALLBACK_TIMEOUT,
    DEFAULT_RETRY_BACKOFF_FACTOR,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_SUBMIT_TIMEOUT,
    WINDOWS_CHROME_PATH,
)

EXECUTABLE_ENV_VAR = "CHROME_EXECUTABLE_PATH"


class CardPilotConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


@dataclass
class CardPilotConfig:
    """Configuration for CardPilot automation runs."""

    # Target service
    home_url: str = DEFAULT_HOME_URL
    account_url: str = DEFAULT_ACCOUNT_URL
    billing_url: str = DEFAULT_BILLING_URL
    billing_path: str = DEFAULT_BILLING_PATH

    # Paths
    project_dir: Path = field(default_factory=lambda: Path(".cardpilot"))
    users_file: Path = field(default_factory=lambda: Path(".cardpilot/users.yaml"))
    task_log_file: Path = field(default_factory=lambda: Path(".cardpilot/task_log.jsonl"))

    # Browser
    headless: bool = True
    browser_executable: str | None = None

    # Timeouts (seconds)
    navigation_timeout: float = DEFAULT_NAVIGATION_TIMEOUT
    field_timeout: float = DEFAULT_FIELD_TIMEOUT
    submit_timeout: float = DEFAULT_SUBMIT_TIMEOUT
    resolver_candidate_timeout: float = DEFAULT_RESOLVER_CANDIDATE_TIMEOUT
    resolver_fallback_timeout: float = DEFAULT_RESOLVER_FALLBACK_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    click_timeout: float = DEFAULT_CLICK_TIMEOUT

    # Retry backoff
    retry_initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY
    retry_backoff_factor: float = DEFAULT_RETRY_BACKOFF_FACTOR

    @classmethod
    def from_file(cls, config_path: Path) -> CardPilotConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise CardPilotConfigError(
                f"Config file not found: {config_path}\n\n"
                "To fix: create it or pass --config"
            )
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise CardPilotConfigError(f"Config file must contain a mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> CardPilotConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir
        config.users_file = project_dir / data.get("users_file", "users.yaml")
        config.task_log_file = project_dir / data.get("task_log_file", "task_log.jsonl")

        target = data.get("target", {})
        if not isinstance(target, dict):
            raise CardPilotConfigError("'target' must be a mapping of URLs")
        for key in ("home_url", "account_url", "billing_url", "billing_path"):
            if key in target:
                setattr(config, key, str(target[key]))

        if "headless" in data:
            config.headless = bool(data["headless"])
        if data.get("browser_executable"):
            config.browser_executable = str(data["browser_executable"])

        timeouts = data.get("timeouts", {})
        for key in (
            "navigation_timeout",
            "field_timeout",
            "submit_timeout",
            "resolver_candidate_timeout",
            "resolver_fallback_timeout",
            "probe_timeout",
            "click_timeout",
        ):
            short = key.removesuffix("_timeout")
            if short in timeouts:
                setattr(config, key, _positive_float(timeouts[short], f"timeouts.{short}"))

        retry = data.get("retry", {})
        if "initial_delay" in retry:
            config.retry_initial_delay = float(retry["initial_delay"])
        if "max_delay" in retry:
            config.retry_max_delay = float(retry["max_delay"])
        if "backoff_factor" in retry:
            config.retry_backoff_factor = float(retry["backoff_factor"])

        return config


def resolve_browser_executable(config: CardPilotConfig | None = None) -> str | None:
    """Resolve the browser executable path.

    Resolution order (highest priority first):
    1. ``browser_executable`` from config
    2. CHROME_EXECUTABLE_PATH environment variable
    3. CHROME_EXECUTABLE_PATH in a .env file in the current directory
    4. Default Chrome install on Windows

    Returns None to let Playwright use its bundled Chromium.
    """
    return browser_executable_source(config)[0]


def browser_executable_source(config: CardPilotConfig | None = None) -> tuple[str | None, str]:
    """Like resolve_browser_executable, but also name where the path came from.

    The source is one of ``config``, the environment variable name, ``.env``,
    ``platform default`` or ``bundled``.
    """
    if config is not None and config.browser_executable:
        return config.browser_executable, "config"

    if path := os.environ.get(EXECUTABLE_ENV_VAR):
        return path, EXECUTABLE_ENV_VAR

    env_path = Path(".env")
    if env_path.exists():
        path = _parse_env_file(env_path, EXECUTABLE_ENV_VAR)
        if path:
            return path, ".env"

    if sys.platform == "win32":
        return WINDOWS_CHROME_PATH, "platform default"
    return None, "bundled"


def _positive_float(value: Any, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise CardPilotConfigError(f"{name} must be a number, got {value!r}") from None
    if result <= 0:
        raise CardPilotConfigError(f"{name} must be positive, got {result}")
    return result


def _parse_env_file(path: Path, key_name: str) -> str | None:
    """Parse a .env file for a specific key."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line.startswith("#") or "=" not in line:
                    continue
                k, _, v = line.partition("=")
                if k.strip() == key_name:
                    return v.strip().strip("'\"") or None
    except OSError:
        pass
    return None
