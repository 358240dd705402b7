"""
Configuration loader for YAML files.

Loads and validates configuration from YAML files into Pydantic models.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig

DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

# Environment variables consulted when the YAML leaves a setting unset
ENV_CDP_URL = "DOMAINSCOUT_CDP_URL"
ENV_MAX_SESSIONS = "DOMAINSCOUT_MAX_SESSIONS"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML contents

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)
    return data


def _expand_env_vars(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand environment variables in string values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2) or ""
        return os.environ.get(var_name, default)

    def expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_PATTERN.sub(replacer, value)
        elif isinstance(value, dict):
            return {k: expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [expand_value(item) for item in value]
        return value

    return expand_value(data)


def _apply_env_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Fill settings the YAML leaves unset from well-known environment variables."""
    cdp_url = os.environ.get(ENV_CDP_URL)
    if cdp_url:
        browser = data.setdefault("browser", {}) or {}
        browser.setdefault("cdp_url", cdp_url)
        data["browser"] = browser

    max_sessions = os.environ.get(ENV_MAX_SESSIONS)
    if max_sessions:
        runner = data.setdefault("runner", {}) or {}
        runner.setdefault("max_sessions", max_sessions)
        data["runner"] = runner

    return data


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid, or an explicitly
            requested file does not exist
    """
    explicit = path is not None
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    if path.exists():
        data = _load_yaml_file(path)
    elif explicit:
        raise ConfigError(f"Configuration file not found: {path}", path=path)
    else:
        data = {}

    if expand_env:
        data = _expand_env_vars(data)
        data = _apply_env_defaults(data)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}",
            path=path,
            details=str(e),
        ) from e


def validate_config_file(path: Path | str) -> list[str]:
    """Validate a configuration file without loading it into the app.

    Environment variables are expanded as in load_app_config.

    Args:
        path: Path to YAML file

    Returns:
        List of validation error messages (empty if valid)
    """
    path = Path(path)
    errors: list[str] = []

    try:
        data = _load_yaml_file(path)
    except ConfigError as e:
        errors.append(str(e))
        return errors

    data = _apply_env_defaults(_expand_env_vars(data))

    try:
        AppConfig.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

    return errors


DEFAULT_APP_CONFIG = """\
# DomainScout Configuration
# Values of the form ${VAR:-default} are read from the environment (.env supported)

runner:
  input_path: input/domains.txt
  output_path: output/domain.json
  max_sessions: 3

store:
  read_attempts: 3
  read_delay_seconds: 1.0
  write_attempts: 3
  write_backoff_seconds: 1.0

checker:
  registrar: name.com
  search_url_template: "https://www.name.com/domain/search/{domain}"
  home_url: "https://www.name.com/"
  max_attempts: 3
  backoff_seconds: 5.0
  available_markers:
    - is a great choice
    - add to cart
  unavailable_markers:
    - is taken
    - make offer

browser:
  browser: chromium
  headless: true
  timeout_seconds: 30
  stealth: true
  # Remote browser endpoint (leave empty to launch a local browser)
  cdp_url: ${DOMAINSCOUT_CDP_URL:-}
  screenshots_on_error: false

logging:
  level: INFO
  file: logs/domainscout.log
  json_format: true
  rich_console: true
"""


def write_default_config(path: Path | str = DEFAULT_CONFIG_PATH) -> Path:
    """Write the default app.yaml."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")
    return path
