from __future__ import annotations

from pathlib import Path

import pytest

from domainscout.core.config import (
    AppConfig,
    ConfigError,
    load_app_config,
    validate_config_file,
    write_default_config,
)

EXPECTED_SESSIONS = 5


def test_defaults_match_tool_conventions() -> None:
    config = AppConfig()

    assert config.runner.input_path == Path("input/domains.txt")
    assert config.runner.output_path == Path("output/domain.json")
    assert config.runner.max_sessions == 3
    assert config.checker.max_attempts == 3
    assert config.checker.backoff_seconds == 5.0
    assert config.browser.cdp_url is None


def test_written_default_config_loads(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DOMAINSCOUT_CDP_URL", raising=False)
    monkeypatch.delenv("DOMAINSCOUT_MAX_SESSIONS", raising=False)
    path = write_default_config(tmp_path / "configs" / "app.yaml")

    config = load_app_config(path)

    assert config == AppConfig()
    assert validate_config_file(path) == []


def test_env_vars_are_expanded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOMAINSCOUT_CDP_URL", "wss://browser.example/session")
    monkeypatch.setenv("OUT_DIR", "results")
    path = tmp_path / "app.yaml"
    path.write_text(
        "runner:\n"
        "  output_path: ${OUT_DIR}/domain.json\n"
        "  input_path: ${MISSING_VAR:-lists/domains.txt}\n"
        "browser:\n"
        "  cdp_url: ${DOMAINSCOUT_CDP_URL:-}\n",
        encoding="utf-8",
    )

    config = load_app_config(path)

    assert config.runner.output_path == Path("results/domain.json")
    assert config.runner.input_path == Path("lists/domains.txt")
    assert config.browser.cdp_url == "wss://browser.example/session"


def test_env_defaults_fill_unset_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOMAINSCOUT_MAX_SESSIONS", str(EXPECTED_SESSIONS))
    path = tmp_path / "app.yaml"
    path.write_text("logging:\n  level: debug\n", encoding="utf-8")

    config = load_app_config(path)

    assert config.runner.max_sessions == EXPECTED_SESSIONS
    assert config.logging.level == "DEBUG"


def test_missing_default_config_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DOMAINSCOUT_CDP_URL", raising=False)
    monkeypatch.delenv("DOMAINSCOUT_MAX_SESSIONS", raising=False)

    assert load_app_config() == AppConfig()


def test_missing_explicit_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_app_config(tmp_path / "absent.yaml")


def test_invalid_values_raise_config_error(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text("runner:\n  max_sessions: 0\n", encoding="utf-8")

    with pytest.raises(ConfigError) as exc_info:
        load_app_config(path)

    assert "max_sessions" in (exc_info.value.details or "")
    assert validate_config_file(path)[0].startswith("runner.max_sessions")


def test_malformed_yaml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text("runner: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_app_config(path)


def test_markers_are_lowercased(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text(
        "checker:\n  available_markers: ['Add To Cart']\n  unavailable_markers: ['  IS TAKEN ']\n",
        encoding="utf-8",
    )

    config = load_app_config(path)

    assert config.checker.available_markers == ["add to cart"]
    assert config.checker.unavailable_markers == ["is taken"]


def test_empty_marker_list_rejected(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text("checker:\n  unavailable_markers: []\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_app_config(path)
