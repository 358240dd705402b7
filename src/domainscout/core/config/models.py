"""
Pydantic configuration models for DomainScout.

These models provide type-safe configuration with validation for:
- Application settings
- Run settings (input/output paths, session count)
- Result store retry behavior
- Availability checker lookup and retry policy
- Browser session settings
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class BrowserType(str, Enum):
    """Supported Playwright browser engines."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


# =============================================================================
# Runner Configuration
# =============================================================================


class RunnerConfig(BaseModel):
    """Input/output locations and worker pool size."""

    input_path: Path = Field(
        default=Path("input/domains.txt"),
        description="Newline-delimited list of domains to check",
    )
    output_path: Path = Field(
        default=Path("output/domain.json"),
        description="JSON result store",
    )
    max_sessions: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum number of parallel browser sessions",
    )


# =============================================================================
# Store Configuration
# =============================================================================


class StoreConfig(BaseModel):
    """Retry settings for result store file I/O."""

    read_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Attempts for reading the result file on transient I/O errors",
    )
    read_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Fixed delay between read attempts",
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Attempts for writing the result file on transient I/O errors",
    )
    write_backoff_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Linear backoff unit between write attempts (delay = unit * attempt)",
    )


# =============================================================================
# Checker Configuration
# =============================================================================


class CheckerConfig(BaseModel):
    """Registrar lookup and retry policy."""

    registrar: str = Field(
        default="name.com",
        description="Registrar label used in logs",
    )
    search_url_template: str = Field(
        default="https://www.name.com/domain/search/{domain}",
        description="Search results URL; {domain} is replaced by the domain",
    )
    home_url: str = Field(
        default="https://www.name.com/",
        description="Registrar home page used by the fallback lookup",
    )
    search_input_selector: str = Field(
        default="input[type='search'], input[name='domain'], input[placeholder*='domain' i]",
        description="Selector for the search box on the home page",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Primary lookup attempts before falling back",
    )
    backoff_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=120.0,
        description="Linear backoff unit between primary attempts (delay = unit * attempt)",
    )
    available_markers: list[str] = Field(
        default_factory=lambda: ["is a great choice", "add to cart"],
        description="Phrases that must ALL appear for a domain to be available",
    )
    unavailable_markers: list[str] = Field(
        default_factory=lambda: ["is taken", "make offer"],
        description="Phrases of which ANY marks a domain as unavailable",
    )

    @field_validator("search_url_template")
    @classmethod
    def template_has_placeholder(cls, v: str) -> str:
        """Ensure the search URL can receive the domain."""
        if "{domain}" not in v:
            raise ValueError("search_url_template must contain '{domain}'")
        return v

    @field_validator("available_markers", "unavailable_markers")
    @classmethod
    def markers_lowercase(cls, v: list[str]) -> list[str]:
        """Markers are matched against lowercased page text."""
        markers = [m.strip().lower() for m in v if m.strip()]
        if not markers:
            raise ValueError("at least one marker is required")
        return markers


# =============================================================================
# Browser Configuration
# =============================================================================


class BrowserConfig(BaseModel):
    """Browser session settings."""

    browser: BrowserType = Field(
        default=BrowserType.CHROMIUM,
        description="Browser to use: chromium, firefox, webkit",
    )
    headless: bool = Field(
        default=True,
        description="Run locally launched browsers in headless mode",
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Per-operation timeout for navigation and actions",
    )
    viewport_width: int = Field(
        default=1920,
        ge=320,
        le=3840,
        description="Browser viewport width",
    )
    viewport_height: int = Field(
        default=1080,
        ge=240,
        le=2160,
        description="Browser viewport height",
    )
    user_agent: str | None = Field(
        default=None,
        description="Custom user agent string",
    )
    stealth: bool = Field(
        default=True,
        description="Enable stealth mode to avoid bot detection",
    )
    cdp_url: str | None = Field(
        default=None,
        description="Connect to a remote browser over CDP instead of launching one",
    )
    screenshots_on_error: bool = Field(
        default=False,
        description="Capture screenshot on lookup errors",
    )
    screenshots_path: Path = Field(
        default=Path("snapshots"),
        description="Directory for error screenshots",
    )

    @field_validator("cdp_url", "user_agent", mode="before")
    @classmethod
    def empty_as_none(cls, v: Any) -> Any:
        """Blank values from ${VAR:-} expansion mean 'not set'."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/domainscout.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    checker: CheckerConfig = Field(default_factory=CheckerConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        for dir_path in [self.runner.input_path.parent, self.runner.output_path.parent]:
            dir_path.mkdir(parents=True, exist_ok=True)

        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)
