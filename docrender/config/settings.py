"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Annotated, Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import json
from pathlib import Path


DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="docrender", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")

    # Storage Configuration
    storage_path: Path = Field(default=Path("./storage"), description="Storage directory path")
    persist_payloads: bool = Field(default=True, description="Snapshot request bodies to disk")
    payload_retention: int = Field(
        default=100, ge=1, description="Number of most recent payload snapshots kept"
    )

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    browser_args: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_BROWSER_ARGS),
        description="Chromium launch flags (sandbox disabled for container compatibility)",
    )
    browser_max_age_seconds: float = Field(
        default=12 * 60 * 60, gt=0, description="Maximum browser lifetime before forced restart"
    )
    browser_warmup: bool = Field(default=True, description="Launch the browser at startup")

    # Rendering Configuration
    viewport_width: int = Field(default=794, description="A4 viewport width at 96 DPI")
    viewport_height: int = Field(default=1123, description="A4 viewport height at 96 DPI")
    device_scale_factor: float = Field(default=1.0, description="Device scale factor")
    content_load_timeout_ms: int = Field(
        default=30000, description="Network idle wait ceiling in milliseconds"
    )
    render_deadline_seconds: float = Field(
        default=90.0, gt=0, description="Overall per-request render deadline in seconds"
    )
    max_concurrent_sessions: int = Field(
        default=10, ge=1, description="Maximum concurrently open render tabs"
    )
    base_stylesheet_path: Optional[Path] = Field(
        default=Path(__file__).resolve().parent.parent / "static" / "base.css",
        description="Stylesheet inlined into the document head",
    )
    post_load_stylesheet_path: Optional[Path] = Field(
        default=None, description="Stylesheet injected after the content has loaded"
    )
    interactive_page_counter: bool = Field(
        default=False, description="Install the scroll driven current page updater"
    )

    # Dependency Checks
    dependency_checks_enabled: bool = Field(
        default=True, description="Check dependency URLs before rendering"
    )
    dependency_check_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Per URL dependency check timeout in seconds"
    )

    # API Configuration
    enable_docs: bool = Field(default=True, description="Enable FastAPI docs endpoint")
    allowed_hosts: Annotated[List[str], NoDecode] = Field(default=["*"], description="Allowed hosts for CORS")

    # Monitoring Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", "browser_args", mode="before")
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse a list from a JSON array or comma separated string."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("storage_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure directories exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="DOCRENDER_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
