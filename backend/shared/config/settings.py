"""
Centralized Configuration System for the sheet mirror

Type-safe configuration with Pydantic Settings:
- Environment variable binding with defaults (and `.env` outside containers)
- Hierarchical configuration structure aggregated by ApplicationSettings
- Keyword tables for field-role and status classification live here, not in code
"""

import json
import os
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets integration settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    google_sheet_id: Optional[str] = Field(
        default=None,
        description="Spreadsheet ID to mirror"
    )
    google_credentials_base64: Optional[str] = Field(
        default=None,
        description="Base64-encoded service account JSON (production)"
    )
    google_credentials_path: str = Field(
        default="./credentials.json",
        description="Service account JSON file path (development)"
    )
    google_sheets_api_key: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="Google Sheets API key, used when no service account is configured"
    )
    sheets_column_span: str = Field(
        default="A:Z",
        description="Column span read from every tab"
    )
    sheets_request_timeout: float = Field(
        default=30.0,
        description="HTTP timeout for Sheets API calls in seconds"
    )

    @field_validator("google_sheets_api_key", mode="before")
    @classmethod
    def get_api_key(cls, v):
        return v or os.getenv("GOOGLE_API_KEY") or None


class SyncSettings(BaseSettings):
    """Sync scheduling and snapshot persistence settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    sync_interval_minutes: int = Field(
        default=5,
        ge=1,
        description="Minutes between scheduled syncs"
    )
    wip_marker: str = Field(
        default="wip",
        description="Tabs whose name contains this marker (case-insensitive) are skipped"
    )
    fetch_concurrency: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum tabs fetched at once"
    )
    snapshot_path: str = Field(
        default="data/storage-data.json",
        description="Where the last good snapshot is persisted"
    )
    sync_history_size: int = Field(
        default=100,
        ge=1,
        description="Sync runs kept in memory for stats/health"
    )


class ClassifierSettings(BaseSettings):
    """Keyword tables for field-role detection and status classification.

    Every list can be overridden with a JSON array in the environment, e.g.
    STATUS_FIELD_KEYWORDS='["status","support"]'.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    partner_field_keywords: List[str] = Field(
        default=["vendor", "manufacturer", "partner", "company", "provider", "supplier"],
    )
    product_field_keywords: List[str] = Field(
        default=["product", "model", "solution", "platform", "offering"],
    )
    status_field_keywords: List[str] = Field(
        default=["status", "state", "support", "condition", "phase"],
    )
    certification_field_keywords: List[str] = Field(
        default=["certified", "certification", "certif"],
    )

    ready_keywords: List[str] = Field(
        default=[
            "active", "supported", "supports", "available", "pass", "passed", "success",
            "successful", "approved", "stable", "yes", "ga", "certified",
            "complete", "completed", "ready", "enabled",
        ],
    )
    blocked_keywords: List[str] = Field(
        default=[
            "not supported", "unsupported", "unavailable", "not available",
            "inactive", "fail", "failed", "failure", "error", "rejected",
            "deprecated", "end-of-life", "end of life", "eol", "not certified",
            "uncertified", "disabled", "blocked", "no",
        ],
    )
    in_progress_keywords: List[str] = Field(
        default=[
            "pending", "partial", "partially supported", "beta", "preview",
            "tech preview", "experimental", "in progress", "planned",
            "testing", "limited",
        ],
    )
    truthy_keywords: List[str] = Field(
        default=["yes", "y", "true", "certified", "x", "✓", "✔", "1"],
    )

    min_filter_values: int = Field(
        default=2,
        description="Minimum distinct values for a field to be offered as a filter"
    )
    max_filter_values: int = Field(
        default=50,
        description="Maximum distinct values for a field to be offered as a filter"
    )


class ServiceSettings(BaseSettings):
    """Service configuration settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    host: str = Field(
        default="0.0.0.0",
        description="Dashboard bind host"
    )
    port: int = Field(
        default=3001,
        description="Dashboard port"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS"
    )
    cors_origins: str = Field(
        default='["http://localhost:3000", "http://localhost:3001"]',
        description="CORS allowed origins (JSON array string)"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from JSON string"""
        try:
            return json.loads(self.cors_origins)
        except (json.JSONDecodeError, TypeError):
            return ["*"]


class ApplicationSettings(BaseSettings):
    """Main application settings - aggregates all other settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    google_sheets: GoogleSheetsSettings = Field(default_factory=GoogleSheetsSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)


settings = ApplicationSettings()


def get_settings() -> ApplicationSettings:
    """
    Get the global settings instance

    Can be used with FastAPI's Depends() for dependency injection.
    """
    return settings


def reload_settings() -> ApplicationSettings:
    """
    Reload settings from environment (useful for testing)
    """
    global settings
    settings = ApplicationSettings()
    return settings
