"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.datetime_utils import format_locale_date

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # SharePoint site hosting the task lists, e.g. https://tenant.sharepoint.com/sites/Team
    sharepoint_site_url: AnyHttpUrl = Field(
        ...,
        validation_alias=AliasChoices("SHAREPOINT_SITE_URL", "sharepoint_site_url"),
    )
    sharepoint_access_token: SecretStr = Field(
        ...,
        validation_alias=AliasChoices(
            "SHAREPOINT_ACCESS_TOKEN", "sharepoint_access_token"
        ),
    )
    request_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("SHAREPOINT_TIMEOUT", "timeout"),
        ge=1,
    )

    task_list_name: str = Field(
        default="TaskManagerList",
        validation_alias=AliasChoices("TASK_LIST_NAME", "task_list_name"),
    )
    metadata_list_name: str = Field(
        default="TaskManagerMetadata",
        validation_alias=AliasChoices("METADATA_LIST_NAME", "metadata_list_name"),
    )

    page_size: int = Field(
        default=5,
        ge=1,
        le=500,
        validation_alias=AliasChoices("TASK_PAGE_SIZE", "page_size"),
    )
    display_timezone: str = Field(
        default="UTC",
        validation_alias=AliasChoices("DISPLAY_TIMEZONE", "display_timezone"),
    )
    locale_date_format: str = Field(
        default="{month}/{day}/{year}",
        validation_alias=AliasChoices("LOCALE_DATE_FORMAT", "locale_date_format"),
        description="str.format pattern using {year}, {month}, {day}, {month2}, {day2}.",
    )

    logging_settings_path: Path = Field(
        default_factory=lambda: Path("logging.conf"),
        validation_alias=AliasChoices("LOGGING_SETTINGS_PATH", "logging_settings_path"),
    )
    log_dir: Path = Field(
        default_factory=lambda: Path("logs/app"),
        validation_alias=AliasChoices("LOG_DIR", "log_dir"),
    )

    @field_validator("display_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value!r}") from exc
        return value

    @field_validator("locale_date_format")
    @classmethod
    def _validate_date_pattern(cls, value: str) -> str:
        # Render a sample date so a bad placeholder fails at start-up.
        try:
            format_locale_date("2000-01-31T00:00:00Z", "UTC", value)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid date pattern {value!r}: {exc}") from exc
        return value

    @property
    def site_url(self) -> str:
        """Return the site URL without a trailing slash."""

        return str(self.sharepoint_site_url).rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
