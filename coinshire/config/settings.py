"""
Configuration Management for Coinshire

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.

Note that there is deliberately no "current user" setting. The two
users are configured here, but whoever is viewing a balance is always
passed in explicitly.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet for users"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console output otherwise)"
    )

    # Storage
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which storage backend to use"
    )
    seed_demo_data: bool = Field(
        default=False,
        description="Insert demo expenses into empty storage at startup"
    )

    # Listing
    page_size: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Default number of expenses per page"
    )
    max_page_size: int = Field(
        default=500,
        ge=1,
        description="Largest page a client may request"
    )

    # Data entry limits
    max_expense_amount: float = Field(
        default=100000.0,
        gt=0,
        description="Amounts above this are flagged for a second look"
    )
    max_description_length: int = Field(
        default=200,
        ge=1,
        description="Maximum length of an expense description"
    )

    # Display
    currency_symbol: str = Field(
        default="$",
        description="Symbol used when formatting amounts"
    )

    # HTTP
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:8501",
        description="Comma-separated list of allowed CORS origins"
    )

    # The two people sharing expenses
    user1_id: str = Field(default="u1", min_length=1)
    user1_name: str = Field(default="You", min_length=1)
    user2_id: str = Field(default="u2", min_length=1)
    user2_name: str = Field(default="Alex", min_length=1)
    user1_default_share_pct: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Share user 1 takes by default; user 2 defaults to the rest"
    )

    @model_validator(mode="after")
    def check_page_sizes(self) -> "AppSettings":
        """The default page must fit within the largest allowed page."""
        if self.page_size > self.max_page_size:
            raise ValueError(
                f"page_size ({self.page_size}) must not exceed max_page_size ({self.max_page_size})"
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def users(self) -> list[tuple[str, str]]:
        """Configured (id, name) pairs, user 1 first."""
        return [
            (self.user1_id, self.user1_name),
            (self.user2_id, self.user2_name),
        ]


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so the app can run with only
    # part of the configuration present (e.g. no Google Sheets).

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
